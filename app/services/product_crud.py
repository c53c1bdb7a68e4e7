from fastapi import HTTPException, status
from typing import List, Optional
from uuid import UUID
from app.database import SupabaseClient
from app.models.product_model import Product, ProductCategory, ProductWithDistance
from app.schemas.product_schema import ProductCreate, ProductUpdate
from app.utils.exceptions import BackendError, to_http_exception
from app.utils.pricing import MAX_RENTAL_RADIUS_KM
from app.logger import get_logger

logger = get_logger(__name__)


class ProductCRUD:
    @staticmethod
    def get_products(
            db: SupabaseClient,
            category: Optional[ProductCategory] = None,
            available_only: bool = True,
            q: Optional[str] = None,
            limit: int = 50,
            offset: int = 0,
    ) -> List[Product]:
        """Get catalogue products with optional filtering"""
        filters = {}
        if category:
            filters["category"] = f"eq.{category.value}"
        if available_only:
            filters["is_available"] = "eq.true"
        if q:
            filters["name"] = f"ilike.*{q}*"

        try:
            rows = db.select(
                "products", filters=filters, order="created_at.desc", limit=limit, offset=offset
            )
        except BackendError as e:
            logger.error(f"Error fetching products: {e.message}")
            raise to_http_exception(e)
        return [Product.model_validate(row) for row in rows]

    @staticmethod
    def get_nearby_products(
            db: SupabaseClient,
            latitude: float,
            longitude: float,
            radius_km: float = MAX_RENTAL_RADIUS_KM,
            q: Optional[str] = None,
            category: Optional[ProductCategory] = None,
            exclude_user_id: Optional[UUID] = None,
    ) -> List[ProductWithDistance]:
        """Available products whose owners are within radius_km, nearest first.

        Owners without a stored location never show up here. The caller's own
        listings are left out when exclude_user_id is given.
        """
        params = {"user_lat": latitude, "user_lon": longitude, "radius_km": radius_km}
        if q:
            params["search_text"] = q
        if category:
            params["filter_category"] = category.value
        if exclude_user_id:
            params["exclude_user_id"] = str(exclude_user_id)

        try:
            rows = db.rpc("get_nearby_products", params) or []
        except BackendError as e:
            logger.error(f"Error fetching products near ({latitude}, {longitude}): {e.message}")
            raise to_http_exception(e)

        products = [ProductWithDistance.model_validate(row) for row in rows]
        products.sort(key=lambda product: product.distance_km)
        return products

    @staticmethod
    def get_product_distance(
            db: SupabaseClient, product_id: UUID, latitude: float, longitude: float
    ) -> Optional[float]:
        """Kilometres from the given point to the product's owner, None if the owner has no location"""
        try:
            distance = db.rpc(
                "get_product_distance",
                {"product_id": str(product_id), "user_lat": latitude, "user_lon": longitude},
            )
        except BackendError as e:
            logger.error(f"Error computing distance to product {product_id}: {e.message}")
            raise to_http_exception(e)
        return None if distance is None else float(distance)

    @staticmethod
    def get_product_by_id(db: SupabaseClient, product_id: UUID) -> Product:
        try:
            row = db.select_one("products", filters={"id": f"eq.{product_id}"})
        except BackendError as e:
            logger.error(f"Error fetching product {product_id}: {e.message}")
            raise to_http_exception(e)
        if not row:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Product not found"
            )
        return Product.model_validate(row)

    @staticmethod
    def get_owner_products(db: SupabaseClient, owner_id: UUID) -> List[Product]:
        try:
            rows = db.select(
                "products", filters={"owner_id": f"eq.{owner_id}"}, order="created_at.desc"
            )
        except BackendError as e:
            logger.error(f"Error fetching products of owner {owner_id}: {e.message}")
            raise to_http_exception(e)
        return [Product.model_validate(row) for row in rows]

    @staticmethod
    def is_user_owner(db: SupabaseClient, product_id: UUID, user_id: UUID) -> bool:
        try:
            row = db.select_one(
                "products", columns="id,owner_id", filters={"id": f"eq.{product_id}"}
            )
        except BackendError as e:
            logger.error(f"Error checking owner of product {product_id}: {e.message}")
            raise to_http_exception(e)
        return row is not None and row.get("owner_id") == str(user_id)

    @staticmethod
    def _require_owner(db: SupabaseClient, product_id: UUID, user_id: UUID) -> None:
        # 404 before 403 so a missing product is not reported as forbidden
        ProductCRUD.get_product_by_id(db, product_id)
        if not ProductCRUD.is_user_owner(db, product_id, user_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to modify this product",
            )

    @staticmethod
    def create_product(db: SupabaseClient, product: ProductCreate, owner_id: UUID) -> Product:
        data = product.model_dump(mode="json")
        data["owner_id"] = str(owner_id)
        data["is_available"] = True

        try:
            db.set_user_context(str(owner_id))
            row = db.insert("products", data)
        except BackendError as e:
            logger.error(f"Error creating product: {e.message}")
            raise to_http_exception(e)

        db_product = Product.model_validate(row)
        logger.info(f"Product created: {db_product.id} by owner {owner_id}")
        return db_product

    @staticmethod
    def update_product(
            db: SupabaseClient, product_id: UUID, product_update: ProductUpdate, user_id: UUID
    ) -> Product:
        """Update a product owned by the caller"""
        ProductCRUD._require_owner(db, product_id, user_id)

        update_data = product_update.model_dump(exclude_unset=True, mode="json")
        update_data = {key: value for key, value in update_data.items() if value is not None}
        if not update_data:
            return ProductCRUD.get_product_by_id(db, product_id)

        try:
            db.set_user_context(str(user_id))
            rows = db.update("products", update_data, filters={"id": f"eq.{product_id}"})
        except BackendError as e:
            logger.error(f"Error updating product {product_id}: {e.message}")
            raise to_http_exception(e)

        if not rows:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Product not found"
            )
        logger.info(f"Product updated: {product_id}")
        return Product.model_validate(rows[0])

    @staticmethod
    def delete_product(db: SupabaseClient, product_id: UUID, user_id: UUID) -> None:
        """Delete a product owned by the caller"""
        ProductCRUD._require_owner(db, product_id, user_id)

        try:
            db.set_user_context(str(user_id))
            rows = db.delete("products", filters={"id": f"eq.{product_id}"})
        except BackendError as e:
            logger.error(f"Error deleting product {product_id}: {e.message}")
            raise to_http_exception(e)

        if not rows:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Product not found"
            )
        logger.info(f"Product deleted: {product_id}")


product_crud = ProductCRUD()
