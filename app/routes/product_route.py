from fastapi import APIRouter, Depends, HTTPException, status, Query
from uuid import UUID
from typing import List, Optional, Tuple
from datetime import date
from app.services.product_crud import product_crud
from app.services.booking_crud import booking_crud
from app.schemas.product_schema import (
    NearbyProductResponse,
    ProductCreate,
    ProductDistanceResponse,
    ProductResponse,
    ProductUpdate,
)
from app.schemas.booking_schema import AvailabilityResponse
from app.models.product_model import ProductCategory
from app.models.user_model import UserProfile
from app.database import SupabaseClient, get_db
from app.security.auth import get_current_active_user
from app.utils.pricing import MAX_RENTAL_RADIUS_KM, format_distance, is_within_rental_radius
from app.logger import get_logger

product_router = APIRouter()
logger = get_logger(__name__)


def _caller_location(
        current_user: UserProfile, latitude: Optional[float], longitude: Optional[float]
) -> Tuple[float, float]:
    """Explicit coordinates win over the ones stored on the profile"""
    if (latitude is None) != (longitude is None):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="latitude and longitude must be given together"
        )
    if latitude is not None:
        return latitude, longitude
    if not current_user.has_location:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Location is not set: update it with PUT /api/me/location"
        )
    return current_user.latitude, current_user.longitude


# PUBLIC ENDPOINTS - browsing the catalogue does not need an account

@product_router.get("/products", response_model=List[ProductResponse], status_code=status.HTTP_200_OK)
def get_products(
        category: Optional[ProductCategory] = Query(None, description="DSLR, Mirrorless, Drone or Lens"),
        available_only: bool = Query(True, description="Hide products that are not for rent"),
        q: Optional[str] = Query(None, min_length=1, description="Search in product names"),
        skip: int = Query(0, ge=0),
        limit: int = Query(50, ge=1, le=100),
        db: SupabaseClient = Depends(get_db)
):
    try:
        products = product_crud.get_products(
            db, category=category, available_only=available_only, q=q, limit=limit, offset=skip
        )
        return [ProductResponse.model_validate(product) for product in products]

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching products: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching products"
        )


@product_router.get("/products/mine", response_model=List[ProductResponse], status_code=status.HTTP_200_OK)
def get_my_products(
        current_user: UserProfile = Depends(get_current_active_user),
        db: SupabaseClient = Depends(get_db)
):
    """Products listed by the caller"""
    try:
        products = product_crud.get_owner_products(db, current_user.id)
        return [ProductResponse.model_validate(product) for product in products]

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching products of {current_user.id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching products"
        )


@product_router.get(
    "/products/nearby", response_model=List[NearbyProductResponse], status_code=status.HTTP_200_OK
)
def get_nearby_products(
        latitude: Optional[float] = Query(None, ge=-90, le=90),
        longitude: Optional[float] = Query(None, ge=-180, le=180),
        radius_km: float = Query(MAX_RENTAL_RADIUS_KM, gt=0, le=100),
        category: Optional[ProductCategory] = Query(None),
        q: Optional[str] = Query(None, min_length=1, description="Search in product names"),
        current_user: UserProfile = Depends(get_current_active_user),
        db: SupabaseClient = Depends(get_db)
):
    """Products around the caller, nearest first, without the caller's own listings"""
    lat, lon = _caller_location(current_user, latitude, longitude)
    try:
        products = product_crud.get_nearby_products(
            db, lat, lon, radius_km=radius_km, q=q, category=category, exclude_user_id=current_user.id
        )
        return [NearbyProductResponse.model_validate(product) for product in products]

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching nearby products for {current_user.id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching nearby products"
        )


@product_router.get("/products/{product_id}", response_model=ProductResponse, status_code=status.HTTP_200_OK)
def get_product(product_id: UUID, db: SupabaseClient = Depends(get_db)):
    try:
        return ProductResponse.model_validate(product_crud.get_product_by_id(db, product_id))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching product {product_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching product"
        )


@product_router.get(
    "/products/{product_id}/availability",
    response_model=AvailabilityResponse,
    status_code=status.HTTP_200_OK,
)
def check_product_availability(
        product_id: UUID,
        start_date: date = Query(...),
        end_date: date = Query(...),
        db: SupabaseClient = Depends(get_db)
):
    """Whether the date range is still free for this product"""
    if end_date <= start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must be after start_date"
        )
    try:
        product_crud.get_product_by_id(db, product_id)
        available = booking_crud.check_product_availability(db, str(product_id), start_date, end_date)
        return AvailabilityResponse(
            product_id=product_id, start_date=start_date, end_date=end_date, available=available
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error checking availability of product {product_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while checking availability"
        )


@product_router.get(
    "/products/{product_id}/distance",
    response_model=ProductDistanceResponse,
    status_code=status.HTTP_200_OK,
)
def get_product_distance(
        product_id: UUID,
        latitude: Optional[float] = Query(None, ge=-90, le=90),
        longitude: Optional[float] = Query(None, ge=-180, le=180),
        current_user: UserProfile = Depends(get_current_active_user),
        db: SupabaseClient = Depends(get_db)
):
    """How far the product's owner is from the caller"""
    lat, lon = _caller_location(current_user, latitude, longitude)
    try:
        product_crud.get_product_by_id(db, product_id)
        distance = product_crud.get_product_distance(db, product_id, lat, lon)
        if distance is None:
            return ProductDistanceResponse(product_id=product_id)
        return ProductDistanceResponse(
            product_id=product_id,
            distance_km=distance,
            formatted_distance=format_distance(distance),
            is_within_rental_radius=is_within_rental_radius(distance),
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error computing distance to product {product_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while computing distance"
        )


# OWNER ENDPOINTS

@product_router.post("/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
        product: ProductCreate,
        current_user: UserProfile = Depends(get_current_active_user),
        db: SupabaseClient = Depends(get_db)
):
    """List a new product for rent"""
    try:
        logger.info(f"User {current_user.id} creating product: {product.name}")
        db_product = product_crud.create_product(db, product, current_user.id)
        return ProductResponse.model_validate(db_product)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating product: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while creating product"
        )


@product_router.patch("/products/{product_id}", response_model=ProductResponse, status_code=status.HTTP_200_OK)
def update_product(
        product_id: UUID,
        product_update: ProductUpdate,
        current_user: UserProfile = Depends(get_current_active_user),
        db: SupabaseClient = Depends(get_db)
):
    try:
        logger.info(f"User {current_user.id} updating product {product_id}")
        db_product = product_crud.update_product(db, product_id, product_update, current_user.id)
        return ProductResponse.model_validate(db_product)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating product {product_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while updating product"
        )


@product_router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
        product_id: UUID,
        current_user: UserProfile = Depends(get_current_active_user),
        db: SupabaseClient = Depends(get_db)
):
    try:
        logger.info(f"User {current_user.id} deleting product {product_id}")
        product_crud.delete_product(db, product_id, current_user.id)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting product {product_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while deleting product"
        )
