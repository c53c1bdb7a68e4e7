from fastapi import HTTPException, status
from typing import Dict, List, Optional
from uuid import UUID
from app.database import SupabaseClient
from app.models.report_model import ReportStatus, ReportType, ReportWithDetails
from app.models.user_model import UserProfile
from app.services.report_crud import ReportCRUD
from app.utils.exceptions import (
    AuthenticationError,
    BackendError,
    NotFoundError,
    RemoteError,
    ValidationError,
    to_http_exception,
)
from app.logger import get_logger

logger = get_logger(__name__)

# Error strings returned by the admin procedures, mapped to the error they mean
RPC_ERRORS = {
    "User tidak ditemukan": NotFoundError,
    "No rows updated": NotFoundError,
    "Hanya admin yang bisa ban user": AuthenticationError,
    "Not an admin": AuthenticationError,
    "User sudah dalam status banned": ValidationError,
    "User tidak dalam status banned": ValidationError,
}


def _check_rpc_result(name: str, result) -> dict:
    """Procedures answer ``{"success": bool, "error"?: str, ...}`` instead of failing."""
    if not isinstance(result, dict):
        raise RemoteError(f"Unexpected response from {name}")
    if result.get("success"):
        return result

    message = result.get("error") or f"{name} failed"
    error_cls = RPC_ERRORS.get(message, RemoteError)
    if error_cls is AuthenticationError:
        raise error_cls(message, status_code=status.HTTP_403_FORBIDDEN)
    if error_cls is ValidationError:
        raise error_cls(message, status_code=status.HTTP_409_CONFLICT)
    raise error_cls(message)


class AdminCRUD:
    @staticmethod
    def ban_user(db: SupabaseClient, user_id: UUID, admin_id: UUID, reason: str) -> dict:
        if str(user_id) == str(admin_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Admins cannot ban themselves",
            )
        try:
            result = db.rpc(
                "admin_ban_user",
                {"p_user_id": str(user_id), "p_admin_id": str(admin_id), "p_reason": reason},
            )
            result = _check_rpc_result("admin_ban_user", result)
        except BackendError as e:
            logger.error(f"Error banning user {user_id}: {e.message}")
            raise to_http_exception(e)

        logger.info(f"User {user_id} banned by admin {admin_id}: {reason}")
        return {"message": result.get("message") or "User banned", "user_id": str(user_id)}

    @staticmethod
    def unban_user(db: SupabaseClient, user_id: UUID) -> dict:
        try:
            result = db.rpc("admin_unban_user", {"p_user_id": str(user_id)})
            result = _check_rpc_result("admin_unban_user", result)
        except BackendError as e:
            logger.error(f"Error unbanning user {user_id}: {e.message}")
            raise to_http_exception(e)

        logger.info(f"User {user_id} unbanned")
        return {"message": result.get("message") or "User unbanned", "user_id": str(user_id)}

    @staticmethod
    def update_report_status(
            db: SupabaseClient,
            report_id: UUID,
            report_status: ReportStatus,
            admin_id: UUID,
            admin_notes: Optional[str] = None,
    ) -> ReportWithDetails:
        try:
            result = db.rpc(
                "admin_update_report_status",
                {
                    "p_report_id": str(report_id),
                    "p_status": report_status.value,
                    "p_admin_id": str(admin_id),
                    "p_admin_notes": admin_notes,
                },
            )
            _check_rpc_result("admin_update_report_status", result)
        except BackendError as e:
            logger.error(f"Error updating report {report_id}: {e.message}")
            raise to_http_exception(e)

        logger.info(f"Report {report_id} set to {report_status.value} by admin {admin_id}")
        return ReportCRUD.get_report_by_id(db, report_id)

    @staticmethod
    def ban_user_and_resolve_report(
            db: SupabaseClient,
            report_id: UUID,
            admin_id: UUID,
            reason: Optional[str] = None,
            admin_notes: Optional[str] = None,
    ) -> ReportWithDetails:
        """Ban the reported user and close the report as resolved"""
        report = ReportCRUD.get_report_by_id(db, report_id)
        if report.report_type != ReportType.user or not report.reported_user_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only user reports can lead to a ban",
            )

        reason = reason or report.reason
        if not report.reported_user_is_banned:
            AdminCRUD.ban_user(db, report.reported_user_id, admin_id, reason)

        notes = admin_notes or f"User banned: {reason}"
        return AdminCRUD.update_report_status(
            db, report_id, ReportStatus.resolved, admin_id, notes
        )

    @staticmethod
    def get_users(
            db: SupabaseClient,
            is_banned: Optional[bool] = None,
            limit: int = 100,
            offset: int = 0,
    ) -> List[UserProfile]:
        filters = {}
        if is_banned is not None:
            filters["is_banned"] = f"eq.{str(is_banned).lower()}"
        try:
            rows = db.select(
                "users", filters=filters, order="created_at.desc", limit=limit, offset=offset
            )
        except BackendError as e:
            logger.error(f"Error fetching users: {e.message}")
            raise to_http_exception(e)
        return [UserProfile.model_validate(row) for row in rows]

    @staticmethod
    def get_statistics(db: SupabaseClient) -> Dict[str, int]:
        try:
            return {
                "total_users": db.count("users"),
                "banned_users": db.count("users", filters={"is_banned": "eq.true"}),
                "total_reports": db.count("reports"),
                "pending_reports": db.count(
                    "reports", filters={"status": f"eq.{ReportStatus.pending.value}"}
                ),
                "total_products": db.count("products"),
                "total_bookings": db.count("bookings"),
            }
        except BackendError as e:
            logger.error(f"Error computing statistics: {e.message}")
            raise to_http_exception(e)

    @staticmethod
    def delete_product(db: SupabaseClient, product_id: UUID, admin_id: UUID) -> None:
        """Remove any product, regardless of owner"""
        try:
            db.set_user_context(str(admin_id))
            rows = db.delete("products", filters={"id": f"eq.{product_id}"})
        except BackendError as e:
            logger.error(f"Error deleting product {product_id}: {e.message}")
            raise to_http_exception(e)

        if not rows:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Product not found"
            )
        logger.info(f"Product {product_id} deleted by admin {admin_id}")


admin_crud = AdminCRUD()
