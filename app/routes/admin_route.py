from fastapi import APIRouter, Depends, HTTPException, status, Query
from uuid import UUID
from typing import List, Optional
from app.services.admin_crud import admin_crud
from app.services.payment_crud import payment_crud
from app.services.report_crud import report_crud
from app.services.user_crud import user_crud
from app.schemas.booking_schema import PaymentResponse, PaymentStatusUpdate
from app.schemas.report_schema import (
    BanFromReportRequest,
    BanRequest,
    ReportStatusUpdate,
    ReportWithDetailsResponse,
    StatisticsResponse,
)
from app.schemas.user_schema import AdminUserOut, UserActionResponse
from app.models.report_model import ReportStatus, ReportType
from app.models.user_model import UserProfile
from app.database import SupabaseClient, get_db
from app.security.auth import get_current_admin_user
from app.logger import get_logger

admin_router = APIRouter(prefix="/admin")
logger = get_logger(__name__)


# REPORTS

@admin_router.get("/reports", response_model=List[ReportWithDetailsResponse], status_code=status.HTTP_200_OK)
def get_reports(
        report_status: Optional[ReportStatus] = Query(None, alias="status"),
        report_type: Optional[ReportType] = Query(None),
        limit: int = Query(100, ge=1, le=500),
        current_user: UserProfile = Depends(get_current_admin_user),
        db: SupabaseClient = Depends(get_db)
):
    try:
        logger.info(f"Admin {current_user.id} fetching reports")
        reports = report_crud.get_reports(db, report_status, report_type, limit)
        return [ReportWithDetailsResponse.model_validate(report) for report in reports]

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching reports: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching reports"
        )


@admin_router.get("/reports/pending", response_model=List[ReportWithDetailsResponse], status_code=status.HTTP_200_OK)
def get_pending_reports(
        current_user: UserProfile = Depends(get_current_admin_user),
        db: SupabaseClient = Depends(get_db)
):
    """Moderation queue: reports nobody has looked at yet"""
    try:
        reports = report_crud.get_pending_reports(db)
        return [ReportWithDetailsResponse.model_validate(report) for report in reports]

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching pending reports: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching reports"
        )


@admin_router.get("/reports/{report_id}", response_model=ReportWithDetailsResponse, status_code=status.HTTP_200_OK)
def get_report(
        report_id: UUID,
        current_user: UserProfile = Depends(get_current_admin_user),
        db: SupabaseClient = Depends(get_db)
):
    try:
        return ReportWithDetailsResponse.model_validate(report_crud.get_report_by_id(db, report_id))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching report {report_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching report"
        )


@admin_router.patch("/reports/{report_id}/status", response_model=ReportWithDetailsResponse, status_code=status.HTTP_200_OK)
def update_report_status(
        report_id: UUID,
        status_update: ReportStatusUpdate,
        current_user: UserProfile = Depends(get_current_admin_user),
        db: SupabaseClient = Depends(get_db)
):
    try:
        report = admin_crud.update_report_status(
            db, report_id, status_update.status, current_user.id, status_update.admin_notes
        )
        return ReportWithDetailsResponse.model_validate(report)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating report {report_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while updating report"
        )


@admin_router.post("/reports/{report_id}/ban", response_model=ReportWithDetailsResponse, status_code=status.HTTP_200_OK)
def ban_reported_user(
        report_id: UUID,
        ban_request: BanFromReportRequest,
        current_user: UserProfile = Depends(get_current_admin_user),
        db: SupabaseClient = Depends(get_db)
):
    """Ban the user a report is about and resolve the report"""
    try:
        report = admin_crud.ban_user_and_resolve_report(
            db, report_id, current_user.id, ban_request.reason, ban_request.admin_notes
        )
        return ReportWithDetailsResponse.model_validate(report)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error banning user from report {report_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while banning user"
        )


# USERS

@admin_router.get("/users", response_model=List[AdminUserOut], status_code=status.HTTP_200_OK)
def get_users(
        is_banned: Optional[bool] = Query(None),
        skip: int = Query(0, ge=0),
        limit: int = Query(100, ge=1, le=500),
        current_user: UserProfile = Depends(get_current_admin_user),
        db: SupabaseClient = Depends(get_db)
):
    try:
        logger.info(f"Admin {current_user.id} fetching users list")
        users = admin_crud.get_users(db, is_banned=is_banned, limit=limit, offset=skip)
        return [AdminUserOut.model_validate(user) for user in users]

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching users: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching users"
        )


@admin_router.get("/users/{user_id}", response_model=AdminUserOut, status_code=status.HTTP_200_OK)
def get_user(
        user_id: UUID,
        current_user: UserProfile = Depends(get_current_admin_user),
        db: SupabaseClient = Depends(get_db)
):
    """User profile with the number of reports filed against them"""
    try:
        user = AdminUserOut.model_validate(user_crud.get_profile(db, user_id))
        user.reports_count = report_crud.get_user_reports_count(db, user_id)
        return user

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching user {user_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching user"
        )


@admin_router.post("/users/{user_id}/ban", response_model=UserActionResponse, status_code=status.HTTP_200_OK)
def ban_user(
        user_id: UUID,
        ban_request: BanRequest,
        current_user: UserProfile = Depends(get_current_admin_user),
        db: SupabaseClient = Depends(get_db)
):
    try:
        return admin_crud.ban_user(db, user_id, current_user.id, ban_request.reason)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error banning user {user_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while banning user"
        )


@admin_router.post("/users/{user_id}/unban", response_model=UserActionResponse, status_code=status.HTTP_200_OK)
def unban_user(
        user_id: UUID,
        current_user: UserProfile = Depends(get_current_admin_user),
        db: SupabaseClient = Depends(get_db)
):
    try:
        logger.info(f"Admin {current_user.id} unbanning user {user_id}")
        return admin_crud.unban_user(db, user_id)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error unbanning user {user_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while unbanning user"
        )


# PLATFORM

@admin_router.get("/statistics", response_model=StatisticsResponse, status_code=status.HTTP_200_OK)
def get_statistics(
        current_user: UserProfile = Depends(get_current_admin_user),
        db: SupabaseClient = Depends(get_db)
):
    try:
        return StatisticsResponse(**admin_crud.get_statistics(db))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error computing statistics: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while computing statistics"
        )


@admin_router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
        product_id: UUID,
        current_user: UserProfile = Depends(get_current_admin_user),
        db: SupabaseClient = Depends(get_db)
):
    try:
        admin_crud.delete_product(db, product_id, current_user.id)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting product {product_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while deleting product"
        )


@admin_router.patch("/payments/{order_id}/status", response_model=PaymentResponse, status_code=status.HTTP_200_OK)
def update_payment_status(
        order_id: str,
        status_update: PaymentStatusUpdate,
        current_user: UserProfile = Depends(get_current_admin_user),
        db: SupabaseClient = Depends(get_db)
):
    """Record the payment provider's outcome for an order"""
    try:
        logger.info(f"Admin {current_user.id} setting payment {order_id} to {status_update.status.value}")
        payment = payment_crud.update_payment_status(db, order_id, status_update.status)
        return PaymentResponse.model_validate(payment)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating payment {order_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while updating payment"
        )
