from fastapi import APIRouter, Depends, HTTPException, status
from app.services.report_crud import report_crud
from app.schemas.report_schema import ReportCreate, ReportResponse
from app.models.user_model import UserProfile
from app.database import SupabaseClient, get_db
from app.security.auth import get_current_active_user
from app.logger import get_logger

report_router = APIRouter()
logger = get_logger(__name__)


@report_router.post("/reports", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
def create_report(
        report: ReportCreate,
        current_user: UserProfile = Depends(get_current_active_user),
        db: SupabaseClient = Depends(get_db)
):
    """Report a user or a product to the admins"""
    try:
        logger.info(f"User {current_user.id} filing a {report.report_type.value} report")
        db_report = report_crud.create_report(db, report, current_user.id)
        return ReportResponse.model_validate(db_report)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating report: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while creating report"
        )
