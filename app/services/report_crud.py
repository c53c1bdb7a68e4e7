from fastapi import HTTPException, status
from typing import List, Optional
from uuid import UUID
from app.database import SupabaseClient
from app.models.report_model import Report, ReportStatus, ReportType, ReportWithDetails
from app.schemas.report_schema import ReportCreate
from app.utils.exceptions import BackendError, to_http_exception
from app.logger import get_logger

logger = get_logger(__name__)

REPORTS_VIEW = "admin_reports_view"


class ReportCRUD:
    @staticmethod
    def create_report(db: SupabaseClient, report: ReportCreate, reporter_id: UUID) -> Report:
        """File a report against a user or a product"""
        if report.report_type == ReportType.user and str(report.reported_user_id) == str(reporter_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot report yourself",
            )

        data = {
            "reporter_id": str(reporter_id),
            "report_type": report.report_type.value,
            "reason": report.reason,
            "description": report.description,
            "status": ReportStatus.pending.value,
        }
        if report.report_type == ReportType.user:
            data["reported_user_id"] = str(report.reported_user_id)
        else:
            data["reported_product_id"] = str(report.reported_product_id)

        try:
            db.set_user_context(str(reporter_id))
            row = db.insert("reports", data)
        except BackendError as e:
            logger.error(f"Error creating report: {e.message}")
            raise to_http_exception(e)

        db_report = Report.model_validate(row)
        logger.info(f"Report created: {db_report.id} by user {reporter_id}")
        return db_report

    @staticmethod
    def get_reports(
            db: SupabaseClient,
            report_status: Optional[ReportStatus] = None,
            report_type: Optional[ReportType] = None,
            limit: int = 100,
    ) -> List[ReportWithDetails]:
        filters = {}
        if report_status:
            filters["status"] = f"eq.{report_status.value}"
        if report_type:
            filters["report_type"] = f"eq.{report_type.value}"

        try:
            rows = db.select(REPORTS_VIEW, filters=filters, order="created_at.desc", limit=limit)
        except BackendError as e:
            logger.error(f"Error fetching reports: {e.message}")
            raise to_http_exception(e)
        return [ReportWithDetails.model_validate(row) for row in rows]

    @staticmethod
    def get_report_by_id(db: SupabaseClient, report_id: UUID) -> ReportWithDetails:
        try:
            row = db.select_one(REPORTS_VIEW, filters={"id": f"eq.{report_id}"})
        except BackendError as e:
            logger.error(f"Error fetching report {report_id}: {e.message}")
            raise to_http_exception(e)
        if not row:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Report not found"
            )
        return ReportWithDetails.model_validate(row)

    @staticmethod
    def get_pending_reports(db: SupabaseClient) -> List[ReportWithDetails]:
        return ReportCRUD.get_reports(db, report_status=ReportStatus.pending)

    @staticmethod
    def get_user_reports_count(db: SupabaseClient, user_id: UUID) -> int:
        """How many reports have been filed against the user"""
        try:
            return db.count("reports", filters={"reported_user_id": f"eq.{user_id}"})
        except BackendError as e:
            logger.error(f"Error counting reports for user {user_id}: {e.message}")
            raise to_http_exception(e)


report_crud = ReportCRUD()
