from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel


class ReportType(str, Enum):
    user = "user"
    product = "product"


class ReportStatus(str, Enum):
    pending = "pending"
    reviewing = "reviewing"
    resolved = "resolved"
    rejected = "rejected"


class Report(BaseModel):
    id: str
    reporter_id: str
    report_type: ReportType = ReportType.user
    reported_user_id: Optional[str] = None
    reported_product_id: Optional[str] = None
    reason: str
    description: Optional[str] = None
    status: ReportStatus = ReportStatus.pending
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    admin_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @property
    def is_pending(self) -> bool:
        return self.status == ReportStatus.pending


class ReportWithDetails(Report):
    """Row of ``admin_reports_view``: a report plus who and what it concerns."""

    reporter_name: Optional[str] = None
    reporter_email: Optional[str] = None
    reported_user_name: Optional[str] = None
    reported_user_email: Optional[str] = None
    reported_user_is_banned: bool = False
    reported_product_name: Optional[str] = None
    reported_product_owner_id: Optional[str] = None
    reviewed_by_id: Optional[str] = None
    reviewed_by_name: Optional[str] = None
