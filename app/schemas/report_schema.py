from pydantic import BaseModel, Field, model_validator
from typing import Optional
from uuid import UUID
from datetime import datetime
from app.models.report_model import ReportStatus, ReportType


class ReportCreate(BaseModel):
    report_type: ReportType = ReportType.user
    reported_user_id: Optional[UUID] = None
    reported_product_id: Optional[UUID] = None
    reason: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode='after')
    def target_must_match_type(self):
        if self.report_type == ReportType.user and self.reported_user_id is None:
            raise ValueError('reported_user_id is required for user reports')
        if self.report_type == ReportType.product and self.reported_product_id is None:
            raise ValueError('reported_product_id is required for product reports')
        return self


class ReportStatusUpdate(BaseModel):
    status: ReportStatus
    admin_notes: Optional[str] = Field(None, max_length=2000)


class BanRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class BanFromReportRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500, description="Defaults to the report reason")
    admin_notes: Optional[str] = Field(None, max_length=2000)


class ReportResponse(BaseModel):
    id: UUID
    reporter_id: UUID
    report_type: ReportType
    reported_user_id: Optional[UUID] = None
    reported_product_id: Optional[UUID] = None
    reason: str
    description: Optional[str] = None
    status: ReportStatus
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    admin_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ReportWithDetailsResponse(ReportResponse):
    reporter_name: Optional[str] = None
    reporter_email: Optional[str] = None
    reported_user_name: Optional[str] = None
    reported_user_email: Optional[str] = None
    reported_user_is_banned: bool = False
    reported_product_name: Optional[str] = None
    reported_product_owner_id: Optional[UUID] = None
    reviewed_by_name: Optional[str] = None

    class Config:
        from_attributes = True


class StatisticsResponse(BaseModel):
    total_users: int
    banned_users: int
    total_reports: int
    pending_reports: int
    total_products: int
    total_bookings: int
