from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional
import datetime

from ...core.config import DEFAULT_FINANCIAL_STATUS
from ..reports.definitions import ArtifactFormat, ReportType
from .models import JobStatus


class ReportJobParams(BaseModel):
    """What a job was asked to build. Stored verbatim as ``params_json``."""

    report_type: ReportType = ReportType.STANDARD
    start_date: datetime.date
    end_date: datetime.date
    financial_status: List[str] = Field(
        default_factory=lambda: list(DEFAULT_FINANCIAL_STATUS),
        description='Shopify financial statuses; ["any"] disables the filter',
    )
    fulfillment_status: Optional[str] = None


class ReportJobCreate(BaseModel):
    report_type: ReportType = ReportType.STANDARD
    start_date: datetime.date
    end_date: datetime.date
    financial_status: Optional[List[str]] = None
    fulfillment_status: Optional[str] = None

    @model_validator(mode="after")
    def check_date_range(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self

    def to_params(self) -> ReportJobParams:
        # None means "use the default statuses"; an empty list means no filter
        return ReportJobParams(**self.model_dump(exclude_none=True))


class ReportJobPublic(BaseModel):
    public_id: str
    status: JobStatus
    params: ReportJobParams
    error_message: Optional[str] = None
    available_formats: List[ArtifactFormat] = Field(default_factory=list)
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())


class ReportJobMessage(BaseModel):
    """Queue payload for one job. Carries the public id, the worker reloads the rest."""

    job_id: str
    shop_id: int
    params: ReportJobParams


class JobOutcome(BaseModel):
    job_id: str
    status: Optional[JobStatus] = Field(None, description="None when the job was skipped")
    skipped: bool = False
    error_message: Optional[str] = None
    order_count: int = 0
    formats: List[ArtifactFormat] = Field(default_factory=list)
