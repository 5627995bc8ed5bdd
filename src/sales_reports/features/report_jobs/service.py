"""
Report job store.

Jobs are created QUEUED by the API and only ever move forward:
QUEUED -> RUNNING -> COMPLETE | FAILED. Every transition is a conditional
UPDATE keyed on the current status, so a redelivered queue message can never
claim a job twice or overwrite a finished one. Result blobs are written in the
same UPDATE that sets COMPLETE.
"""
import datetime
import logging
from typing import Dict, List, Optional

from fastapi import HTTPException, status
from tortoise import timezone

from ...core.config import JOB_LIST_LIMIT
from ..reports.definitions import ArtifactFormat
from ..shops.models import Shop
from .models import JobStatus, ReportJob
from .schemas import ReportJobCreate, ReportJobMessage, ReportJobParams, ReportJobPublic

logger = logging.getLogger(__name__)


class InvalidJobTransitionError(Exception):
    """The job was not in the status a transition requires."""


class ReportJobFailedError(Exception):
    """Raised by the queue task so the broker records a failed run."""


def _blob_field(fmt: ArtifactFormat) -> str:
    return f"{fmt.value}_data"


def job_params(job: ReportJob) -> ReportJobParams:
    return ReportJobParams.model_validate_json(job.params_json)


def available_formats(job: ReportJob) -> List[ArtifactFormat]:
    if job.status != JobStatus.COMPLETE:
        return []
    return [fmt for fmt in ArtifactFormat if getattr(job, _blob_field(fmt)) is not None]


def to_public_schema(job: ReportJob) -> ReportJobPublic:
    return ReportJobPublic(
        public_id=job.public_id,
        status=job.status,
        params=job_params(job),
        error_message=job.error_message,
        available_formats=available_formats(job),
        created_at=job.created_at,
        updated_at=job.updated_at,
    )


def to_message(job: ReportJob) -> ReportJobMessage:
    return ReportJobMessage(job_id=job.public_id, shop_id=job.shop_id, params=job_params(job))


async def create_report_job(shop: Shop, payload: ReportJobCreate) -> ReportJob:
    params = payload.to_params()
    job = await ReportJob.create(shop=shop, params_json=params.model_dump_json())
    logger.info(f"Created {params.report_type.value} report job {job.public_id} for {shop.shop_domain}")
    return job


async def list_report_jobs(shop: Shop, limit: int = JOB_LIST_LIMIT) -> List[ReportJob]:
    return await ReportJob.filter(shop_id=shop.id).order_by("-created_at", "-id").limit(limit)


async def get_report_job(job_public_id: str) -> Optional[ReportJob]:
    return await ReportJob.get_or_none(public_id=job_public_id)


async def get_report_job_for_shop(job_public_id: str, shop: Shop) -> ReportJob:
    job = await get_report_job(job_public_id)
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Report job {job_public_id} not found.")
    if job.shop_id != shop.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to access this report job.")
    return job


def get_artifact(job: ReportJob, fmt: ArtifactFormat) -> bytes:
    data = getattr(job, _blob_field(fmt)) if job.status == JobStatus.COMPLETE else None
    if data is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Report not ready or {fmt.value.upper()} not generated.",
        )
    return bytes(data)


async def mark_running(job_id: int) -> bool:
    """Claims a QUEUED job. Returns False if another delivery got there first."""
    updated = await ReportJob.filter(id=job_id, status=JobStatus.QUEUED).update(
        status=JobStatus.RUNNING, updated_at=timezone.now()
    )
    return updated == 1


async def mark_complete(job_id: int, artifacts: Dict[ArtifactFormat, bytes]) -> None:
    blobs = {_blob_field(fmt): data for fmt, data in artifacts.items()}
    updated = await ReportJob.filter(id=job_id, status=JobStatus.RUNNING).update(
        status=JobStatus.COMPLETE, error_message=None, updated_at=timezone.now(), **blobs
    )
    if updated != 1:
        raise InvalidJobTransitionError(f"Report job {job_id} is not RUNNING; cannot complete it")


async def mark_failed(job_id: int, message: str) -> None:
    updated = await ReportJob.filter(id=job_id, status=JobStatus.RUNNING).update(
        status=JobStatus.FAILED, error_message=message or "Report generation failed", updated_at=timezone.now()
    )
    if updated != 1:
        raise InvalidJobTransitionError(f"Report job {job_id} is not RUNNING; cannot fail it")


WORKER_LOST_MESSAGE = "The worker processing this report stopped before it finished."


async def fail_stale_jobs(older_than: datetime.timedelta, job_id: Optional[int] = None) -> int:
    """Fails RUNNING jobs not updated for ``older_than``. Returns how many were failed.

    A job stays RUNNING forever if its worker dies after claiming it, because
    the redelivered message can no longer claim it.
    """
    cutoff = timezone.now() - older_than
    query = ReportJob.filter(status=JobStatus.RUNNING, updated_at__lt=cutoff)
    if job_id is not None:
        query = query.filter(id=job_id)
    updated = await query.update(
        status=JobStatus.FAILED, error_message=WORKER_LOST_MESSAGE, updated_at=timezone.now()
    )
    if updated:
        logger.warning(f"Failed {updated} stale RUNNING report job(s) older than {older_than}")
    return updated
