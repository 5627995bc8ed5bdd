import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from ..reports.definitions import ArtifactFormat
from ..shops.models import Shop
from ..shops.security import get_current_shop
from .queue import ReportQueue
from .schemas import ReportJobCreate, ReportJobPublic
from .service import (
    create_report_job, get_artifact, get_report_job_for_shop,
    list_report_jobs, to_message, to_public_schema
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/report-jobs",
    tags=["Report Jobs"],
)


def get_report_queue(request: Request) -> ReportQueue:
    return request.app.state.report_queue


@router.post("/", response_model=ReportJobPublic, status_code=status.HTTP_201_CREATED)
async def create_job(
    payload: ReportJobCreate,
    shop: Annotated[Shop, Depends(get_current_shop)],
    queue: Annotated[ReportQueue, Depends(get_report_queue)],
):
    job = await create_report_job(shop, payload)
    try:
        await queue.enqueue(to_message(job))
    except Exception as e:
        # The job stays QUEUED and can be re-sent with `sales-reports jobs requeue`
        logger.error(f"Report job {job.public_id} created but not enqueued: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Report job {job.public_id} was created but could not be queued. Try again later.",
        )
    return to_public_schema(job)


@router.get("/", response_model=List[ReportJobPublic])
async def list_jobs(shop: Annotated[Shop, Depends(get_current_shop)]):
    jobs = await list_report_jobs(shop)
    return [to_public_schema(job) for job in jobs]


@router.get("/{job_public_id}", response_model=ReportJobPublic)
async def get_job(job_public_id: str, shop: Annotated[Shop, Depends(get_current_shop)]):
    job = await get_report_job_for_shop(job_public_id, shop)
    return to_public_schema(job)


@router.get("/{job_public_id}/download.{extension}")
async def download_artifact(
    job_public_id: str, extension: str, shop: Annotated[Shop, Depends(get_current_shop)]
):
    try:
        fmt = ArtifactFormat(extension.lower())
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown report format '{extension}'.")

    job = await get_report_job_for_shop(job_public_id, shop)
    data = get_artifact(job, fmt)
    return Response(
        content=data,
        media_type=fmt.media_type,
        headers={"Content-Disposition": f"attachment; filename=report-{job.public_id}.{fmt.value}"},
    )
