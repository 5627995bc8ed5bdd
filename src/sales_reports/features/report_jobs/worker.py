"""
Report job processing.

``ReportWorker.process`` runs one job end to end: claim, fetch, format,
render, persist. It never raises for a job that fails after the claim; the
failure is written to the job and returned in the ``JobOutcome``.

A redelivered message for a job left RUNNING longer than ``stale_after``
fails that job instead of skipping it.
"""
import datetime
import logging

from ...core.config import REPORT_JOB_STALE_SECONDS
from ..orders.service import ShopifyOrderClient
from ..reports.definitions import get_report_definition
from ..reports.pdf import PdfRenderer, ReportContext
from ..shops.service import resolve_shop_credential
from . import service as job_service
from .models import JobStatus
from .schemas import JobOutcome

logger = logging.getLogger(__name__)


def failure_message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


class ReportWorker:
    def __init__(
        self,
        order_client: ShopifyOrderClient,
        pdf_renderer: PdfRenderer,
        tz: datetime.tzinfo = datetime.timezone.utc,
        stale_after: datetime.timedelta = datetime.timedelta(seconds=REPORT_JOB_STALE_SECONDS),
    ):
        self.order_client = order_client
        self.pdf_renderer = pdf_renderer
        self.tz = tz
        self.stale_after = stale_after

    async def process(self, job_public_id: str) -> JobOutcome:
        job = await job_service.get_report_job(job_public_id)
        if job is None:
            logger.warning(f"Report job {job_public_id} does not exist; skipping")
            return JobOutcome(job_id=job_public_id, skipped=True)

        if not await job_service.mark_running(job.id):
            if job.status == JobStatus.RUNNING and await job_service.fail_stale_jobs(self.stale_after, job_id=job.id):
                logger.warning(f"Report job {job_public_id} was redelivered after its worker was lost; marked FAILED")
                return JobOutcome(
                    job_id=job_public_id, status=JobStatus.FAILED, error_message=job_service.WORKER_LOST_MESSAGE
                )
            logger.info(f"Report job {job_public_id} already claimed ({job.status.value}); skipping")
            return JobOutcome(job_id=job_public_id, skipped=True)
        logger.info(f"Claimed report job {job_public_id}")

        try:
            params = job_service.job_params(job)
            credential = await resolve_shop_credential(job.shop_id)
            definition = get_report_definition(params.report_type)

            orders = await self.order_client.fetch_orders(credential, definition.order_query(params))
            logger.info(f"Report job {job_public_id}: fetched {len(orders)} orders")
            if not orders:
                logger.warning(
                    f"Report job {job_public_id}: no orders for {params.start_date} to {params.end_date} "
                    f"with financial status {params.financial_status}"
                )

            context = ReportContext(
                shop_domain=credential.shop_domain,
                start_date=params.start_date,
                end_date=params.end_date,
            )
            artifacts = await definition.render(orders, self.tz, context, self.pdf_renderer)
            await job_service.mark_complete(job.id, artifacts)
        except Exception as e:
            logger.exception(f"Report job {job_public_id} failed")
            message = failure_message(e)
            try:
                await job_service.mark_failed(job.id, message)
            except job_service.InvalidJobTransitionError:
                logger.warning(f"Report job {job_public_id} was already finished elsewhere; keeping its status")
                return JobOutcome(job_id=job_public_id, skipped=True, error_message=message)
            return JobOutcome(job_id=job_public_id, status=JobStatus.FAILED, error_message=message)

        logger.info(f"Report job {job_public_id} complete: {', '.join(f.value for f in artifacts)}")
        return JobOutcome(
            job_id=job_public_id,
            status=JobStatus.COMPLETE,
            order_count=len(orders),
            formats=list(artifacts),
        )
