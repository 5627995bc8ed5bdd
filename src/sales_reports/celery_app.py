# Celery worker for report generation: Redis broker, late acks, one job per slot
import asyncio
import logging
from zoneinfo import ZoneInfo

import httpx
from celery import Celery
from celery.signals import worker_process_init
from tortoise import Tortoise

from .core.config import (
    CELERY_RESULT_BACKEND, REDIS_URL, REPORT_QUEUE_NAME, REPORT_TIMEZONE,
    REPORT_VISIBILITY_TIMEOUT, REPORT_WORKER_CONCURRENCY, SHOPIFY_HTTP_TIMEOUT, TORTOISE_ORM_CONFIG,
)
from .core.logging_config import setup_logging
from .features.orders.service import ShopifyOrderClient
from .features.report_jobs.models import JobStatus
from .features.report_jobs.queue import GENERATE_REPORT_TASK
from .features.report_jobs.schemas import JobOutcome
from .features.report_jobs.service import ReportJobFailedError
from .features.report_jobs.worker import ReportWorker
from .features.reports.pdf import PdfRenderer

logger = logging.getLogger(__name__)

celery = Celery("sales_reports", broker=REDIS_URL, backend=CELERY_RESULT_BACKEND)

celery.conf.task_default_queue = REPORT_QUEUE_NAME
celery.conf.task_acks_late = True
celery.conf.worker_prefetch_multiplier = 1
celery.conf.worker_concurrency = REPORT_WORKER_CONCURRENCY
celery.conf.task_serializer = "json"
celery.conf.result_serializer = "json"
celery.conf.accept_content = ["json"]
# setup_logging owns the sales_reports handler
celery.conf.worker_hijack_root_logger = False
celery.conf.broker_transport_options = {"visibility_timeout": REPORT_VISIBILITY_TIMEOUT}


@worker_process_init.connect
def _on_worker_process_init(**_):
    setup_logging()


async def run_report_job(job_public_id: str) -> JobOutcome:
    """Processes one job with its own DB connections, HTTP client and renderer."""
    tz = ZoneInfo(REPORT_TIMEZONE)
    await Tortoise.init(config=TORTOISE_ORM_CONFIG)
    try:
        async with httpx.AsyncClient(timeout=SHOPIFY_HTTP_TIMEOUT) as http_client:
            worker = ReportWorker(ShopifyOrderClient(http_client), PdfRenderer(tz), tz)
            return await worker.process(job_public_id)
    finally:
        await Tortoise.close_connections()


@celery.task(name=GENERATE_REPORT_TASK, acks_late=True)
def generate_report(job_id: str, shop_id: int, params: dict) -> dict:
    logger.info(f"Received report job {job_id} for shop {shop_id}")
    outcome = asyncio.run(run_report_job(job_id))
    if outcome.status == JobStatus.FAILED:
        raise ReportJobFailedError(f"Report job {job_id} failed: {outcome.error_message}")
    return outcome.model_dump(mode="json")
