"""Hand-off of report jobs to the Celery worker pool."""
import asyncio
import logging
from typing import List, Protocol

from celery import Celery

from ...core.config import REPORT_QUEUE_NAME
from .schemas import ReportJobMessage

logger = logging.getLogger(__name__)

GENERATE_REPORT_TASK = "sales_reports.generate_report"


class ReportQueue(Protocol):
    async def enqueue(self, message: ReportJobMessage) -> None: ...


class EnqueueError(Exception):
    """The broker did not accept the job."""


class CeleryReportQueue:
    def __init__(self, celery_app: Celery, queue_name: str = REPORT_QUEUE_NAME):
        self.celery_app = celery_app
        self.queue_name = queue_name

    async def enqueue(self, message: ReportJobMessage) -> None:
        try:
            # send_task blocks on the broker connection
            await asyncio.to_thread(
                self.celery_app.send_task,
                GENERATE_REPORT_TASK,
                kwargs=message.model_dump(mode="json"),
                queue=self.queue_name,
            )
        except Exception as e:
            logger.error(f"Could not enqueue report job {message.job_id}: {e}")
            raise EnqueueError(str(e)) from e
        logger.info(f"Enqueued report job {message.job_id} on {self.queue_name}")


class InMemoryReportQueue:
    """Collects messages instead of sending them. Used by tests and dry runs."""

    def __init__(self):
        self.messages: List[ReportJobMessage] = []

    async def enqueue(self, message: ReportJobMessage) -> None:
        self.messages.append(message)
