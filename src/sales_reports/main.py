"""Sales detail reports API

Merchants request a sales-detail report for a date range; the report is
generated by the Celery worker and downloaded as CSV, XLSX or PDF once the
job is COMPLETE. Every report-job endpoint authenticates the shop from its
App Bridge session token."""
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from fastapi import FastAPI
from tortoise import Tortoise
from tortoise.contrib.fastapi import tortoise_exception_handlers

from .celery_app import celery
from .core.config import TORTOISE_ORM_CONFIG
from .core.logging_config import setup_logging
from .features.report_jobs.queue import CeleryReportQueue
from .features.report_jobs.router import router as report_jobs_router

logger = logging.getLogger("sales_reports.main")  # This logger will inherit from 'sales_reports'


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Connects the database and builds the report queue on startup.
    """
    setup_logging()
    logger.info("Starting application...")
    await Tortoise.init(config=TORTOISE_ORM_CONFIG)
    logger.info("Tortoise-ORM has been initialized.")

    app.state.report_queue = CeleryReportQueue(celery)

    yield

    await Tortoise.close_connections()
    logger.info("Tortoise-ORM connections have been closed.")


app = FastAPI(
    title="Sales Reports API",
    description="Asynchronous sales-detail reports for Shopify shops.",
    version="0.1.0",
    exception_handlers=tortoise_exception_handlers(),
    lifespan=lifespan,
)


@app.get("/health")
async def health():
    return {"status": "ok"}


app.include_router(report_jobs_router, prefix="/api/v1")
