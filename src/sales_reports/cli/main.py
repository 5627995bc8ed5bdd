import asyncio
import datetime
import logging
from pathlib import Path
from typing import List, Optional

import typer
from fastapi import HTTPException
from tortoise import Tortoise

from sales_reports.celery_app import celery, run_report_job
from sales_reports.core.config import (
    REPORT_JOB_STALE_SECONDS, REPORT_QUEUE_NAME, REPORT_WORKER_CONCURRENCY, TORTOISE_ORM_CONFIG,
)
from sales_reports.core.logging_config import setup_logging
from sales_reports.features.report_jobs import service as job_service
from sales_reports.features.report_jobs.models import JobStatus, ReportJob
from sales_reports.features.report_jobs.queue import CeleryReportQueue, EnqueueError
from sales_reports.features.report_jobs.schemas import ReportJobCreate
from sales_reports.features.reports.definitions import ArtifactFormat, ReportType
from sales_reports.features.shops import service as shop_service
from sales_reports.features.shops.models import Shop
from sales_reports.features.shops.security import create_session_token

logger = logging.getLogger(__name__)

app = typer.Typer(name="sales-reports", help="CLI for shops and sales-detail report jobs.")


@app.callback()
def main(log_level: Optional[str] = typer.Option(None, help="Override LOG_LEVEL for this run.")):
    setup_logging(level=log_level)


# Shared async context manager for database connection
class DBConnection:
    async def __aenter__(self):
        await Tortoise.init(config=TORTOISE_ORM_CONFIG)
        await Tortoise.generate_schemas(safe=True)  # Generate schema if it doesn't exist
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await Tortoise.close_connections()


async def _get_shop_or_exit(shop_domain: str) -> Shop:
    shop = await shop_service.get_shop_by_domain(shop_domain)
    if shop is None:
        typer.secho(f"Error: Shop '{shop_domain}' not found.", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    return shop


async def _get_job_or_exit(job_public_id: str) -> ReportJob:
    job = await job_service.get_report_job(job_public_id)
    if job is None:
        typer.secho(f"Error: Report job '{job_public_id}' not found.", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    return job


# Shop commands
shops_app = typer.Typer(name="shops", help="Manage installed shops.")
app.add_typer(shops_app)


@shops_app.command("register")
def register_shop_command(
    shop_domain: str = typer.Argument(..., help="e.g. example.myshopify.com"),
    access_token: str = typer.Option(..., prompt=True, hide_input=True, help="Offline Admin API access token."),
):
    """Registers a shop or refreshes its access token."""
    asyncio.run(_register_shop(shop_domain, access_token))


async def _register_shop(shop_domain: str, access_token: str):
    async with DBConnection():
        shop = await shop_service.register_shop(shop_domain, access_token)
        typer.secho(f"Shop '{shop.shop_domain}' registered with ID: {shop.public_id}", fg=typer.colors.GREEN)


@shops_app.command("list")
def list_shops_command():
    """Lists registered shops."""
    asyncio.run(_list_shops())


async def _list_shops():
    async with DBConnection():
        shops = await Shop.all().order_by("shop_domain")
        if not shops:
            typer.echo("No shops registered.")
        for shop in shops:
            installed = "installed" if shop.access_token else "no token"
            typer.echo(f"{shop.public_id}  {shop.shop_domain}  ({installed})")


@shops_app.command("session-token")
def session_token_command(
    shop_domain: str = typer.Argument(...),
    minutes: int = typer.Option(60, help="Token lifetime in minutes."),
):
    """Prints a signed session token for calling the API locally."""
    typer.echo(create_session_token(shop_domain, expires_delta=datetime.timedelta(minutes=minutes)))


# Report job commands
jobs_app = typer.Typer(name="jobs", help="Create, inspect and run report jobs.")
app.add_typer(jobs_app)


@jobs_app.command("create")
def create_job_command(
    shop_domain: str = typer.Argument(...),
    start: datetime.datetime = typer.Option(..., formats=["%Y-%m-%d"], help="First day, inclusive."),
    end: datetime.datetime = typer.Option(..., formats=["%Y-%m-%d"], help="Last day, inclusive."),
    report_type: ReportType = typer.Option(ReportType.STANDARD, "--type"),
    financial_status: Optional[List[str]] = typer.Option(None, help="Repeatable; 'any' disables the filter."),
    fulfillment_status: Optional[str] = typer.Option(None),
    run: bool = typer.Option(False, "--run", help="Process inline instead of enqueueing."),
):
    """Creates a report job and enqueues it (or runs it with --run)."""
    try:
        payload = ReportJobCreate(
            report_type=report_type,
            start_date=start.date(),
            end_date=end.date(),
            financial_status=financial_status or None,
            fulfillment_status=fulfillment_status,
        )
    except ValueError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    job_public_id = asyncio.run(_create_job(shop_domain, payload, enqueue=not run))
    if run:
        _run_job(job_public_id)


async def _create_job(shop_domain: str, payload: ReportJobCreate, enqueue: bool) -> str:
    async with DBConnection():
        shop = await _get_shop_or_exit(shop_domain)
        job = await job_service.create_report_job(shop, payload)
        typer.secho(f"Report job {job.public_id} created ({payload.report_type.value}).", fg=typer.colors.GREEN)
        if enqueue:
            await _enqueue(job)
        return job.public_id


async def _enqueue(job: ReportJob):
    try:
        await CeleryReportQueue(celery).enqueue(job_service.to_message(job))
    except EnqueueError as e:
        typer.secho(f"Error: could not enqueue {job.public_id}: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(f"Enqueued {job.public_id} on {REPORT_QUEUE_NAME}.")


@jobs_app.command("list")
def list_jobs_command(shop_domain: str = typer.Argument(...)):
    """Lists a shop's most recent report jobs."""
    asyncio.run(_list_jobs(shop_domain))


async def _list_jobs(shop_domain: str):
    async with DBConnection():
        shop = await _get_shop_or_exit(shop_domain)
        jobs = await job_service.list_report_jobs(shop)
        if not jobs:
            typer.echo("No report jobs.")
        for job in jobs:
            params = job_service.job_params(job)
            typer.echo(
                f"{job.public_id}  {job.status.value:<8}  {params.report_type.value:<16}  "
                f"{params.start_date} to {params.end_date}  {job.created_at:%Y-%m-%d %H:%M}"
            )


@jobs_app.command("show")
def show_job_command(job_public_id: str = typer.Argument(...)):
    """Shows one report job as JSON."""
    asyncio.run(_show_job(job_public_id))


async def _show_job(job_public_id: str):
    async with DBConnection():
        job = await _get_job_or_exit(job_public_id)
        typer.echo(job_service.to_public_schema(job).model_dump_json(indent=2))


@jobs_app.command("download")
def download_job_command(
    job_public_id: str = typer.Argument(...),
    fmt: ArtifactFormat = typer.Argument(..., help="csv, xlsx or pdf"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Defaults to report-<id>.<ext>"),
):
    """Writes a finished report artifact to a file."""
    asyncio.run(_download_job(job_public_id, fmt, output))


async def _download_job(job_public_id: str, fmt: ArtifactFormat, output: Optional[Path]):
    async with DBConnection():
        job = await _get_job_or_exit(job_public_id)
        try:
            data = job_service.get_artifact(job, fmt)
        except HTTPException as e:
            typer.secho(f"Error: {e.detail} (status {job.status.value})", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        path = output or Path(f"report-{job.public_id}.{fmt.value}")
        path.write_bytes(data)
        typer.secho(f"Wrote {len(data)} bytes to {path}", fg=typer.colors.GREEN)


@jobs_app.command("requeue")
def requeue_job_command(job_public_id: str = typer.Argument(...)):
    """Re-sends a QUEUED job whose enqueue failed."""
    asyncio.run(_requeue_job(job_public_id))


async def _requeue_job(job_public_id: str):
    async with DBConnection():
        job = await _get_job_or_exit(job_public_id)
        if job.status != JobStatus.QUEUED:
            typer.secho(f"Report job {job_public_id} is {job.status.value}; only QUEUED jobs can be requeued.", fg=typer.colors.YELLOW)
            raise typer.Exit(code=1)
        await _enqueue(job)


@jobs_app.command("fail-stale")
def fail_stale_jobs_command(
    minutes: int = typer.Option(REPORT_JOB_STALE_SECONDS // 60, help="Fail RUNNING jobs not updated for this long."),
):
    """Marks RUNNING jobs whose worker was lost as FAILED."""
    asyncio.run(_fail_stale_jobs(datetime.timedelta(minutes=minutes)))


async def _fail_stale_jobs(older_than: datetime.timedelta):
    async with DBConnection():
        count = await job_service.fail_stale_jobs(older_than)
        typer.echo(f"Failed {count} stale report job(s).")


@jobs_app.command("run")
def run_job_command(job_public_id: str = typer.Argument(...)):
    """Processes a QUEUED job in this process, without the worker."""
    _run_job(job_public_id)


def _run_job(job_public_id: str):
    outcome = asyncio.run(run_report_job(job_public_id))
    if outcome.skipped:
        typer.secho(f"Report job {job_public_id} was skipped (missing or already claimed).", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)
    if outcome.status == JobStatus.FAILED:
        typer.secho(f"Report job {job_public_id} failed: {outcome.error_message}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    formats = ", ".join(f.value for f in outcome.formats)
    typer.secho(f"Report job {job_public_id} complete: {outcome.order_count} orders, {formats}", fg=typer.colors.GREEN)


@app.command("worker")
def worker_command(
    concurrency: int = typer.Option(REPORT_WORKER_CONCURRENCY, help="Concurrent report jobs."),
    loglevel: str = typer.Option("INFO"),
):
    """Starts the Celery report worker."""
    celery.worker_main(
        ["worker", f"--loglevel={loglevel}", f"--concurrency={concurrency}", "-Q", REPORT_QUEUE_NAME]
    )


if __name__ == "__main__":
    app()
