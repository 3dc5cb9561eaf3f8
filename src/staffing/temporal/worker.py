"""
Temporal Worker - Separate process from API.

Run with:
    uv run python -m src.staffing.temporal.worker
    uv run python -m src.staffing.temporal.worker --no-schedule  # Don't (re)register the schedule
"""

import argparse
import asyncio
from datetime import timedelta

import uvicorn
from fastapi import FastAPI
from temporalio.worker import Worker

from src.staffing.core.config import get_settings
from src.staffing.core.db import dispose_engine
from src.staffing.core.logging import get_logger, setup_logging
from src.staffing.core.redis import close_redis
from src.staffing.temporal.activities import redeliver_booking_events, run_expiry_sweep
from src.staffing.temporal.client import get_temporal_client
from src.staffing.temporal.routing import QueueKind, task_queue_name
from src.staffing.temporal.schedules import ensure_expiry_sweep_schedule
from src.staffing.temporal.workflows import ExpirySweepWorkflow

logger = get_logger(__name__)

WORKER_HEALTH_PORT = 8001


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Booking jobs worker")
    parser.add_argument(
        "--no-schedule",
        action="store_true",
        help="Skip creating/updating the expiry sweep schedule on startup",
    )
    parser.add_argument("--health-port", type=int, default=WORKER_HEALTH_PORT)
    return parser.parse_args(argv)


def create_health_app(task_queues: list[str]) -> FastAPI:
    """Lightweight health app for K8s probes."""
    health_app = FastAPI(title="Booking Worker Health")

    @health_app.get("/health")
    async def health() -> dict[str, str | list[str]]:
        return {
            "status": "healthy",
            "service": "booking-worker",
            "task_queues": task_queues,
        }

    @health_app.get("/ready")
    async def ready() -> dict[str, str]:
        return {"status": "ready"}

    return health_app


async def run_health_server(task_queues: list[str], port: int = WORKER_HEALTH_PORT) -> None:
    config = uvicorn.Config(
        create_health_app(task_queues),
        host="0.0.0.0",
        port=port,
        log_level="warning",
    )
    server = uvicorn.Server(config)
    logger.info(f"Starting health server on port {port}")
    await server.serve()


async def main() -> None:
    """Main entry point for the jobs worker."""
    args = parse_args()
    settings = get_settings()
    setup_logging(settings.debug)

    client = await get_temporal_client()
    tq = task_queue_name(settings.temporal_queue_prefix, QueueKind.JOBS, 0)

    if not args.no_schedule:
        await ensure_expiry_sweep_schedule(client, settings)

    worker = Worker(
        client,
        task_queue=tq,
        workflows=[ExpirySweepWorkflow],
        activities=[run_expiry_sweep, redeliver_booking_events],
        max_concurrent_activities=10,
        max_concurrent_workflow_tasks=10,
        graceful_shutdown_timeout=timedelta(seconds=settings.shutdown_grace_period),
    )
    logger.info(f"Polling task queue: {tq}")

    try:
        health_task = asyncio.create_task(run_health_server([tq], args.health_port))
        await worker.run()
        await health_task
    finally:
        await close_redis()
        await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
