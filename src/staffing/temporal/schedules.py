"""Temporal schedule for the periodic expiry sweep."""

from datetime import timedelta

from temporalio.client import (
    Client,
    Schedule,
    ScheduleActionStartWorkflow,
    ScheduleAlreadyRunningError,
    ScheduleIntervalSpec,
    ScheduleOverlapPolicy,
    SchedulePolicy,
    ScheduleSpec,
    ScheduleUpdate,
    ScheduleUpdateInput,
)

from src.staffing.core.config import Settings, get_settings
from src.staffing.core.logging import get_logger
from src.staffing.temporal.routing import route_for_system_job
from src.staffing.temporal.workflows import ExpirySweepWorkflow

logger = get_logger(__name__)

EXPIRY_SWEEP_SCHEDULE_ID = "booking-expiry-sweep"


def build_expiry_sweep_schedule(settings: Settings) -> Schedule:
    """Interval schedule; overlapping runs are skipped rather than queued."""
    route = route_for_system_job(
        namespace=settings.temporal_namespace,
        prefix=settings.temporal_queue_prefix,
    )
    return Schedule(
        action=ScheduleActionStartWorkflow(
            ExpirySweepWorkflow.run,
            id="booking-expiry-sweep-run",
            task_queue=route.task_queue,
        ),
        spec=ScheduleSpec(
            intervals=[ScheduleIntervalSpec(every=timedelta(seconds=settings.expiry_sweep_interval_seconds))]
        ),
        policy=SchedulePolicy(overlap=ScheduleOverlapPolicy.SKIP),
    )


async def ensure_expiry_sweep_schedule(client: Client, settings: Settings | None = None) -> str:
    """Create the expiry sweep schedule, or update it if it already exists.

    Returns:
        The schedule id
    """
    settings = settings or get_settings()
    schedule = build_expiry_sweep_schedule(settings)
    try:
        await client.create_schedule(EXPIRY_SWEEP_SCHEDULE_ID, schedule)
        logger.info(
            "Expiry sweep schedule created",
            schedule_id=EXPIRY_SWEEP_SCHEDULE_ID,
            interval_seconds=settings.expiry_sweep_interval_seconds,
        )
    except ScheduleAlreadyRunningError:

        def _replace(_: ScheduleUpdateInput) -> ScheduleUpdate:
            return ScheduleUpdate(schedule=schedule)

        await client.get_schedule_handle(EXPIRY_SWEEP_SCHEDULE_ID).update(_replace)
        logger.info("Expiry sweep schedule updated", schedule_id=EXPIRY_SWEEP_SCHEDULE_ID)
    return EXPIRY_SWEEP_SCHEDULE_ID
