"""Booking maintenance activities run by the expiry sweep workflow."""

from typing import Any

from temporalio import activity

from src.staffing.core.cache import StaffingCache
from src.staffing.core.config import get_settings
from src.staffing.core.db import get_session
from src.staffing.core.notifications import get_notifier
from src.staffing.services import BookingService, ExpirySweeper


@activity.defn
async def run_expiry_sweep() -> dict[str, Any]:
    """
    Expire every searching assignment whose window has elapsed.

    Idempotent: assignments already moved by a previous (partial) run are
    skipped, so a retry never emits a second AssignmentExpired event.

    Returns:
        SweepReport as a dict
    """
    settings = get_settings()
    activity.logger.info(f"Running expiry sweep (batch size {settings.expiry_sweep_batch_size})")

    async with get_session() as session:
        service = BookingService.from_session(
            session, get_notifier(settings), cache=StaffingCache.from_settings(settings), settings=settings
        )
        report = await ExpirySweeper(service, settings=settings).run(redeliver=False)

    activity.logger.info(
        f"Expiry sweep complete: {report.expired} expired, {report.skipped} skipped, "
        f"{report.failed} failed"
    )
    return report.to_dict()


@activity.defn
async def redeliver_booking_events() -> int:
    """
    Publish outbox events whose earlier delivery failed.

    Consumers deduplicate on event id, so redelivering an event that was
    published but not stamped is harmless.

    Returns:
        Number of events delivered
    """
    settings = get_settings()
    async with get_session() as session:
        service = BookingService.from_session(session, get_notifier(settings), settings=settings)
        delivered = await service.dispatcher.redeliver_pending(
            settings.event_redelivery_after, settings.expiry_sweep_batch_size
        )

    activity.logger.info(f"Redelivered {delivered} booking events")
    return delivered
