"""Periodic expiry of searching assignments whose window has elapsed."""

from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from src.staffing.core.config import Settings, get_settings
from src.staffing.core.exceptions import AlreadyResolved, InvalidTransition
from src.staffing.core.logging import get_logger
from src.staffing.models import BookingStatus
from src.staffing.models.base import utc_now
from src.staffing.repositories import translate_persistence_errors
from src.staffing.services.booking_service import BookingService

logger = get_logger(__name__)


@dataclass
class SweepReport:
    """What one sweep did. ``failed`` assignments are retried on the next tick."""

    scanned: int = 0
    expired: int = 0
    reopened: int = 0
    skipped: int = 0
    failed: int = 0
    projects_refreshed: int = 0
    events_redelivered: int = 0
    failed_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ExpirySweeper:
    """Expires due assignments through the Booking Service.

    Uses the same ``expire`` code path as a manual call, so the transition
    rules and the conditional update apply. Each assignment is isolated: one
    failure is logged and the sweep continues. Projects are re-aggregated once
    each, after all their assignments are processed.
    """

    def __init__(
        self,
        booking_service: BookingService,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.booking_service = booking_service
        self.settings = settings or get_settings()
        self.clock = clock

    async def run(self, redeliver: bool = True) -> SweepReport:
        """Run one sweep.

        Args:
            redeliver: Also retry outbox events left undispatched
        """
        report = SweepReport()
        now = self.clock()
        with translate_persistence_errors():
            due = await self.booking_service.assignment_repo.list_due_for_expiry(
                now, self.settings.expiry_sweep_batch_size
            )
        # Detach ids first; expire() commits and reloads rows as it goes
        targets = [(a.id, a.project_id) for a in due]
        report.scanned = len(targets)

        touched: set[UUID] = set()
        for assignment_id, project_id in targets:
            try:
                outcome = await self.booking_service.expire(assignment_id, refresh_project=False)
            except (AlreadyResolved, InvalidTransition) as e:
                # Moved on since the scan
                report.skipped += 1
                logger.info(
                    "Expiry skipped for assignment",
                    assignment_id=str(assignment_id),
                    reason=e.code,
                )
                continue
            except Exception as e:
                report.failed += 1
                report.failed_ids.append(str(assignment_id))
                logger.error(
                    "Expiry failed for assignment",
                    assignment_id=str(assignment_id),
                    error=str(e),
                    error_type=e.__class__.__name__,
                )
                continue

            if not outcome.changed:
                report.skipped += 1
                continue

            report.expired += 1
            if outcome.assignment.status_enum == BookingStatus.SEARCHING:
                report.reopened += 1
            touched.add(project_id)

        for project_id in touched:
            try:
                await self.booking_service.refresh_project(project_id)
                report.projects_refreshed += 1
            except Exception as e:
                logger.error("Project refresh failed after sweep", project_id=str(project_id), error=str(e))

        if redeliver:
            report.events_redelivered = await self.booking_service.dispatcher.redeliver_pending(
                self.settings.event_redelivery_after, self.settings.expiry_sweep_batch_size
            )

        logger.info(
            "Expiry sweep finished",
            scanned=report.scanned,
            expired=report.expired,
            skipped=report.skipped,
            failed=report.failed,
            projects_refreshed=report.projects_refreshed,
            events_redelivered=report.events_redelivered,
        )
        return report
