"""
Expiry Sweep Workflow.

Started by a Temporal interval schedule (EXPIRY_SWEEP_INTERVAL_SECONDS).
Expires due assignments, then redelivers outbox events that are still
pending. Both activities are idempotent, so retries are safe.
"""

from datetime import timedelta
from typing import Any

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from src.staffing.temporal.activities import redeliver_booking_events, run_expiry_sweep


@workflow.defn
class ExpirySweepWorkflow:
    """Expire elapsed searching assignments and flush pending events."""

    @workflow.run
    async def run(self) -> dict[str, Any]:
        report: dict[str, Any] = await workflow.execute_activity(
            run_expiry_sweep,
            start_to_close_timeout=timedelta(minutes=5),
            retry_policy=RetryPolicy(
                maximum_attempts=3,
                initial_interval=timedelta(seconds=2),
            ),
        )

        redelivered = await workflow.execute_activity(
            redeliver_booking_events,
            start_to_close_timeout=timedelta(minutes=2),
            retry_policy=RetryPolicy(
                maximum_attempts=3,
                initial_interval=timedelta(seconds=2),
            ),
        )
        report["events_redelivered"] = redelivered

        workflow.logger.info(
            f"Expiry sweep workflow complete: {report['expired']} expired, "
            f"{redelivered} events redelivered"
        )
        return report
