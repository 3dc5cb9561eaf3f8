"""
Temporal Activities - Fine-grained, idempotent operations.

Activities own all I/O; workflows only orchestrate them.
"""

from src.staffing.temporal.activities.booking import redeliver_booking_events, run_expiry_sweep

__all__ = [
    "redeliver_booking_events",
    "run_expiry_sweep",
]
