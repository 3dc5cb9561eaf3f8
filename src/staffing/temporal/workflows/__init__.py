"""Temporal Workflows - Re-exports for worker registration."""

from src.staffing.temporal.workflows.expiry_sweep import ExpirySweepWorkflow

__all__ = [
    "ExpirySweepWorkflow",
]
