"""Manual trigger for the expiry sweep."""

from fastapi import APIRouter

from src.staffing.api.dependencies import ExpirySweeperDep
from src.staffing.schemas import SweepReportRead

router = APIRouter(prefix="/sweeps", tags=["sweeps"])


@router.post(
    "/expiry",
    response_model=SweepReportRead,
    summary="Run expiry sweep",
    description="Expire due assignments now instead of waiting for the scheduled run.",
)
async def run_expiry_sweep(sweeper: ExpirySweeperDep) -> SweepReportRead:
    report = await sweeper.run()
    return SweepReportRead.model_validate(report)
