from fastapi import APIRouter

from src.staffing.api.v1 import assignments, candidates, projects, sweeps

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(projects.router)
api_router.include_router(assignments.router)
api_router.include_router(candidates.router)
api_router.include_router(sweeps.router)
