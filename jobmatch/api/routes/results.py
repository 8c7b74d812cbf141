"""Results endpoint."""

from fastapi import APIRouter, Depends

from jobmatch.agents.orchestrator import Orchestrator
from jobmatch.api.deps import get_orchestrator
from jobmatch.api.schemas import ResultsResponse

router = APIRouter()


@router.get("/{session_id}", response_model=ResultsResponse)
async def get_results(
    session_id: str,
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """Status, a preview of the jobs and the total count."""
    view = await orchestrator.get_results(session_id)
    return ResultsResponse(
        status=view.status,
        jobs=view.jobs,
        email=view.email,
        total_jobs=view.total_jobs,
    )
