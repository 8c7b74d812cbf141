"""Search debugging endpoint, enabled with DEBUG_ENDPOINTS=true."""

from fastapi import APIRouter, Depends, HTTPException

from jobmatch.agents.orchestrator import Orchestrator
from jobmatch.api.deps import get_orchestrator
from jobmatch.api.schemas import DebugSearchRequest, DebugSearchResponse, SearchCallResponse

router = APIRouter()


@router.post("/search", response_model=DebugSearchResponse)
async def debug_search(
    data: DebugSearchRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """Run the search engine on a posted profile and return the call trace."""
    if not orchestrator.settings.debug_endpoints:
        raise HTTPException(status_code=404, detail="Not Found")

    report = await orchestrator.search_engine.search(data.profile, max_results=data.max_results)
    return DebugSearchResponse(
        seeds=report.seeds,
        seed_source=report.seed_source,
        calls=[SearchCallResponse(**call.to_dict()) for call in report.calls],
        total_jobs=len(report.jobs),
        jobs=report.jobs,
    )
