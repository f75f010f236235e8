"""API endpoints for pack search and online enhancement."""

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from packmatch.api.deps import SessionRegistry, get_enhancer, get_monitor, get_registry
from packmatch.core.connectivity import ConnectivityMonitor
from packmatch.core.enhancement import Enhancer, enhance
from packmatch.core.errors import PackInvalidError, PackNotFoundError
from packmatch.core.logging import get_logger
from packmatch.core.schemas_api import (
    EnhanceRequest,
    EnhanceResponse,
    PackListResponse,
    SearchResponse,
)
from packmatch.core.schemas_enhancement import EnhancedResult, EnhancementContext
from packmatch.core.schemas_search import SearchState, TimeOfDay
from packmatch.core.search_context import SearchOptions
from packmatch.core.search_session import SearchSession, current_time_of_day

logger = get_logger(__name__)

router = APIRouter()


def _session_or_404(registry: SessionRegistry, city: str) -> SearchSession:
    try:
        return registry.get(city)
    except PackNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except PackInvalidError as e:
        logger.error(f"Pack for {city} failed validation: {e.detail}")
        raise HTTPException(status_code=500, detail="Pack could not be loaded") from e


@router.get("/packs", response_model=PackListResponse)
async def list_packs(registry: SessionRegistry = Depends(get_registry)) -> PackListResponse:
    """List cities with a downloaded pack."""
    cities = registry.store.available_cities()
    return PackListResponse(cities=cities, total=len(cities))


@router.get("/packs/{city}/search", response_model=SearchResponse)
async def search_pack(
    city: str = Path(..., description="City name or slug"),
    q: str = Query("", description="Typed query or voice transcript"),
    time_of_day: TimeOfDay | None = Query(None, description="Boost advice for this time of day"),
    auto_time: bool = Query(False, description="Use the server's local time of day"),
    area: str | None = Query(None, description="Boost advice naming this neighbourhood"),
    min_score: int | None = Query(None, ge=0, le=100, description="Drop results below this score"),
    registry: SessionRegistry = Depends(get_registry),
    monitor: ConnectivityMonitor = Depends(get_monitor),
) -> SearchResponse:
    """
    Search one city's pack. Never waits on the network.

    Raises:
        HTTPException 404: If no pack exists for the city
    """
    session = _session_or_404(registry, city)
    if auto_time and time_of_day is None:
        time_of_day = current_time_of_day()
    options = SearchOptions(time_of_day=time_of_day, area=area, min_score=min_score)
    outcome = session.search(q, options)

    return SearchResponse(
        city=session.city,
        query=q,
        state=outcome.state,
        message=outcome.message,
        results=outcome.results,
        connectivity=monitor.state,
        elapsed_ms=round(outcome.elapsed_ms, 2),
    )


@router.post("/packs/{city}/enhance", response_model=EnhanceResponse)
async def enhance_pack_search(
    request: EnhanceRequest,
    city: str = Path(..., description="City name or slug"),
    registry: SessionRegistry = Depends(get_registry),
    monitor: ConnectivityMonitor = Depends(get_monitor),
    enhancer: Enhancer = Depends(get_enhancer),
) -> EnhanceResponse:
    """
    Re-run a query and refine its local results when online.

    Returns the local results unchanged when offline, when the search fell
    back, or when enhancement fails.

    Raises:
        HTTPException 404: If no pack exists for the city
    """
    session = _session_or_404(registry, city)
    options = SearchOptions(
        time_of_day=request.time_of_day, area=request.area, min_score=request.min_score
    )
    outcome = session.search(request.query, options)
    connectivity = await monitor.check()

    if outcome.state != SearchState.LOCAL_RESULTS:
        return EnhanceResponse(
            city=session.city,
            query=request.query,
            state=outcome.state,
            connectivity=connectivity,
            results=[EnhancedResult.from_match(r) for r in outcome.results],
        )

    context = EnhancementContext(
        query=request.query,
        pack=session.pack,
        time_of_day=request.time_of_day or current_time_of_day(),
        user_location=request.user_location,
    )
    results = await enhance(outcome.results, context, connectivity, enhancer)

    return EnhanceResponse(
        city=session.city,
        query=request.query,
        state=outcome.state,
        connectivity=connectivity,
        enhanced=any(r.enhanced for r in results),
        results=results,
    )
