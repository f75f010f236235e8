"""API endpoint for network state."""

from fastapi import APIRouter, Depends, Query

from packmatch.api.deps import get_monitor
from packmatch.core.connectivity import ConnectivityMonitor
from packmatch.core.schemas_api import ConnectivityResponse

router = APIRouter()


@router.get("/connectivity", response_model=ConnectivityResponse)
async def get_connectivity(
    refresh: bool = Query(False, description="Probe before answering (throttled)"),
    monitor: ConnectivityMonitor = Depends(get_monitor),
) -> ConnectivityResponse:
    """Current connectivity state, optionally refreshed by a probe."""
    state = await monitor.check() if refresh else monitor.state
    return ConnectivityResponse(state=state, monitoring=monitor.is_monitoring)
