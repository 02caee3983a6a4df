"""Backing platform connection status endpoint."""

from fastapi import APIRouter, Depends

from ..services.connection_monitor import ConnectionMonitor, get_connection_monitor

router = APIRouter(tags=["connection"])


@router.get("/connection")
async def connection_status(
    refresh: bool = False,
    monitor: ConnectionMonitor = Depends(get_connection_monitor),
):
    """Latest poll result; ``refresh=true`` checks again before answering."""
    if refresh:
        await monitor.check()
    return monitor.snapshot()
