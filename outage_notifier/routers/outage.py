from fastapi import APIRouter, Depends, HTTPException, Query

from outage_notifier.errors import MissingDataError
from outage_notifier.schemas.notification import NotificationLogEntry, NotificationState
from outage_notifier.schemas.outage import OutageResult
from outage_notifier.services.monitor import Monitor, get_monitor

router = APIRouter(tags=["outage"])


@router.get("/outage/", response_model=OutageResult)
async def get_outage(monitor: Monitor = Depends(get_monitor)):
    """Latest combined outage result (empty until the first cycle has run)."""
    return monitor.last_result or OutageResult()


@router.get("/outage/state", response_model=NotificationState | None)
async def get_state(monitor: Monitor = Depends(get_monitor)):
    """Persisted notification state for the monitored address."""
    return monitor.store.load()


@router.get("/outage/history", response_model=list[NotificationLogEntry])
async def get_history(
    limit: int = Query(20, ge=1, le=200),
    monitor: Monitor = Depends(get_monitor),
):
    if monitor.history is None:
        return []
    return monitor.history.recent(limit)


@router.post("/admin/poll")
async def trigger_poll(monitor: Monitor = Depends(get_monitor)):
    """Manually run one polling cycle."""
    try:
        decision = await monitor.run_cycle()
    except MissingDataError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if decision is None:
        return {"status": "skipped"}
    return {
        "status": "complete",
        "action": decision.action.kind.value,
        "reason": decision.action.reason,
        "fingerprint": decision.action.fingerprint,
    }
