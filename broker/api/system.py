"""System API: health check and session cache status."""

from fastapi import APIRouter, Depends, Request

from broker.api.deps import get_current_user

router = APIRouter(prefix="/api/system", tags=["system"])


@router.get("/health")
def health_check():
    return {"status": "ok"}


@router.get("/cache", dependencies=[Depends(get_current_user)])
def cache_status(request: Request):
    """Number of cached remote sessions (total and not yet expired)."""
    return request.app.state.session_cache.stats()


@router.post("/cache/purge", dependencies=[Depends(get_current_user)])
def purge_cache(request: Request):
    """Drop expired session entries."""
    removed = request.app.state.session_cache.purge_expired()
    return {"removed": removed}
