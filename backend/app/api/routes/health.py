from fastapi import APIRouter

from ...schemas.health import HealthStatus
from ...services.store import store

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthStatus, summary="Health check")
async def health() -> HealthStatus:
    """Liveness plus the size of the in-memory collections."""
    return HealthStatus(
        status="ok", users=len(store.users), experiences=len(store.experiences)
    )
