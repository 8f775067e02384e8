from fastapi import APIRouter

from ytrelay.core.state import state
from ytrelay.i18n import i18n

router = APIRouter()


@router.get("/health")
async def health_check():
    """Lightweight health check"""
    redis_status = i18n.get("health.redis_disabled")
    if state.redis:
        try:
            await state.redis.ping()
            redis_status = i18n.get("health.redis_connected")
        except Exception:
            redis_status = i18n.get("health.redis_disconnected")

    return {
        "status": i18n.get("health.status"),
        "redis": redis_status
    }
