"""API router for WordMatch: reference data, health, and the feature routers."""
from fastapi import APIRouter

from log import get_logger

logger = get_logger("wordmatch.routes")

from models import SUPPORTED_LANGUAGES
import history
from translator import MYMEMORY_URL, check_provider_connectivity
from history_routes import router as history_router
from game_routes import router as game_router, get_active_games

router = APIRouter()
router.include_router(history_router)
router.include_router(game_router)


@router.get("/api/languages", tags=["Reference"], summary="List supported languages")
async def get_languages():
    return SUPPORTED_LANGUAGES


@router.get("/api/health", tags=["System"], summary="Health check with stats")
async def health_check():
    from backend import get_latency_stats

    store_ok = True
    history_count = None
    try:
        history_count = len(history.load_history(1))
    except history.HistoryError:
        logger.warning("History store not reachable", extra={"component": "history"})
        store_ok = False

    provider_ok = await check_provider_connectivity()
    return {
        "status": "ok" if store_ok and provider_ok else "degraded",
        "store": {"reachable": store_ok, "path": str(history.DB_PATH), "has_entries": bool(history_count)},
        "provider": {"reachable": provider_ok, "url": MYMEMORY_URL},
        "games": {"active": get_active_games()},
        "latency": get_latency_stats(),
    }
