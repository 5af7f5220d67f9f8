"""WordMatch: translate phrases, keep a history, play a matching game with them.

Run with: uvicorn backend:app --port 5501
"""
import time
from collections import deque
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from log import get_logger
from history import init_history_db
from routes import router

logger = get_logger("wordmatch")

LATENCY_WINDOW = 200
_latencies: deque = deque(maxlen=LATENCY_WINDOW)  # recent request durations in ms


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_history_db()
    logger.info("History store ready", extra={"component": "history"})
    yield


app = FastAPI(title="WordMatch", lifespan=lifespan)
app.include_router(router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = round((time.perf_counter() - start) * 1000, 1)
    _latencies.append(duration_ms)
    logger.debug("request", extra={
        "endpoint": request.url.path, "status_code": response.status_code, "duration_ms": duration_ms,
    })
    return response


def get_latency_stats() -> dict:
    if not _latencies:
        return {"count": 0, "avg_ms": None, "p95_ms": None}
    ordered = sorted(_latencies)
    p95 = ordered[min(len(ordered) - 1, int(len(ordered) * 0.95))]
    return {"count": len(ordered), "avg_ms": round(sum(ordered) / len(ordered), 1), "p95_ms": p95}
