# survivor_pool/main.py
from __future__ import annotations

import json
import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from survivor_pool import config
from survivor_pool import models  # noqa: F401  (import registers models with Base)

# --- DB bootstrapping: create tables at startup ---
from survivor_pool.db import Base, SessionLocal, engine
from survivor_pool.errors import SurvivorError

# Routers
from .routers import health, leagues, nfl, picks, standings, users
from .services.reconcile import run_reconcile_job
from .services.schedule import get_schedule_source

# ---------- App ----------
app = FastAPI(title="Survivor Pool", version="0.1.0")


# ---------- Minimal structured logging ----------
logging.basicConfig(level=getattr(logging, config.LOG_LEVEL, logging.INFO))
logger = logging.getLogger("survivor_pool")


# Create tables once on app start, then kick off result reconciliation
@app.on_event("startup")
def _startup() -> None:
    Base.metadata.create_all(bind=engine)

    app.state.scheduler = None
    if config.RECONCILE_INTERVAL_MINUTES <= 0 or config.is_testing():
        logger.info("reconcile scheduler disabled")
        return

    from apscheduler.schedulers.background import BackgroundScheduler

    scheduler = BackgroundScheduler()
    scheduler.add_job(
        run_reconcile_job,
        trigger="interval",
        minutes=config.RECONCILE_INTERVAL_MINUTES,
        kwargs={"session_factory": SessionLocal, "source_factory": get_schedule_source},
        id="reconcile_pending_picks",
        name="Persist finished game results",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    app.state.scheduler = scheduler
    logger.info("reconcile scheduler started every=%smin", config.RECONCILE_INTERVAL_MINUTES)


@app.on_event("shutdown")
def _shutdown() -> None:
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is not None:
        scheduler.shutdown(wait=False)
        logger.info("reconcile scheduler stopped")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    duration_ms = (time.perf_counter() - start) * 1000.0
    log_obj = {
        "msg": "request",
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "status": response.status_code,
        "duration_ms": round(duration_ms, 2),
        "user_id": request.headers.get("X-User-Id") or None,
        "idempotency_key": request.headers.get("Idempotency-Key") or None,
    }
    logger.info(json.dumps(log_obj, separators=(",", ":")))
    return response


# ---------- Domain errors ----------
@app.exception_handler(SurvivorError)
async def _survivor_error(request: Request, exc: SurvivorError):
    headers = {"Retry-After": "30"} if exc.retryable else None
    if exc.status_code >= 500:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind},
        headers=headers,
    )


def _include_router_flex(app: FastAPI, module) -> None:
    for attr in ("router", "route"):
        if hasattr(module, attr):
            app.include_router(getattr(module, attr))
            return
    name = getattr(module, "__name__", str(module))
    raise RuntimeError(f"Module {name} does not define `router` or `route`")


# ---------- Include Routers ----------
_include_router_flex(app, health)  # /health
_include_router_flex(app, users)  # /users
_include_router_flex(app, leagues)  # /leagues
_include_router_flex(app, picks)  # /picks
_include_router_flex(app, standings)  # /standings
_include_router_flex(app, nfl)  # /nfl
