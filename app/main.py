# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


import logging
from contextlib import asynccontextmanager
from datetime import datetime

import pytz
from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app import config
from app.models import database
from app.models import *  # registers all models
from app.routers import auth_router, session_router, contact_router, alert_router, healthz_router
from app.services.container import build_services
from app.services.expiry_timers import APSchedulerTimers
from app.utils.exceptions import NotFoundError, ConflictError, PersistenceError
from app.utils.rate_limit_utils import limiter
from app.utils.schedulers.alert_cleaner import clean_expired_alerts

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


# Create DB tables in one go
database.Base.metadata.create_all(bind=database.engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Expiry jobs use naive UTC run dates
    scheduler = BackgroundScheduler(timezone=pytz.utc, job_defaults={"misfire_grace_time": 60, "coalesce": True})
    services = build_services(APSchedulerTimers(scheduler))
    app.state.services = services

    # 🔁 Rebuild timers now, then keep reconciling as a safety net
    scheduler.add_job(
        services.watchdog.reconcile,
        trigger="interval",
        seconds=config.RECONCILE_INTERVAL_SECONDS,
        id="session-reconcile",
        next_run_time=datetime.now(pytz.utc),
        max_instances=1,
    )

    # 🕛 Purge expired alerts every day at 2 AM
    scheduler.add_job(
        clean_expired_alerts,
        "cron",
        hour=2,
        minute=0,
        timezone=pytz.timezone(config.APP_TIMEZONE),
        kwargs={"alerts": services.alerts},
        id="alert-retention",
    )

    scheduler.start()
    logger.info("🚀 Session watchdog running")
    yield
    scheduler.shutdown(wait=False)


# Create FastAPI app with lifespan
app = FastAPI(
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    title="SafeHer Safety API",
    description="Timed safety sessions with automatic emergency alerts",
    version="1.0"
)

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

# Include routers
app.include_router(auth_router.router)
app.include_router(session_router.router)
app.include_router(contact_router.router)
app.include_router(alert_router.router)
app.include_router(healthz_router.router)


# ---------------------- ADDING EXCEPTION HANDLERS ----------------------
@app.exception_handler(RateLimitExceeded)
async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"success": False, "detail": "Too many requests. Please slow down."}
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"success": False, "detail": str(exc)})


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return JSONResponse(status_code=400, content={"success": False, "detail": str(exc)})


@app.exception_handler(PersistenceError)
async def persistence_handler(request: Request, exc: PersistenceError):
    logger.error(f"🛑 Storage failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"success": False, "detail": "Storage error, please retry."})


@app.get("/")
def read_root():
    return {"message": "SafeHer safety backend live"}
