# backend/liftplan/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from liftplan import config
from liftplan.db import healthcheck
from liftplan.routers.workout_plans import router as workout_plans_router
from liftplan.routers.scheduled_exercises import router as scheduled_exercises_router
from liftplan.routers.cron import router as cron_router
from liftplan.services.errors import NotFoundError


def build_app() -> FastAPI:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title="Liftplan API")

    # CORS (adjust origins as you need)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.FRONTEND_ORIGIN],
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1|0\.0\.0\.0)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    # Health
    @app.get("/health")
    def health():
        return {"ok": True, **healthcheck()}

    app.include_router(workout_plans_router)
    app.include_router(scheduled_exercises_router)
    app.include_router(cron_router)

    return app


app = build_app()
