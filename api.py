import os
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

import pytz
import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.env import load_config
from core.factory import FeedRuntime, FeedServiceFactory
from core.logger import get_logger

logger = get_logger("FinancialAPI")


class TriggerResponse(BaseModel):
    success: bool
    message: str


def _manual_trigger(job, what: str) -> TriggerResponse:
    """Dispara em segundo plano; se o job já está rodando o tick será ignorado pela trava."""
    already_running = job.state.is_running
    job.fire(manual=True)
    if already_running:
        return TriggerResponse(success=True, message=f"{what} already running, manual trigger skipped")
    return TriggerResponse(success=True, message=f"Manual {what.lower()} triggered successfully")


def _envelope_response(result: dict):
    """Envelope com success=False vira HTTP 500, mantendo o corpo."""
    if result.get("success"):
        return result
    return JSONResponse(status_code=500, content=result)


def create_app(runtime: FeedRuntime = None, start_scheduler: Optional[bool] = None) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.runtime is None:
            app.state.runtime = FeedServiceFactory.build(load_config())

        current = app.state.runtime
        should_start = start_scheduler
        if should_start is None:
            should_start = bool((current.config.get("scheduler") or {}).get("enabled", True))

        if should_start:
            current.scheduler.start()
        logger.info(f"🚀 Financial API pronta | Feeds: {[f.key for f in current.feeds]}")
        try:
            yield
        finally:
            if current.scheduler.running:
                await current.scheduler.stop()

    app = FastAPI(title="Financial Feeds API", version="1.0.0", lifespan=lifespan)
    app.state.runtime = runtime

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.error(f"❌ Erro não tratado em {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content={"success": False, "message": str(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"success": False, "message": str(exc.detail)})

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        return JSONResponse(status_code=422, content={"success": False, "message": f"Invalid request: {problems}"})

    def get_service(request: Request, feed: str):
        try:
            return request.app.state.runtime.get(feed)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Feed not found: {feed}")

    @app.get("/")
    def index(request: Request):
        endpoints = {"health": "/api/health"}
        for feed in request.app.state.runtime.feeds:
            base = f"/api/{feed.slug}"
            endpoints[feed.slug] = {
                "latest": f"{base}/latest",
                "history": f"{base}/history/:name",
                "dateRange": f"{base}/range?start=YYYY-MM-DD&end=YYYY-MM-DD",
                "cronStatus": f"{base}/cron/status",
                "manualTrigger": f"{base}/cron/trigger",
            }
        endpoints["cleanup"] = {
            "cronStatus": "/api/cleanup/cron/status",
            "manualTrigger": "/api/cleanup/cron/trigger",
        }
        return {"message": "Welcome to Financial API", "endpoints": endpoints}

    @app.get("/api/health")
    def health():
        return {"status": "OK", "timestamp": datetime.now(pytz.utc).isoformat()}

    # --- LIMPEZA (registrada antes das rotas /api/{feed}) ---
    @app.get("/api/cleanup/cron/status")
    def cleanup_status(request: Request):
        return {"success": True, **request.app.state.runtime.cleanup_job.get_status()}

    @app.post("/api/cleanup/cron/trigger", response_model=TriggerResponse)
    async def cleanup_trigger(request: Request):
        return _manual_trigger(request.app.state.runtime.cleanup_job, "Cleanup")

    # --- FEEDS ---
    @app.get("/api/{feed}/latest")
    def latest(request: Request, feed: str):
        service = get_service(request, feed)
        return _envelope_response(service.persister.get_latest())

    @app.get("/api/{feed}/history/{name}")
    def history(request: Request, feed: str, name: str, limit: int = 100):
        service = get_service(request, feed)
        return _envelope_response(service.persister.get_history(name, limit))

    @app.get("/api/{feed}/range")
    def date_range(request: Request, feed: str, start: Optional[str] = None, end: Optional[str] = None):
        service = get_service(request, feed)
        if not start or not end:
            return JSONResponse(
                status_code=400,
                content={"success": False, "message": "Both start and end dates are required"},
            )
        return _envelope_response(service.persister.get_by_date_range(start, end))

    @app.get("/api/{feed}/cron/status")
    def cron_status(request: Request, feed: str):
        service = get_service(request, feed)
        return {"success": True, **service.job.get_status()}

    @app.post("/api/{feed}/cron/trigger", response_model=TriggerResponse)
    async def cron_trigger(request: Request, feed: str):
        service = get_service(request, feed)
        return _manual_trigger(service.job, "Scrape")

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "3000")))

# Para rodar: uv run uvicorn api:app --reload
