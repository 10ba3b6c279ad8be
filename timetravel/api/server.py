"""
Timeline Debugger: Control API Server
=====================================

HTTP surface for the debugger UI. Every endpoint maps onto one
TimelineService operation; the service remains the only owner of the
log and cursor.

Endpoints:
- GET    /api/v1/log                  -> events + cursor + autoplay
- GET    /api/v1/summary              -> counts per category, cursor, tip
- GET    /api/v1/events/{index}       -> event detail with prior/target diff
- POST   /api/v1/navigate/back|forward|live
- POST   /api/v1/navigate/jump/{index}
- POST   /api/v1/playback/start|stop
- PUT    /api/v1/playback/speed
- GET    /api/v1/export               -> exported document
- POST   /api/v1/import               -> replace log with document
- DELETE /api/v1/log                  -> clear
- GET    /api/v1/filter?category=&q=  -> filtered events with true indices

Usage:
    uvicorn timetravel.api.server:app --reload
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import TimelineConfig
from ..contracts.base import MalformedImport, OutOfRange
from ..observability import get_logger
from ..query import TimelineQuery
from ..service import TimelineService
from ..surfaces import InMemoryCacheSurface, InMemoryKeyValueSurface, InMemoryNavigationSurface
from .mapper import map_event_detail, map_events_to_dto, map_navigation


logger = get_logger(__name__)


class SpeedRequest(BaseModel):
    speed: float


# =============================================================================
# INFRASTRUCTURE SETUP
# =============================================================================

def build_default_service() -> TimelineService:
    """Service over in-memory surfaces, configured from TTD_* variables."""
    return TimelineService.create(
        TimelineConfig.from_env(),
        navigation=InMemoryNavigationSurface(),
        storage=InMemoryKeyValueSurface(),
        cache=InMemoryCacheSurface(),
    )


def create_app(service: Optional[TimelineService] = None, run_host_loop: bool = True) -> FastAPI:
    """
    Build the API around service. Without one, the lifespan creates a
    default service and disposes it on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.service is None
        if owned:
            app.state.service = build_default_service()
            logger.info("Default timeline service created")

        stop = asyncio.Event()
        task = None
        if run_host_loop:
            task = asyncio.create_task(app.state.service.run(stop))

        yield

        stop.set()
        if task is not None:
            await task
        if owned:
            app.state.service.dispose()
            app.state.service = None

    app = FastAPI(
        title="Timeline Debugger API",
        version="0.1.0",
        description="Record, scrub and replay application state transitions",
        lifespan=lifespan
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(OutOfRange)
    async def out_of_range_handler(request: Request, exc: OutOfRange):
        return JSONResponse(status_code=404, content={"error": exc.error.to_dict()})

    @app.exception_handler(MalformedImport)
    async def malformed_import_handler(request: Request, exc: MalformedImport):
        return JSONResponse(status_code=422, content={"error": exc.error.to_dict()})

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content={"error": {"message": str(exc)}})

    def get_service(request: Request) -> TimelineService:
        current = request.app.state.service
        if current is None or current.is_disposed:
            raise HTTPException(status_code=503, detail="Timeline service not initialized")
        return current

    # =========================================================================
    # ENDPOINTS
    # =========================================================================

    @app.get("/health")
    async def health_check(svc: TimelineService = Depends(get_service)):
        return {"status": "online", "events": len(svc.get_log())}

    @app.get("/api/v1/log")
    async def get_log(svc: TimelineService = Depends(get_service)):
        cursor = svc.get_cursor()
        return {
            "cursor": cursor,
            "events": map_events_to_dto(svc.filter(), cursor),
            "autoplay": svc.autoplay_state.to_dict(),
            "warnings": [w.to_dict() for w in svc.get_warnings()],
        }

    @app.get("/api/v1/summary")
    async def get_summary(svc: TimelineService = Depends(get_service)):
        data = svc.summary().to_dict()
        data["speedPresets"] = list(svc.config.speed_presets)
        return data

    @app.get("/api/v1/events/{index}")
    async def get_event(index: int, svc: TimelineService = Depends(get_service)):
        log = svc.get_log()
        return map_event_detail(index, log.at(index), log.cursor)

    @app.post("/api/v1/navigate/back")
    async def step_backward(svc: TimelineService = Depends(get_service)):
        return map_navigation(svc.step_backward())

    @app.post("/api/v1/navigate/forward")
    async def step_forward(svc: TimelineService = Depends(get_service)):
        return map_navigation(svc.step_forward())

    @app.post("/api/v1/navigate/live")
    async def go_live(svc: TimelineService = Depends(get_service)):
        return map_navigation(svc.go_live())

    @app.post("/api/v1/navigate/jump/{index}")
    async def jump_to(index: int, svc: TimelineService = Depends(get_service)):
        return map_navigation(svc.jump_to(index))

    @app.post("/api/v1/playback/start")
    async def start_playback(svc: TimelineService = Depends(get_service)):
        return svc.start_autoplay().to_dict()

    @app.post("/api/v1/playback/stop")
    async def stop_playback(svc: TimelineService = Depends(get_service)):
        return svc.stop_autoplay().to_dict()

    @app.put("/api/v1/playback/speed")
    async def set_speed(request: SpeedRequest, svc: TimelineService = Depends(get_service)):
        return svc.set_speed(request.speed).to_dict()

    @app.get("/api/v1/export")
    async def export_timeline(svc: TimelineService = Depends(get_service)):
        return svc.export()

    @app.post("/api/v1/import")
    async def import_timeline(document: Any = Body(...), svc: TimelineService = Depends(get_service)):
        count = svc.import_timeline(document)
        return {"imported": count, "cursor": svc.get_cursor()}

    @app.delete("/api/v1/log")
    async def clear_log(svc: TimelineService = Depends(get_service)):
        svc.clear()
        return {"cleared": True, "cursor": svc.get_cursor()}

    @app.get("/api/v1/filter")
    async def filter_events(
        category: Optional[str] = None,
        q: Optional[str] = None,
        svc: TimelineService = Depends(get_service)
    ):
        matches = TimelineQuery(svc.get_log()).filter(category=category, text=q)
        return {"cursor": svc.get_cursor(), "events": map_events_to_dto(list(matches), svc.get_cursor())}

    return app


app = create_app()
