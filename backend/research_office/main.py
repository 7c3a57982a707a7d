import asyncio
from contextlib import asynccontextmanager, suppress
import time
import uuid

from fastapi import FastAPI, WebSocket, WebSocketDisconnect, Response, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.exc import IntegrityError
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration

from . import config, pubsub
from .database import Base, engine
from .logging_config import bind_request_context, clear_request_context, configure_logging, get_logger
from .routes import (
    health,
    scientists,
    programs,
    projects,
    research_activities,
    patents,
    publications,
    ibc_applications,
    irb_applications,
    board_members,
    facilities,
    role_permissions,
    journal_impact_factors,
    dashboard,
    external,
)

configure_logging(config.LOG_LEVEL, config.LOG_JSON, config.SERVICE_NAME)
logger = get_logger(__name__)

if config.SENTRY_DSN:
    sentry_sdk.init(dsn=config.SENTRY_DSN, integrations=[FastApiIntegration()])

REQUEST_COUNT = Counter("request_count", "Total requests", ["method", "endpoint", "status"])
REQUEST_LATENCY = Histogram(
    "request_latency_seconds", "Request latency", ["endpoint"]
)

WORKFLOW_KINDS = {"ibc", "irb", "publication"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("service_started", database=engine.url.get_backend_name())
    yield


app = FastAPI(title="Research Office API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

limiter = Limiter(key_func=get_remote_address, default_limits=[config.RATE_LIMIT])
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, lambda r, e: Response("Too Many Requests", status_code=429))
if not config.TESTING:
    app.add_middleware(SlowAPIMiddleware)


@app.middleware("http")
async def record_metrics(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    # route template when matched, raw path otherwise
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    REQUEST_COUNT.labels(request.method, endpoint, str(response.status_code)).inc()
    REQUEST_LATENCY.labels(endpoint).observe(time.perf_counter() - started)
    return response


@app.middleware("http")
async def request_context(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    bind_request_context(request_id, method=request.method, path=request.url.path)
    try:
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response
    finally:
        clear_request_context()


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        parts.append(f"{loc}: {error.get('msg')}" if loc else str(error.get("msg")))
    return "; ".join(parts)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": _format_validation_errors(exc)},
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.info("integrity_conflict", error=str(exc.orig))
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Record conflicts with an existing entry"},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error", path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


@app.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(health.router)
app.include_router(scientists.router)
app.include_router(scientists.directory_router)
app.include_router(programs.router)
app.include_router(projects.router)
app.include_router(research_activities.router)
app.include_router(patents.router)
app.include_router(publications.router)
app.include_router(ibc_applications.router)
app.include_router(irb_applications.router)
app.include_router(board_members.ibc_router)
app.include_router(board_members.irb_router)
app.include_router(facilities.buildings_router)
app.include_router(facilities.rooms_router)
app.include_router(role_permissions.router)
app.include_router(journal_impact_factors.router)
app.include_router(dashboard.router)
app.include_router(external.router)


async def _forward_events(websocket: WebSocket, messages) -> None:
    async for data in messages:
        await websocket.send_text(data)


@app.websocket("/ws/workflows/{kind}")
async def workflow_events(websocket: WebSocket, kind: str):
    if kind not in WORKFLOW_KINDS:
        await websocket.close(code=1008)
        return
    async with pubsub.workflow_subscription(kind) as messages:
        await websocket.accept()
        forward = asyncio.create_task(_forward_events(websocket, messages))
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.debug("workflow_socket_closed", kind=kind)
        finally:
            forward.cancel()
            with suppress(asyncio.CancelledError):
                await forward
