import logging
import sys
import time
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .cron_api import router as cron_router
from .dates import utc_now
from .errors import setup_error_handlers
from .history_api import router as history_router
from .leaderboard_api import router as leaderboard_router
from .observability import (
    REQUEST_ID_HEADER,
    USER_ID_HEADER,
    bind_log_context,
    duration_ms,
    generate_request_id,
    log_ctx,
    log_ctx_json,
    reset_log_context,
    validate_request_id,
)
from .stats import router as stats_router
from .store import InMemoryUserStore

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger("hobhob-api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting HobHob API...")
    if settings.is_production():
        logger.info("security mode: production strict enabled")
    if not settings.CRON_SECRET:
        logger.warning("CRON_SECRET is not set, /api/cron endpoints will reject every call")
    logger.info(
        "Startup CORS config: origins=%s origin_regex=%s",
        settings.get_cors_allow_origins(),
        settings.get_cors_allow_origin_regex() or "",
    )
    yield
    logger.info("Shutting down HobHob API...")


app = FastAPI(
    title="HobHob API",
    description="Habit streaks, history and leaderboard backend for the HobHob PWA",
    version="0.1.0",
    lifespan=lifespan,
)

# Collaborators are injected here; deployments replace the in-memory store and
# attach a push sender.
app.state.store = InMemoryUserStore()
app.state.clock = utc_now
app.state.push_sender = None

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_allow_origins(),
    allow_origin_regex=settings.get_cors_allow_origin_regex(),
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER, USER_ID_HEADER],
    expose_headers=[REQUEST_ID_HEADER],
)


@app.middleware("http")
async def request_observability_middleware(request: Request, call_next):
    started_at = time.monotonic()

    incoming_request_id = request.headers.get(REQUEST_ID_HEADER)
    if incoming_request_id is None:
        request_id = generate_request_id()
    else:
        if not validate_request_id(incoming_request_id):
            request_id = generate_request_id()
            request.state.request_id = request_id
            response = JSONResponse(
                status_code=400,
                content={
                    "error": {
                        "code": "VALIDATION_FAILED",
                        "message": "Invalid request",
                        "details": {
                            "fieldErrors": [
                                {
                                    "field": "header.X-Request-Id",
                                    "issue": "must be non-empty and <= 128 chars",
                                }
                            ]
                        },
                    }
                },
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            logger.warning(
                "REQUEST_REJECTED context=%s",
                log_ctx_json(
                    log_ctx(
                        request,
                        extra={
                            "status_code": 400,
                            "duration_ms": duration_ms(started_at),
                            "reason": "invalid_x_request_id",
                        },
                    )
                ),
            )
            return response
        request_id = incoming_request_id.strip()

    request.state.request_id = request_id
    context_token = bind_log_context(request_id=request_id, path=request.url.path)
    try:
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "REQUEST_DONE context=%s",
            log_ctx_json(
                log_ctx(
                    request,
                    extra={
                        "status_code": response.status_code,
                        "duration_ms": duration_ms(started_at),
                    },
                )
            ),
        )
        return response
    finally:
        reset_log_context(context_token)


setup_error_handlers(app)

v1_router = APIRouter(prefix="/v1")


@app.get("/health", tags=["Health"])
@v1_router.get("/health", tags=["Health"])
async def health_check():
    return {
        "status": "ok",
        "service": "hobhob-api",
        "version": "0.1.0",
    }


app.include_router(v1_router)
app.include_router(stats_router)
app.include_router(history_router)
app.include_router(leaderboard_router)
app.include_router(cron_router)
