import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clinic_scheduler.api.routes import appointment_types, appointments, holidays, slots, webhook
from clinic_scheduler.core.config import _ENV_FILE, get_appointment_types, settings
from clinic_scheduler.core.db import create_engine_for, init_db
from clinic_scheduler.core.errors import ErrorKind, SchedulingError

if os.getenv("ENV") != "production":
    logging.basicConfig(level=logging.DEBUG)
else:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}',
    )
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorKind.INVALID_INPUT: 422,
    ErrorKind.SCHEDULING_CONFLICT: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UPSTREAM_FAILURE: 503,
    ErrorKind.PARTIAL_FAILURE: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
    logger.info("Appointment types: %s", ", ".join(get_appointment_types()))
    if settings.event_store_backend == "database":
        engine = create_engine_for(settings.database_url)
        await init_db(engine)
        await engine.dispose()
        logger.info("Event store: database (%s)", settings.database_url.split("://", 1)[0])
    elif settings.google_credentials_json or settings.google_application_credentials:
        logger.info("Event store: Google Calendar %s", settings.calendar_id)
    else:
        logger.warning(
            "Google Calendar: NOT configured. Set GOOGLE_CREDENTIALS_JSON or GOOGLE_APPLICATION_CREDENTIALS in %s",
            _ENV_FILE,
        )
    if not settings.webhook_secret:
        logger.warning("Webhook secret not set; /booking/webhook accepts unauthenticated calls")
    yield


app = FastAPI(
    title="Clinic Scheduler API",
    description="Appointment booking for a clinic on top of a shared calendar",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-Webhook-Secret"],
)

app.include_router(appointment_types.router, prefix="/api/v1")
app.include_router(slots.router, prefix="/api/v1")
app.include_router(appointments.router, prefix="/api/v1")
app.include_router(holidays.router, prefix="/api/v1")
app.include_router(webhook.router, prefix="/api/v1")


def _cors_headers(origin: str | None) -> dict[str, str]:
    """Add CORS headers to error responses so the browser doesn't block them."""
    headers = {
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type, X-Webhook-Secret",
    }
    if origin and origin in settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = origin
    elif settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = settings.cors_origins_list[0]
    return headers


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    if exc.kind in (ErrorKind.UPSTREAM_FAILURE, ErrorKind.PARTIAL_FAILURE):
        logger.error("%s on %s: %s", exc.kind.value, request.url.path, exc.message)
    return JSONResponse(
        status_code=ERROR_STATUS[exc.kind],
        content={"detail": exc.to_dict()},
        headers=_cors_headers(request.headers.get("origin")),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return actual error in JSON; include CORS so 500 responses are not blocked by browser."""
    origin = request.headers.get("origin")
    headers = _cors_headers(origin)
    if isinstance(exc, HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=headers,
        )
    logger.exception("Unhandled exception: %s", exc)
    detail = f"{type(exc).__name__}: {str(exc)}"
    return JSONResponse(
        status_code=500,
        content={"detail": detail},
        headers=headers,
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "event_store": settings.event_store_backend}
