import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import settings
from .errors import (
    Conflict,
    NoAlternateProvider,
    NotFound,
    NotPermitted,
    PartialTransactionFailure,
    SchedulingError,
    SlotUnavailable,
    ValidationFailed,
)
from .logging_config import setup_logging
from .routers import client_dashboard, notifications, provider_dashboard

logger = logging.getLogger(__name__)

# Most specific first: InvalidTransition is a Conflict, MalformedDocument a ValidationFailed
ERROR_STATUS_CODES = [
    (NotFound, 404),
    (NotPermitted, 403),
    (SlotUnavailable, 409),
    (NoAlternateProvider, 409),
    (Conflict, 409),
    (ValidationFailed, 422),
    (PartialTransactionFailure, 500),
]


def status_code_for(error: SchedulingError) -> int:
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(error, error_class):
            return status_code
    return 400


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL)
    logger.info("PawCare scheduling API starting (env=%s, store=%s)", settings.ENVIRONMENT, settings.STORE_BACKEND)
    yield
    logger.info("PawCare scheduling API stopped")


# Interactive docs are only served outside production
app = FastAPI(
    title="PawCare Scheduling",
    version=__version__,
    lifespan=lifespan,
    docs_url=None if settings.IS_PRODUCTION else "/docs",
    redoc_url=None if settings.IS_PRODUCTION else "/redoc",
)

# CORS Middleware Setup
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


app.include_router(provider_dashboard.router)
app.include_router(client_dashboard.router)
app.include_router(notifications.router)


@app.get("/health")
async def health():
    return {"status": "ok", "version": __version__}
