"""FastAPI app entry point for the Ramp Fitment API."""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ramp_fitment.api.routes import router
from ramp_fitment.config import get_settings
from ramp_fitment.core.logging import log_error, log_request, log_response, logger, setup_logging
from ramp_fitment.services.config_store import get_config, validate_config


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: configure logging and fail fast on bad config."""
    setup_logging(get_settings().log_level)
    config = get_config()
    ok, problems = validate_config(config)
    if not ok:
        logger.warning(f"Fitment config loaded with problems: {problems}")
    logger.info(f"Starting Ramp Fitment API (config {config.engine_settings.version})")
    yield
    logger.info("Shutting down...")


app = FastAPI(
    title="Ramp Fitment API",
    description="Ramp and accessory recommendations for loading a motorcycle into a pickup",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Admin-Key"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    log_request(request.method, request.url.path)

    response = await call_next(request)

    duration_ms = (time.time() - start) * 1000
    log_response(request.method, request.url.path, response.status_code, duration_ms)

    return response


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    log_error("Unhandled error", exc, path=request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Routes
app.include_router(router, prefix="/api")


@app.get("/health")
async def health():
    ok, problems = validate_config()
    return {
        "status": "ok" if ok else "degraded",
        "service": "ramp-fitment-api",
        "configVersion": get_config().engine_settings.version,
        "configProblems": problems,
    }
