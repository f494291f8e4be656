from contextlib import asynccontextmanager
import logging
import time

from fastapi import FastAPI
from starlette.requests import Request

from job_alert.api.router import api_router
from job_alert.core.config import get_alert_config, get_settings
from job_alert.core.telemetry import (
    TelemetryRuntime,
    configure_logging,
    setup_api_telemetry,
    shutdown_api_telemetry,
)
from job_alert.services.background import get_dispatcher
from job_alert.services.sparql import get_sparql_client

settings = get_settings()
configure_logging(settings)
_telemetry_runtime: TelemetryRuntime | None = None
logger = logging.getLogger(__name__)

SHUTDOWN_DRAIN_SECONDS = 30.0


def log_startup_configuration() -> None:
    config = get_alert_config()
    logger.info("job alert service starting")
    logger.info("monitoring job statuses: %s", ", ".join(config.monitored_statuses))
    if config.operations:
        logger.info("filtering by operations: %s", ", ".join(config.operations))
    if config.creators:
        logger.info("filtering by creators: %s", ", ".join(config.creators))
    logger.debug("full config: %s", config)


@asynccontextmanager
async def lifespan(_: FastAPI):
    log_startup_configuration()
    try:
        yield
    finally:
        # Let in-flight delta processing finish before the store client goes away.
        await get_dispatcher().drain(timeout_seconds=SHUTDOWN_DRAIN_SECONDS)
        if _telemetry_runtime is not None:
            shutdown_api_telemetry(app, _telemetry_runtime)
        await get_sparql_client().close()


app = FastAPI(title=settings.app_name, lifespan=lifespan)
_telemetry_runtime = setup_api_telemetry(app, settings)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    started_at = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started_at) * 1000.0
    logger.info(
        "http request method=%s path=%s status=%s duration_ms=%.2f",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


app.include_router(api_router)
