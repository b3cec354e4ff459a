"""
FastAPI application entry point.

Wires logging, error tracking, CORS, request logging, the domain error
handlers, health checks and the workout plan router.
"""
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pathlib import Path
from sqlalchemy import text
from uuid import uuid4
from routers import workout_plans
from core.config import settings
from core.database import check_db_connection, engine
from core.logging import bind_request_id, reset_request_id, setup_logging
from core.exceptions import APIException
import logging
import time

# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"
REQUEST_ID_HEADER = "X-Request-ID"


def _filter_sensitive_data(event, hint):
    """Strip credentials from events before they leave the process."""
    request = event.get("request") or {}
    headers = request.get("headers")
    if isinstance(headers, dict):
        for name in list(headers):
            if name.lower() in ("authorization", "cookie"):
                headers.pop(name)
    return event


def init_error_tracking() -> bool:
    """Initialize Sentry when SENTRY_DSN is configured. Returns True if enabled."""
    if not settings.SENTRY_DSN:
        return False

    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    try:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENVIRONMENT,
            release=f"workout-progression-api@{API_VERSION}",
            traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
            profiles_sample_rate=settings.SENTRY_PROFILES_SAMPLE_RATE,
            integrations=[
                FastApiIntegration(transaction_style="endpoint"),
                SqlalchemyIntegration(),
            ],
            # Don't send PII
            send_default_pii=False,
            before_send=_filter_sensitive_data,
        )
    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}")
        return False
    logger.info(f"Sentry initialized for environment: {settings.ENVIRONMENT}")
    return True


init_error_tracking()

app = FastAPI(
    title="Adaptive Workout Progression API",
    description="Performance analysis, plan regeneration and weekly adjustments for workout plans",
    version=API_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)


# CORS middleware
# Production: set CORS_ORIGINS env var (comma-separated)
# Development: DEBUG=True allows all origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.DEBUG else settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with latency, tagged with a request id."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex[:16]
    request.state.request_id = request_id
    token = bind_request_id(request_id)
    start_time = time.perf_counter()
    fields = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
    }

    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(
            f"Request failed: {request.method} {request.url.path}",
            exc_info=True,
            extra={"extra_fields": {**fields, "error": str(e)}},
        )
        raise
    finally:
        reset_request_id(token)

    elapsed_ms = round((time.perf_counter() - start_time) * 1000, 2)
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms}ms)",
        extra={"extra_fields": {**fields, "status_code": response.status_code, "process_time_ms": elapsed_ms}},
    )
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    """Consistent body for domain errors: detail plus a machine-readable code."""
    fields = {
        "request_id": getattr(request.state, "request_id", None),
        "path": request.url.path,
        "error_code": exc.error_code,
    }
    if exc.status_code >= 500:
        logger.error(f"API error {exc.error_code}: {exc.detail}", extra={"extra_fields": fields})
    else:
        logger.info(f"Request rejected with {exc.error_code}", extra={"extra_fields": fields})
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_body(),
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Anything that escaped the domain handlers becomes a logged 500."""
    logger.error(
        f"Unhandled exception: {exc}",
        exc_info=True,
        extra={
            "extra_fields": {
                "request_id": getattr(request.state, "request_id", None),
                "method": request.method,
                "path": request.url.path,
            }
        }
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "error_code": "INTERNAL_ERROR"},
    )


def _migration_state() -> dict:
    """Compare the database's alembic revision with the repository head."""
    from alembic.config import Config
    from alembic.script import ScriptDirectory

    api_root = Path(__file__).resolve().parent
    cfg = Config(str(api_root / "alembic.ini"))
    cfg.set_main_option("script_location", str(api_root / "alembic"))
    head = ScriptDirectory.from_config(cfg).get_current_head()

    with engine.connect() as conn:
        current = conn.execute(text("SELECT version_num FROM alembic_version")).scalar()

    return {
        "status": "healthy" if current == head else "behind",
        "current": current,
        "head": head,
    }


@app.get("/health")
async def health():
    """
    Simple health check for load balancers and uptime monitors.

    Returns:
        - 200: Core systems operational
        - 503: Database unavailable
    """
    if not check_db_connection():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "database": "unavailable",
            }
        )

    return {
        "status": "healthy",
        "timestamp": time.time(),
    }


@app.get("/health/detailed")
async def health_detailed():
    """
    Detailed health check for monitoring dashboards.

    Reports database latency and whether the schema is at the latest
    migration. Always returns 200; read the status fields.
    """
    checks = {
        "database": {"status": "unknown", "latency_ms": None},
        "migrations": {"status": "unknown"},
    }

    start = time.perf_counter()
    db_healthy = check_db_connection()
    checks["database"]["status"] = "healthy" if db_healthy else "unhealthy"
    checks["database"]["latency_ms"] = round((time.perf_counter() - start) * 1000, 2)

    if db_healthy:
        try:
            checks["migrations"] = _migration_state()
        except Exception as e:
            checks["migrations"] = {"status": "error", "error": f"{type(e).__name__}: {e}"}

    statuses = [c["status"] for c in checks.values()]
    if all(s == "healthy" for s in statuses):
        overall = "healthy"
    elif any(s in ("error", "unhealthy") for s in statuses):
        overall = "unhealthy"
    else:
        overall = "degraded"

    return {
        "status": overall,
        "version": API_VERSION,
        "environment": settings.ENVIRONMENT,
        "timestamp": time.time(),
        "checks": checks,
    }


@app.get("/ping")
async def ping():
    """
    Minimal ping endpoint for uptime monitors.
    No dependencies checked - just confirms the API is responding.
    """
    return {"pong": True}


app.include_router(workout_plans.router)


def run():
    """Serve the API with uvicorn using API_HOST / API_PORT / API_RELOAD."""
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.API_RELOAD,
        log_config=None,  # keep the handlers installed by setup_logging()
    )


if __name__ == "__main__":
    run()
