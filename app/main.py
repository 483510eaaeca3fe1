# app/main.py
"""
FastAPI application entry point.
Includes security middleware, domain + global error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from app.routers import cars, maintenance, notifications, health
from app.database import create_tables, SessionLocal
from app.config import settings
from app.services.errors import MaintenanceError
from app.services.rule_catalog import ensure_maintenance_rules
from app.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="Fleet Maintenance Tracker API",
    description="Cars, mileage readings and mileage-based preventive maintenance planning.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (allow the web and mobile clients to call the API) ─────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to client origins in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key gate in front of the maintenance endpoints.
    User authentication and car ownership checks live in the gateway.
    Set API_KEY in .env. Leave empty to disable auth.
    """
    async def dispatch(self, request: Request, call_next):
        open_paths = {"/api/v1/health", "/docs", "/redoc", "/openapi.json"}
        if request.url.path in open_paths or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Domain Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(MaintenanceError)
async def maintenance_error_handler(request: Request, exc: MaintenanceError):
    logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(cars.router,          prefix="/api/v1", tags=["🚗 Cars"])
app.include_router(maintenance.router,   prefix="/api/v1", tags=["🔧 Maintenance"])
app.include_router(notifications.router, prefix="/api/v1", tags=["🔔 Notifications"])
app.include_router(health.router,        prefix="/api/v1", tags=["💚 Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
def initialize_application():
    """Create tables and seed the rule catalog. Idempotent; runs before serving traffic."""
    create_tables()
    logger.info("✅ Database tables ready")
    if settings.SEED_MAINTENANCE_RULES:
        db = SessionLocal()
        try:
            ensure_maintenance_rules(db)
        finally:
            db.close()


@app.on_event("startup")
async def startup():
    logger.info("🚀 Fleet Maintenance Backend starting up...")
    initialize_application()
    logger.info(f"🔧 Planning buffer {settings.MILEAGE_BUFFER} km, "
                f"upcoming horizon {settings.DAYS_AHEAD_FOR_UPCOMING} days, "
                f"overdue sweep {'on' if settings.SWEEP_OVERDUE_STATUS else 'off'}")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Fleet Maintenance Backend shutting down...")
