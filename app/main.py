# app/main.py
"""
FastAPI application entry point.
Includes security middleware, global error handlers, and all routers.

The ledger store is injected: create_app(store) wires a LifecycleService
around it and opens/closes both with the application lifespan.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from app.routers import health, sign_ins, vehicles
from app.database import LedgerStore
from app.exceptions import LedgerUnavailable
from app.services.lifecycle_service import LifecycleService
from app.config import settings
from app.utils.logger import get_logger
import time

logger = get_logger(__name__)

OPEN_PATHS = {"/api/v1/health", "/docs", "/redoc", "/openapi.json"}


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key auth for the kiosk and admin console.
    Health check and docs stay open. Set API_KEY in .env; leave empty to disable.
    """
    def __init__(self, app, api_key: str):
        super().__init__(app)
        self.api_key = api_key

    async def dispatch(self, request: Request, call_next):
        if request.url.path in OPEN_PATHS:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != self.api_key:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Ledger backend starting up...")
    app.state.lifecycle.open()
    app.state.store.create_tables()
    logger.info("✅ Database tables ready")
    logger.info(f"📏 Limits: max trip {app.state.lifecycle.limits.max_trip_distance}, "
                f"max odometer {app.state.lifecycle.limits.max_odometer}")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    yield
    logger.info("🛑 Ledger backend shutting down...")
    app.state.lifecycle.close()


def create_app(store: LedgerStore = None, api_key: str = None) -> FastAPI:
    store = store or LedgerStore(settings.DATABASE_URL)
    api_key = api_key if api_key is not None else settings.API_KEY

    app = FastAPI(
        title="Site & Fleet Occupancy Ledger API",
        description="Visitor sign-in/out and fleet vehicle checkout/check-in.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.lifecycle = LifecycleService(store)

    # ── CORS (kiosk + admin console) ─────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],   # Restrict to console origin in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if api_key:
        app.add_middleware(APIKeyMiddleware, api_key=api_key)

    # ── Request Timing Middleware ────────────────────────────────────────────
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        duration = round((time.time() - start) * 1000, 2)
        logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
        return response

    # ── Exception Handlers ───────────────────────────────────────────────────
    @app.exception_handler(LedgerUnavailable)
    async def ledger_unavailable_handler(request: Request, exc: LedgerUnavailable):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Ledger temporarily unavailable, retry later",
                     "kind": "TRANSIENT", "transition": exc.transition},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    # ── Routers ──────────────────────────────────────────────────────────────
    app.include_router(sign_ins.router, prefix="/api/v1", tags=["🧑 Sign-ins"])
    app.include_router(vehicles.router, prefix="/api/v1", tags=["🚗 Vehicles"])
    app.include_router(health.router,   prefix="/api/v1", tags=["💚 Health"])

    return app


app = create_app()
