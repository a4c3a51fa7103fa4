# auradhom/main.py
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from auradhom.core.config import get_settings
from auradhom.core.errors import (
    DuplicateOrderError,
    InvalidTransitionError,
    PersistenceError,
    ValidationError,
)
from auradhom.deps import get_gateway, get_order_service

# Routers
from auradhom.routers.orders import router as orders_router
from auradhom.routers.notifications import router as notifications_router

settings = get_settings()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Pick the order store (Supabase or local fallback), once.
      - Wire the order service with its notification/backup subscribers.
      - Load the order views from the store.
    """
    logger.info("🔄 Startup: selecting order store...")
    backend = get_gateway().backend_name
    try:
        get_order_service().refresh_from_store()
        logger.info("✅ Startup: order views loaded from %s store.", backend)
    except PersistenceError as e:
        logger.error(f"❌ Startup: loading orders from {backend} FAILED: {e}")
        raise
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


# --- CORS configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Domain errors -> HTTP ---


@app.exception_handler(ValidationError)
async def handle_validation_error(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc)},
    )


@app.exception_handler(DuplicateOrderError)
async def handle_duplicate_order(request: Request, exc: DuplicateOrderError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "detail": str(exc),
            "order": exc.existing.model_dump(mode="json"),
        },
    )


@app.exception_handler(InvalidTransitionError)
async def handle_invalid_transition(request: Request, exc: InvalidTransitionError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": str(exc), "current_status": exc.current_status},
    )


@app.exception_handler(PersistenceError)
async def handle_persistence_error(request: Request, exc: PersistenceError):
    logger.error("Store failure on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Order store unavailable, please retry", "error": str(exc)},
    )


# Versioned API prefix, e.g. /api/v1
app.include_router(orders_router, prefix=settings.API_V1_STR)
app.include_router(notifications_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "auradhom-orders",
        "store": get_gateway().backend_name,
    }
