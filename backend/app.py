import logging
import os
import time
import uuid
from contextlib import asynccontextmanager
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from backend.db import init_db
from backend.broadcast import RoomConnectionManager
from backend.logging_config import setup_logging, request_id_var
from backend.health_checks import check_database, check_env, check_realtime, get_app_metadata
from backend.error_handlers import register_error_handlers


# Load .env vars
load_dotenv()

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

# Track uptime
start_time = time.time()

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]


# Lifespan context for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    try:
        init_db()
        logger.info("Database initialized")
    except Exception as e:
        logger.warning(f"DB init warning: {e}")
    logger.info("Sheet API starting")
    yield
    # Shutdown
    logger.info("Sheet API shutting down")


# Create FastAPI app
application = FastAPI(
    title="RPG Sheet API",
    description="Character sheet and game master console API with realtime dice rolls",
    version="1.0.0",
    lifespan=lifespan,
)

# One broadcaster per application; routes get it through get_broadcaster
application.state.broadcaster = RoomConnectionManager()


# Add CORS middleware
application.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Middleware to attach request_id
@application.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    token = request_id_var.set(request_id)

    try:
        logger.info(f"{request.method} {request.url.path}")
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response
    finally:
        request_id_var.reset(token)


# Health check
@application.get("/health")
async def health_check():
    """Simple health check."""
    return {
        "status": "ok",
        "uptime_seconds": time.time() - start_time,
        "timestamp": time.time(),
    }


# Health check with DB status
@application.get("/api/health")
async def api_health_check():
    """Detailed health check with DB, env and realtime checks."""
    db_status = check_database()

    return {
        "status": "ok" if db_status == "ok" else "degraded",
        "database": db_status,
        "environment": check_env(),
        "realtime": check_realtime(application.state.broadcaster),
        "metadata": get_app_metadata(start_time),
        "timestamp": time.time(),
    }


# Register routers (import after app creation to avoid circular imports)
from routes.dice_fastapi import dice_blp_fastapi
from routes.config_fastapi import config_blp_fastapi
from routes.room_websocket import router as room_websocket_router

application.include_router(dice_blp_fastapi, prefix="/api", tags=["Dice"])
application.include_router(config_blp_fastapi, prefix="/api", tags=["Config"])
application.include_router(room_websocket_router)


# Root endpoint
@application.get("/")
async def root():
    """API root."""
    return {
        "message": "RPG Sheet API",
        "docs": "/docs",
        "openapi": "/openapi.json",
        "health": "/health",
        "api_health": "/api/health",
        "socket": "/api/socket/ws",
    }


register_error_handlers(application)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(application, host="0.0.0.0", port=8000)
