# backend/health_checks.py

import logging
import os, time
from sqlalchemy import text
from backend.db import engine

logger = logging.getLogger(__name__)

def check_database():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return "ok"
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        return f"error: {str(e)}"

def check_env(required=None):
    # SECRET_KEY falls back to a development key, so a missing value is
    # reported without failing the health check.
    if required is None:
        required = ["DATABASE_URL", "SECRET_KEY"]
    missing = [var for var in required if not os.getenv(var)]
    return "ok" if not missing else {"missing": missing}

def check_realtime(manager):
    """Connected sockets and open rooms of the broadcaster."""
    return {
        "connections": len(manager.connections),
        "rooms": {room: len(sockets) for room, sockets in manager.rooms.items()},
    }

def get_app_metadata(start_time):
    return {
        "version": os.getenv("APP_VERSION", "dev"),
        "uptime": f"{int(time.time() - start_time)}s",
    }
