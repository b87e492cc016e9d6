from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session
import logging

from backend.auth.jwt import SessionPlayer, require_admin
from backend.broadcast import Broadcaster, get_broadcaster
from backend.config_store import (
    ENABLE_SUCCESS_TYPES,
    ENVIRONMENT,
    ConfigFeatureFlags,
    get_config_value,
    get_dice_config,
    set_config_value,
)
from backend.db import get_db
from routes.schemas.config import EnvironmentUpdate, SuccessTypesUpdate

logger = logging.getLogger(__name__)

config_blp_fastapi = APIRouter(prefix="/config", tags=["Config"])


@config_blp_fastapi.get("/environment")
def get_environment(db: Session = Depends(get_db)):
    return {"environment": get_config_value(db, ENVIRONMENT)}


@config_blp_fastapi.post("/environment")
async def post_environment(
    data: EnvironmentUpdate,
    background_tasks: BackgroundTasks,
    admin: SessionPlayer = Depends(require_admin),
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """Store the new environment and push it to every connected client."""
    set_config_value(db, ENVIRONMENT, data.value)
    background_tasks.add_task(broadcaster.emit_all, "environmentChange", data.value)
    return {"status": "success", "environment": data.value}


@config_blp_fastapi.get("/success-types")
def get_success_types(db: Session = Depends(get_db)):
    return {"enabled": ConfigFeatureFlags(db).success_types_enabled()}


@config_blp_fastapi.put("/success-types")
def put_success_types(
    data: SuccessTypesUpdate,
    admin: SessionPlayer = Depends(require_admin),
    db: Session = Depends(get_db),
):
    set_config_value(db, ENABLE_SUCCESS_TYPES, "true" if data.enabled else "false")
    return {"status": "success", "enabled": data.enabled}


@config_blp_fastapi.get("/dice")
def get_dice(db: Session = Depends(get_db)):
    """Dice configuration with the resolver key clients should send for each roll kind."""
    return get_dice_config(db)
