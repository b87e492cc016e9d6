from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from sqlalchemy.orm import Session
from typing import Optional
import logging

from backend.auth.jwt import SessionPlayer, get_session_player
from backend.broadcast import Broadcaster, get_broadcaster
from backend.config_store import ConfigFeatureFlags
from backend.db import get_db
from backend.dice_service import DiceRollService
from backend.roll_logic import RollDelay, sleep_ms

logger = logging.getLogger(__name__)

dice_blp_fastapi = APIRouter(tags=["Dice"])


# ============ Dependencies ============

def get_roll_delay() -> RollDelay:
    return sleep_ms


def get_dice_service(
    broadcaster: Broadcaster = Depends(get_broadcaster),
    db: Session = Depends(get_db),
    delay: RollDelay = Depends(get_roll_delay),
) -> DiceRollService:
    return DiceRollService(broadcaster, ConfigFeatureFlags(db), delay=delay)


# ============ Endpoints ============

@dice_blp_fastapi.post("/dice")
async def post_dice_roll(
    request: Request,
    background_tasks: BackgroundTasks,
    player: Optional[SessionPlayer] = Depends(get_session_player),
    service: DiceRollService = Depends(get_dice_service),
):
    """
    Roll dice for the caller (or for `npcId`).

    Domain failures come back as {"status": "failure", "reason": ...}.
    The result broadcast runs after the response is sent.
    """
    try:
        body = await request.json()
    except ValueError:
        body = None

    outcome = await service.roll(player, body)

    if outcome.announce is not None:
        background_tasks.add_task(outcome.announce)

    return outcome.response


@dice_blp_fastapi.api_route("/dice", methods=["GET", "PUT", "PATCH", "DELETE", "OPTIONS"], include_in_schema=False)
async def dice_method_not_allowed():
    return Response(status_code=405)
