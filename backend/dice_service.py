"""
Dice resolution service.

Handles one roll request end to end:
- session and payload checks (nothing is rolled or broadcast on rejection)
- "diceRoll" notice to the subject's portrait room before rolling
- roll computation (array or single mode)
- the "diceResult" announcement, handed back to the caller so it can run
  after the response has been sent
"""

import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Protocol

from pydantic import ValidationError

from backend.auth.jwt import SessionPlayer
from backend.broadcast import ADMIN_ROOM, Broadcaster, portrait_room
from backend.roll_logic import RollDelay, resolve_array, resolve_single, sleep_ms
from routes.schemas.dice import DiceRollFailure, DiceRollPayload, DiceRollSuccess

logger = logging.getLogger(__name__)

ROLL_STARTED_EVENT = "diceRoll"
ROLL_RESULT_EVENT = "diceResult"


class FeatureFlags(Protocol):
    def success_types_enabled(self) -> bool:
        ...


@dataclass
class DiceRollOutcome:
    """Response body plus, on success, the pending result announcement."""
    response: dict
    announce: Optional[Callable[[], Awaitable[None]]] = None


def failure(reason: str) -> DiceRollOutcome:
    return DiceRollOutcome(response=DiceRollFailure(reason=reason).model_dump())


class DiceRollService:
    def __init__(
        self,
        broadcaster: Broadcaster,
        feature_flags: FeatureFlags,
        delay: RollDelay = sleep_ms,
        rng=random,
    ):
        self.broadcaster = broadcaster
        self.feature_flags = feature_flags
        self.delay = delay
        self.rng = rng

    async def roll(self, player: Optional[SessionPlayer], body: Any) -> DiceRollOutcome:
        if player is None:
            logger.info("Dice roll rejected: no session")
            return failure("unauthorized")

        try:
            payload = DiceRollPayload.model_validate(body)
        except ValidationError as e:
            logger.info(f"Dice roll rejected for player {player.id}: {e.error_count()} invalid field(s)")
            return failure("invalid_dices")

        # An NPC override addresses the NPC's room instead of the caller's
        subject_id = payload.npc_id or player.id

        try:
            success_types_enabled = (
                self.feature_flags.success_types_enabled() if payload.resolver_key else False
            )

            await self.broadcaster.emit(portrait_room(subject_id), ROLL_STARTED_EVENT)

            if payload.is_array:
                results = await resolve_array(payload.dices, self.delay, self.rng)
            else:
                results = await resolve_single(
                    payload.dices,
                    payload.resolver_key,
                    success_types_enabled,
                    self.delay,
                    self.rng,
                )
        except Exception:
            logger.exception(f"Dice roll failed for subject {subject_id}")
            return failure("unknown_error")

        logger.info(
            f"Player {player.id} rolled for subject {subject_id}: "
            f"{'array' if payload.is_array else 'single'} mode, {len(results)} result(s)"
        )

        response = DiceRollSuccess(results=results).model_dump(by_alias=True, exclude_none=True)

        # The broadcast gets its own copy of the results
        broadcast_results = [result.to_json() for result in results]
        dices = payload.dices_as_json()

        async def announce():
            await self.announce_result(player, subject_id, broadcast_results, dices)

        return DiceRollOutcome(response=response, announce=announce)

    async def announce_result(
        self,
        player: SessionPlayer,
        subject_id: int,
        results: List[dict],
        dices: Any,
    ) -> None:
        """
        Broadcast a finished roll to the admin room and the subject's room.

        The admin room is skipped when the caller is the admin. Failures are
        logged only: the caller already has its response.
        """
        try:
            if not player.admin:
                await self.broadcaster.emit(ADMIN_ROOM, ROLL_RESULT_EVENT, subject_id, results, dices)
            await self.broadcaster.emit(portrait_room(subject_id), ROLL_RESULT_EVENT, subject_id, results, dices)
        except Exception:
            logger.exception(f"Failed to broadcast dice result for subject {subject_id}")
