# roll_logic.py

import asyncio
import math
import random
from typing import Awaitable, Callable, List, Optional

from backend.success_types import classify
from routes.schemas.dice import DiceResponse, DiceSpec

# Simulated "rolling" latency, in milliseconds
ROLL_DELAY_MIN_MS = 600
ROLL_DELAY_MAX_MS = 1000

RollDelay = Callable[[int], Awaitable[None]]


async def sleep_ms(milliseconds: int) -> None:
    await asyncio.sleep(milliseconds / 1000)


### 🎲 Random Roll Engine ###
def next_int(min_value, max_value, count: int, rng=random) -> List[int]:
    """
    Returns `count` independent uniform integers in [min_value, max_value].

    Fractional bounds are pulled toward the inside of the range
    (min rounded up, max rounded down) before sampling.
    """
    low = math.ceil(min_value)
    high = math.floor(max_value)
    return [rng.randint(low, high) for _ in range(count)]


async def get_random(min_value, max_value, count: int, delay: RollDelay = sleep_ms, rng=random) -> List[int]:
    """Waits once for the simulated rolling latency, then draws `count` values."""
    await delay(next_int(ROLL_DELAY_MIN_MS, ROLL_DELAY_MAX_MS, 1, rng)[0])
    return next_int(min_value, max_value, count, rng)


def fixed_roll(num: int, roll: int) -> Optional[int]:
    """
    Value of a specification that needs no randomness, or None.

    No dice (or no faces) passes `roll` through unchanged; one-faced dice
    always read their maximum, so the result collapses to `num`.
    """
    if num == 0 or roll < 1:
        return roll
    if roll == 1:
        return num
    return None


### 🧮 Request Resolution ###
async def resolve_entry(dice: DiceSpec, delay: RollDelay = sleep_ms, rng=random) -> DiceResponse:
    fixed = fixed_roll(dice.num, dice.roll)
    if fixed is not None:
        return DiceResponse(roll=fixed)

    data = await get_random(dice.num, dice.num * dice.roll, 1, delay, rng)
    return DiceResponse(roll=data[0])


async def resolve_array(dices: List[DiceSpec], delay: RollDelay = sleep_ms, rng=random) -> List[DiceResponse]:
    """
    Resolves every entry concurrently; result `i` belongs to entry `i`.
    Entries are never classified.
    """
    return list(await asyncio.gather(*(resolve_entry(dice, delay, rng) for dice in dices)))


async def resolve_single(
    dice: DiceSpec,
    resolver_key: Optional[str] = None,
    success_types_enabled: bool = False,
    delay: RollDelay = sleep_ms,
    rng=random,
) -> List[DiceResponse]:
    """
    Rolls `num` dice of `roll` faces in one engine call.

    Each value is classified only when a resolver key and a reference value
    are both given and success types are enabled.
    """
    fixed = fixed_roll(dice.num, dice.roll)
    if fixed is not None:
        return [DiceResponse(roll=fixed)]

    data = await get_random(1, dice.roll, dice.num, delay, rng)

    should_classify = bool(resolver_key) and dice.ref is not None and success_types_enabled
    return [
        DiceResponse(
            roll=value,
            result_type=classify(resolver_key, dice.ref, value) if should_classify else None,
        )
        for value in data
    ]
