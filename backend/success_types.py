# backend/success_types.py

"""
Success/failure taxonomy for resolved rolls.

A resolver key picks the threshold table: d20 tables succeed on high rolls,
d100 tables succeed on low rolls. The branched tables ("20b", "100b") add the
good and extreme tiers.
"""

import math
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class DiceResolverKey(str, Enum):
    D20 = "20"
    D20_BRANCHED = "20b"
    D100 = "100"
    D100_BRANCHED = "100b"


class SuccessType(BaseModel):
    """Classification attached to a single rolled value."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    description: str
    success_weight: int = Field(alias="successWeight")  # -1 failure, 0 success, 1 good, 2 extreme


UNKNOWN = SuccessType(description="Unknown", success_weight=0)
FAILURE = SuccessType(description="Failure", success_weight=-1)
SUCCESS = SuccessType(description="Success", success_weight=0)
GOOD = SuccessType(description="Good", success_weight=1)
EXTREME = SuccessType(description="Extreme", success_weight=2)


def _parse_key(key) -> Optional[DiceResolverKey]:
    if not key:
        return None
    try:
        return DiceResolverKey(key)
    except ValueError:
        return None


def classify(key: Union[DiceResolverKey, str, None], reference: int, roll: int) -> SuccessType:
    """
    Classify a rolled value against the player's reference value.

    Tiers are checked from extreme down to success; the first match wins.
    A missing or unrecognised key yields the "Unknown" type.
    """
    resolver = _parse_key(key)

    if resolver is DiceResolverKey.D20:
        if roll > 20 - reference:
            return SUCCESS
        return FAILURE

    if resolver is DiceResolverKey.D20_BRANCHED:
        if roll > 20 - math.floor(reference * 0.2):
            return EXTREME
        if roll > 20 - math.floor(reference * 0.5):
            return GOOD
        if roll > 20 - reference:
            return SUCCESS
        return FAILURE

    if resolver is DiceResolverKey.D100:
        if roll <= reference:
            return SUCCESS
        return FAILURE

    if resolver is DiceResolverKey.D100_BRANCHED:
        if roll <= math.floor(reference * 0.2):
            return EXTREME
        if roll <= math.floor(reference * 0.5):
            return GOOD
        if roll <= reference:
            return SUCCESS
        return FAILURE

    return UNKNOWN


def resolver_key_for(value: int, branched: bool = False) -> Optional[DiceResolverKey]:
    """Map a configured die (20 or 100, optionally branched) to its resolver key."""
    if value == 20:
        return DiceResolverKey.D20_BRANCHED if branched else DiceResolverKey.D20
    if value == 100:
        return DiceResolverKey.D100_BRANCHED if branched else DiceResolverKey.D100
    return None
