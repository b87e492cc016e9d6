"""
Pydantic schemas for the dice endpoint.
Request bodies use the camelCase keys the sheet clients send.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Literal, Optional, Union

from backend.success_types import SuccessType

# Upper bound on dice per specification; single mode draws `num` values at once
MAX_DICE = 100


# ============================================================================
# REQUEST (Client → Server)
# ============================================================================

class DiceSpec(BaseModel):
    """One dice specification: `num` dice of `roll` faces, optional reference value."""
    num: int = Field(..., ge=0, le=MAX_DICE, description="Number of dice / multiplier")
    roll: int = Field(..., description="Die size (faces)")
    ref: Optional[int] = Field(default=None, description="Reference value for success classification")


class DiceRollPayload(BaseModel):
    """Body of POST /api/dice."""
    model_config = ConfigDict(populate_by_name=True)

    dices: Union[List[DiceSpec], DiceSpec]
    resolver_key: Optional[str] = Field(default=None, alias="resolverKey")
    npc_id: Optional[int] = Field(default=None, alias="npcId")

    @field_validator("dices")
    @classmethod
    def validate_not_empty(cls, v):
        if isinstance(v, list) and not v:
            raise ValueError("At least one dice specification is required")
        return v

    @field_validator("resolver_key", mode="before")
    @classmethod
    def blank_key_is_absent(cls, v):
        return v or None

    @field_validator("npc_id", mode="before")
    @classmethod
    def zero_npc_is_absent(cls, v):
        return v or None

    @property
    def is_array(self) -> bool:
        return isinstance(self.dices, list)

    def dices_as_json(self):
        """Requested dices as JSON, echoed in the result broadcast for correlation."""
        if self.is_array:
            return [dice.model_dump(exclude_none=True) for dice in self.dices]
        return self.dices.model_dump(exclude_none=True)


# ============================================================================
# RESPONSE (Server → Client)
# ============================================================================

class DiceResponse(BaseModel):
    """One resolved roll, positionally aligned with the request."""
    model_config = ConfigDict(populate_by_name=True)

    roll: int
    result_type: Optional[SuccessType] = Field(default=None, alias="resultType")

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class DiceRollSuccess(BaseModel):
    status: Literal["success"] = "success"
    results: List[DiceResponse]


class DiceRollFailure(BaseModel):
    status: Literal["failure"] = "failure"
    reason: Literal["unauthorized", "invalid_dices", "unknown_error"]
