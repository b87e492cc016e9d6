"""
Pydantic schemas for game-master configuration endpoints.
"""

from pydantic import BaseModel, Field
from typing import Literal


class EnvironmentUpdate(BaseModel):
    """Game master switches the portrait environment."""
    value: Literal["idle", "combat"]


class SuccessTypesUpdate(BaseModel):
    """Game master enables or disables success classification of rolls."""
    enabled: bool = Field(..., description="Classify single-mode rolls with a resolver key")
