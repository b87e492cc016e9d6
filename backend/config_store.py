"""
Access to server-wide settings kept in the `config` table.

Rows are plain name/value strings. Absent rows fall back to DEFAULTS, so a
fresh database behaves like one with success types disabled and an idle
environment.
"""

import json
import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from backend.models import Config
from backend.success_types import resolver_key_for

logger = logging.getLogger(__name__)

ENABLE_SUCCESS_TYPES = "enable_success_types"
ENVIRONMENT = "environment"
DICE = "dice"

ENVIRONMENTS = ("idle", "combat")

DEFAULT_DICE_CONFIG = {
    "characteristic": {"value": 20, "branched": False, "enable_modifiers": False},
    "skill": {"value": 20, "branched": False, "enable_modifiers": False},
    "attribute": {"value": 100, "branched": False},
}

DEFAULTS = {
    ENABLE_SUCCESS_TYPES: "false",
    ENVIRONMENT: "idle",
    DICE: json.dumps(DEFAULT_DICE_CONFIG),
}


def get_config_value(db: Session, name: str, default: Optional[str] = None) -> Optional[str]:
    row = db.query(Config).filter(Config.name == name).first()
    if row is not None:
        return row.value
    if default is not None:
        return default
    return DEFAULTS.get(name)


def set_config_value(db: Session, name: str, value: str) -> Config:
    row = db.query(Config).filter(Config.name == name).first()
    if row is None:
        row = Config(name=name, value=value)
        db.add(row)
    else:
        row.value = value
    db.commit()
    db.refresh(row)
    logger.info(f"Config {name} set to {value}")
    return row


class ConfigFeatureFlags:
    """Feature-flag store backed by the config table."""

    def __init__(self, db: Session):
        self.db = db

    def success_types_enabled(self) -> bool:
        return get_config_value(self.db, ENABLE_SUCCESS_TYPES) == "true"


def get_dice_config(db: Session) -> Dict[str, dict]:
    """
    Dice configuration with the resolver key of each entry.

    Example:
        {"skill": {"value": 20, "branched": True, "resolver_key": "20b"}, ...}
    """
    raw = get_config_value(db, DICE)
    try:
        config = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Stored dice config is not valid JSON, using defaults")
        config = DEFAULT_DICE_CONFIG

    if not isinstance(config, dict):
        logger.warning("Stored dice config is not an object, using defaults")
        config = DEFAULT_DICE_CONFIG

    resolved = {}
    for name, entry in config.items():
        if not isinstance(entry, dict):
            logger.warning(f"Skipping malformed dice config entry {name}")
            continue
        key = resolver_key_for(entry.get("value"), bool(entry.get("branched", False)))
        resolved[name] = {**entry, "resolver_key": key.value if key else None}
    return resolved
