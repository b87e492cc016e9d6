"""
Authentication module.

Provides JWT token generation, verification, and session dependencies.
"""

from .jwt import (
    create_access_token,
    verify_token,
    get_session_player,
    require_admin,
    SessionPlayer,
)

__all__ = [
    'create_access_token',
    'verify_token',
    'get_session_player',
    'require_admin',
    'SessionPlayer',
]
