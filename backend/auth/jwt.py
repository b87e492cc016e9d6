"""
JWT session resolution.

Handles token creation, verification, and the session dependencies used by
the dice and configuration routes.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel

# JWT Configuration
SECRET_KEY = os.getenv("SECRET_KEY", "your-secret-key-change-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "7"))

# Missing credentials are not an error here: the dice endpoint answers
# "unauthorized" in its own response envelope.
security = HTTPBearer(auto_error=False)


class SessionPlayer(BaseModel):
    """Identity carried by a session token."""
    id: int
    admin: bool = False


def create_access_token(player_id: int, admin: bool = False) -> str:
    """
    Create a JWT access token for a player.

    Args:
        player_id: The player's ID
        admin: Whether the player is the game master

    Returns:
        JWT token string

    Example:
        token = create_access_token(player.id, player.admin)
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(player_id),  # Subject (player ID)
        "admin": admin,
        "exp": now + timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS),
        "iat": now,  # Issued at
    }
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> Optional[SessionPlayer]:
    """
    Verify and decode a JWT token.

    Returns:
        SessionPlayer if valid, None if invalid or expired
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None

    subject = payload.get("sub")
    if subject is None:
        return None

    try:
        player_id = int(subject)
    except ValueError:
        return None

    return SessionPlayer(id=player_id, admin=bool(payload.get("admin", False)))


async def get_session_player(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[SessionPlayer]:
    """
    FastAPI dependency resolving the caller's session.

    Returns None if no token is provided or the token is invalid.
    """
    if credentials is None:
        return None
    return verify_token(credentials.credentials)


async def require_admin(
    player: Optional[SessionPlayer] = Depends(get_session_player),
) -> SessionPlayer:
    """
    FastAPI dependency for game-master-only endpoints.

    Raises:
        HTTPException 401: If there is no valid session
        HTTPException 403: If the player is not an admin
    """
    if player is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not player.admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the game master can perform this action",
        )
    return player
