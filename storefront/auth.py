"""Authentication helpers for the session cookie issued by the login flow."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, HTTPException, Request

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


@dataclass
class StoreUser:
    id: str
    email: str
    full_name: Optional[str] = None
    is_admin: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "email": self.email, "fullName": self.full_name}


def issue_token(user: StoreUser, secret: str) -> str:
    """Sign a session token; used by the login flow and the tests."""
    return jwt.encode(
        {
            "sub": user.id,
            "email": user.email,
            "fullName": user.full_name,
            "isAdmin": user.is_admin,
        },
        secret,
        algorithm=JWT_ALGORITHM,
    )


def decode_token(token: str, secret: str) -> StoreUser:
    """
    Raises:
        jwt.InvalidTokenError: bad signature, expired or malformed token
    """
    payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    return StoreUser(
        id=str(payload.get("sub", "")),
        email=payload.get("email", ""),
        full_name=payload.get("fullName"),
        is_admin=bool(payload.get("isAdmin")),
    )


def user_from_request(request: Request) -> Optional[StoreUser]:
    """The cookie's user, or None when absent or invalid."""
    auth = request.app.state.config.auth
    token = request.cookies.get(auth.cookie_name)
    if not token:
        return None
    try:
        return decode_token(token, auth.jwt_secret)
    except jwt.InvalidTokenError as e:
        logger.warning("Rejected session token: %s", e)
        return None


async def get_current_user(request: Request) -> StoreUser:
    user = user_from_request(request)
    if user is None or not user.id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


async def require_admin(user: StoreUser = Depends(get_current_user)) -> StoreUser:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Unauthorized or forbidden")
    return user
