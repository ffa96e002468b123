from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

import jwt
from fastapi import Depends, Header, HTTPException

from bookswap.core.config import settings


ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


@dataclass
class UserContext:
    user_id: str
    email: str | None
    role: str
    claims: dict[str, Any]

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def _issue_token(user_id: str, email: str, role: str, token_type: str, ttl: timedelta) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": user_id,
        "email": email,
        "role": role,
        "type": token_type,
        "jti": uuid4().hex,
        "iat": now,
        "exp": now + ttl,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def issue_token_pair(user_id: str, email: str, role: str) -> tuple[str, str]:
    access = _issue_token(
        user_id, email, role, ACCESS_TOKEN, timedelta(minutes=settings.access_token_ttl_minutes)
    )
    refresh = _issue_token(
        user_id, email, role, REFRESH_TOKEN, timedelta(days=settings.refresh_token_ttl_days)
    )
    return access, refresh


def verify_token(token: str, expected_type: str = ACCESS_TOKEN) -> dict[str, Any]:
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp", "type"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise HTTPException(status_code=401, detail="Token expired.") from exc
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid JWT.") from exc
    if claims.get("type") != expected_type:
        raise HTTPException(status_code=401, detail="Wrong token type.")
    return claims


def get_current_user(authorization: str = Header(default="")) -> UserContext:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing Authorization header.")
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Missing JWT token.")

    claims = verify_token(token)
    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid JWT payload.")
    return UserContext(
        user_id=user_id,
        email=claims.get("email"),
        role=claims.get("role") or "user",
        claims=claims,
    )


def require_admin(user: UserContext = Depends(get_current_user)) -> UserContext:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Operator access required.")
    return user

