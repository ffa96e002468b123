from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bookswap.core.auth import REFRESH_TOKEN, UserContext, get_current_user, issue_token_pair, verify_token
from bookswap.core.database import get_db
from bookswap.core.errors import AuthenticationError
from bookswap.core.schemas import (
    LoginRequest,
    OkResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    UserOut,
    UserProfileOut,
    UserStats,
)
from bookswap.models import User
from bookswap.services import accounts


logger = logging.getLogger(__name__)

router = APIRouter()


def _token_response(user: User) -> TokenResponse:
    access, refresh = issue_token_pair(user.id, user.email, user.role)
    return TokenResponse(token=access, refresh_token=refresh, user=UserOut.model_validate(user))


@router.post("/register", response_model=RegisterResponse)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> RegisterResponse:
    user = accounts.register(db, payload.name, payload.email, payload.password)
    return RegisterResponse(user=UserOut.model_validate(user))


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    user = accounts.authenticate(db, payload.email, payload.password)
    return _token_response(user)


@router.post("/refresh", response_model=TokenResponse)
def refresh(payload: RefreshRequest, db: Session = Depends(get_db)) -> TokenResponse:
    claims = verify_token(payload.refresh_token, expected_type=REFRESH_TOKEN)
    user = db.get(User, claims["sub"])
    if not user:
        raise AuthenticationError("Account no longer exists.")
    return _token_response(user)


@router.get("/me", response_model=UserProfileOut)
def get_me(
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> UserProfileOut:
    account = accounts.get_user(db, user.user_id)
    return UserProfileOut(
        **UserOut.model_validate(account).model_dump(),
        stats=UserStats(**accounts.user_stats(db, account.id)),
    )


# 令牌无状态，客户端丢弃即可
@router.post("/logout", response_model=OkResponse)
def logout(user: UserContext = Depends(get_current_user)) -> OkResponse:
    logger.info(f"User {user.user_id} signed out")
    return OkResponse()
