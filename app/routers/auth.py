"""Login and logout endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import (
    SESSION_COOKIE_NAME,
    forget,
    get_current_user,
    get_current_user_optional,
    log_in,
    log_out,
    remember,
)
from app.models.user import User
from app.rate_limit import limiter
from app.schemas.auth import LoginRequest, TokenResponse
from app.schemas.user import UserResponse
from app.services.auth import get_auth_service

logger = logging.getLogger("sample_app")

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


@router.post("/login", response_model=TokenResponse)
@limiter.limit("10/minute")
def login(request: Request, response: Response, body: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """Authenticate, start a session and optionally remember the browser."""
    auth_service = get_auth_service()
    result = auth_service.authenticate(db, body.email, body.password)

    if not result.success:
        raise HTTPException(status_code=401, detail=result.error)

    user = result.user
    token = log_in(response, user)  # type: ignore[arg-type]
    if body.remember_me:
        remember(response, db, user)  # type: ignore[arg-type]
    else:
        forget(response, db, user)  # type: ignore[arg-type]

    logger.info("User %s logged in", user.id)  # type: ignore[union-attr]

    return TokenResponse(token=token, id=user.id, email=user.email, name=user.name)  # type: ignore[union-attr]


@router.delete("/logout")
def logout(
    response: Response,
    user: User | None = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
) -> dict:
    """End the session. Safe to call when already logged out (e.g. from a second tab)."""
    if user:
        log_out(response, db, user)
    else:
        response.delete_cookie(key=SESSION_COOKIE_NAME)
    return {"detail": "Logged out"}


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)) -> UserResponse:
    """Return the logged-in user."""
    return UserResponse.model_validate(user)
