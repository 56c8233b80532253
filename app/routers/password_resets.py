"""Password reset endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import log_in
from app.rate_limit import limiter
from app.schemas.auth import ForgotPasswordRequest, ResetPasswordRequest, TokenResponse
from app.services.auth import get_auth_service

logger = logging.getLogger("sample_app")

router = APIRouter(prefix="/api/v1/password-resets", tags=["Password Reset"])

RESET_REQUESTED = "If an activated account exists with that email, a password reset link has been sent."


@router.post("")
@limiter.limit("3/minute")
def request_password_reset(request: Request, body: ForgotPasswordRequest, db: Session = Depends(get_db)) -> dict:
    """Mail a reset link. The answer does not reveal whether the account exists."""
    auth_service = get_auth_service()
    token = auth_service.request_password_reset(db, body.email)
    if token:
        logger.info("Password reset requested for %s", body.email.strip().lower())
    return {"message": RESET_REQUESTED}


@router.get("/{token}")
def check_reset_link(token: str, email: str, db: Session = Depends(get_db)) -> dict:
    """Check that a reset link is still usable."""
    auth_service = get_auth_service()
    result = auth_service.check_reset_token(db, email, token)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    return {"valid": True, "email": result.user.email}  # type: ignore[union-attr]


@router.patch("/{token}", response_model=TokenResponse)
@limiter.limit("5/minute")
def reset_password(
    request: Request,
    response: Response,
    token: str,
    body: ResetPasswordRequest,
    db: Session = Depends(get_db),
) -> TokenResponse:
    """Set a new password and log the user in."""
    auth_service = get_auth_service()
    result = auth_service.reset_password(db, body.email, token, body.password, body.password_confirmation)

    if not result.success:
        detail = {"errors": result.errors} if result.errors else result.error
        raise HTTPException(status_code=400, detail=detail)

    user = result.user
    session_token = log_in(response, user)  # type: ignore[arg-type]
    return TokenResponse(token=session_token, id=user.id, email=user.email, name=user.name)  # type: ignore[union-attr]
