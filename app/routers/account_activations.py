"""Account activation endpoint (target of the activation mail link)."""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import log_in
from app.schemas.auth import TokenResponse
from app.services.auth import get_auth_service

router = APIRouter(prefix="/api/v1/account-activations", tags=["Account Activation"])


@router.get("/{token}", response_model=TokenResponse)
def activate_account(token: str, email: str, response: Response, db: Session = Depends(get_db)) -> TokenResponse:
    """Activate the account and log the user in."""
    auth_service = get_auth_service()
    result = auth_service.activate_account(db, email, token)

    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)

    user = result.user
    session_token = log_in(response, user)  # type: ignore[arg-type]
    return TokenResponse(token=session_token, id=user.id, email=user.email, name=user.name)  # type: ignore[union-attr]
