"""User endpoints: signup, index, profile, admin delete."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.dependencies import get_current_user, require_admin
from app.models.user import User
from app.rate_limit import limiter
from app.schemas.micropost import MicropostListResponse, MicropostResponse
from app.schemas.user import SignupRequest, UserListResponse, UserResponse, UserUpdateRequest
from app.services.auth import get_auth_service
from app.services.microposts import get_micropost_service
from app.services.users import get_user_service

logger = logging.getLogger("sample_app")

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


def _get_activated_user(db: Session, user_id: int) -> User:
    user = get_user_service().get_user(db, user_id)
    if not user or not user.activated:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post("", response_model=UserResponse, status_code=201)
@limiter.limit("5/minute")
def signup(request: Request, body: SignupRequest, db: Session = Depends(get_db)) -> UserResponse:
    """Create an account. It stays inactive until the emailed link is followed."""
    auth_service = get_auth_service()
    result = auth_service.register(db, body.name, body.email, body.password, body.password_confirmation)

    if not result.success:
        raise HTTPException(status_code=400, detail={"errors": result.errors})

    return UserResponse.model_validate(result.user)


@router.get("", response_model=UserListResponse)
def list_users(
    page: int = 1,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserListResponse:
    """List activated users, one page at a time."""
    per_page = get_settings().PER_PAGE
    items, total = get_user_service().list_activated_users(db, page=page, per_page=per_page)
    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in items],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db)) -> UserResponse:
    """Show an activated user."""
    return UserResponse.model_validate(_get_activated_user(db, user_id))


@router.get("/{user_id}/microposts", response_model=MicropostListResponse)
def list_user_microposts(user_id: int, page: int = 1, db: Session = Depends(get_db)) -> MicropostListResponse:
    """A user's microposts, newest first."""
    _get_activated_user(db, user_id)
    per_page = get_settings().PER_PAGE
    items, total = get_micropost_service().get_user_microposts(db, user_id, page=page, per_page=per_page)
    return MicropostListResponse(
        items=[MicropostResponse.model_validate(m) for m in items],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    body: UserUpdateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserResponse:
    """Edit your own profile."""
    if user.id != user_id:
        raise HTTPException(status_code=403, detail="You can only edit your own profile")

    result = get_user_service().update_profile(
        db, user, body.name, body.email, body.password, body.password_confirmation
    )
    if not result.success:
        raise HTTPException(status_code=400, detail={"errors": result.errors})
    return UserResponse.model_validate(result.user)


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    """Delete a user (admins only)."""
    if admin.id == user_id:
        raise HTTPException(status_code=400, detail="Admins cannot delete themselves")

    service = get_user_service()
    target = service.get_user(db, user_id)
    if not target:
        raise HTTPException(status_code=404, detail="User not found")
    service.delete_user(db, target)
    logger.info("Admin %s deleted user %s", admin.id, user_id)
    return {"detail": "User deleted"}
