"""Micropost endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.micropost import MicropostCreateRequest, MicropostListResponse, MicropostResponse
from app.services.microposts import get_micropost_service

router = APIRouter(prefix="/api/v1/microposts", tags=["Microposts"])


@router.post("", response_model=MicropostResponse, status_code=201)
def create_micropost(
    body: MicropostCreateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MicropostResponse:
    """Post a micropost."""
    result = get_micropost_service().create_micropost(db, user, body.content)
    if not result.success:
        raise HTTPException(status_code=400, detail={"errors": result.errors})
    return MicropostResponse.model_validate(result.micropost)


@router.get("/feed", response_model=MicropostListResponse)
def feed(
    page: int = 1,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MicropostListResponse:
    """The logged-in user's feed."""
    per_page = get_settings().PER_PAGE
    items, total = get_micropost_service().feed(db, user, page=page, per_page=per_page)
    return MicropostListResponse(
        items=[MicropostResponse.model_validate(m) for m in items],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.delete("/{micropost_id}")
def delete_micropost(
    micropost_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    """Delete one of your own microposts."""
    service = get_micropost_service()
    micropost = service.get_user_micropost(db, micropost_id, user.id)
    if not micropost:
        raise HTTPException(status_code=404, detail="Micropost not found")
    service.delete_micropost(db, micropost)
    return {"detail": "Micropost deleted"}
