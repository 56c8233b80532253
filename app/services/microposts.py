"""Micropost creation, deletion and feeds."""

from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.micropost import Micropost
from app.models.user import User

CONTENT_MAX_LENGTH = 140


def validate_content(content: str | None) -> list[str]:
    errors = []
    if not content or not content.strip():
        errors.append("can't be blank")
    elif len(content) > CONTENT_MAX_LENGTH:
        errors.append(f"is too long (maximum is {CONTENT_MAX_LENGTH} characters)")
    return errors


@dataclass
class MicropostResult:
    """Result of posting a micropost."""

    success: bool
    micropost: Micropost | None = None
    errors: dict[str, list[str]] = field(default_factory=dict)


class MicropostService:
    """Handles microposts for a user."""

    def create_micropost(self, db: Session, user: User, content: str) -> MicropostResult:
        errors = validate_content(content)
        if errors:
            return MicropostResult(success=False, errors={"content": errors})

        micropost = Micropost(user_id=user.id, content=content)
        db.add(micropost)
        db.commit()
        db.refresh(micropost)
        return MicropostResult(success=True, micropost=micropost)

    def get_user_micropost(self, db: Session, micropost_id: int, user_id: int) -> Micropost | None:
        """Get a single micropost by ID, scoped to its owner."""
        return db.query(Micropost).filter(Micropost.id == micropost_id, Micropost.user_id == user_id).first()

    def delete_micropost(self, db: Session, micropost: Micropost) -> None:
        db.delete(micropost)
        db.commit()

    def get_user_microposts(
        self, db: Session, user_id: int, page: int = 1, per_page: int | None = None
    ) -> tuple[list[Micropost], int]:
        """Get a page of a user's microposts, newest first. Returns (items, total_count)."""
        per_page = per_page or get_settings().PER_PAGE
        query = db.query(Micropost).filter(Micropost.user_id == user_id)
        total = query.count()
        items = (
            query.order_by(Micropost.created_at.desc(), Micropost.id.desc())
            .offset((max(page, 1) - 1) * per_page)
            .limit(per_page)
            .all()
        )
        return items, total

    def feed(self, db: Session, user: User, page: int = 1, per_page: int | None = None) -> tuple[list[Micropost], int]:
        """The home feed: the user's own microposts."""
        return self.get_user_microposts(db, user.id, page=page, per_page=per_page)


_micropost_service: MicropostService | None = None


def get_micropost_service() -> MicropostService:
    """Get singleton micropost service instance."""
    global _micropost_service
    if _micropost_service is None:
        _micropost_service = MicropostService()
    return _micropost_service
