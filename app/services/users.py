"""User validation, listing, profile updates and admin deletion."""

import re
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.micropost import Micropost
from app.models.user import User
from app.services.credentials import CredentialService, get_credential_service, validate_password

NAME_MAX_LENGTH = 50
EMAIL_MAX_LENGTH = 255
VALID_EMAIL_REGEX = re.compile(r"^[\w+\-.]+@[a-z\d\-]+(\.[a-z\d\-]+)*\.[a-z]+$", re.IGNORECASE | re.ASCII)


def validate_user_fields(
    db: Session,
    name: str | None,
    email: str | None,
    password: str | None = None,
    password_confirmation: str | None = None,
    password_required: bool = True,
    user_id: int | None = None,
) -> dict[str, list[str]]:
    """Field-level validation for signup and profile edits.

    ``user_id`` excludes the user being edited from the uniqueness check.
    """
    errors: dict[str, list[str]] = {}

    name_errors = []
    if not name or not name.strip():
        name_errors.append("can't be blank")
    elif len(name.strip()) > NAME_MAX_LENGTH:
        name_errors.append(f"is too long (maximum is {NAME_MAX_LENGTH} characters)")
    if name_errors:
        errors["name"] = name_errors

    email_errors = []
    if not email or not email.strip():
        email_errors.append("can't be blank")
    else:
        normalized = email.strip().lower()
        if len(normalized) > EMAIL_MAX_LENGTH:
            email_errors.append(f"is too long (maximum is {EMAIL_MAX_LENGTH} characters)")
        if not VALID_EMAIL_REGEX.match(normalized):
            email_errors.append("is invalid")
        else:
            query = db.query(User).filter(User.email == normalized)
            if user_id is not None:
                query = query.filter(User.id != user_id)
            if query.first():
                email_errors.append("has already been taken")
    if email_errors:
        errors["email"] = email_errors

    password_errors = validate_password(password, password_confirmation, required=password_required)
    if password_errors:
        errors["password"] = password_errors

    return errors


@dataclass
class UserResult:
    """Result of a user create/update."""

    success: bool
    user: User | None = None
    errors: dict[str, list[str]] = field(default_factory=dict)


class UserService:
    """Handles user listing, profile edits and deletion."""

    def __init__(self, credentials: CredentialService | None = None) -> None:
        self.credentials = credentials or get_credential_service()

    def get_user(self, db: Session, user_id: int) -> User | None:
        return db.query(User).filter(User.id == user_id).first()

    def get_user_by_email(self, db: Session, email: str) -> User | None:
        """Look up a user by email, ignoring case."""
        return db.query(User).filter(User.email == email.strip().lower()).first()

    def list_activated_users(self, db: Session, page: int = 1, per_page: int | None = None) -> tuple[list[User], int]:
        """Get a page of activated users. Returns (items, total_count)."""
        per_page = per_page or get_settings().PER_PAGE
        query = db.query(User).filter(User.activated.is_(True))
        total = query.count()
        items = query.order_by(User.id).offset((max(page, 1) - 1) * per_page).limit(per_page).all()
        return items, total

    def update_profile(
        self,
        db: Session,
        user: User,
        name: str,
        email: str,
        password: str | None = None,
        password_confirmation: str | None = None,
    ) -> UserResult:
        """Update name/email and, when given, the password. Blank password keeps the old one."""
        errors = validate_user_fields(
            db,
            name,
            email,
            password,
            password_confirmation,
            password_required=False,
            user_id=user.id,
        )
        if errors:
            return UserResult(success=False, user=user, errors=errors)

        user.name = name.strip()
        user.email = email
        if password and password.strip():
            self.credentials.set_password(user, password)
        self.credentials.normalize_email(user)
        db.commit()
        db.refresh(user)
        return UserResult(success=True, user=user)

    def delete_user(self, db: Session, user: User) -> None:
        """Delete a user together with their microposts."""
        db.query(Micropost).filter(Micropost.user_id == user.id).delete(synchronize_session=False)
        db.delete(user)
        db.commit()


_user_service: UserService | None = None


def get_user_service() -> UserService:
    """Get singleton user service instance."""
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service
