"""Password hashing and token lifecycle for user accounts.

Raw tokens (remember, activation, reset) are handed back to the caller and
kept only on the in-memory ``User`` instance. The database only ever sees
their bcrypt digests.
"""

import enum
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta

import bcrypt
from sqlalchemy import update
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.user import User

BCRYPT_MIN_ROUNDS = 4
TOKEN_BYTES = 16  # 22 URL-safe characters
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_BYTES = 72  # bcrypt ignores anything past this


def validate_password(
    password: str | None,
    password_confirmation: str | None = None,
    required: bool = True,
) -> list[str]:
    """Return the password errors, empty when the password is acceptable.

    A blank password is only an error when ``required``; otherwise it means
    "keep the current one" and no further rules apply.
    """
    if password is None or not password.strip():
        return ["can't be blank"] if required else []

    errors = []
    if len(password) < PASSWORD_MIN_LENGTH:
        errors.append(f"is too short (minimum is {PASSWORD_MIN_LENGTH} characters)")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        errors.append(f"is too long (maximum is {PASSWORD_MAX_BYTES} bytes)")
    if password_confirmation is not None and password_confirmation != password:
        errors.append("doesn't match confirmation")
    return errors


class PasswordHasher:
    """Salted bcrypt hashing with an explicit work factor."""

    def __init__(self, rounds: int | None = None) -> None:
        self.rounds = rounds

    def hash(self, plaintext: str) -> str:
        """Return a self-describing bcrypt digest of ``plaintext``."""
        salt = bcrypt.gensalt() if self.rounds is None else bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(plaintext.encode("utf-8"), salt).decode("utf-8")

    def verify(self, plaintext: str | None, digest: str | None) -> bool:
        """Check ``plaintext`` against ``digest``. Never raises."""
        if plaintext is None or not digest:
            return False
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), digest.encode("utf-8"))
        except ValueError:
            # Malformed digest, or a plaintext bcrypt refuses (over 72 bytes)
            return False


def new_token() -> str:
    """Return a fresh URL-safe random token."""
    return secrets.token_urlsafe(TOKEN_BYTES)


class TokenKind(enum.Enum):
    REMEMBER = "remember"
    ACTIVATION = "activation"
    RESET = "reset"


def stored_digest(user: User, kind: TokenKind) -> str | None:
    """Return the digest column that backs tokens of ``kind``, None for anything else."""
    if kind is TokenKind.REMEMBER:
        return user.remember_digest
    if kind is TokenKind.ACTIVATION:
        return user.activation_digest
    if kind is TokenKind.RESET:
        return user.reset_digest
    return None


def update_columns(db: Session, user: User, **values) -> None:
    """Write only the given columns of an already persisted user.

    Skips field validation and email normalization on purpose: callers use
    it for credential bookkeeping, not for user-editable attributes.
    """
    db.execute(update(User).where(User.id == user.id).values(**values))
    db.commit()
    db.refresh(user)


class CredentialService:
    """Password and token operations on ``User`` rows."""

    def __init__(
        self,
        hasher: PasswordHasher,
        clock: Callable[[], datetime] = datetime.utcnow,
        reset_expiry: timedelta = timedelta(hours=2),
    ) -> None:
        self.hasher = hasher
        self.clock = clock
        self.reset_expiry = reset_expiry

    # --- Passwords ---

    def set_password(self, user: User, plaintext: str | None) -> list[str]:
        """Store the digest of a new password.

        Returns the validation errors. On any error ``password_digest`` is left as it was.
        """
        errors = validate_password(plaintext)
        if errors:
            return errors
        user.password_digest = self.hasher.hash(plaintext)
        return []

    def authenticate_password(self, user: User, plaintext: str) -> bool:
        return self.hasher.verify(plaintext, user.password_digest)

    # --- Tokens ---

    def is_authenticated(self, user: User, kind: TokenKind, token: str | None) -> bool:
        """True if ``token`` matches the stored digest for ``kind``."""
        return self.hasher.verify(token, stored_digest(user, kind))

    def remember(self, db: Session, user: User) -> str:
        """Issue a new remember token and persist its digest. Returns the raw token."""
        token = new_token()
        update_columns(db, user, remember_digest=self.hasher.hash(token))
        user.remember_token = token
        return token

    def forget(self, db: Session, user: User) -> None:
        update_columns(db, user, remember_digest=None)
        user.remember_token = None

    def create_activation_digest(self, user: User) -> str:
        """Attach an activation token to a user that has not been saved yet."""
        token = new_token()
        user.activation_token = token
        user.activation_digest = self.hasher.hash(token)
        return token

    def activate(self, db: Session, user: User) -> None:
        """Mark the account activated. A second call leaves ``activated_at`` alone."""
        if user.activated:
            return
        update_columns(db, user, activated=True, activated_at=self.clock())

    def create_reset_digest(self, db: Session, user: User) -> str:
        """Issue a reset token, replacing any earlier one. Returns the raw token."""
        token = new_token()
        update_columns(db, user, reset_digest=self.hasher.hash(token), reset_sent_at=self.clock())
        user.reset_token = token
        return token

    def clear_reset_digest(self, db: Session, user: User) -> None:
        update_columns(db, user, reset_digest=None)
        user.reset_token = None

    def is_reset_expired(self, user: User) -> bool:
        if user.reset_sent_at is None:
            return True
        return user.reset_sent_at < self.clock() - self.reset_expiry

    # --- Email ---

    @staticmethod
    def normalize_email(user: User) -> None:
        """Lowercase the email. Run before every insert or profile update."""
        if user.email is not None:
            user.email = user.email.strip().lower()


_credential_service: CredentialService | None = None


def get_credential_service() -> CredentialService:
    """Get singleton credential service instance."""
    global _credential_service
    if _credential_service is None:
        settings = get_settings()
        rounds = BCRYPT_MIN_ROUNDS if settings.BCRYPT_MIN_COST else None
        _credential_service = CredentialService(
            hasher=PasswordHasher(rounds=rounds),
            reset_expiry=timedelta(hours=settings.PASSWORD_RESET_EXPIRY_HOURS),
        )
    return _credential_service
