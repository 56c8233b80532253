"""Authentication service: signup, login, activation and password reset."""

import logging
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from app.models.user import User
from app.services.credentials import CredentialService, TokenKind, get_credential_service, validate_password
from app.services.mailer import Mailer, get_mailer
from app.services.users import validate_user_fields

logger = logging.getLogger("sample_app")

INVALID_LOGIN = "Invalid email/password combination"
NOT_ACTIVATED = "Account not activated. Check your email for the activation link."
INVALID_ACTIVATION = "Invalid activation link"
INVALID_RESET = "Invalid or expired reset link"
RESET_EXPIRED = "Password reset has expired."


@dataclass
class AuthResult:
    """Result of an authentication attempt."""

    success: bool
    error: str | None = None
    errors: dict[str, list[str]] = field(default_factory=dict)
    user: User | None = None


class AuthService:
    """Handles user registration, authentication, activation and password resets."""

    def __init__(self, credentials: CredentialService | None = None, mailer: Mailer | None = None) -> None:
        self.credentials = credentials or get_credential_service()
        self.mailer = mailer or get_mailer()

    def _find_by_email(self, db: Session, email: str | None) -> User | None:
        if not email:
            return None
        return db.query(User).filter(User.email == email.strip().lower()).first()

    def register(
        self,
        db: Session,
        name: str,
        email: str,
        password: str,
        password_confirmation: str | None = None,
    ) -> AuthResult:
        """Create an inactive account and mail its activation link."""
        errors = validate_user_fields(db, name, email, password, password_confirmation)
        if errors:
            return AuthResult(success=False, error="Invalid signup", errors=errors)

        user = User(name=name.strip(), email=email)
        self.credentials.set_password(user, password)
        self.credentials.normalize_email(user)
        token = self.credentials.create_activation_digest(user)
        db.add(user)
        db.commit()
        db.refresh(user)

        self.mailer.account_activation(user, token)
        logger.info("Registered user %s, activation mail sent", user.id)
        return AuthResult(success=True, user=user)

    def authenticate(self, db: Session, email: str, password: str) -> AuthResult:
        """Check credentials. Unknown email and wrong password give the same error."""
        user = self._find_by_email(db, email)
        if not user or not self.credentials.authenticate_password(user, password):
            return AuthResult(success=False, error=INVALID_LOGIN)

        if not user.activated:
            return AuthResult(success=False, error=NOT_ACTIVATED)

        return AuthResult(success=True, user=user)

    def activate_account(self, db: Session, email: str, token: str) -> AuthResult:
        """Activate the account if ``token`` matches its activation digest."""
        user = self._find_by_email(db, email)
        if not user or user.activated or not self.credentials.is_authenticated(user, TokenKind.ACTIVATION, token):
            return AuthResult(success=False, error=INVALID_ACTIVATION)

        self.credentials.activate(db, user)
        logger.info("Activated user %s", user.id)
        return AuthResult(success=True, user=user)

    def request_password_reset(self, db: Session, email: str) -> str | None:
        """Issue a reset token for the given email and mail it.

        Returns the token if an activated user exists, None otherwise.
        Caller should not reveal whether the user was found.
        """
        user = self._find_by_email(db, email)
        if not user or not user.activated:
            return None

        token = self.credentials.create_reset_digest(db, user)
        self.mailer.password_reset(user, token)
        return token

    def check_reset_token(self, db: Session, email: str, token: str) -> AuthResult:
        """Validate a reset link without changing anything."""
        user = self._find_by_email(db, email)
        if not user or not user.activated or not self.credentials.is_authenticated(user, TokenKind.RESET, token):
            return AuthResult(success=False, error=INVALID_RESET)

        if self.credentials.is_reset_expired(user):
            return AuthResult(success=False, error=RESET_EXPIRED)

        return AuthResult(success=True, user=user)

    def reset_password(
        self,
        db: Session,
        email: str,
        token: str,
        password: str,
        password_confirmation: str | None = None,
    ) -> AuthResult:
        """Set a new password using a valid reset token. The token is single use."""
        result = self.check_reset_token(db, email, token)
        if not result.success:
            return result

        user = result.user
        errors = validate_password(password, password_confirmation, required=True)
        if errors:
            return AuthResult(success=False, error="Invalid password", errors={"password": errors}, user=user)

        self.credentials.set_password(user, password)
        db.commit()
        self.credentials.clear_reset_digest(db, user)
        logger.info("Password reset for user %s", user.id)
        return AuthResult(success=True, user=user)


_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    """Get singleton auth service instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
