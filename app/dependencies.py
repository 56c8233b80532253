"""Session, remember-me cookies and authentication dependencies for FastAPI routes."""

from fastapi import Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.models.user import User
from app.services.credentials import TokenKind, get_credential_service
from app.services.jwt import REMEMBER_SCOPE, get_jwt_service

SESSION_COOKIE_NAME = "sample_app_session"
REMEMBER_USER_COOKIE_NAME = "user_id"
REMEMBER_TOKEN_COOKIE_NAME = "remember_token"


def log_in(response: Response, user: User) -> str:
    """Start a session for ``user``. Returns the session token."""
    token = get_jwt_service().create_token(user.id)
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=False,
    )
    return token


def remember(response: Response, db: Session, user: User) -> None:
    """Persist the session across browser restarts."""
    settings = get_settings()
    max_age = settings.REMEMBER_COOKIE_DAYS * 24 * 60 * 60
    raw_token = get_credential_service().remember(db, user)
    response.set_cookie(
        key=REMEMBER_USER_COOKIE_NAME,
        value=get_jwt_service().create_remember_token(user.id),
        httponly=True,
        samesite="lax",
        secure=False,
        max_age=max_age,
    )
    response.set_cookie(
        key=REMEMBER_TOKEN_COOKIE_NAME,
        value=raw_token,
        httponly=True,
        samesite="lax",
        secure=False,
        max_age=max_age,
    )


def forget(response: Response, db: Session, user: User) -> None:
    """Drop the remember digest and the remember-me cookies."""
    get_credential_service().forget(db, user)
    response.delete_cookie(key=REMEMBER_USER_COOKIE_NAME)
    response.delete_cookie(key=REMEMBER_TOKEN_COOKIE_NAME)


def log_out(response: Response, db: Session, user: User) -> None:
    forget(response, db, user)
    response.delete_cookie(key=SESSION_COOKIE_NAME)


def _user_from_session(request: Request, db: Session) -> User | None:
    token: str | None = None

    # Check Authorization header first
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        token = auth_header[7:]

    # Fall back to cookie
    if not token:
        token = request.cookies.get(SESSION_COOKIE_NAME)

    if not token:
        return None

    user_id = get_jwt_service().user_id_from_token(token)
    if user_id is None:
        return None
    return db.query(User).filter(User.id == user_id).first()


def _user_from_remember_cookies(request: Request, db: Session) -> User | None:
    signed_id = request.cookies.get(REMEMBER_USER_COOKIE_NAME)
    raw_token = request.cookies.get(REMEMBER_TOKEN_COOKIE_NAME)
    if not signed_id or not raw_token:
        return None

    user_id = get_jwt_service().user_id_from_token(signed_id, scope=REMEMBER_SCOPE)
    if user_id is None:
        return None
    user = db.query(User).filter(User.id == user_id).first()
    if user and get_credential_service().is_authenticated(user, TokenKind.REMEMBER, raw_token):
        return user
    return None


def get_current_user_optional(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
) -> User | None:
    """Resolve the logged-in user, re-opening the session from remember-me cookies if needed."""
    user = _user_from_session(request, db)
    if user:
        return user

    user = _user_from_remember_cookies(request, db)
    if user:
        log_in(response, user)
    return user


def get_current_user(user: User | None = Depends(get_current_user_optional)) -> User:
    """Require a logged-in user. Raises 401 if missing."""
    if not user:
        raise HTTPException(status_code=401, detail="Please log in.")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.admin:
        raise HTTPException(status_code=403, detail="Admin required")
    return user
