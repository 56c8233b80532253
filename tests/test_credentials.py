"""Tests for password hashing and the token lifecycle."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy.orm import Session

from app.models.user import User
from app.services.credentials import (
    BCRYPT_MIN_ROUNDS,
    CredentialService,
    PasswordHasher,
    TokenKind,
    new_token,
)


class FakeClock:
    """Settable clock for expiry checks."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(name="clock")
def clock_fixture() -> FakeClock:
    return FakeClock(datetime(2026, 10, 19, 12, 0, 0))


@pytest.fixture(name="credentials")
def credentials_fixture(clock: FakeClock) -> CredentialService:
    return CredentialService(hasher=PasswordHasher(rounds=BCRYPT_MIN_ROUNDS), clock=clock)


@pytest.fixture(name="user")
def user_fixture(db_session: Session, credentials: CredentialService) -> User:
    user = User(name="Michael Example", email="michael@example.com")
    credentials.set_password(user, "secret6")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


class TestPasswordHasher:
    """Tests for the bcrypt wrapper."""

    def test_hash_and_verify(self):
        hasher = PasswordHasher(rounds=BCRYPT_MIN_ROUNDS)
        digest = hasher.hash("foobar")
        assert "foobar" not in digest
        assert hasher.verify("foobar", digest) is True
        assert hasher.verify("foobaz", digest) is False

    def test_same_plaintext_gets_different_salts(self):
        hasher = PasswordHasher(rounds=BCRYPT_MIN_ROUNDS)
        assert hasher.hash("foobar") != hasher.hash("foobar")

    def test_min_cost_is_encoded_in_digest(self):
        digest = PasswordHasher(rounds=BCRYPT_MIN_ROUNDS).hash("foobar")
        assert digest.startswith("$2b$04$")

    def test_default_cost(self):
        """No explicit rounds means bcrypt's default work factor."""
        digest = PasswordHasher().hash("foobar")
        assert digest.startswith("$2b$12$")

    @pytest.mark.parametrize("digest", [None, "", "not-a-bcrypt-digest", "$2b$04$short"])
    def test_verify_missing_or_malformed_digest(self, digest):
        hasher = PasswordHasher(rounds=BCRYPT_MIN_ROUNDS)
        assert hasher.verify("foobar", digest) is False

    def test_verify_missing_plaintext(self):
        hasher = PasswordHasher(rounds=BCRYPT_MIN_ROUNDS)
        assert hasher.verify(None, hasher.hash("foobar")) is False


class TestTokens:
    """Tests for raw token generation."""

    def test_token_is_url_safe_and_22_chars(self):
        token = new_token()
        assert len(token) == 22
        assert all(c.isalnum() or c in "-_" for c in token)

    def test_tokens_are_distinct(self):
        tokens = {new_token() for _ in range(500)}
        assert len(tokens) == 500

    def test_token_digest_round_trip(self):
        hasher = PasswordHasher(rounds=BCRYPT_MIN_ROUNDS)
        token, other = new_token(), new_token()
        digest = hasher.hash(token)
        assert hasher.verify(token, digest) is True
        assert hasher.verify(other, digest) is False


class TestPasswords:
    """Tests for password set/check on a user."""

    def test_authenticate_password(self, credentials: CredentialService, user: User):
        assert credentials.authenticate_password(user, "secret6") is True
        assert credentials.authenticate_password(user, "wrong") is False

    def test_password_digest_never_holds_plaintext(self, user: User):
        assert user.password_digest != "secret6"
        assert "secret6" not in user.password_digest

    def test_set_password_replaces_old(self, credentials: CredentialService, user: User, db_session: Session):
        credentials.set_password(user, "newsecret")
        db_session.commit()
        assert credentials.authenticate_password(user, "newsecret") is True
        assert credentials.authenticate_password(user, "secret6") is False

    @pytest.mark.parametrize(
        "plaintext, error",
        [
            (None, "can't be blank"),
            ("", "can't be blank"),
            ("abc", "is too short (minimum is 6 characters)"),
            ("a" * 73, "is too long (maximum is 72 bytes)"),
        ],
    )
    def test_set_password_rejects_invalid_password(self, credentials: CredentialService, user: User, plaintext, error):
        old_digest = user.password_digest
        assert credentials.set_password(user, plaintext) == [error]
        assert user.password_digest == old_digest
        assert credentials.authenticate_password(user, "secret6") is True

    def test_set_password_returns_no_errors_on_success(self, credentials: CredentialService, user: User):
        assert credentials.set_password(user, "another6") == []
        assert credentials.authenticate_password(user, "another6") is True


class TestTokenAuthentication:
    """Tests for remember/activation/reset digests."""

    @pytest.mark.parametrize("kind", list(TokenKind))
    def test_missing_digest_is_not_authenticated(self, credentials: CredentialService, user: User, kind: TokenKind):
        assert credentials.is_authenticated(user, kind, new_token()) is False
        assert credentials.is_authenticated(user, kind, "") is False

    def test_unknown_kind_is_not_authenticated(self, credentials: CredentialService, user: User, db_session: Session):
        token = credentials.remember(db_session, user)
        assert credentials.is_authenticated(user, "remember", token) is False
        assert credentials.is_authenticated(user, None, token) is False

    def test_malformed_digest_is_not_authenticated(self, credentials: CredentialService, user: User):
        user.remember_digest = "garbage"
        assert credentials.is_authenticated(user, TokenKind.REMEMBER, "anything") is False

    def test_remember_and_forget(self, credentials: CredentialService, user: User, db_session: Session):
        """Remember, check, forget, check again."""
        assert credentials.authenticate_password(user, "secret6") is True
        assert credentials.authenticate_password(user, "wrong") is False

        token = credentials.remember(db_session, user)
        assert user.remember_token == token
        assert user.remember_digest is not None
        assert user.remember_digest != token
        assert credentials.is_authenticated(user, TokenKind.REMEMBER, token) is True

        credentials.forget(db_session, user)
        assert user.remember_digest is None
        assert credentials.is_authenticated(user, TokenKind.REMEMBER, token) is False

    def test_forget_is_idempotent(self, credentials: CredentialService, user: User, db_session: Session):
        credentials.forget(db_session, user)
        credentials.forget(db_session, user)
        assert user.remember_digest is None

    def test_remember_rotates_token(self, credentials: CredentialService, user: User, db_session: Session):
        first = credentials.remember(db_session, user)
        second = credentials.remember(db_session, user)
        assert first != second
        assert credentials.is_authenticated(user, TokenKind.REMEMBER, first) is False
        assert credentials.is_authenticated(user, TokenKind.REMEMBER, second) is True

    def test_remember_digest_is_persisted(self, credentials: CredentialService, user: User, db_session: Session):
        token = credentials.remember(db_session, user)
        db_session.expire_all()
        reloaded = db_session.get(User, user.id)
        assert credentials.is_authenticated(reloaded, TokenKind.REMEMBER, token) is True

    def test_kinds_use_separate_digests(self, credentials: CredentialService, user: User, db_session: Session):
        token = credentials.remember(db_session, user)
        assert credentials.is_authenticated(user, TokenKind.RESET, token) is False
        assert credentials.is_authenticated(user, TokenKind.ACTIVATION, token) is False


class TestActivation:
    """Tests for activation digests and activate()."""

    def test_activation_digest_created_before_first_save(self, credentials: CredentialService, db_session: Session):
        user = User(name="New User", email="new@example.com")
        credentials.set_password(user, "foobar")
        token = credentials.create_activation_digest(user)
        assert user.id is None
        db_session.add(user)
        db_session.commit()

        assert user.activation_token == token
        assert user.activated is False
        assert credentials.is_authenticated(user, TokenKind.ACTIVATION, token) is True

    def test_activate(self, credentials: CredentialService, user: User, db_session: Session, clock: FakeClock):
        credentials.activate(db_session, user)
        assert user.activated is True
        assert user.activated_at == clock.now

    def test_activate_is_monotonic(
        self, credentials: CredentialService, user: User, db_session: Session, clock: FakeClock
    ):
        credentials.activate(db_session, user)
        first_activated_at = user.activated_at
        clock.advance(days=1)
        credentials.activate(db_session, user)
        assert user.activated is True
        assert user.activated_at == first_activated_at

    def test_activate_skips_field_validation(self, credentials: CredentialService, db_session: Session):
        """A stored row that no longer passes validation can still be activated."""
        user = User(name="x" * 50, email="not-an-email")
        credentials.set_password(user, "foobar")
        db_session.add(user)
        db_session.commit()

        credentials.activate(db_session, user)
        assert user.activated is True
        assert user.email == "not-an-email"


class TestPasswordReset:
    """Tests for reset digests and expiry."""

    def test_create_reset_digest(self, credentials: CredentialService, user: User, db_session: Session, clock: FakeClock):
        token = credentials.create_reset_digest(db_session, user)
        assert user.reset_token == token
        assert user.reset_sent_at == clock.now
        assert credentials.is_authenticated(user, TokenKind.RESET, token) is True

    def test_second_reset_invalidates_first(
        self, credentials: CredentialService, user: User, db_session: Session, clock: FakeClock
    ):
        first = credentials.create_reset_digest(db_session, user)
        clock.advance(minutes=5)
        second = credentials.create_reset_digest(db_session, user)

        assert credentials.is_authenticated(user, TokenKind.RESET, first) is False
        assert credentials.is_authenticated(user, TokenKind.RESET, second) is True
        assert user.reset_sent_at == clock.now

    def test_reset_not_expired_right_after_issue(self, credentials: CredentialService, user: User, db_session: Session):
        credentials.create_reset_digest(db_session, user)
        assert credentials.is_reset_expired(user) is False

    def test_reset_not_expired_inside_window(
        self, credentials: CredentialService, user: User, db_session: Session, clock: FakeClock
    ):
        credentials.create_reset_digest(db_session, user)
        clock.advance(hours=1, minutes=59)
        assert credentials.is_reset_expired(user) is False

    def test_reset_expired_after_two_hours(
        self, credentials: CredentialService, user: User, db_session: Session, clock: FakeClock
    ):
        credentials.create_reset_digest(db_session, user)
        clock.advance(hours=2, minutes=1)
        assert credentials.is_reset_expired(user) is True

    def test_stored_timestamp_in_the_past_is_expired(self, user: User, db_session: Session):
        """Uses the real clock against a timestamp written straight to the row."""
        service = CredentialService(hasher=PasswordHasher(rounds=BCRYPT_MIN_ROUNDS))
        service.create_reset_digest(db_session, user)
        user.reset_sent_at = datetime.utcnow() - timedelta(hours=3)
        db_session.commit()
        assert service.is_reset_expired(user) is True

    def test_never_issued_reset_counts_as_expired(self, credentials: CredentialService, user: User):
        assert credentials.is_reset_expired(user) is True

    def test_clear_reset_digest(self, credentials: CredentialService, user: User, db_session: Session):
        token = credentials.create_reset_digest(db_session, user)
        credentials.clear_reset_digest(db_session, user)
        assert user.reset_digest is None
        assert credentials.is_authenticated(user, TokenKind.RESET, token) is False


class TestEmailNormalization:
    """Tests for email lowercasing."""

    def test_normalize_email(self):
        user = User(name="Foo", email="Foo@Bar.COM")
        CredentialService.normalize_email(user)
        assert user.email == "foo@bar.com"

    def test_normalize_strips_whitespace(self):
        user = User(name="Foo", email="  Foo@Bar.COM ")
        CredentialService.normalize_email(user)
        assert user.email == "foo@bar.com"
