"""User model."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from app.database import Base


class User(Base):
    """Application user.

    Only digests of passwords and tokens are stored. The raw remember,
    activation and reset tokens live on plain instance attributes for the
    duration of a request and are never mapped to columns.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_digest = Column(String(60), nullable=False)
    remember_digest = Column(String(60), nullable=True)
    admin = Column(Boolean, nullable=False, default=False)
    activation_digest = Column(String(60), nullable=True)
    activated = Column(Boolean, nullable=False, default=False)
    activated_at = Column(DateTime, nullable=True)
    reset_digest = Column(String(60), nullable=True)
    reset_sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    remember_token = None
    activation_token = None
    reset_token = None

    def __repr__(self) -> str:
        return f"<User {self.email}>"
