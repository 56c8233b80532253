"""Micropost model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Text

from app.database import Base


class Micropost(Base):
    """Short status update posted by a user."""

    __tablename__ = "microposts"
    __table_args__ = (Index("ix_microposts_user_id_created_at", "user_id", "created_at"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    content = Column(Text, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
