"""Pydantic schemas for user endpoints."""

from datetime import datetime

from pydantic import BaseModel


class SignupRequest(BaseModel):
    name: str
    email: str
    password: str
    password_confirmation: str | None = None


class UserUpdateRequest(BaseModel):
    name: str
    email: str
    password: str | None = None
    password_confirmation: str | None = None


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    admin: bool
    activated: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UserListResponse(BaseModel):
    items: list[UserResponse]
    total: int
    page: int
    per_page: int
