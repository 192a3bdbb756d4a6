"""Pydantic schemas for authentication endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    token: str
    password: str


class TokenResponse(BaseModel):
    token: str


class MessageResponse(BaseModel):
    msg: str


class UserResponse(BaseModel):
    """Profile of the authenticated user, as shown on the dashboard."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    email: str
    created_at: datetime = Field(alias="createdAt")
