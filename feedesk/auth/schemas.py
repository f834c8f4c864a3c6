from datetime import datetime

from pydantic import BaseModel, Field

from feedesk.core.enums import Role


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str


class UserInfo(BaseModel):
    id: str
    username: str
    name: str
    role: Role


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserInfo
    issued_at: datetime


class CurrentUser(BaseModel):
    """Authenticated user resolved from the access token."""

    id: str
    username: str
    name: str
    role: Role
