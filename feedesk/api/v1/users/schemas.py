from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from feedesk.core.enums import Role


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=8)
    role: Role


class UserUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=3, max_length=100)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    password: Optional[str] = Field(None, min_length=8)
    role: Optional[Role] = None


class UserResponse(BaseModel):
    id: str
    username: str
    name: str
    role: Role
    status: str
    created_at: datetime

    class Config:
        from_attributes = True
