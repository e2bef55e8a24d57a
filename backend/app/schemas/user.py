from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6)
    role: Literal["admin", "employee"] = "employee"
    full_name: str | None = None
    email: str | None = None


class UserUpdate(BaseModel):
    role: Literal["admin", "employee"] | None = None
    is_active: bool | None = None
    full_name: str | None = None
    email: str | None = None


class UserResponse(BaseModel):
    id: UUID
    username: str
    role: str
    full_name: str | None
    display_name: str
    is_active: bool
    is_admin: bool
    email: str | None

    model_config = {"from_attributes": True}


class DirectoryEntry(BaseModel):
    id: UUID
    name: str
    email: str | None
