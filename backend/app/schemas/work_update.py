from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator


class WorkUpdateCreate(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Update must not be empty")
        return v.strip()


class WorkUpdateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    content: str
    update_date: date


class TodayUpdateStatus(BaseModel):
    date: date
    status: Literal["Submitted", "Pending"]
