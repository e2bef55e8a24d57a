import uuid
from datetime import datetime
from typing import Literal

from pydantic import AwareDatetime, BaseModel, ConfigDict

Direction = Literal["IN", "OUT"]


class PunchEvent(BaseModel):
    """A single clock-in or clock-out, as read from the punch store."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    user_id: uuid.UUID
    timestamp: AwareDatetime
    direction: Direction


class PunchCreate(BaseModel):
    direction: Direction | None = None


class PunchStatusResponse(BaseModel):
    direction: Direction | None
    last_punch_at: datetime | None
    label: Literal["Punched In", "Punched Out", "Not punched"]
