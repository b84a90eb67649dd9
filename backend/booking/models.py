# module backend.booking.models
from datetime import date
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Equipment(BaseModel):
    drum_set: bool = False
    microphones: bool = False
    visual_displays: bool = False
    sound_system: bool = False
    is_voice_over_request: bool = False


class BookingRequest(BaseModel):
    event_type: str = Field(min_length=1)
    event_date: date
    event_time: str = Field(min_length=1)
    event_name: str = Field(min_length=1)
    venue_name: str = Field(min_length=1)
    venue_address: str = Field(min_length=1)
    event_attire: str = Field(min_length=1)
    client_name: str = Field(min_length=1)
    email: EmailStr
    phone: str = Field(min_length=1)
    package_type: str = Field(min_length=1)
    requires_custom_arrangement: bool = False
    payment_method: Literal["check", "paypal"]
    equipment: Equipment = Field(default_factory=Equipment)
    travel_arrangements: Optional[str] = None

    @field_validator("event_type", "event_time", "event_name", "venue_name", "venue_address", "event_attire", "client_name", "phone", "package_type")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Champ requis")
        return v
