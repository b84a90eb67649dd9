# module backend.subscriptions.models
from typing import Literal

from pydantic import BaseModel, EmailStr, field_validator

SubscriptionSource = Literal["footer", "home", "tour", "music"]


class SubscribeRequest(BaseModel):
    email: EmailStr
    source: SubscriptionSource = "footer"

    @field_validator("email")
    @classmethod
    def _lower(cls, v: str) -> str:
        return v.strip().lower()
