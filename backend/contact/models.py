# module backend.contact.models
from typing import Literal

from pydantic import BaseModel, EmailStr, Field

InquiryType = Literal["General Inquiry", "Booking", "Media", "Other"]


class ContactRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    inquiry_type: InquiryType
    subject: str = Field(min_length=1, max_length=300)
    message: str = Field(min_length=1, max_length=5000)
