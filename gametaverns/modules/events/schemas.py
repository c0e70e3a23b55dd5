from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime


class RegistrationCreate(BaseModel):
    attendee_name: str = Field(..., min_length=1, max_length=100)
    attendee_email: Optional[EmailStr] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    # Guest form extras
    turnstile_token: Optional[str] = None
    website_url: Optional[str] = None  # honeypot, hidden from humans


class RegistrationResponse(BaseModel):
    id: str
    event_id: str
    attendee_name: str
    attendee_email: Optional[str] = None
    attendee_user_id: Optional[str] = None
    status: str
    waitlist_position: Optional[int] = None
    registered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    notes: Optional[str] = None
