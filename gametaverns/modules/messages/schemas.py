from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class InquiryRequest(BaseModel):
    # Optional so the handler can answer with the same messages the client expects
    game_id: Optional[str] = None
    sender_name: Optional[str] = None
    message: Optional[str] = None


class InquiryResponse(BaseModel):
    success: bool = True
    message: str = "Message sent successfully"
    recipient_id: str


class DirectMessageCreate(BaseModel):
    recipient_id: str
    content: str = Field(..., min_length=1, max_length=2000)


class DirectMessageResponse(BaseModel):
    id: str
    sender_id: str
    recipient_id: str
    content: str
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class UnreadCountResponse(BaseModel):
    unread: int
