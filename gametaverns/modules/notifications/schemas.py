from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, Literal


class DiscordNotifyRequest(BaseModel):
    library_id: str = Field(..., min_length=1)
    event_type: str = Field(..., min_length=1)
    data: Dict[str, Any] = {}


class DiscordDmRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    embed: Dict[str, Any]


class DiscordThreadRequest(BaseModel):
    thread_id: str = Field(..., min_length=1)
    action: Literal["lock", "post_note"] = "lock"
    author_name: Optional[str] = None
    content: Optional[str] = None
    note_type: Literal["reply", "internal"] = "internal"


class PushRequest(BaseModel):
    """Direct invocation, or the database webhook shape {type: "INSERT", record: {...}}"""
    user_id: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    notification_type: Optional[str] = None
    type: Optional[str] = None
    record: Optional[Dict[str, Any]] = None


class PushResult(BaseModel):
    sent: int
    failed: int = 0
    total: int = 0
    message: Optional[str] = None
