from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class LoanRequest(BaseModel):
    game_id: str
    notes: Optional[str] = Field(default=None, max_length=1000)
    borrower_name: Optional[str] = None


class LoanApprove(BaseModel):
    due_date: Optional[datetime] = None
    notes: Optional[str] = None
    copy_id: Optional[str] = None
    condition_out: Optional[str] = None


class LoanDecline(BaseModel):
    notes: Optional[str] = None


class LoanReturn(BaseModel):
    condition_in: Optional[str] = None
    damage_reported: bool = False


class LoanResponse(BaseModel):
    id: str
    game_id: str
    library_id: str
    borrower_user_id: str
    lender_user_id: str
    status: str
    requested_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    borrowed_at: Optional[datetime] = None
    due_date: Optional[datetime] = None
    returned_at: Optional[datetime] = None
    borrower_notes: Optional[str] = None
    lender_notes: Optional[str] = None
    copy_id: Optional[str] = None
    condition_out: Optional[str] = None
    condition_in: Optional[str] = None
    damage_reported: bool = False
    created_at: Optional[datetime] = None


class AvailabilityResponse(BaseModel):
    available: bool
    copies_owned: int
    active_loans: int
    copies_available: int


class WaitlistJoin(BaseModel):
    game_id: str


class WaitlistEntryResponse(BaseModel):
    id: str
    game_id: str
    library_id: str
    user_id: str
    status: str
    notified_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class BorrowerRatingCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    review: Optional[str] = Field(default=None, max_length=2000)


class BorrowerRatingResponse(BaseModel):
    id: str
    loan_id: str
    rated_user_id: str
    rated_by_user_id: str
    rating: int
    review: Optional[str] = None
    created_at: Optional[datetime] = None
