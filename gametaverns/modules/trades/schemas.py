from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from gametaverns.modules.trades.models import OfferStatus


class ListingCreate(BaseModel):
    game_id: str
    condition: str = "Good"
    notes: Optional[str] = None
    willing_to_ship: bool = False
    local_only: bool = True


class ListingResponse(BaseModel):
    id: str
    user_id: str
    game_id: str
    library_id: str
    condition: str = "Good"
    notes: Optional[str] = None
    willing_to_ship: bool = False
    local_only: bool = True
    status: str
    created_at: Optional[datetime] = None


class WantCreate(BaseModel):
    bgg_id: str = Field(..., min_length=1)
    game_title: str = Field(..., min_length=1)
    notes: Optional[str] = None
    priority: int = Field(default=5, ge=1, le=10)


class WantResponse(BaseModel):
    id: str
    user_id: str
    bgg_id: str
    game_title: str
    notes: Optional[str] = None
    priority: int = 5
    created_at: Optional[datetime] = None


class TradeMatch(BaseModel):
    want_id: str
    want_title: str
    listing_id: str
    listing_user_id: str
    listing_condition: Optional[str] = None
    listing_notes: Optional[str] = None


class OfferCreate(BaseModel):
    offering_listing_id: str
    receiving_listing_id: Optional[str] = None
    receiving_user_id: Optional[str] = None
    message: Optional[str] = Field(default=None, max_length=2000)


class OfferUpdate(BaseModel):
    status: OfferStatus


class OfferResponse(BaseModel):
    id: str
    offering_user_id: str
    receiving_user_id: str
    offering_listing_id: str
    receiving_listing_id: Optional[str] = None
    message: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
