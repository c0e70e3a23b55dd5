from fastapi import APIRouter, Depends, Query
from gametaverns.database.supabase_client import get_service_supabase
from gametaverns.modules.trades.schemas import (
    ListingCreate, ListingResponse, WantCreate, WantResponse, TradeMatch, OfferCreate, OfferUpdate, OfferResponse
)
from gametaverns.modules.trades.service import TradeService
from gametaverns.core.dependencies import get_current_user_id
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/trades", tags=["trades"])


def get_trade_service(supabase: Client = Depends(get_service_supabase)) -> TradeService:
    return TradeService(supabase)


@router.post("/listings", response_model=ListingResponse, status_code=201)
async def create_listing(
    listing_data: ListingCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: TradeService = Depends(get_trade_service),
):
    return service.create_listing(user_data["id"], listing_data)


@router.get("/listings", response_model=List[ListingResponse])
async def list_my_listings(
    user_data: Dict = Depends(get_current_user_id),
    service: TradeService = Depends(get_trade_service),
):
    return service.list_my_listings(user_data["id"])


@router.delete("/listings/{listing_id}", status_code=204)
async def delete_listing(
    listing_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: TradeService = Depends(get_trade_service),
):
    service.delete_listing(listing_id, user_data["id"])
    return None


@router.post("/wants", response_model=WantResponse, status_code=201)
async def add_want(
    want_data: WantCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: TradeService = Depends(get_trade_service),
):
    return service.add_want(user_data["id"], want_data)


@router.get("/wants", response_model=List[WantResponse])
async def list_my_wants(
    user_data: Dict = Depends(get_current_user_id),
    service: TradeService = Depends(get_trade_service),
):
    return service.list_my_wants(user_data["id"])


@router.delete("/wants/{want_id}", status_code=204)
async def delete_want(
    want_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: TradeService = Depends(get_trade_service),
):
    service.delete_want(want_id, user_data["id"])
    return None


@router.get("/matches", response_model=List[TradeMatch])
async def find_matches(
    user_data: Dict = Depends(get_current_user_id),
    service: TradeService = Depends(get_trade_service),
):
    """Active listings from other users that satisfy the caller's want list"""
    return service.find_matches(user_data["id"])


@router.post("/offers", response_model=OfferResponse, status_code=201)
async def create_offer(
    offer_data: OfferCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: TradeService = Depends(get_trade_service),
):
    return service.create_offer(user_data["id"], offer_data)


@router.get("/offers", response_model=List[OfferResponse])
async def list_offers(
    direction: str = Query("received", pattern="^(received|sent)$"),
    user_data: Dict = Depends(get_current_user_id),
    service: TradeService = Depends(get_trade_service),
):
    return service.list_offers(user_data["id"], direction)


@router.patch("/offers/{offer_id}", response_model=OfferResponse)
async def update_offer(
    offer_id: str,
    offer_update: OfferUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: TradeService = Depends(get_trade_service),
):
    """Accept, decline, withdraw or complete an offer"""
    return service.update_offer_status(offer_id, user_data["id"], offer_update.status)
