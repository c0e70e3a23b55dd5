from supabase import Client
from postgrest.exceptions import APIError
from gametaverns.modules.trades.models import (
    LISTINGS_TABLE, WANTS_TABLE, OFFERS_TABLE, ListingStatus, OfferStatus, OFFER_TRANSITIONS, OFFER_ACTORS
)
from gametaverns.modules.trades.schemas import (
    ListingCreate, ListingResponse, WantCreate, WantResponse, TradeMatch, OfferCreate, OfferResponse
)
from typing import List
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


class TradeService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    # Listings

    def create_listing(self, user_id: str, listing_data: ListingCreate) -> ListingResponse:
        """List a game from a library the user owns"""
        try:
            game_result = self.supabase.table("games")\
                .select("id, library_id")\
                .eq("id", listing_data.game_id)\
                .maybe_single()\
                .execute()
            if not game_result or not game_result.data:
                raise HTTPException(status_code=404, detail="Game not found")
            library_id = game_result.data["library_id"]

            library_result = self.supabase.table("libraries")\
                .select("owner_id")\
                .eq("id", library_id)\
                .maybe_single()\
                .execute()
            if not library_result or not library_result.data or library_result.data["owner_id"] != user_id:
                raise HTTPException(status_code=403, detail="You can only list games from your own library")

            result = self.supabase.table(LISTINGS_TABLE).insert({
                "user_id": user_id,
                "library_id": library_id,
                "status": ListingStatus.ACTIVE.value,
                **listing_data.model_dump(),
            }).execute()
            return ListingResponse(**result.data[0])
        except HTTPException:
            raise
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise HTTPException(status_code=409, detail="This game is already listed for trade")
            raise HTTPException(status_code=500, detail=str(e))
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_my_listings(self, user_id: str) -> List[ListingResponse]:
        try:
            result = self.supabase.table(LISTINGS_TABLE)\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .execute()
            return [ListingResponse(**listing) for listing in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _get_listing(self, listing_id: str) -> dict:
        result = self.supabase.table(LISTINGS_TABLE)\
            .select("*")\
            .eq("id", listing_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Listing not found")
        return result.data

    def delete_listing(self, listing_id: str, user_id: str) -> bool:
        try:
            listing = self._get_listing(listing_id)
            if listing["user_id"] != user_id:
                raise HTTPException(status_code=403, detail="You can only remove your own listings")
            self.supabase.table(LISTINGS_TABLE).delete().eq("id", listing_id).execute()
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # Wants

    def add_want(self, user_id: str, want_data: WantCreate) -> WantResponse:
        try:
            result = self.supabase.table(WANTS_TABLE).insert({
                "user_id": user_id,
                **want_data.model_dump(),
            }).execute()
            return WantResponse(**result.data[0])
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise HTTPException(status_code=409, detail="This game is already on your want list")
            raise HTTPException(status_code=500, detail=str(e))
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_my_wants(self, user_id: str) -> List[WantResponse]:
        try:
            result = self.supabase.table(WANTS_TABLE)\
                .select("*")\
                .eq("user_id", user_id)\
                .order("priority")\
                .execute()
            return [WantResponse(**want) for want in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_want(self, want_id: str, user_id: str) -> bool:
        try:
            result = self.supabase.table(WANTS_TABLE)\
                .delete()\
                .eq("id", want_id)\
                .eq("user_id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Want not found")
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def find_matches(self, user_id: str) -> List[TradeMatch]:
        """Other users' active listings for games on this user's want list, by want priority"""
        try:
            wants = self.list_my_wants(user_id)
            if not wants:
                return []

            games_result = self.supabase.table("games")\
                .select("id, bgg_id")\
                .in_("bgg_id", [w.bgg_id for w in wants])\
                .execute()
            bgg_by_game = {g["id"]: str(g["bgg_id"]) for g in games_result.data or []}
            if not bgg_by_game:
                return []

            listings_result = self.supabase.table(LISTINGS_TABLE)\
                .select("*")\
                .in_("game_id", list(bgg_by_game.keys()))\
                .eq("status", ListingStatus.ACTIVE.value)\
                .neq("user_id", user_id)\
                .execute()

            listings_by_bgg = {}
            for listing in listings_result.data or []:
                listings_by_bgg.setdefault(bgg_by_game[listing["game_id"]], []).append(listing)

            matches = []
            for want in wants:
                for listing in listings_by_bgg.get(want.bgg_id, []):
                    matches.append(TradeMatch(
                        want_id=want.id,
                        want_title=want.game_title,
                        listing_id=listing["id"],
                        listing_user_id=listing["user_id"],
                        listing_condition=listing.get("condition"),
                        listing_notes=listing.get("notes"),
                    ))
            return matches
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # Offers

    def create_offer(self, user_id: str, offer_data: OfferCreate) -> OfferResponse:
        try:
            offering = self._get_listing(offer_data.offering_listing_id)
            if offering["user_id"] != user_id:
                raise HTTPException(status_code=403, detail="You can only offer your own listings")
            if offering["status"] != ListingStatus.ACTIVE.value:
                raise HTTPException(status_code=409, detail="This listing is no longer active")

            receiving_user_id = offer_data.receiving_user_id
            if offer_data.receiving_listing_id:
                receiving = self._get_listing(offer_data.receiving_listing_id)
                if receiving["status"] != ListingStatus.ACTIVE.value:
                    raise HTTPException(status_code=409, detail="The requested listing is no longer active")
                receiving_user_id = receiving["user_id"]
            if not receiving_user_id:
                raise HTTPException(status_code=400, detail="receiving_listing_id or receiving_user_id is required")
            if receiving_user_id == user_id:
                raise HTTPException(status_code=400, detail="You cannot make a trade offer to yourself")

            result = self.supabase.table(OFFERS_TABLE).insert({
                "offering_user_id": user_id,
                "receiving_user_id": receiving_user_id,
                "offering_listing_id": offer_data.offering_listing_id,
                "receiving_listing_id": offer_data.receiving_listing_id,
                "message": offer_data.message,
                "status": OfferStatus.PENDING.value,
            }).execute()
            return OfferResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_offers(self, user_id: str, direction: str = "received") -> List[OfferResponse]:
        column = "receiving_user_id" if direction == "received" else "offering_user_id"
        try:
            result = self.supabase.table(OFFERS_TABLE)\
                .select("*")\
                .eq(column, user_id)\
                .order("created_at", desc=True)\
                .execute()
            return [OfferResponse(**offer) for offer in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_offer_status(self, offer_id: str, user_id: str, target: OfferStatus) -> OfferResponse:
        try:
            result = self.supabase.table(OFFERS_TABLE)\
                .select("*")\
                .eq("id", offer_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Offer not found")
            offer = result.data

            if user_id not in (offer["offering_user_id"], offer["receiving_user_id"]):
                raise HTTPException(status_code=404, detail="Offer not found")

            current = OfferStatus(offer["status"])
            if target not in OFFER_TRANSITIONS.get(current, set()):
                raise HTTPException(
                    status_code=409,
                    detail=f"Cannot move an offer from {current.value} to {target.value}"
                )

            side = OFFER_ACTORS.get(target)
            if side and offer[f"{side}_user_id"] != user_id:
                raise HTTPException(status_code=403, detail=f"Only the {side} user can mark this offer {target.value}")

            updated = self.supabase.table(OFFERS_TABLE)\
                .update({"status": target.value})\
                .eq("id", offer_id)\
                .execute()

            if target == OfferStatus.COMPLETED:
                listing_ids = [offer["offering_listing_id"]]
                if offer.get("receiving_listing_id"):
                    listing_ids.append(offer["receiving_listing_id"])
                self.supabase.table(LISTINGS_TABLE)\
                    .update({"status": ListingStatus.COMPLETED.value})\
                    .in_("id", listing_ids)\
                    .execute()

            logger.info(f"Trade offer {offer_id}: {current.value} -> {target.value}")
            return OfferResponse(**updated.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
