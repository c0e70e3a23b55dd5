# Supabase tables: trade_listings, trade_wants, trade_offers
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- trade_listings
  - id: uuid (primary key)
  - user_id: uuid (not null)
  - game_id: uuid (foreign key to games.id)
  - library_id: uuid (foreign key to libraries.id)
  - condition: text (default: 'Good')
  - notes: text (nullable)
  - willing_to_ship: boolean (default: false)
  - local_only: boolean (default: true)
  - status: text - values: active, matched, completed, cancelled
  - unique (user_id, game_id)
- trade_wants
  - id: uuid (primary key)
  - user_id: uuid (not null)
  - bgg_id: text (not null)
  - game_title: text (not null)
  - notes: text (nullable)
  - priority: integer (default: 5, lower sorts first)
  - unique (user_id, bgg_id)
- trade_offers
  - id: uuid (primary key)
  - offering_user_id, receiving_user_id: uuid (not null)
  - offering_listing_id: uuid (not null)
  - receiving_listing_id: uuid (nullable)
  - message: text (nullable)
  - status: text - values: pending, accepted, declined, withdrawn, completed
"""

from enum import Enum

LISTINGS_TABLE = "trade_listings"
WANTS_TABLE = "trade_wants"
OFFERS_TABLE = "trade_offers"


class ListingStatus(str, Enum):
    ACTIVE = "active"
    MATCHED = "matched"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OfferStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    WITHDRAWN = "withdrawn"
    COMPLETED = "completed"


OFFER_TRANSITIONS = {
    OfferStatus.PENDING: {OfferStatus.ACCEPTED, OfferStatus.DECLINED, OfferStatus.WITHDRAWN},
    OfferStatus.ACCEPTED: {OfferStatus.COMPLETED},
}

# Which side of the offer may make each move; None means either party
OFFER_ACTORS = {
    OfferStatus.WITHDRAWN: "offering",
    OfferStatus.ACCEPTED: "receiving",
    OfferStatus.DECLINED: "receiving",
    OfferStatus.COMPLETED: None,
}
