from fastapi import APIRouter, Depends, HTTPException, Request
from gametaverns.database.supabase_client import get_service_supabase
from gametaverns.modules.events.schemas import RegistrationCreate, RegistrationResponse
from gametaverns.modules.events.service import EventRegistrationService
from gametaverns.core.captcha import verify_turnstile
from gametaverns.core.dependencies import get_current_user_id, get_optional_user, get_client_ip
from supabase import Client
from typing import List, Dict, Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


def get_registration_service(supabase: Client = Depends(get_service_supabase)) -> EventRegistrationService:
    return EventRegistrationService(supabase)


@router.post("/{event_id}/registrations", response_model=RegistrationResponse, status_code=201)
async def register(
    event_id: str,
    registration: RegistrationCreate,
    request: Request,
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: EventRegistrationService = Depends(get_registration_service),
):
    """RSVP to an event. Signed-in users are linked to the row; guests must pass Turnstile."""
    if registration.website_url:
        logger.warning(f"Honeypot filled on event {event_id} registration")
        raise HTTPException(status_code=400, detail="Invalid submission")

    if user_data is None:
        if not await verify_turnstile(registration.turnstile_token, get_client_ip(request)):
            raise HTTPException(status_code=400, detail="CAPTCHA verification failed")

    attendee_user_id = user_data["id"] if user_data else None
    return service.register(event_id, registration, attendee_user_id)


@router.get("/{event_id}/registrations", response_model=List[RegistrationResponse])
async def list_registrations(
    event_id: str,
    service: EventRegistrationService = Depends(get_registration_service),
):
    service.get_event(event_id)
    return service.list_registrations(event_id)


@router.post("/registrations/{registration_id}/cancel", response_model=RegistrationResponse)
async def cancel_registration(
    registration_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: EventRegistrationService = Depends(get_registration_service),
):
    """Cancel an RSVP (attendee or organizer). Frees a seat for the next waitlisted attendee."""
    return service.cancel_registration(registration_id, user_data)


@router.delete("/registrations/{registration_id}", status_code=204)
async def remove_registration(
    registration_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: EventRegistrationService = Depends(get_registration_service),
):
    service.remove_registration(registration_id, user_data)
    return None
