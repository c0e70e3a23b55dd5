from supabase import Client
from postgrest.exceptions import APIError
from gametaverns.modules.events.models import EVENTS_TABLE, REGISTRATIONS_TABLE, RegistrationStatus
from gametaverns.modules.events.schemas import RegistrationCreate, RegistrationResponse
from gametaverns.core.dependencies import is_platform_admin
from typing import List, Optional
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


class EventRegistrationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_event(self, event_id: str) -> dict:
        try:
            result = self.supabase.table(EVENTS_TABLE)\
                .select("id, library_id, created_by, title, max_attendees")\
                .eq("id", event_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Event not found")
            return result.data
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def check_event_manager(self, event: dict, user_data: dict) -> None:
        """Library owner for library events, creator for standalone ones"""
        user_id = user_data["id"]
        if event.get("created_by") == user_id:
            return
        if event.get("library_id"):
            library = self.supabase.table("libraries")\
                .select("owner_id")\
                .eq("id", event["library_id"])\
                .maybe_single()\
                .execute()
            if library and library.data and library.data.get("owner_id") == user_id:
                return
        if is_platform_admin(user_data, self.supabase):
            return
        raise HTTPException(status_code=403, detail="Only the event organizer can manage registrations")

    def _count(self, event_id: str, status: RegistrationStatus) -> int:
        result = self.supabase.table(REGISTRATIONS_TABLE)\
            .select("id", count="exact")\
            .eq("event_id", event_id)\
            .eq("status", status.value)\
            .execute()
        return result.count if result.count is not None else len(result.data or [])

    def register(self, event_id: str, registration: RegistrationCreate, attendee_user_id: Optional[str] = None) -> RegistrationResponse:
        """Register for an event, or join its waitlist when it is full"""
        try:
            event = self.get_event(event_id)
            attendee_name = registration.attendee_name.strip()

            existing = self.supabase.table(REGISTRATIONS_TABLE)\
                .select("id")\
                .eq("event_id", event_id)\
                .eq("attendee_name", attendee_name)\
                .execute()
            if existing.data:
                raise HTTPException(status_code=409, detail="Already registered")

            status = RegistrationStatus.REGISTERED
            waitlist_position = None
            max_attendees = event.get("max_attendees")
            if max_attendees and self._count(event_id, RegistrationStatus.REGISTERED) >= max_attendees:
                status = RegistrationStatus.WAITLISTED
                waitlist_position = self._count(event_id, RegistrationStatus.WAITLISTED) + 1

            result = self.supabase.table(REGISTRATIONS_TABLE).insert({
                "event_id": event_id,
                "attendee_name": attendee_name,
                "attendee_email": (registration.attendee_email or "").strip() or None,
                "attendee_user_id": attendee_user_id,
                "status": status.value,
                "waitlist_position": waitlist_position,
                "registered_at": datetime.now(timezone.utc).isoformat(),
                "notes": registration.notes or None,
            }).execute()
            logger.info(f"{attendee_name} {status.value} for event {event_id}")
            return RegistrationResponse(**result.data[0])
        except HTTPException:
            raise
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise HTTPException(status_code=409, detail="Already registered")
            raise HTTPException(status_code=500, detail=str(e))
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_registrations(self, event_id: str) -> List[RegistrationResponse]:
        try:
            result = self.supabase.table(REGISTRATIONS_TABLE)\
                .select("*")\
                .eq("event_id", event_id)\
                .order("registered_at")\
                .execute()
            return [RegistrationResponse(**r) for r in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_registration(self, registration_id: str) -> dict:
        result = self.supabase.table(REGISTRATIONS_TABLE)\
            .select("*")\
            .eq("id", registration_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Registration not found")
        return result.data

    def _advance_waitlist(self, event_id: str) -> None:
        """Fill a freed seat from the front of the waitlist and renumber the rest from 1."""
        event = self.get_event(event_id)
        waiting = self.supabase.table(REGISTRATIONS_TABLE)\
            .select("id, waitlist_position")\
            .eq("event_id", event_id)\
            .eq("status", RegistrationStatus.WAITLISTED.value)\
            .order("waitlist_position")\
            .execute().data or []
        if not waiting:
            return

        max_attendees = event.get("max_attendees")
        if not max_attendees or self._count(event_id, RegistrationStatus.REGISTERED) < max_attendees:
            promoted = waiting.pop(0)
            self.supabase.table(REGISTRATIONS_TABLE)\
                .update({"status": RegistrationStatus.REGISTERED.value, "waitlist_position": None})\
                .eq("id", promoted["id"])\
                .execute()
            logger.info(f"Promoted registration {promoted['id']} from the waitlist of event {event_id}")

        for position, entry in enumerate(waiting, start=1):
            if entry.get("waitlist_position") != position:
                self.supabase.table(REGISTRATIONS_TABLE)\
                    .update({"waitlist_position": position})\
                    .eq("id", entry["id"])\
                    .execute()

    def cancel_registration(self, registration_id: str, user_data: dict) -> RegistrationResponse:
        try:
            registration = self.get_registration(registration_id)
            if registration.get("attendee_user_id") != user_data["id"]:
                self.check_event_manager(self.get_event(registration["event_id"]), user_data)
            if registration["status"] == RegistrationStatus.CANCELLED.value:
                raise HTTPException(status_code=409, detail="Registration is already cancelled")

            result = self.supabase.table(REGISTRATIONS_TABLE)\
                .update({
                    "status": RegistrationStatus.CANCELLED.value,
                    "cancelled_at": datetime.now(timezone.utc).isoformat(),
                    "waitlist_position": None,
                })\
                .eq("id", registration_id)\
                .execute()
            self._advance_waitlist(registration["event_id"])
            return RegistrationResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def remove_registration(self, registration_id: str, user_data: dict) -> bool:
        try:
            registration = self.get_registration(registration_id)
            self.check_event_manager(self.get_event(registration["event_id"]), user_data)
            self.supabase.table(REGISTRATIONS_TABLE)\
                .delete()\
                .eq("id", registration_id)\
                .execute()
            if registration["status"] != RegistrationStatus.CANCELLED.value:
                self._advance_waitlist(registration["event_id"])
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
