# Supabase tables: library_events (read), event_registrations
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- library_events (read only here)
  - id: uuid (primary key)
  - library_id: uuid (nullable for standalone events)
  - created_by: uuid (nullable)
  - title: text
  - max_attendees: integer (nullable) - no cap when null
- event_registrations
  - id: uuid (primary key)
  - event_id: uuid (foreign key to library_events.id, ON DELETE CASCADE)
  - attendee_name: text (not null)
  - attendee_email: text (nullable)
  - attendee_user_id: uuid (nullable) - null for guest RSVPs
  - status: text (default: 'registered') - values: registered, waitlisted, cancelled
  - waitlist_position: integer (nullable) - 1-based, set only while waitlisted
  - registered_at: timestamp (default: now())
  - cancelled_at: timestamp (nullable)
  - notes: text (nullable)
  - unique (event_id, attendee_name)
"""

from enum import Enum

EVENTS_TABLE = "library_events"
REGISTRATIONS_TABLE = "event_registrations"


class RegistrationStatus(str, Enum):
    REGISTERED = "registered"
    WAITLISTED = "waitlisted"
    CANCELLED = "cancelled"
