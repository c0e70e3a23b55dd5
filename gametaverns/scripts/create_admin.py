"""
Create Platform Admin Script
Creates (or finds) an auth user and grants the platform admin role.

Usage:
    python -m gametaverns.scripts.create_admin --email admin@example.com --password '...'

ADMIN_EMAIL / ADMIN_PASSWORD are used when the flags are omitted.
"""

import argparse
import os
import sys
from typing import List, Optional

from gametaverns.config import settings
from gametaverns.database.supabase_client import get_service_supabase
from gametaverns.modules.auth.service import AuthService
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def create_admin(supabase: Client, email: str, password: str, display_name: Optional[str] = None) -> dict:
    """Create the user if needed, then make sure they hold the admin role"""
    auth_service = AuthService(supabase)

    user_id = auth_service.find_user_id_by_email(email)
    created = False
    if user_id:
        logger.info(f"User {email} already exists ({user_id})")
    else:
        user_id = auth_service.create_confirmed_user(email, password, display_name)
        created = True
        logger.info(f"Created user {email} ({user_id})")

    granted = auth_service.grant_platform_admin(user_id)
    if granted:
        logger.info(f"Granted admin role to {email}")
    else:
        logger.info(f"{email} is already a platform admin")
    return {"user_id": user_id, "created": created, "granted": granted}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a GameTaverns platform admin")
    parser.add_argument("--email", default=os.environ.get("ADMIN_EMAIL"))
    parser.add_argument("--password", default=os.environ.get("ADMIN_PASSWORD"))
    parser.add_argument("--display-name", default=None)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if not args.email or not args.password:
        logger.error("Both --email and --password (or ADMIN_EMAIL / ADMIN_PASSWORD) are required")
        return 1
    if len(args.password) < MIN_PASSWORD_LENGTH:
        logger.error(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return 1
    if not settings.supabase_service_role_key:
        logger.error("SUPABASE_SERVICE_ROLE_KEY must be set to create users")
        return 1

    try:
        create_admin(get_service_supabase(), args.email.strip(), args.password, args.display_name)
    except Exception as e:
        logger.error(f"Error creating admin: {e}")
        return 1
    logger.info("Admin setup complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
