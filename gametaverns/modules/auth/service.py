import hashlib
import time
from supabase import Client
from gametaverns.modules.auth.models import USER_ROLES_TABLE, PLATFORM_ADMIN_ROLE
from fastapi import HTTPException
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


def clear_auth_cache() -> None:
    _AUTH_USER_CACHE.clear()


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = hashlib.sha256(token.encode()).hexdigest()
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                user_data, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return user_data
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid authentication")
            user = user_response.user
            user_data = {
                "id": user.id,
                "email": user.email,
                "user_metadata": user.user_metadata or {},
                "app_metadata": user.app_metadata or {},
                "created_at": user.created_at,
                "updated_at": user.updated_at
            }
            if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
            return user_data
        except HTTPException:
            raise
        except Exception as e:
            logger.warning(f"Token validation failed: {e}")
            raise HTTPException(status_code=401, detail="Invalid authentication")

    def is_platform_admin(self, user_id: str) -> bool:
        """True when the user holds the platform-wide admin role."""
        try:
            result = self.supabase.table(USER_ROLES_TABLE)\
                .select("role")\
                .eq("user_id", user_id)\
                .eq("role", PLATFORM_ADMIN_ROLE)\
                .maybe_single()\
                .execute()
            return bool(result and result.data)
        except Exception as e:
            logger.error(f"Error checking admin role for {user_id}: {e}")
            return False

    def find_user_id_by_email(self, email: str) -> Optional[str]:
        """Look up an auth user by email (requires service role client)."""
        page = 1
        while True:
            users = self.supabase.auth.admin.list_users(page=page, per_page=200)
            if not users:
                return None
            for user in users:
                if (user.email or "").lower() == email.lower():
                    return user.id
            page += 1

    def create_confirmed_user(self, email: str, password: str, display_name: Optional[str] = None) -> str:
        """Create an auth user with a confirmed email (requires service role client)."""
        response = self.supabase.auth.admin.create_user({
            "email": email,
            "password": password,
            "email_confirm": True,
            "user_metadata": {"display_name": display_name or email.split("@")[0]},
        })
        if not response.user:
            raise HTTPException(status_code=500, detail="Failed to create user")
        return response.user.id

    def grant_platform_admin(self, user_id: str) -> bool:
        """Upsert the admin role for a user. Returns True if the role was newly granted."""
        if self.is_platform_admin(user_id):
            return False
        self.supabase.table(USER_ROLES_TABLE).upsert(
            {"user_id": user_id, "role": PLATFORM_ADMIN_ROLE},
            on_conflict="user_id,role",
        ).execute()
        return True
