"""
Core dependencies for route protection and library access checks
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from gametaverns.config import settings
from gametaverns.database.supabase_client import get_service_supabase
from gametaverns.modules.auth.service import AuthService
from supabase import Client
from typing import Optional, Dict, Any
import hmac
import logging

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is a 401 (not FastAPI's default 403)
security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_service_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )
    return auth_service.get_current_user(credentials.credentials)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[dict]:
    """Current user when a valid token is sent, None for guests"""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return auth_service.get_current_user(credentials.credentials)
    except HTTPException:
        return None


def require_service_role(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> None:
    """Internal functions (notification fan-out) are only callable with the service role key"""
    expected = settings.supabase_service_role_key
    if not expected or credentials is None or not hmac.compare_digest(credentials.credentials, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Service role authorization required"
        )


def get_client_ip(request: Request) -> str:
    """Best-effort client IP; proxies put the original address first in x-forwarded-for."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    for header in ("x-real-ip", "cf-connecting-ip"):
        value = request.headers.get(header)
        if value:
            return value.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def is_platform_admin(user_data: dict, supabase: Client) -> bool:
    """Check if user holds the platform admin role"""
    try:
        return AuthService(supabase).is_platform_admin(user_data["id"])
    except Exception:
        return False


def get_library(library_id: str, supabase: Client) -> Dict[str, Any]:
    """Fetch the library row or raise 404"""
    result = supabase.table("libraries")\
        .select("id, owner_id, name, slug")\
        .eq("id", library_id)\
        .maybe_single()\
        .execute()
    if not result or not result.data:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Library not found"
        )
    return result.data


def is_library_member(library_id: str, user_id: str, supabase: Client) -> bool:
    member_result = supabase.table("library_members")\
        .select("id")\
        .eq("library_id", library_id)\
        .eq("user_id", user_id)\
        .limit(1)\
        .execute()
    return bool(member_result.data)


def check_library_member(
    library_id: str,
    user_data: dict,
    supabase: Client,
    library: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Allow the library owner or any member. Returns the library row."""
    if library is None:
        library = get_library(library_id, supabase)
    user_id = user_data["id"]
    if library.get("owner_id") == user_id:
        return library
    if is_library_member(library_id, user_id, supabase):
        return library
    if is_platform_admin(user_data, supabase):
        return library
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You must be a library member to perform this action"
    )


def check_library_owner(
    library_id: str,
    user_data: dict,
    supabase: Client,
    library: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Allow the library owner (or a platform admin). Returns the library row."""
    if library is None:
        library = get_library(library_id, supabase)
    if library.get("owner_id") == user_data["id"]:
        return library
    if is_platform_admin(user_data, supabase):
        return library
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Only the library owner can perform this action"
    )
