from fastapi import APIRouter, Depends
from gametaverns.database.supabase_client import get_service_supabase
from gametaverns.modules.auth.schemas import CurrentUserResponse
from gametaverns.modules.auth.service import AuthService
from gametaverns.core.dependencies import get_current_user_id
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user(
    current_user: Dict = Depends(get_current_user_id),
    supabase: Client = Depends(get_service_supabase),
):
    """Get current authenticated user and whether they are a platform admin (for frontend UI)."""
    return CurrentUserResponse(
        id=current_user["id"],
        email=current_user.get("email"),
        user_metadata=current_user.get("user_metadata") or {},
        is_platform_admin=AuthService(supabase).is_platform_admin(current_user["id"]),
    )
