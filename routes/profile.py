from fastapi import APIRouter, Depends
from models.auth import Session
from models.workforce import ProfileUpdate
from services.auth_service import get_current_session
from services.staff_service import get_profile, update_profile

router = APIRouter(prefix="/api", tags=["profile"])


@router.get("/profile")
async def read_profile(session: Session = Depends(get_current_session)):
    """The caller's own profile"""
    return await get_profile(session.staff_id)


@router.get("/user/profile")
async def read_user_profile(session: Session = Depends(get_current_session)):
    """Same as /profile; the settings screen reads it from here"""
    return await get_profile(session.staff_id)


@router.put("/profile")
async def edit_profile(
    body: ProfileUpdate,
    session: Session = Depends(get_current_session)
):
    profile = await update_profile(session.staff_id, body.model_dump())
    return {
        "success": True,
        "message": "Profile updated successfully.",
        "profile": profile
    }
