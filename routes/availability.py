from fastapi import APIRouter, Depends, Query
from models.auth import Session
from models.availability import AvailabilityEntryIn, AvailabilityUpdate
from modules.rota.errors import ValidationError
from modules.rota.timeutils import parse_date
from services.auth_service import ensure_self_or_manager, get_current_session
from services.availability_service import AvailabilityService

router = APIRouter(prefix="/api/availability", tags=["availability"])


@router.get("/{user_id}")
async def get_availability(
    user_id: str,
    session: Session = Depends(get_current_session)
):
    """Availability entries: { date, type, start_time?, end_time? }"""
    ensure_self_or_manager(session, user_id)
    service = AvailabilityService()
    return await service.get_availability(user_id)


@router.put("/{user_id}")
async def replace_availability(
    user_id: str,
    body: AvailabilityUpdate,
    session: Session = Depends(get_current_session)
):
    """Replace the whole availability map"""
    ensure_self_or_manager(session, user_id)
    service = AvailabilityService()
    entries = await service.replace_availability(
        user_id,
        [entry.model_dump() for entry in body.availability]
    )
    return {
        "success": True,
        "message": "Availability saved successfully.",
        "availability": entries
    }


@router.post("/{user_id}/toggle")
async def toggle_availability(
    user_id: str,
    entry: AvailabilityEntryIn,
    session: Session = Depends(get_current_session)
):
    """Set one day's entry; picking the same type again clears the day"""
    ensure_self_or_manager(session, user_id)
    service = AvailabilityService()
    stored = await service.toggle_availability(user_id, entry.model_dump())
    return {
        "success": True,
        "cleared": stored is None,
        "entry": stored
    }


@router.get("/{user_id}/check")
async def check_availability(
    user_id: str,
    date: str = Query(...),
    session: Session = Depends(get_current_session)
):
    """Available, Unavailable or OnHoliday for one date"""
    ensure_self_or_manager(session, user_id)
    day = parse_date(date)
    if day is None:
        raise ValidationError("Invalid date format (use YYYY-MM-DD)")

    service = AvailabilityService()
    status = await service.check(user_id, day)
    return {
        "userId": user_id,
        "date": day.isoformat(),
        "status": status.value
    }
