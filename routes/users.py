from fastapi import APIRouter, Depends, Query
from typing import Optional
from models.auth import Role, Session
from modules.rota.errors import ValidationError
from modules.rota.timeutils import parse_date
from services.auth_service import get_current_session, require_manager
from services.staff_service import get_staff_list, get_staff_member, search_staff

router = APIRouter(prefix="/api/users", tags=["users"])


def _parse_role(value: Optional[str]) -> Optional[Role]:
    if not value:
        return None
    try:
        return Role.parse(value)
    except ValueError as e:
        raise ValidationError(str(e))


@router.get("")
async def list_users(
    all: bool = Query(default=True),
    role: Optional[str] = Query(default=None),
    session: Session = Depends(get_current_session)
):
    """Everyone the caller can message"""
    staff = await get_staff_list(_parse_role(role))
    return [s for s in staff if all or s["id"] != session.staff_id]


@router.get("/search")
async def search_users(
    role: Optional[str] = Query(default=None),
    date: Optional[str] = Query(default=None),
    q: Optional[str] = Query(default=None),
    session: Session = Depends(require_manager)
):
    """
    Staff with unavailableDates and holidayDates.

    With `date`, each row also has `availability`: Available, Unavailable or OnHoliday.
    `q` filters by name or email.
    """
    on_date = None
    if date:
        on_date = parse_date(date)
        if on_date is None:
            raise ValidationError("Invalid date format (use YYYY-MM-DD)")
    return await search_staff(_parse_role(role), on_date, q)


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    session: Session = Depends(get_current_session)
):
    return await get_staff_member(user_id)
