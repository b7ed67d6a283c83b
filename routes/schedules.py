from datetime import date
from fastapi import APIRouter, Depends, Header, HTTPException, status, Query
from typing import Optional
from models.auth import Session
from models.shifts import ShiftCreate, ShiftUpdate, ShiftResponse
from modules.rota.errors import RotaError, ValidationError
from modules.rota.shifts import ShiftStatus
from modules.rota.timeutils import parse_date
from services.auth_service import ensure_self_or_manager, get_current_session, require_manager
from services.idempotency_service import idempotent
from services.rota_service import RotaService

router = APIRouter(prefix="/api", tags=["schedules"])


def _date_param(value: Optional[str], name: str) -> Optional[date]:
    if value is None:
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValidationError(f"Invalid {name} (use YYYY-MM-DD)")
    return parsed


@router.post("/schedules", response_model=ShiftResponse, status_code=status.HTTP_201_CREATED)
async def create_schedule(
    shift: ShiftCreate,
    idempotency_key: Optional[str] = Header(default=None),
    session: Session = Depends(require_manager)
):
    """
    Create a draft shift.
    Managers only.

    Rejected when an employee is on holiday or unavailable that day, or
    already has an overlapping shift.
    """
    service = RotaService()

    try:
        return await idempotent(
            idempotency_key,
            session.staff_id,
            "POST /schedules",
            lambda: service.create_shift(shift.model_dump(), created_by=session.staff_id)
        )
    except (HTTPException, RotaError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create schedule: {str(e)}"
        )


@router.get("/schedules")
async def list_schedules(
    start: Optional[str] = Query(default=None),
    end: Optional[str] = Query(default=None),
    status_filter: Optional[ShiftStatus] = Query(default=None, alias="status"),
    session: Session = Depends(get_current_session)
):
    """
    All shifts, ordered by date and start time.

    Optional filters:
    - start / end: date range (inclusive)
    - status: Draft, Published or Cancelled (managers only; employees always see published)
    """
    service = RotaService()
    return await service.list_shifts(
        session,
        start_date=_date_param(start, "start"),
        end_date=_date_param(end, "end"),
        status=status_filter
    )


@router.get("/schedules/date")
async def get_schedules_on_date(
    date: str = Query(...),
    session: Session = Depends(get_current_session)
):
    """Shifts on one date"""
    service = RotaService()
    return await service.shifts_on_date(session, _date_param(date, "date"))


@router.get("/schedules/today/{user_id}")
async def get_today_schedule(
    user_id: str,
    session: Session = Depends(get_current_session)
):
    """A user's shifts for today"""
    ensure_self_or_manager(session, user_id)
    service = RotaService()
    return await service.shifts_for_employee(session, user_id, day=date.today())


@router.get("/schedules/{user_id}")
async def get_user_schedule(
    user_id: str,
    session: Session = Depends(get_current_session)
):
    """All shifts a user is assigned to"""
    ensure_self_or_manager(session, user_id)
    service = RotaService()
    return await service.shifts_for_employee(session, user_id)


@router.put("/schedules/{shift_id}", response_model=ShiftResponse)
async def update_schedule(
    shift_id: str,
    shift: ShiftUpdate,
    session: Session = Depends(require_manager)
):
    """
    Modify a shift.
    Managers only.

    Send the `version` you last read to detect concurrent edits (409 on mismatch).
    """
    service = RotaService()

    try:
        return await service.update_shift(shift_id, shift.model_dump(exclude_none=True))
    except (HTTPException, RotaError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update schedule: {str(e)}"
        )


@router.put("/schedules/{shift_id}/publish", response_model=ShiftResponse)
async def publish_schedule(
    shift_id: str,
    session: Session = Depends(require_manager)
):
    """Publish a draft shift so employees can see it"""
    service = RotaService()
    return await service.publish_shift(shift_id)


@router.put("/schedules/{shift_id}/cancel", response_model=ShiftResponse)
async def cancel_schedule(
    shift_id: str,
    session: Session = Depends(require_manager)
):
    """Cancel a shift; cancelled shifts no longer block other assignments"""
    service = RotaService()
    return await service.cancel_shift(shift_id)


@router.delete("/schedules/{shift_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_schedule(
    shift_id: str,
    session: Session = Depends(require_manager)
):
    """Delete a shift"""
    service = RotaService()
    await service.delete_shift(shift_id)


@router.get("/shifts/{shift_id}", response_model=ShiftResponse)
async def get_shift_details(
    shift_id: str,
    session: Session = Depends(get_current_session)
):
    service = RotaService()
    return await service.get_shift(shift_id)
