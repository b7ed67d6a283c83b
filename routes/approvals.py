import logging
from fastapi import APIRouter, Depends, Header, HTTPException, status
from typing import Optional
from models.auth import Session
from models.requests import AllRequestsResponse, ApprovalDecision, HolidayBooking, SickCall, SwapRequestCreate
from modules.rota.approvals import parse_action, parse_request_type
from modules.rota.errors import RotaError
from services.approvals_service import ApprovalsService
from services.auth_service import get_current_session, require_manager
from services.idempotency_service import idempotent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["approvals"])


@router.post("/holidays/book", status_code=status.HTTP_201_CREATED)
async def book_holiday(
    booking: HolidayBooking,
    idempotency_key: Optional[str] = Header(default=None),
    session: Session = Depends(get_current_session)
):
    """
    Request a holiday.

    Both dates must be tomorrow or later and the end may not precede the start.
    """
    service = ApprovalsService()

    try:
        request = await idempotent(
            idempotency_key,
            session.staff_id,
            "POST /holidays/book",
            lambda: service.book_holiday(session, booking.model_dump())
        )
        return {
            "success": True,
            "message": "Request submitted!",
            "request": request
        }
    except (HTTPException, RotaError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to book holiday: {str(e)}"
        )


@router.get("/holidays/status")
async def holiday_status(session: Session = Depends(get_current_session)):
    """The caller's holiday requests, newest first"""
    service = ApprovalsService()
    return await service.holiday_status(session.staff_id)


@router.post("/callInSick", status_code=status.HTTP_201_CREATED)
async def call_in_sick(
    sick_call: SickCall,
    idempotency_key: Optional[str] = Header(default=None),
    session: Session = Depends(get_current_session)
):
    """Report sick for an assigned shift; must be at least 3 hours before it starts"""
    service = ApprovalsService()

    try:
        request = await idempotent(
            idempotency_key,
            session.staff_id,
            "POST /callInSick",
            lambda: service.call_in_sick(session, sick_call.shiftId, sick_call.reason or "")
        )
        return {
            "success": True,
            "message": "Sick call submitted",
            "request": request
        }
    except (HTTPException, RotaError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error submitting sick call: {str(e)}"
        )


@router.post("/requestSwap", status_code=status.HTTP_201_CREATED)
async def request_swap(
    swap: SwapRequestCreate,
    idempotency_key: Optional[str] = Header(default=None),
    session: Session = Depends(get_current_session)
):
    """Ask to exchange one of your future shifts with another employee's"""
    service = ApprovalsService()

    try:
        request = await idempotent(
            idempotency_key,
            session.staff_id,
            "POST /requestSwap",
            lambda: service.request_swap(session, swap.model_dump())
        )
        return {
            "success": True,
            "message": "Swap request submitted",
            "request": request
        }
    except (HTTPException, RotaError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error submitting swap request: {str(e)}"
        )


@router.get("/approvals/getAllRequests", response_model=AllRequestsResponse)
async def get_all_requests(session: Session = Depends(require_manager)):
    """Every swap, sick-leave and holiday request. Managers only."""
    service = ApprovalsService()

    try:
        return await service.get_all_requests()
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Unable to load requests: {str(e)}"
        )


@router.post("/approvals/requests/approveOrDeny")
async def approve_or_deny(
    decision: ApprovalDecision,
    session: Session = Depends(require_manager)
):
    """
    Approve or deny a pending request.
    Managers only.

    Approving a shift swap exchanges the two assignments atomically.
    Deciding a request that is no longer pending returns 409.
    """
    request_type = parse_request_type(decision.requestType)
    action = parse_action(decision.action)
    service = ApprovalsService()

    try:
        request = await service.decide(request_type, decision.requestId, action, session)
        return {
            "success": True,
            "message": f"Request {request['status'].lower()}",
            "request": request
        }
    except (HTTPException, RotaError):
        raise
    except Exception as e:
        logger.error(f"Approval error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Action failed: {str(e)}"
        )
