"""
Approval state machine shared by shift swaps, sick calls and holidays.

    Pending --approve--> Approved
    Pending --deny-----> Denied

Approved and Denied are terminal. Only managers move a request.
"""
from enum import Enum

from modules.rota.errors import ConflictError, ValidationError


class RequestStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    DENIED = "Denied"


class RequestType(str, Enum):
    SHIFT_SWAP = "shiftSwap"
    SICK_LEAVE = "sickLeave"
    HOLIDAY = "holiday"


class ApprovalAction(str, Enum):
    APPROVE = "approve"
    DENY = "deny"


TERMINAL_STATUSES = frozenset({RequestStatus.APPROVED, RequestStatus.DENIED})


def parse_action(value: str) -> ApprovalAction:
    try:
        return ApprovalAction(str(value).lower())
    except ValueError:
        raise ValidationError("Action must be 'approve' or 'deny'")


def parse_request_type(value: str) -> RequestType:
    try:
        return RequestType(value)
    except ValueError:
        raise ValidationError("requestType must be one of: shiftSwap, sickLeave, holiday")


def next_status(current: str, action: ApprovalAction) -> RequestStatus:
    """Status reached from `current` by `action`; raises ConflictError if already decided."""
    status = RequestStatus(current)
    if status in TERMINAL_STATUSES:
        raise ConflictError(f"Request has already been {status.value.lower()}")

    if action is ApprovalAction.APPROVE:
        return RequestStatus.APPROVED
    elif action is ApprovalAction.DENY:
        return RequestStatus.DENIED
    raise AssertionError(f"Unhandled approval action: {action}")
