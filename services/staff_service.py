import logging
from typing import List, Dict, Any, Optional
from datetime import date, datetime
from database.supabase_client import get_supabase
from models.auth import RegisterRequest, Role
from modules.rota.availability import check_availability
from modules.rota.errors import ConflictError, NotFoundError, ValidationError
from modules.rota.events import EventType, MANAGER_ROOM
from services.auth_service import hash_password
from services.availability_service import AvailabilityService
from services.notifications_service import NotificationsService

logger = logging.getLogger(__name__)

PUBLIC_COLUMNS = "id, email, full_name, role, hourly_rate, job_title, phone, profile_image, created_at"

# Free-text profile fields: request name -> column
PROFILE_FIELDS = {
    "jobTitle": "job_title",
    "phone": "phone",
    "profileImage": "profile_image",
}


def to_public(staff: Dict[str, Any]) -> Dict[str, Any]:
    """Drop credentials from a staff row"""
    return {k: v for k, v in staff.items() if k != "password_hash"}


async def get_staff_by_email(email: str) -> Optional[Dict[str, Any]]:
    supabase = get_supabase()
    result = supabase.table("staff").select("*").eq("email", email.lower()).limit(1).execute()
    return result.data[0] if result.data else None


async def get_staff_member(staff_id: str) -> Dict[str, Any]:
    supabase = get_supabase()
    result = supabase.table("staff").select(PUBLIC_COLUMNS).eq("id", staff_id).limit(1).execute()
    if not result.data:
        raise NotFoundError("User not found")
    return result.data[0]


async def get_staff_list(role: Optional[Role] = None) -> List[Dict[str, Any]]:
    """Get all staff, optionally only one role"""
    supabase = get_supabase()
    query = supabase.table("staff").select(PUBLIC_COLUMNS)
    if role is not None:
        query = query.eq("role", role.value)
    result = query.order("full_name").execute()
    return result.data or []


def matches_query(member: Dict[str, Any], text: str) -> bool:
    """Case-insensitive substring match on name or email"""
    needle = text.strip().lower()
    return needle in (member.get("full_name") or "").lower() or \
        needle in (member.get("email") or "").lower()


async def search_staff(
    role: Optional[Role] = None,
    on_date: Optional[date] = None,
    text: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Staff with their blocked dates attached.

    With `on_date`, each row also carries the availability verdict for that
    day so the rota screen can grey out blocked employees. `text` narrows
    the list to names or emails containing it.
    """
    staff = await get_staff_list(role)
    if text and text.strip():
        staff = [s for s in staff if matches_query(s, text)]
    blocked = await AvailabilityService().get_blocked_dates([s["id"] for s in staff])

    rows = []
    for member in staff:
        row = {**member, **blocked[member["id"]]}
        if on_date is not None:
            row["availability"] = check_availability(
                on_date, row["unavailableDates"], row["holidayDates"]
            ).value
        rows.append(row)
    return rows


async def register_staff_member(request: RegisterRequest) -> Dict[str, Any]:
    """Create a staff account and announce it to managers"""
    supabase = get_supabase()

    try:
        role = Role.parse(request.role)
    except ValueError as e:
        raise ValidationError(str(e))

    if await get_staff_by_email(request.email):
        raise ConflictError("An account with this email already exists")

    new_staff = {
        "email": request.email.lower(),
        "full_name": request.name.strip(),
        "role": role.value,
        "hourly_rate": request.hourlyRate or 0,
        "job_title": "",
        "phone": "",
        "profile_image": "",
        "password_hash": hash_password(request.password),
        "created_at": datetime.utcnow().isoformat()
    }

    result = supabase.table("staff").insert(new_staff).execute()
    if not result.data:
        raise Exception("Insert returned no data")

    staff = to_public(result.data[0])
    logger.info(f"Registered {role.value} {staff['id']} ({staff['email']})")

    if role is Role.EMPLOYEE:
        await NotificationsService().notify(
            EventType.NEW_EMPLOYEE_ADDED,
            staff,
            rooms=[MANAGER_ROOM]
        )

    return staff


def to_profile(staff: Dict[str, Any]) -> Dict[str, Any]:
    """Staff row in the shape the profile screens read and write"""
    return {
        "id": staff["id"],
        "fullName": staff.get("full_name") or "",
        "jobTitle": staff.get("job_title") or "",
        "email": staff.get("email") or "",
        "phone": staff.get("phone") or "",
        "profileImage": staff.get("profile_image") or "",
        "role": staff.get("role"),
        "hourlyRate": staff.get("hourly_rate"),
    }


async def get_profile(staff_id: str) -> Dict[str, Any]:
    return to_profile(await get_staff_member(staff_id))


async def update_profile(staff_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    """
    Update the caller's own profile fields.

    Fields left out (None) keep their stored value. A new email must not
    belong to another account.
    """
    supabase = get_supabase()
    current = await get_staff_member(staff_id)

    payload = {}
    if changes.get("fullName") is not None:
        name = changes["fullName"].strip()
        if not name:
            raise ValidationError("Full name cannot be empty")
        payload["full_name"] = name
    if changes.get("email") is not None:
        email = changes["email"].lower()
        if email != current["email"]:
            other = await get_staff_by_email(email)
            if other and other["id"] != staff_id:
                raise ConflictError("An account with this email already exists")
        payload["email"] = email
    for field, column in PROFILE_FIELDS.items():
        if changes.get(field) is not None:
            payload[column] = changes[field].strip()

    if not payload:
        return to_profile(current)

    result = supabase.table("staff").update(payload).eq("id", staff_id).execute()
    if not result.data:
        raise NotFoundError("User not found")

    logger.info(f"Profile updated for {staff_id}: {', '.join(sorted(payload))}")
    return to_profile(to_public(result.data[0]))
