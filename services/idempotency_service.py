import logging
from datetime import datetime
from typing import Optional, Dict, Any, Awaitable, Callable
from fastapi.encoders import jsonable_encoder
from database.supabase_client import get_supabase
from modules.rota.errors import ConflictError

logger = logging.getLogger(__name__)

PENDING = "pending"
DONE = "done"


class IdempotencyService:
    """
    Stores the response of a create request under its Idempotency-Key so a
    repeated submission (double tap, client retry) returns the first result
    instead of creating a duplicate.

    A key is claimed before the create runs. The (key, staff, endpoint)
    primary key lets only one request hold the claim; the others replay the
    stored response, or get 409 while the first is still running.
    """

    def __init__(self):
        self.supabase = get_supabase()

    async def lookup(self, key: str, staff_id: str, endpoint: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("idempotency_keys") \
            .select("*") \
            .eq("key", key) \
            .eq("staff_id", staff_id) \
            .eq("endpoint", endpoint) \
            .limit(1) \
            .execute()
        return result.data[0] if result.data else None

    async def claim(self, key: str, staff_id: str, endpoint: str) -> bool:
        """True when this request now owns the key"""
        try:
            self.supabase.table("idempotency_keys").insert({
                "key": key,
                "staff_id": staff_id,
                "endpoint": endpoint,
                "status": PENDING,
                "response": None,
                "created_at": datetime.utcnow().isoformat()
            }).execute()
            return True
        except Exception as e:
            if await self.lookup(key, staff_id, endpoint) is None:
                logger.error(f"Failed to claim idempotency key {key}: {e}")
                raise e
            return False

    async def complete(self, key: str, staff_id: str, endpoint: str, response: Dict[str, Any]) -> None:
        try:
            self.supabase.table("idempotency_keys") \
                .update({"status": DONE, "response": response}) \
                .eq("key", key) \
                .eq("staff_id", staff_id) \
                .eq("endpoint", endpoint) \
                .execute()
        except Exception as e:
            # the create has happened; only the replay copy is lost
            logger.error(f"Failed to store response for idempotency key {key}: {e}")

    async def release(self, key: str, staff_id: str, endpoint: str) -> None:
        """Drop a claim whose create failed so the client can retry"""
        try:
            self.supabase.table("idempotency_keys") \
                .delete() \
                .eq("key", key) \
                .eq("staff_id", staff_id) \
                .eq("endpoint", endpoint) \
                .eq("status", PENDING) \
                .execute()
        except Exception as e:
            logger.error(f"Failed to release idempotency key {key}: {e}")


async def idempotent(
    key: Optional[str],
    staff_id: str,
    endpoint: str,
    create: Callable[[], Awaitable[Dict[str, Any]]]
) -> Dict[str, Any]:
    """Run `create` once per (key, staff, endpoint); later calls get the stored response"""
    if not key:
        return jsonable_encoder(await create())

    service = IdempotencyService()
    if not await service.claim(key, staff_id, endpoint):
        stored = await service.lookup(key, staff_id, endpoint)
        if stored and stored.get("status") == DONE:
            logger.info(f"Replaying {endpoint} for idempotency key {key}")
            return stored["response"]
        raise ConflictError("A request with this Idempotency-Key is still being processed")

    try:
        response = jsonable_encoder(await create())
    except Exception:
        await service.release(key, staff_id, endpoint)
        raise

    await service.complete(key, staff_id, endpoint, response)
    return response
