from datetime import datetime
from pymongo.errors import DuplicateKeyError

IDEMPOTENCY_TTL_SECONDS = 60 * 60 * 24  # 24 hours
IN_PROGRESS_STALE_SECONDS = 60 * 10     # 10 minutes

IN_PROGRESS_RESPONSE = {
    "message": "Request already in progress",
    "status": "processing",
}


async def reserve_idempotency_key(
    *,
    db,
    key: str,
    scope: str,
    owner_id: str,
):
    """
    Reserve an idempotency key for one principal.
    Returns the stored response when the key already completed, an
    in-progress marker while a fresh reservation is held, or None when the
    caller should go ahead.
    """
    query = {"key": key, "scope": scope, "owner_id": owner_id}
    existing = await db.idempotency_keys.find_one(query)

    if existing:
        if existing.get("status") == "completed":
            return existing.get("response")

        created_at = existing.get("created_at")
        age_seconds = (
            (datetime.utcnow() - created_at).total_seconds()
            if created_at else 0
        )
        if age_seconds <= IN_PROGRESS_STALE_SECONDS and existing.get("status") == "reserved":
            return IN_PROGRESS_RESPONSE

        # stale or failed reservation; let this attempt take over
        await db.idempotency_keys.delete_one({"_id": existing["_id"]})

    try:
        await db.idempotency_keys.insert_one({
            **query,
            "status": "reserved",
            "response": None,
            "created_at": datetime.utcnow(),
        })
    except DuplicateKeyError:
        concurrent = await db.idempotency_keys.find_one(query)
        if concurrent and concurrent.get("status") == "completed":
            return concurrent.get("response")
        return IN_PROGRESS_RESPONSE
    return None


async def complete_idempotency_key(*, db, key: str, scope: str, owner_id: str, response: dict):
    await db.idempotency_keys.update_one(
        {"key": key, "scope": scope, "owner_id": owner_id},
        {
            "$set": {
                "status": "completed",
                "response": response,
                "completed_at": datetime.utcnow(),
            }
        },
    )


async def clear_idempotency_key(*, db, key: str, scope: str, owner_id: str):
    await db.idempotency_keys.delete_one({"key": key, "scope": scope, "owner_id": owner_id})
