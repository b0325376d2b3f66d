from datetime import datetime

async def record_order_event(
    db,
    *,
    order_id: str,
    event: str,
    actor_id: str | None = None,
    metadata: dict | None = None,
):
    """
    Append one entry to an order's lifecycle history.
    """

    await db.order_timeline.insert_one({
        "order_id": order_id,
        "event": event,
        "actor_id": actor_id,
        "metadata": metadata or {},
        "created_at": datetime.utcnow(),
    })


async def get_order_timeline(db, order_id: str) -> list[dict]:
    events = []
    async for e in db.order_timeline.find({"order_id": order_id}).sort("created_at", 1):
        events.append({
            "event": e["event"],
            "actor_id": e.get("actor_id"),
            "metadata": e.get("metadata", {}),
            "created_at": e["created_at"],
        })
    return events
