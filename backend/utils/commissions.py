from fastapi import HTTPException

from config.constants import DEFAULT_COMMISSION_PERCENT


async def get_category_rate(db, category_id: str | None) -> float:
    """
    Current commission percentage for a category, 5% when no rate row exists.
    """
    if category_id:
        row = await db.commissions.find_one({"category_id": category_id})
        if row and row.get("percentage") is not None:
            return float(row["percentage"])
    return DEFAULT_COMMISSION_PERCENT


async def get_rate_map(db) -> dict[str, float]:
    rates = {}
    async for row in db.commissions.find({}):
        rates[row["category_id"]] = float(row["percentage"])
    return rates


async def list_commissions(db) -> list[dict]:
    names = {}
    async for c in db.categories.find({}, {"name": 1}):
        names[c["_id"]] = c["name"]

    rows = []
    async for row in db.commissions.find({}):
        if row["category_id"] not in names:
            continue
        rows.append({
            "category_id": row["category_id"],
            "category_name": names[row["category_id"]],
            "percentage": float(row["percentage"]),
        })

    rows.sort(key=lambda r: r["category_name"].lower())
    return rows


async def replace_commissions(db, entries: list[dict]) -> int:
    """
    Replace the whole commission table.
    Every category id is checked before anything is written.
    """
    seen = {}
    for entry in entries:
        seen[entry["category_id"]] = float(entry["percentage"])

    for category_id in seen:
        if not await db.categories.find_one({"_id": category_id}, {"_id": 1}):
            raise HTTPException(400, f"Unknown category: {category_id}")

    await db.commissions.delete_many({})
    if seen:
        await db.commissions.insert_many([
            {"category_id": category_id, "percentage": percentage}
            for category_id, percentage in seen.items()
        ])
    return len(seen)
