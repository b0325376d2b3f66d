from fastapi import HTTPException


# -------------------------------
# Lookup Guards
# -------------------------------

async def get_or_404(collection, doc_id: str, name: str) -> dict:
    doc = await collection.find_one({"_id": doc_id})
    if not doc:
        raise HTTPException(status_code=404, detail=f"{name} not found")
    return doc


def assert_owner_or_admin(user: dict, owner_id: str, name: str = "resource"):
    if user.get("is_admin") or user["_id"] == owner_id:
        return
    raise HTTPException(
        status_code=403,
        detail=f"Not allowed to modify this {name}",
    )
