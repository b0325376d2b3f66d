import random
import re
from datetime import datetime


def _clean(text: str) -> str:
    return re.sub(r"[^a-z0-9]", "", (text or "").lower())


def generate_user_id(name: str) -> str:
    base = _clean(name) or "user"
    millis = str(int(datetime.utcnow().timestamp() * 1000))
    return f"{base}{millis[-6:]}"


def generate_category_id(name: str) -> str:
    return _clean(name) or "category"


def generate_product_id(name: str | None = None) -> str:
    millis = str(int(datetime.utcnow().timestamp() * 1000))
    rand = f"{random.randint(0, 999):03d}"
    clean = _clean(name)[:8]
    if clean:
        return f"prod-{clean}-{millis[-8:]}{rand}"
    return f"prod-{millis[-8:]}{rand}"


def generate_order_id() -> str:
    now = datetime.utcnow()
    millis = str(int(now.timestamp() * 1000))
    return f"ORD-{now.strftime('%y%m%d')}-{millis[-6:]}"


def generate_withdrawal_request_id() -> str:
    millis = str(int(datetime.utcnow().timestamp() * 1000))
    return f"WR-{millis[-8:]}-{random.randint(0, 99):02d}"


async def ensure_unique_id(collection, base_id: str, separator: str = "-") -> str:
    """
    Return `base_id`, or `base_id` plus the first free numeric suffix
    (`<base><sep>1`, `<base><sep>2`, ...) when it is already taken.
    """
    candidate = base_id
    counter = 1

    while await collection.find_one({"_id": candidate}, {"_id": 1}):
        candidate = f"{base_id}{separator}{counter}"
        counter += 1

    return candidate
