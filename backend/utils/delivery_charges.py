import math

from config.constants import (
    DEFAULT_DELIVERY_CHARGES,
    DELIVERY_TIER_INTRA_UPAZILLA,
    DELIVERY_TIER_INTRA_DISTRICT,
    DELIVERY_TIER_INTER_DISTRICT,
)
from config.env import DELIVERY_APPLY_WEIGHT_SURCHARGE

SETTINGS_ID = "delivery_charges"

_TIER_FIELDS = {
    DELIVERY_TIER_INTRA_UPAZILLA: ("intra_upazilla_charge", "intra_upazilla_extra_kg_charge"),
    DELIVERY_TIER_INTRA_DISTRICT: ("intra_district_charge", "intra_district_extra_kg_charge"),
    DELIVERY_TIER_INTER_DISTRICT: ("inter_district_charge", "inter_district_extra_kg_charge"),
}


def _normalize(value) -> str:
    return str(value or "").strip().lower()


def resolve_delivery_tier(buyer_address: dict | None, seller_address: dict | None) -> str:
    if not seller_address:
        return DELIVERY_TIER_INTER_DISTRICT

    buyer_address = buyer_address or {}
    buyer_upazilla = _normalize(buyer_address.get("upazilla"))
    seller_upazilla = _normalize(seller_address.get("upazilla"))
    buyer_district = _normalize(buyer_address.get("district"))
    seller_district = _normalize(seller_address.get("district"))

    if buyer_upazilla and buyer_upazilla == seller_upazilla and buyer_district == seller_district:
        return DELIVERY_TIER_INTRA_UPAZILLA
    if buyer_district and buyer_district == seller_district:
        return DELIVERY_TIER_INTRA_DISTRICT
    return DELIVERY_TIER_INTER_DISTRICT


def resolve_delivery_charge(
    buyer_address: dict | None,
    seller_address: dict | None,
    settings: dict | None = None,
    weight_kg: float | None = None,
    apply_weight_surcharge: bool | None = None,
) -> dict:
    """
    Flat-rate delivery charge for one buyer/seller address pair.

    Tiers are decided on trimmed, case-insensitive upazilla and district
    equality. The per-kg surcharge (ceil(weight) - 1 extra units) is only
    added when `apply_weight_surcharge` (default: the
    DELIVERY_APPLY_WEIGHT_SURCHARGE setting) is on.
    """
    settings = {**DEFAULT_DELIVERY_CHARGES, **(settings or {})}
    if apply_weight_surcharge is None:
        apply_weight_surcharge = DELIVERY_APPLY_WEIGHT_SURCHARGE

    tier = resolve_delivery_tier(buyer_address, seller_address)
    base_field, extra_field = _TIER_FIELDS[tier]

    amount = float(settings[base_field])
    extra_units = 0
    if apply_weight_surcharge and weight_kg and weight_kg > 1:
        extra_units = math.ceil(weight_kg) - 1
        amount += extra_units * float(settings[extra_field])

    return {
        "tier": tier,
        "amount": round(amount, 2),
        "extra_kg_units": extra_units,
    }


# ==============================
# Settings storage
# ==============================

async def get_delivery_settings(db) -> dict:
    doc = await db.settings.find_one({"_id": SETTINGS_ID})
    settings = dict(DEFAULT_DELIVERY_CHARGES)
    if doc:
        settings.update({k: doc[k] for k in DEFAULT_DELIVERY_CHARGES if doc.get(k) is not None})
    return settings


async def save_delivery_settings(db, values: dict) -> dict:
    settings = {}
    for field, default in DEFAULT_DELIVERY_CHARGES.items():
        value = values.get(field)
        settings[field] = default if value is None else value

    await db.settings.update_one(
        {"_id": SETTINGS_ID},
        {"$set": settings},
        upsert=True,
    )
    return settings


def default_address(user: dict | None) -> dict | None:
    if not user:
        return None
    addresses = user.get("addresses") or []
    address = next((a for a in addresses if a.get("is_default")), None)
    if not address and addresses:
        address = addresses[0]
    return address


async def quote_for_sellers(db, buyer_address: dict, seller_ids, weights: dict | None = None) -> float:
    """
    Sum of one delivery charge per distinct seller in a checkout.
    `weights` maps seller id to the total parcel weight for that seller.
    """
    settings = await get_delivery_settings(db)
    total = 0.0
    for seller_id in dict.fromkeys(seller_ids):
        seller = await db.users.find_one({"_id": seller_id}, {"addresses": 1})
        quote = resolve_delivery_charge(
            buyer_address,
            default_address(seller),
            settings,
            weight_kg=(weights or {}).get(seller_id),
        )
        total += quote["amount"]
    return round(total, 2)
