import pytest

from conftest import auth, run, seed_product, seed_user
from utils.delivery_charges import (
    get_delivery_settings,
    quote_for_sellers,
    resolve_delivery_charge,
    resolve_delivery_tier,
    save_delivery_settings,
)

SAVAR = {"district": "Dhaka", "upazilla": "Savar"}
DHAMRAI = {"district": "Dhaka", "upazilla": "Dhamrai"}
CHITTAGONG = {"district": "Chittagong", "upazilla": "Hathazari"}


@pytest.mark.parametrize(
    "buyer, seller, tier, amount",
    [
        (SAVAR, SAVAR, "intra_upazilla", 60),
        (SAVAR, DHAMRAI, "intra_district", 110),
        (SAVAR, CHITTAGONG, "inter_district", 130),
        (SAVAR, None, "inter_district", 130),
    ],
)
def test_tier_and_default_amounts(buyer, seller, tier, amount):
    quote = resolve_delivery_charge(buyer, seller)
    assert quote["tier"] == tier
    assert quote["amount"] == amount


def test_matching_ignores_case_and_whitespace():
    buyer = {"district": "  dhaka ", "upazilla": "SAVAR "}
    assert resolve_delivery_tier(buyer, SAVAR) == "intra_upazilla"


def test_empty_upazilla_never_matches_as_same_upazilla():
    buyer = {"district": "Dhaka", "upazilla": ""}
    seller = {"district": "Dhaka", "upazilla": ""}
    assert resolve_delivery_tier(buyer, seller) == "intra_district"


def test_same_upazilla_name_in_other_district_is_inter_district():
    buyer = {"district": "Comilla", "upazilla": "Sadar"}
    seller = {"district": "Noakhali", "upazilla": "Sadar"}
    assert resolve_delivery_tier(buyer, seller) == "inter_district"


def test_custom_settings_are_used():
    settings = {"intra_upazilla_charge": 50, "intra_district_charge": 90, "inter_district_charge": 150}
    assert resolve_delivery_charge(SAVAR, DHAMRAI, settings)["amount"] == 90


def test_weight_surcharge_off_by_default():
    quote = resolve_delivery_charge(SAVAR, CHITTAGONG, weight_kg=3.2)
    assert quote["amount"] == 130
    assert quote["extra_kg_units"] == 0


def test_weight_surcharge_when_enabled():
    # ceil(3.2) - 1 = 3 extra units at the inter-district rate of 40
    quote = resolve_delivery_charge(SAVAR, CHITTAGONG, weight_kg=3.2, apply_weight_surcharge=True)
    assert quote["extra_kg_units"] == 3
    assert quote["amount"] == 130 + 3 * 40


def test_weight_surcharge_not_applied_up_to_one_kg():
    quote = resolve_delivery_charge(SAVAR, SAVAR, weight_kg=1, apply_weight_surcharge=True)
    assert quote["amount"] == 60


async def test_settings_default_then_saved(db):
    settings = await get_delivery_settings(db)
    assert settings["inter_district_charge"] == 130

    saved = await save_delivery_settings(db, {
        "intra_upazilla_charge": 70,
        "intra_district_charge": 100,
        "inter_district_charge": 140,
    })
    # missing extra-kg values fall back to their defaults
    assert saved["inter_district_extra_kg_charge"] == 40

    settings = await get_delivery_settings(db)
    assert settings["intra_upazilla_charge"] == 70
    assert settings["inter_district_charge"] == 140


async def test_quote_for_sellers_charges_each_seller_once(db):
    await seed_user(db, "seller1", addresses=[{"_id": "a1", "is_default": True, **SAVAR}])
    await seed_user(db, "seller2", addresses=[{"_id": "a2", "is_default": True, **CHITTAGONG}])

    total = await quote_for_sellers(db, SAVAR, ["seller1", "seller1", "seller2"])
    assert total == 60 + 130


def test_admin_updates_settings_and_public_reads_them(client, db):
    run(seed_user(db, "admin1", is_admin=True))
    run(seed_user(db, "user1"))

    payload = {"intra_upazilla_charge": 55, "intra_district_charge": 105, "inter_district_charge": 125}

    r = client.put("/api/delivery-charges", json=payload, headers=auth("user1"))
    assert r.status_code == 403

    r = client.put("/api/delivery-charges", json=payload, headers=auth("admin1", True))
    assert r.status_code == 200

    r = client.get("/api/delivery-charges")
    assert r.status_code == 200
    assert r.json()["intra_district_charge"] == 105
    assert r.json()["intra_district_extra_kg_charge"] == 30


def test_negative_charge_rejected(client, db):
    run(seed_user(db, "admin1", is_admin=True))
    r = client.put(
        "/api/delivery-charges",
        json={"intra_upazilla_charge": -1, "intra_district_charge": 100, "inter_district_charge": 130},
        headers=auth("admin1", True),
    )
    assert r.status_code == 400
    assert r.json()["error"] == "Validation failed"


def test_quote_endpoint_uses_default_addresses(client, db):
    run(seed_user(db, "seller1", addresses=[{"_id": "a1", "is_default": True, **DHAMRAI}]))
    run(seed_user(db, "buyer1", addresses=[
        {"_id": "b1", "is_default": False, **CHITTAGONG},
        {"_id": "b2", "is_default": True, **SAVAR},
    ]))
    run(seed_product(db, "prod-fan", seller_id="seller1"))

    r = client.get("/api/delivery-charges/quote", params={"product_id": "prod-fan"}, headers=auth("buyer1"))
    assert r.status_code == 200
    assert r.json()["tier"] == "intra_district"
    assert r.json()["amount"] == 110
