from pymongo import ASCENDING, DESCENDING
from pymongo.errors import OperationFailure

from utils.idempotency import IDEMPOTENCY_TTL_SECONDS


def _normalize_key_pairs(keys):
    return [(k, v) for k, v in keys]


async def _create_index_safe(collection, keys, **kwargs):
    """
    Create index safely.
    On IndexOptionsConflict/IndexKeySpecsConflict for the same key pattern,
    drop the conflicting index and recreate it with the desired options.
    """
    desired_key = _normalize_key_pairs(keys)
    desired_name = kwargs.get("name")
    try:
        await collection.create_index(keys, **kwargs)
        return
    except OperationFailure as e:
        if getattr(e, "code", None) not in {85, 86}:
            raise

        conflicting_names = []
        async for idx in collection.list_indexes():
            idx_key = _normalize_key_pairs(list(idx.get("key", {}).items()))
            if idx_key == desired_key:
                idx_name = idx.get("name")
                if idx_name and idx_name != desired_name:
                    conflicting_names.append(idx_name)

        for idx_name in conflicting_names:
            await collection.drop_index(idx_name)

        await collection.create_index(keys, **kwargs)


async def ensure_indexes(db):
    # Users
    await _create_index_safe(
        db.users,
        [("phone_number", ASCENDING)],
        name="users_phone_unique_idx",
        unique=True,
    )
    await _create_index_safe(
        db.users,
        [("email", ASCENDING)],
        name="users_email_unique_idx",
        unique=True,
        partialFilterExpression={"email": {"$type": "string"}},
    )

    # Catalog
    await _create_index_safe(
        db.categories,
        [("parent_id", ASCENDING), ("name", ASCENDING)],
        name="categories_parent_name_idx",
    )
    await _create_index_safe(
        db.commissions,
        [("category_id", ASCENDING)],
        name="commissions_category_unique_idx",
        unique=True,
    )
    await _create_index_safe(
        db.products,
        [("status", ASCENDING), ("stock", ASCENDING), ("created_at", DESCENDING)],
        name="products_listing_idx",
    )
    await _create_index_safe(
        db.products,
        [("seller_id", ASCENDING), ("created_at", DESCENDING)],
        name="products_seller_created_idx",
    )

    # Locations and shipping
    await _create_index_safe(
        db.districts,
        [("division_id", ASCENDING), ("name", ASCENDING)],
        name="districts_division_name_idx",
    )
    await _create_index_safe(
        db.upazillas,
        [("district_id", ASCENDING), ("name", ASCENDING)],
        name="upazillas_district_name_idx",
    )
    await _create_index_safe(
        db.shipping_methods,
        [("name", ASCENDING)],
        name="shipping_methods_name_unique_idx",
        unique=True,
    )

    # Orders
    await _create_index_safe(
        db.orders,
        [("user_id", ASCENDING), ("created_at", DESCENDING)],
        name="orders_user_created_at_idx",
    )
    await _create_index_safe(
        db.orders,
        [("items.seller_id", ASCENDING), ("status", ASCENDING), ("payment_status", ASCENDING)],
        name="orders_seller_settlement_idx",
    )
    await _create_index_safe(
        db.order_timeline,
        [("order_id", ASCENDING), ("created_at", ASCENDING)],
        name="order_timeline_order_idx",
    )

    # Withdrawals
    await _create_index_safe(
        db.withdrawal_requests,
        [("user_id", ASCENDING), ("status", ASCENDING)],
        name="withdrawal_requests_user_status_idx",
    )
    await _create_index_safe(
        db.withdrawal_requests,
        [("status", ASCENDING), ("requested_at", DESCENDING)],
        name="withdrawal_requests_status_requested_at_idx",
    )

    # Idempotency
    await _create_index_safe(
        db.idempotency_keys,
        [("key", ASCENDING), ("scope", ASCENDING), ("owner_id", ASCENDING)],
        name="idempotency_key_scope_owner_unique",
        unique=True,
    )
    await _create_index_safe(
        db.idempotency_keys,
        [("created_at", ASCENDING)],
        name="idempotency_ttl_idx",
        expireAfterSeconds=IDEMPOTENCY_TTL_SECONDS,
    )

    # Rate limits
    await _create_index_safe(
        db.rate_limits,
        [("key", ASCENDING)],
        name="rate_limits_key_unique",
        unique=True,
    )
