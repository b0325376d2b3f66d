# backend/config/constants.py

# -----------------------------
# COMMISSION
# -----------------------------

DEFAULT_COMMISSION_PERCENT = 5.0     # used when a category has no rate row

# -----------------------------
# DELIVERY CHARGES (BDT)
# -----------------------------

DEFAULT_DELIVERY_CHARGES = {
    "intra_upazilla_charge": 60,
    "intra_district_charge": 110,
    "inter_district_charge": 130,
    "intra_upazilla_extra_kg_charge": 20,
    "intra_district_extra_kg_charge": 30,
    "inter_district_extra_kg_charge": 40,
}

DELIVERY_TIER_INTRA_UPAZILLA = "intra_upazilla"
DELIVERY_TIER_INTRA_DISTRICT = "intra_district"
DELIVERY_TIER_INTER_DISTRICT = "inter_district"

# -----------------------------
# ORDERS
# -----------------------------

ORDER_STATUS_PENDING = "pending"
ORDER_STATUS_CANCELLED = "cancelled"
ORDER_STATUS_DELIVERED = "delivered"

# rank per status; an order may only move to a higher rank
ORDER_STATUS_RANK = {
    "pending": 0,
    "processing": 1,
    "accepted": 1,
    "handed_over": 2,
    "in_shipping": 3,
    "shipped": 3,
    "delivered": 4,
}
TERMINAL_ORDER_STATUSES = {ORDER_STATUS_DELIVERED, ORDER_STATUS_CANCELLED}

# -----------------------------
# WITHDRAWALS
# -----------------------------

WITHDRAWAL_PENDING = "pending"
WITHDRAWAL_APPROVED = "approved"

# -----------------------------
# RATE LIMITS
# -----------------------------

LOGIN_MAX_ATTEMPTS = 10
LOGIN_WINDOW_SECONDS = 300
REGISTER_MAX_ATTEMPTS = 5
REGISTER_WINDOW_SECONDS = 600
