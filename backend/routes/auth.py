from fastapi import APIRouter, Depends, HTTPException
from datetime import datetime

from config.constants import (
    LOGIN_MAX_ATTEMPTS,
    LOGIN_WINDOW_SECONDS,
    REGISTER_MAX_ATTEMPTS,
    REGISTER_WINDOW_SECONDS,
)
from config.env import ADMIN_PHONE
from database import get_db
from models.user import UserLogin, UserRegister
from utils.hash import hash_password, verify_password
from utils.ids import ensure_unique_id, generate_user_id
from utils.jwt import create_access_token
from utils.rate_limit import rate_limit
from utils.security import get_current_user
from utils.serializers import serialize_user
from utils.validators import normalize_email, normalize_phone

router = APIRouter(prefix="/auth", tags=["Auth"])


def _token_response(user: dict) -> dict:
    return {
        "access_token": create_access_token(user["_id"], user.get("is_admin", False)),
        "token_type": "bearer",
        "user": serialize_user(user),
    }


# ======================
# Register
# ======================

@router.post("/register")
async def register(data: UserRegister, db=Depends(get_db)):
    await rate_limit(
        db=db,
        key=f"register:{data.phone_number}",
        max_requests=REGISTER_MAX_ATTEMPTS,
        window_seconds=REGISTER_WINDOW_SECONDS,
    )

    email = normalize_email(data.email)
    clauses = [{"phone_number": data.phone_number}]
    if email:
        clauses.append({"email": email})

    if await db.users.find_one({"$or": clauses}, {"_id": 1}):
        raise HTTPException(409, "User already exists with this email or phone number")

    try:
        password_hash = hash_password(data.password)
    except ValueError as e:
        raise HTTPException(400, str(e))

    user_id = await ensure_unique_id(db.users, generate_user_id(data.name), separator="")
    now = datetime.utcnow()

    user = {
        "_id": user_id,
        "name": data.name.strip(),
        "email": email,
        "phone_number": data.phone_number,
        "password_hash": password_hash,
        "is_admin": bool(ADMIN_PHONE) and data.phone_number == ADMIN_PHONE,
        "addresses": [],
        "withdrawal_methods": [],
        "created_at": now,
        "last_active_at": now,
    }
    await db.users.insert_one(user)

    return _token_response(user)


# ======================
# Login
# ======================

@router.post("/login")
async def login(data: UserLogin, db=Depends(get_db)):
    identifier = data.identifier.strip()

    await rate_limit(
        db=db,
        key=f"login:{identifier.lower()}",
        max_requests=LOGIN_MAX_ATTEMPTS,
        window_seconds=LOGIN_WINDOW_SECONDS,
    )

    if "@" in identifier:
        query = {"email": normalize_email(identifier)}
    else:
        try:
            query = {"phone_number": normalize_phone(identifier)}
        except ValueError:
            raise HTTPException(401, "Invalid credentials")

    user = await db.users.find_one(query)
    if not user or not verify_password(data.password, user.get("password_hash")):
        raise HTTPException(401, "Invalid credentials")

    await db.users.update_one(
        {"_id": user["_id"]},
        {"$set": {"last_active_at": datetime.utcnow()}}
    )

    return _token_response(user)


# ======================
# Current User
# ======================

@router.get("/me")
async def me(user=Depends(get_current_user)):
    return serialize_user(user)
