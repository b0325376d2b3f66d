from datetime import datetime, timedelta
from jose import JWTError, jwt
from fastapi import HTTPException, status

from config.env import JWT_SECRET, JWT_ALGORITHM, ACCESS_TOKEN_DAYS


def _require_jwt_secret() -> str:
    secret = (JWT_SECRET or "").strip()
    if not secret:
        raise RuntimeError("JWT_SECRET is not configured")
    return secret


def create_access_token(user_id: str, is_admin: bool = False) -> str:
    now = datetime.utcnow()
    payload = {
        "sub": user_id,
        "adm": bool(is_admin),
        "iat": now,
        "exp": now + timedelta(days=ACCESS_TOKEN_DAYS),
    }
    return jwt.encode(payload, _require_jwt_secret(), algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, _require_jwt_secret(), algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
