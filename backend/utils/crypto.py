import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken
from fastapi import HTTPException

from config.env import BANK_DATA_ENCRYPTION_KEY, JWT_SECRET


def _fernet() -> Fernet:
    # any configured secret works; Fernet needs 32 urlsafe-base64 bytes
    seed = (BANK_DATA_ENCRYPTION_KEY or JWT_SECRET or "").strip()
    if not seed:
        raise HTTPException(status_code=500, detail="Payout data encryption key is not configured")
    return Fernet(base64.urlsafe_b64encode(hashlib.sha256(seed.encode("utf-8")).digest()))


def mask_account_number(value: str) -> str:
    tail = value[-4:] if value else ""
    return "*" * max(len(value) - 4, 0) + tail


def seal_account_number(account_number: str) -> dict:
    """
    Stored form of a payout account number: ciphertext plus a masked copy
    that can be shown without decrypting.
    """
    if not account_number:
        raise HTTPException(status_code=400, detail="Account number missing")
    return {
        "account_number_encrypted": _fernet().encrypt(account_number.encode("utf-8")).decode("utf-8"),
        "account_number_masked": mask_account_number(account_number),
    }


def open_account_number(details: dict, reveal: bool = False) -> str | None:
    if not reveal:
        return details.get("account_number_masked")

    token = details.get("account_number_encrypted")
    if not token:
        return details.get("account_number_masked")
    try:
        return _fernet().decrypt(token.encode("utf-8")).decode("utf-8")
    except InvalidToken:
        raise HTTPException(status_code=500, detail="Stored account number cannot be decrypted")
