import re

PHONE_REGEX = re.compile(r"^01[3-9]\d{8}$")

def normalize_phone(phone: str) -> str:
    """
    Bangladesh mobile numbers: 01XXXXXXXXX, optionally written with +88 / spaces / dashes.
    """
    phone = re.sub(r"[\s-]", "", phone or "")

    if phone.startswith("+88"):
        phone = phone[3:]
    elif phone.startswith("88") and len(phone) == 13:
        phone = phone[2:]

    if not PHONE_REGEX.match(phone):
        raise ValueError("Invalid phone number format")

    return phone


def normalize_email(email: str | None) -> str | None:
    if not email:
        return None
    return email.strip().lower()
