import hashlib
from datetime import datetime, timezone


# =========================
# Time helpers
# =========================
def utcnow() -> datetime:
    """Aware UTC now, truncated to whole seconds (the resolution of a JWT NumericDate)."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# =========================
# Privacy helpers
# =========================
def hash_phone_number(phone: str) -> str:
    """Hash phone number for logs (one-way hash)"""
    return hashlib.sha256(phone.encode()).hexdigest()
