"""Profile PIN encoding

PINs are stored as base64 of the raw PIN. This is a reversible encoding,
not a hash: existing clients and stored data depend on it. Swapping in a
salted hash means changing ``encode_pin``/``verify_pin`` together and
migrating stored values.
"""
import base64
import hmac
from typing import Optional

from app.core.errors import ValidationError

PIN_MIN_LENGTH = 4
PIN_MAX_LENGTH = 6


def is_valid_pin(pin: Optional[str]) -> bool:
    return isinstance(pin, str) and PIN_MIN_LENGTH <= len(pin) <= PIN_MAX_LENGTH


def encode_pin(pin: str) -> str:
    """Encode a PIN for storage

    Raises:
        ValidationError: If the PIN is not 4-6 characters
    """
    if not is_valid_pin(pin):
        raise ValidationError(f"PIN must be {PIN_MIN_LENGTH}-{PIN_MAX_LENGTH} digits")
    return base64.b64encode(pin.encode("utf-8")).decode("ascii")


def verify_pin(supplied: Optional[str], stored: Optional[str]) -> bool:
    """Check a supplied PIN against the stored encoding (no stored PIN always passes)"""
    if not stored:
        return True
    if not isinstance(supplied, str) or not supplied:
        return False
    candidate = base64.b64encode(supplied.encode("utf-8")).decode("ascii")
    return hmac.compare_digest(candidate, stored)
