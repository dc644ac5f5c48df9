import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from ledger.errors import ValidationError


CENTS = Decimal("0.01")
# NUMERIC(18, 2) holds at most 16 integer digits.
MAX_AMOUNT = Decimal("1e16")


def utcnow():
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def validate_phone(phone):
    return re.match(r'^\+?\d{9,15}$', phone or "") is not None


def to_amount(value, field="amount", allow_zero=False):
    """Parse a user-supplied monetary value into a positive 2dp Decimal."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid {field} format")

    if not amount.is_finite():
        raise ValidationError(f"Invalid {field} format")
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValidationError(f"{field} must be greater than zero")
    if amount >= MAX_AMOUNT:
        raise ValidationError(f"{field} is too large")
    try:
        return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(f"Invalid {field} format")


def to_text(value, field, strip=True):
    """
    Read a text field from a JSON body. Numbers are taken in their text form
    (receipt ids and phone numbers often arrive unquoted); None gives "".
    """
    if value is None:
        return ""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ValidationError(f"Invalid {field}")
    text = str(value)
    return text.strip() if strip else text


def to_int(value, field):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}")


def money(value):
    """Serialize a Decimal column for JSON responses."""
    return float(value) if value is not None else 0.0


def iso(dt_value):
    return dt_value.isoformat() if dt_value else None
