"""
Time and money helpers shared by the services
"""
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional

# Matches NUMERIC(10, 2) storage
MONEY_PLACES = Decimal("0.01")
MAX_MONEY = Decimal("99999999.99")


def utcnow() -> datetime:
    """Current time as naive UTC (the storage convention)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalize a datetime to naive UTC; naive input is taken as UTC"""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_money(value) -> Optional[Decimal]:
    """
    Convert a caller-supplied amount to Decimal

    Returns None when the value is not a positive, finite amount that fits
    NUMERIC(10, 2) exactly. Floats are converted through str() so 10.01 stays
    10.01.
    """
    if value is None or isinstance(value, bool):
        return None

    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return None

    if not amount.is_finite() or amount <= 0 or amount > MAX_MONEY:
        return None

    if amount != amount.quantize(MONEY_PLACES):
        return None

    return amount.quantize(MONEY_PLACES)


def format_time_remaining(end_time: datetime, now: Optional[datetime] = None) -> str:
    """Human-readable time left, e.g. '2d 3h 5m', '4h 10m', '7m' or 'Auction ended'"""
    now = now or utcnow()
    remaining = (end_time - now).total_seconds()

    if remaining <= 0:
        return "Auction ended"

    days, rest = divmod(int(remaining), 86400)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60

    if days > 0:
        return f"{days}d {hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"
