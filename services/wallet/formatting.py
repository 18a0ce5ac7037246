# services/wallet/formatting.py
# Display helpers for minor-unit amounts and ledger timestamps (en-NG conventions).

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from zoneinfo import ZoneInfo

from libs.py_common.config import settings

CURRENCY_SYMBOLS = {
    "NGN": "₦",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "GHS": "GH₵",
    "KES": "KSh",
    "ZAR": "R",
}

MINOR_UNITS_PER_MAJOR = 100 # all supported currencies use two decimal places

# Digits shown after the decimal point. Naira is displayed in whole units;
# codes not listed here show both minor digits.
DISPLAY_FRACTION_DIGITS = {
    "NGN": 0,
}
DEFAULT_FRACTION_DIGITS = 2

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def format_currency(amount_minor, currency_code: Optional[str] = None) -> str:
    """Formats minor units for display, e.g. 1250000 -> "₦12,500", 123456 USD -> "$1,234.56".

    NGN is shown in whole major units, every other code with two fraction
    digits. Rounding is half away from zero. Unknown currency codes are
    rendered as a prefix: "XOF 1,234.00".
    """
    code = (currency_code or settings.default_currency).upper()
    places = DISPLAY_FRACTION_DIGITS.get(code, DEFAULT_FRACTION_DIGITS)
    major = (Decimal(amount_minor) / MINOR_UNITS_PER_MAJOR).quantize(
        Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP
    )
    sign = "-" if major < 0 else ""
    digits = f"{abs(major):,.{places}f}"
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol is None:
        return f"{sign}{code} {digits}"
    return f"{sign}{symbol}{digits}"


def _local(timestamp_ms: int, tz: Optional[str]) -> datetime:
    zone = ZoneInfo(tz or settings.display_timezone)
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).astimezone(zone)


def format_date(timestamp_ms: int, tz: Optional[str] = None) -> str:
    """e.g. "17 Jan 2025, 14:00" in the display timezone."""
    local = _local(timestamp_ms, tz)
    return f"{local.day} {_MONTHS[local.month - 1]} {local.year}, {local:%H:%M}"


def format_date_short(timestamp_ms: int, tz: Optional[str] = None) -> str:
    local = _local(timestamp_ms, tz)
    return f"{local.day} {_MONTHS[local.month - 1]}"
