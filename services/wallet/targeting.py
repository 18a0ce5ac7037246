"""Weekly payout targeting.

Credits are batched into a weekly payout run (Friday 14:00 local). A credit
joins the run of the current week only if it lands before the cut-off
(Thursday 12:00 local); otherwise it rolls to the following week. The
target is computed once, when the credit is written, and never changes.

Weekdays use Python numbering (Monday=0, Friday=4).
"""

from datetime import datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from libs.py_common.config import settings

from .models import PayoutTarget

PAYOUT_WEEKDAY = 4 # Friday
CUTOFF_WEEKDAY = 3 # Thursday
CUTOFF_HOUR_LOCAL = 12
PAYOUT_HOUR_LOCAL = 14


def compute_target_payout(
    credited_at_ms: int,
    tz: Optional[str] = None,
    payout_weekday: int = PAYOUT_WEEKDAY,
    cutoff_weekday: int = CUTOFF_WEEKDAY,
    cutoff_hour: int = CUTOFF_HOUR_LOCAL,
    payout_hour: int = PAYOUT_HOUR_LOCAL,
) -> PayoutTarget:
    zone = ZoneInfo(tz or settings.display_timezone)
    local = datetime.fromtimestamp(credited_at_ms / 1000, tz=timezone.utc).astimezone(zone)

    payout_day = local.date() + timedelta(days=(payout_weekday - local.weekday()) % 7)
    cutoff_lead = timedelta(days=(payout_weekday - cutoff_weekday) % 7)
    cutoff = datetime.combine(payout_day - cutoff_lead, time(cutoff_hour), tzinfo=zone)
    if local >= cutoff:
        payout_day += timedelta(days=7)

    payout_at = datetime.combine(payout_day, time(payout_hour), tzinfo=zone)
    return PayoutTarget(
        target_payout_at=int(payout_at.timestamp() * 1000),
        target_payout_key=payout_day.isoformat(),
    )


def next_payout_at(now_ms: int, tz: Optional[str] = None) -> PayoutTarget:
    """The first weekly payout run strictly after now_ms."""
    return compute_target_payout(
        now_ms,
        tz=tz,
        cutoff_weekday=PAYOUT_WEEKDAY,
        cutoff_hour=PAYOUT_HOUR_LOCAL,
    )
