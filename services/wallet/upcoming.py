"""What the next weekly payout run will pay a vendor.

Admins use this to check a vendor before the run: unsettled event credits
already due by the next run, and those scheduled for later runs. Store
credits are paid on their own schedule and are not part of the weekly run.
"""

from datetime import datetime, timezone
from typing import Dict, Optional

import structlog

from libs.py_common.config import settings

from .ledger import compute_balance
from .models import (
    EventPayoutBreakdown,
    LedgerSource,
    UpcomingPayout,
    UpcomingPayoutTransaction,
)
from .payouts import now_millis
from .repository import LedgerRepository
from .targeting import next_payout_at

logger = structlog.get_logger(__name__)

UNKNOWN = "unknown"


def _transaction(entry) -> UpcomingPayoutTransaction:
    return UpcomingPayoutTransaction(
        id=entry.id,
        created_at=entry.created_at,
        target_payout_at=entry.target_payout_at,
        amount_minor=entry.amount_minor,
        event_id=entry.event_id or UNKNOWN,
        order_id=entry.order_id or UNKNOWN,
    )


def _iso_utc(timestamp_ms: int) -> str:
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def get_upcoming_payout(
    repository: LedgerRepository,
    vendor_id: str,
    now_ms: Optional[int] = None,
    currency: Optional[str] = None,
    tz: Optional[str] = None,
) -> UpcomingPayout:
    if now_ms is None:
        now_ms = now_millis()
    code = (currency or settings.default_currency).upper()
    cutoff = next_payout_at(now_ms, tz=tz).target_payout_at

    due, future = [], []
    breakdown: Dict[str, int] = {}
    for credit in repository.unsettled_credits(vendor_id, currency=code, source=LedgerSource.EVENT):
        # Credits without a target have never been scheduled.
        if credit.target_payout_at is None:
            continue
        if credit.target_payout_at <= cutoff:
            due.append(credit)
            event_id = credit.event_id or UNKNOWN
            breakdown[event_id] = breakdown.get(event_id, 0) + credit.amount_minor
        else:
            future.append(credit)

    transactions = sorted((_transaction(c) for c in due), key=lambda t: t.created_at, reverse=True)
    future_transactions = sorted((_transaction(c) for c in future), key=lambda t: t.target_payout_at)

    upcoming = UpcomingPayout(
        vendor_id=vendor_id,
        currency=code,
        next_payout_date=_iso_utc(cutoff),
        next_payout_timestamp=cutoff,
        total_amount_minor=sum(t.amount_minor for t in transactions),
        future_amount_minor=sum(t.amount_minor for t in future_transactions),
        wallet_balance_minor=compute_balance(repository.all_entries(vendor_id, currency=code)),
        eligible_count=len(transactions),
        future_count=len(future_transactions),
        breakdown=[EventPayoutBreakdown(event_id=k, amount_minor=v) for k, v in breakdown.items()],
        transactions=transactions,
        future_transactions=future_transactions,
    )
    logger.info(
        "upcoming_payout_checked",
        vendor_id=vendor_id,
        count=upcoming.eligible_count,
        total=upcoming.total_amount_minor,
        future_count=upcoming.future_count,
        next_payout=upcoming.next_payout_date,
    )
    return upcoming
