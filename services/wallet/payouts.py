"""Derives payout records from a vendor's wallet ledger.

Only `debit_payout` entries are payouts; every other type is balance
movement. The result is a read-only projection, recomputed on every call.

A payout whose target time is still in the future is `pending`; anything
else is `completed`, since a debit_payout entry is only written once money
has left escrow. There is no way to derive a `failed` payout from the
ledger alone.
"""

import time
from typing import Iterable, Optional

import structlog

from .models import LedgerType, PayoutEntry, PayoutStatus, PayoutsSummary

logger = structlog.get_logger(__name__)

REFERENCE_PREFIX = "TXN_"
REFERENCE_SUFFIX_LENGTH = 8


def now_millis() -> int:
    return int(time.time() * 1000)


def payout_reference(payout_batch_id: Optional[str]) -> Optional[str]:
    if not payout_batch_id:
        return None
    return f"{REFERENCE_PREFIX}{payout_batch_id[-REFERENCE_SUFFIX_LENGTH:].upper()}"


def payout_status(target_payout_at: Optional[int], now_ms: int) -> PayoutStatus:
    if target_payout_at is not None and target_payout_at > now_ms:
        return PayoutStatus.PENDING
    return PayoutStatus.COMPLETED


def _payout_id(entry) -> str:
    # Synthesized ids are display keys only; they can collide across vendors.
    return entry.payout_batch_id or f"{entry.created_at}-{entry.amount_minor}"


def derive_payouts(entries: Iterable, now_ms: Optional[int] = None) -> PayoutsSummary:
    """Reduces ledger entries (any order) to payouts, newest first.

    Args:
        entries: Ledger entries for one vendor. Shape is trusted; validation
            happens at ingestion (see repository.LedgerRepository.ingest).
        now_ms: Evaluation time in epoch milliseconds. Defaults to the wall clock.
    """
    if now_ms is None:
        now_ms = now_millis()

    payouts = [
        PayoutEntry(
            id=_payout_id(entry),
            created_at=entry.created_at,
            amount_minor=entry.amount_minor,
            status=payout_status(entry.target_payout_at, now_ms),
            payout_batch_id=entry.payout_batch_id or None,
            target_payout_at=entry.target_payout_at,
            target_payout_key=entry.target_payout_key,
            reference=payout_reference(entry.payout_batch_id),
        )
        for entry in entries
        if entry.type == LedgerType.DEBIT_PAYOUT
    ]
    payouts.sort(key=lambda p: p.created_at, reverse=True)

    pending = sum(1 for p in payouts if p.status == PayoutStatus.PENDING)
    summary = PayoutsSummary(
        payouts=payouts,
        total_payouts=sum(p.amount_minor for p in payouts),
        pending_payouts=pending,
        completed_payouts=len(payouts) - pending,
    )
    logger.debug("payouts_derived", count=len(payouts), pending=pending, now_ms=now_ms)
    return summary


# Name kept for callers ported from the dashboard hook.
use_payouts = derive_payouts
