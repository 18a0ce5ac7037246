"""Wallet ledger reductions.

Ledger entries are append-only and always carry a positive amount; the
entry type decides the direction. Credits (credit_eligible, credit_release)
add to the vendor's balance, every debit type subtracts from it, so the
balance of a vendor+currency is the signed sum of its entries.

    balance = sum(credits) - sum(debits)
    on_hold = max(0, sum(debit_hold) - sum(credit_release))
"""

from collections import defaultdict
from typing import Dict, Iterable, Optional

from .errors import MixedCurrencyLedger
from .models import (
    CREDIT_TYPES,
    EarningsBySource,
    LedgerSource,
    LedgerType,
    WalletBalance,
)


def signed_amount(entry) -> int:
    """Returns the entry amount signed by its effect on the balance."""
    if LedgerType(entry.type) in CREDIT_TYPES:
        return entry.amount_minor
    return -entry.amount_minor


def _single_currency(entries: list, currency: Optional[str]):
    if currency is not None:
        code = currency.upper()
        return [e for e in entries if e.currency.upper() == code], code
    currencies = {e.currency.upper() for e in entries}
    if len(currencies) > 1:
        raise MixedCurrencyLedger(currencies)
    return entries, next(iter(currencies), None)


def totals_by_type(entries: Iterable) -> Dict[LedgerType, int]:
    totals: Dict[LedgerType, int] = defaultdict(int)
    for entry in entries:
        totals[LedgerType(entry.type)] += entry.amount_minor
    return dict(totals)


def compute_balance(entries: Iterable, currency: Optional[str] = None) -> int:
    """Signed sum of the entries.

    Raises MixedCurrencyLedger when entries span several currencies and no
    currency filter is given.
    """
    selected, _ = _single_currency(list(entries), currency)
    return sum(signed_amount(e) for e in selected)


def compute_earnings_by_source(entries: Iterable) -> EarningsBySource:
    result = EarningsBySource()
    for entry in entries:
        bucket = result.event if LedgerSource(entry.source) == LedgerSource.EVENT else result.store
        if entry.type == LedgerType.CREDIT_ELIGIBLE:
            bucket.eligible_minor += entry.amount_minor
        elif entry.type == LedgerType.DEBIT_HOLD:
            bucket.on_hold_minor += entry.amount_minor
    return result


def summarize_wallet(entries: Iterable, currency: Optional[str] = None) -> WalletBalance:
    selected, code = _single_currency(list(entries), currency)
    totals = totals_by_type(selected)
    on_hold = totals.get(LedgerType.DEBIT_HOLD, 0) - totals.get(LedgerType.CREDIT_RELEASE, 0)
    unsettled = sum(
        e.amount_minor for e in selected
        if e.type == LedgerType.CREDIT_ELIGIBLE and not e.payout_batch_id
    )
    return WalletBalance(
        currency=code,
        balance_minor=sum(signed_amount(e) for e in selected),
        on_hold_minor=max(0, on_hold),
        unsettled_credits_minor=unsettled,
        total_paid_out_minor=totals.get(LedgerType.DEBIT_PAYOUT, 0),
        totals_by_type=totals,
    )
