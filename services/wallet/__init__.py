"""Wallet ledger, payout derivation and payout fee scheduling."""

from .errors import (
    InvalidAmount,
    InvalidLedgerEntry,
    MixedCurrencyLedger,
    UnknownScheduleType,
    UnknownVendor,
    WalletError,
)
from .formatting import format_currency, format_date, format_date_short
from .ledger import compute_balance, compute_earnings_by_source, summarize_wallet
from .payouts import derive_payouts, use_payouts
from .schedule import (
    PAYOUT_SCHEDULE_CONFIGS,
    calculate_payout_fee,
    get_payout_schedule_config,
    get_payout_schedule_options,
    parse_schedule_type,
)
from .targeting import compute_target_payout, next_payout_at
from .upcoming import get_upcoming_payout

__all__ = [
    "PAYOUT_SCHEDULE_CONFIGS",
    "InvalidAmount",
    "InvalidLedgerEntry",
    "MixedCurrencyLedger",
    "UnknownScheduleType",
    "UnknownVendor",
    "WalletError",
    "calculate_payout_fee",
    "compute_balance",
    "compute_earnings_by_source",
    "compute_target_payout",
    "derive_payouts",
    "format_currency",
    "format_date",
    "format_date_short",
    "get_payout_schedule_config",
    "get_payout_schedule_options",
    "get_upcoming_payout",
    "next_payout_at",
    "parse_schedule_type",
    "summarize_wallet",
    "use_payouts",
]
