import enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field as PydanticField
from sqlmodel import Field, SQLModel, Column
import sqlalchemy as sa

from libs.py_common.config import settings


class LedgerType(str, enum.Enum):
    CREDIT_ELIGIBLE = "credit_eligible"
    DEBIT_PAYOUT = "debit_payout"
    DEBIT_REFUND = "debit_refund"
    CREDIT_RELEASE = "credit_release"
    DEBIT_HOLD = "debit_hold"


# Entry types that increase the vendor's balance; every other type decreases it.
CREDIT_TYPES = frozenset({LedgerType.CREDIT_ELIGIBLE, LedgerType.CREDIT_RELEASE})


class LedgerSource(str, enum.Enum):
    EVENT = "event"
    STORE = "store"


class PayoutScheduleType(str, enum.Enum):
    WEEKLY = "weekly"
    FIVE_DAYS = "5days"
    THREE_DAYS = "3days"
    TWO_DAYS = "2days"
    ONE_DAY = "1day"


class PayoutStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"


# --- Ledger (persisted) ---

class WalletLedgerEntryBase(SQLModel):
    vendor_id: str = Field(index=True, nullable=False)
    currency: str = Field(default_factory=lambda: settings.default_currency, min_length=3, max_length=3)
    source: LedgerSource = Field(nullable=False)
    order_collection: str = Field(default="orders", nullable=False)
    order_id: str = Field(nullable=False)
    event_id: Optional[str] = Field(default=None)
    amount_minor: int = Field(sa_column=Column(sa.BigInteger, nullable=False), ge=0)
    type: LedgerType = Field(index=True, nullable=False)
    note: Optional[str] = Field(default=None)
    target_payout_at: Optional[int] = Field(default=None, sa_column=Column(sa.BigInteger, nullable=True)) # epoch ms
    target_payout_key: str = Field(default="", nullable=False) # local date, e.g. "2025-09-12"
    payout_batch_id: Optional[str] = Field(default=None, index=True) # set once disbursed
    created_at: int = Field(sa_column=Column(sa.BigInteger, nullable=False, index=True)) # epoch ms
    created_by: str = Field(default="system", nullable=False)


class WalletLedgerEntry(WalletLedgerEntryBase, table=True):
    __tablename__ = "wallet_ledger"

    id: Optional[int] = Field(default=None, primary_key=True)


class WalletLedgerEntryCreate(WalletLedgerEntryBase):
    pass


class WalletLedgerEntryRead(WalletLedgerEntryBase):
    id: int


# --- Payout projections (derived, never stored) ---

class PayoutEntry(BaseModel):
    id: str
    created_at: int
    amount_minor: int
    status: PayoutStatus
    payout_batch_id: Optional[str] = None
    target_payout_at: Optional[int] = None
    target_payout_key: Optional[str] = None
    reference: Optional[str] = None


class PayoutsSummary(BaseModel):
    payouts: List[PayoutEntry] = []
    total_payouts: int = 0
    pending_payouts: int = 0
    completed_payouts: int = 0


# --- Schedule & fees ---

class PayoutScheduleConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: PayoutScheduleType
    fee_percent: float
    fee_cap_minor: int # 0 means uncapped
    timeline_days: int
    label: str


class PayoutScheduleOption(BaseModel):
    type: PayoutScheduleType
    label: str
    timeline: str
    fee_percent: float
    fee_cap_minor: int
    fee_cap_display: str
    description: str
    recommended: bool = False


class PayoutFeeCalculation(BaseModel):
    estimated_earnings: int
    fee_amount: int
    net_amount: int
    fee_percent: float
    fee_cap_minor: int


class PayoutFeeRequest(BaseModel):
    estimated_earnings_minor: int
    schedule_type: str


# --- Wallet aggregates ---

class SourceEarnings(BaseModel):
    eligible_minor: int = 0
    on_hold_minor: int = 0


class EarningsBySource(BaseModel):
    event: SourceEarnings = PydanticField(default_factory=SourceEarnings)
    store: SourceEarnings = PydanticField(default_factory=SourceEarnings)


class WalletBalance(BaseModel):
    currency: Optional[str] = None
    balance_minor: int = 0
    on_hold_minor: int = 0
    unsettled_credits_minor: int = 0
    total_paid_out_minor: int = 0
    totals_by_type: Dict[LedgerType, int] = {}


class WalletSummaryResponse(BaseModel):
    vendor_id: str
    balance: WalletBalance
    earnings_by_source: EarningsBySource


class PayoutTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    target_payout_at: int # epoch ms, UTC
    target_payout_key: str # local calendar date of the payout day


class ReconciliationResult(BaseModel):
    success: bool
    message: str
    logs: List[str] = []
    batch_id: Optional[str] = None
    uncovered_minor: int = 0


# --- Upcoming payout (admin view) ---

class UpcomingPayoutTransaction(BaseModel):
    id: int
    created_at: int
    target_payout_at: Optional[int] = None
    amount_minor: int
    event_id: str
    order_id: str


class EventPayoutBreakdown(BaseModel):
    event_id: str
    amount_minor: int


class UpcomingPayout(BaseModel):
    vendor_id: str
    currency: str
    next_payout_date: str # ISO-8601, UTC
    next_payout_timestamp: int # epoch ms
    total_amount_minor: int = 0
    future_amount_minor: int = 0
    wallet_balance_minor: int = 0
    eligible_count: int = 0
    future_count: int = 0
    breakdown: List[EventPayoutBreakdown] = []
    transactions: List[UpcomingPayoutTransaction] = []
    future_transactions: List[UpcomingPayoutTransaction] = []


# --- Payout batches (persisted) ---

class PayoutBatchResult(BaseModel):
    vendor_id: str
    vendor_name: str
    success: bool = True
    amount_minor: int
    transfer_code: str


class PayoutBatchBase(SQLModel):
    created_at: int = Field(sa_column=Column(sa.BigInteger, nullable=False)) # epoch ms
    total_vendors: int = Field(default=1, nullable=False)
    total_amount_minor: int = Field(sa_column=Column(sa.BigInteger, nullable=False), ge=0)
    status: PayoutStatus = Field(default=PayoutStatus.COMPLETED, nullable=False)
    results: List[Dict] = Field(default_factory=list, sa_column=Column(sa.JSON, nullable=False))


class PayoutBatch(PayoutBatchBase, table=True):
    __tablename__ = "payout_batches"

    batch_id: str = Field(primary_key=True)


class PayoutBatchRead(PayoutBatchBase):
    batch_id: str
