"""Manual payout reconciliation.

When a vendor is paid outside the payout pipeline (bank transfer by an
admin), the ledger has to be brought back in line:

1. a `debit_payout` entry records the money that left,
2. unsettled `credit_eligible` entries are closed oldest-first (FIFO) with
   the manual batch id,
3. the credit that straddles the paid amount is closed and its unpaid
   remainder is carried forward as a new credit.

If the credits do not cover the amount the ledger ends up overdrawn; this
is reported, not prevented, because the money has already moved.
"""

from datetime import datetime, timezone
from typing import Optional

import structlog

from libs.py_common.config import settings

from .errors import InvalidAmount, UnknownVendor
from .metrics import APP_ERRORS_TOTAL, MANUAL_RECONCILIATIONS_TOTAL, PAYOUT_BATCH_BACKFILLS_TOTAL
from .models import (
    LedgerSource,
    LedgerType,
    PayoutBatch,
    PayoutBatchResult,
    PayoutStatus,
    ReconciliationResult,
    WalletLedgerEntryCreate,
)
from .payouts import now_millis
from .repository import LedgerRepository

logger = structlog.get_logger(__name__)

MANUAL_TARGET_KEY = "MANUAL"
MANUAL_ORDER_ID = "manual_adjustment"
MANUAL_CREATED_BY = "admin_manual_script"
MANUAL_TRANSFER_CODE = "MANUAL_PAYOUT"


def manual_batch_id(now_ms: int) -> str:
    day = datetime.fromtimestamp(now_ms / 1000, tz=timezone.utc).date().isoformat()
    return f"manual_payout_{day}_fixed_{now_ms}"


def reconcile_manual_payout(
    repository: LedgerRepository,
    vendor_id: str,
    amount_minor: int,
    now_ms: Optional[int] = None,
    source: LedgerSource = LedgerSource.EVENT,
    currency: Optional[str] = None,
) -> ReconciliationResult:
    if isinstance(amount_minor, bool) or not isinstance(amount_minor, int) or amount_minor <= 0:
        raise InvalidAmount(amount_minor)
    if now_ms is None:
        now_ms = now_millis()
    currency = (currency or settings.default_currency).upper()

    batch_id = manual_batch_id(now_ms)
    log = logger.bind(vendor_id=vendor_id, batch_id=batch_id)
    logs = []

    def record(message: str, **kw) -> None:
        logs.append(message)
        log.info(message, **kw)

    record(f"Starting reconciliation for vendor {vendor_id}, amount {amount_minor}")
    try:
        debit = WalletLedgerEntryCreate(
            vendor_id=vendor_id,
            source=source,
            order_id=MANUAL_ORDER_ID,
            amount_minor=amount_minor,
            type=LedgerType.DEBIT_PAYOUT,
            note="Manual payout processed externally (Balance adjusted manually)",
            target_payout_at=now_ms,
            target_payout_key=MANUAL_TARGET_KEY,
            payout_batch_id=batch_id,
            created_at=now_ms,
            created_by=MANUAL_CREATED_BY,
            currency=currency,
        )
        repository.append(debit, commit=False)
        record("Prepared debit record")

        remaining = amount_minor
        for credit in repository.unsettled_credits(vendor_id, currency=currency):
            if remaining <= 0:
                break
            if credit.amount_minor <= remaining:
                repository.settle(credit, batch_id, note=(credit.note or "") + " [Manually Paid]")
                remaining -= credit.amount_minor
                record(f"Closing full credit: {credit.amount_minor}", entry_id=credit.id)
                continue

            consumed = remaining
            remainder = credit.amount_minor - consumed
            repository.settle(
                credit,
                batch_id,
                note=(credit.note or "") + f" [Split: {consumed} paid, {remainder} carried forward]",
            )
            carried = WalletLedgerEntryCreate.model_validate(
                credit.model_dump(exclude={"id"})
                | {
                    "amount_minor": remainder,
                    "note": f"Remainder from split of {credit.id}",
                    "payout_batch_id": None,
                    "created_at": now_ms,
                }
            )
            repository.append(carried, commit=False)
            remaining = 0
            record(f"Split credit: paid {consumed}, carried forward {remainder}", entry_id=credit.id)

        if remaining > 0:
            covered = amount_minor - remaining
            message = (
                f"Vendor was paid {amount_minor} but only had eligible credits for {covered}; "
                f"ledger is overdrawn by {remaining}"
            )
            logs.append(message)
            log.warning("manual_payout_overdrawn", paid=amount_minor, covered=covered, overdrawn=remaining)

        repository.commit()
    except Exception as e:
        repository.rollback()
        APP_ERRORS_TOTAL.labels(component="reconciliation", error_type=type(e).__name__).inc()
        MANUAL_RECONCILIATIONS_TOTAL.labels(outcome="failure").inc()
        log.error("manual_payout_reconciliation_failed", error=str(e), exc_info=True)
        logs.append(f"ERROR: {e}")
        return ReconciliationResult(success=False, message=str(e) or "Unknown error occurred", logs=logs)

    MANUAL_RECONCILIATIONS_TOTAL.labels(outcome="overdrawn" if remaining > 0 else "success").inc()
    record("Ledger reconciled")
    return ReconciliationResult(
        success=True,
        message="Ledger reconciled successfully.",
        logs=logs,
        batch_id=batch_id,
        uncovered_minor=remaining,
    )


def backfill_payout_batch(
    repository: LedgerRepository,
    vendor_id: str,
    amount_minor: int,
    batch_id: str,
    vendor_name: Optional[str] = None,
    now_ms: Optional[int] = None,
) -> ReconciliationResult:
    """Writes the payout batch record for a payout reconciled by hand.

    Manual payouts leave ledger entries but no batch record; this creates
    a completed single-vendor batch under the given id, replacing any
    existing record with that id.
    """
    if isinstance(amount_minor, bool) or not isinstance(amount_minor, int) or amount_minor <= 0:
        raise InvalidAmount(amount_minor)
    if not repository.list_entries(vendor_id, limit=1):
        raise UnknownVendor(vendor_id)
    if now_ms is None:
        now_ms = now_millis()

    log = logger.bind(vendor_id=vendor_id, batch_id=batch_id)
    logs = []

    def record(message: str, **kw) -> None:
        logs.append(message)
        log.info(message, **kw)

    record(f"Starting batch backfill for: {batch_id}")
    try:
        if repository.get_payout_batch(batch_id) is not None:
            record(f"Batch {batch_id} already exists; overwriting")
        result = PayoutBatchResult(
            vendor_id=vendor_id,
            vendor_name=vendor_name or vendor_id,
            amount_minor=amount_minor,
            transfer_code=MANUAL_TRANSFER_CODE,
        )
        batch = PayoutBatch.model_validate({
            "batch_id": batch_id,
            "created_at": now_ms,
            "total_vendors": 1,
            "total_amount_minor": amount_minor,
            "status": PayoutStatus.COMPLETED,
            "results": [result.model_dump()],
        })
        repository.save_payout_batch(batch)
    except Exception as e:
        repository.rollback()
        APP_ERRORS_TOTAL.labels(component="reconciliation", error_type=type(e).__name__).inc()
        PAYOUT_BATCH_BACKFILLS_TOTAL.labels(outcome="failure").inc()
        log.error("payout_batch_backfill_failed", error=str(e), exc_info=True)
        logs.append(f"ERROR: {e}")
        return ReconciliationResult(success=False, message=str(e) or "Unknown error occurred", logs=logs, batch_id=batch_id)

    PAYOUT_BATCH_BACKFILLS_TOTAL.labels(outcome="success").inc()
    record("Payout batch record created")
    return ReconciliationResult(
        success=True,
        message="Payout batch backfilled successfully.",
        logs=logs,
        batch_id=batch_id,
    )
