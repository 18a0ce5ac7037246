from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlmodel import Session
import structlog

from .db import get_session
from .errors import InvalidAmount, UnknownScheduleType, UnknownVendor, MixedCurrencyLedger
from .ledger import compute_earnings_by_source, summarize_wallet
from .metrics import APP_ERRORS_TOTAL, FEE_QUOTES_TOTAL, PAYOUT_DERIVATIONS_TOTAL
from .models import (
    PayoutFeeCalculation,
    PayoutBatchRead,
    PayoutFeeRequest,
    PayoutScheduleOption,
    PayoutsSummary,
    ReconciliationResult,
    UpcomingPayout,
    WalletSummaryResponse,
)
from .payouts import derive_payouts
from .reconciliation import backfill_payout_batch, reconcile_manual_payout
from .repository import LedgerRepository
from .schedule import calculate_payout_fee, get_payout_schedule_options
from .upcoming import get_upcoming_payout

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/wallet",
    tags=["wallet"],
)

internal_router = APIRouter(
    prefix="/internal/wallet",
    tags=["wallet-internal"],
    # dependencies=[Depends(get_internal_user)], # admin auth lives in the gateway
)


def get_repository(session: Session = Depends(get_session)) -> LedgerRepository:
    return LedgerRepository(session)


@router.get("/payout-schedules", response_model=List[PayoutScheduleOption])
async def list_payout_schedules():
    return get_payout_schedule_options()


@router.post("/payout-fee", response_model=PayoutFeeCalculation)
async def quote_payout_fee(request: PayoutFeeRequest):
    """Projects fee and net payout for an earnings estimate on a schedule."""
    try:
        calculation = calculate_payout_fee(request.estimated_earnings_minor, request.schedule_type)
    except (InvalidAmount, UnknownScheduleType) as e:
        APP_ERRORS_TOTAL.labels(component="api", error_type=type(e).__name__).inc()
        logger.info("payout_fee_rejected", error=str(e), schedule_type=request.schedule_type)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    FEE_QUOTES_TOTAL.labels(schedule_type=request.schedule_type).inc()
    return calculation


@router.get("/{vendor_id}/payouts", response_model=PayoutsSummary)
def read_vendor_payouts(vendor_id: str, repository: LedgerRepository = Depends(get_repository)):
    entries = repository.list_entries(vendor_id)
    PAYOUT_DERIVATIONS_TOTAL.inc()
    return derive_payouts(entries)


@router.get("/{vendor_id}/summary", response_model=WalletSummaryResponse)
def read_wallet_summary(vendor_id: str, repository: LedgerRepository = Depends(get_repository)):
    try:
        balance = summarize_wallet(repository.all_entries(vendor_id))
    except MixedCurrencyLedger as e:
        APP_ERRORS_TOTAL.labels(component="api", error_type="mixed_currency").inc()
        logger.error("wallet_summary_mixed_currency", vendor_id=vendor_id, currencies=e.currencies)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return WalletSummaryResponse(
        vendor_id=vendor_id,
        balance=balance,
        # Earnings cards show the recent page only; the balance covers the full ledger.
        earnings_by_source=compute_earnings_by_source(repository.list_entries(vendor_id)),
    )


class ManualPayoutRequest(BaseModel):
    amount_minor: int


@internal_router.post("/{vendor_id}/manual-payout", response_model=ReconciliationResult)
def reconcile_vendor_manual_payout(
    vendor_id: str,
    request: ManualPayoutRequest,
    repository: LedgerRepository = Depends(get_repository),
):
    """Records a payout made outside the pipeline and closes the credits it covered."""
    logger.info("Received manual payout reconciliation request", vendor_id=vendor_id, amount_minor=request.amount_minor)
    try:
        result = reconcile_manual_payout(repository, vendor_id, request.amount_minor)
    except InvalidAmount as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not result.success:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.message)
    return result


@internal_router.get("/{vendor_id}/upcoming-payout", response_model=UpcomingPayout)
def read_upcoming_payout(vendor_id: str, repository: LedgerRepository = Depends(get_repository)):
    """Event credits due in the next weekly run, and those scheduled after it."""
    return get_upcoming_payout(repository, vendor_id)


class BackfillBatchRequest(BaseModel):
    amount_minor: int
    batch_id: str = Field(min_length=1)
    vendor_name: Optional[str] = None


@internal_router.post("/{vendor_id}/payout-batches", response_model=ReconciliationResult)
def backfill_vendor_payout_batch(
    vendor_id: str,
    request: BackfillBatchRequest,
    repository: LedgerRepository = Depends(get_repository),
):
    logger.info("Received payout batch backfill request", vendor_id=vendor_id, batch_id=request.batch_id)
    try:
        result = backfill_payout_batch(
            repository, vendor_id, request.amount_minor, request.batch_id, vendor_name=request.vendor_name,
        )
    except InvalidAmount as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except UnknownVendor as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if not result.success:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.message)
    return result


@internal_router.get("/payout-batches/{batch_id}", response_model=PayoutBatchRead)
def read_payout_batch(batch_id: str, repository: LedgerRepository = Depends(get_repository)):
    batch = repository.get_payout_batch(batch_id)
    if batch is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payout batch not found")
    return batch
