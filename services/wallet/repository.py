"""Ledger read layer and ingestion boundary.

Raw ledger documents (as exported from the document store) are validated
here, once, before they reach the pure reductions in ledger.py and
payouts.py. Those modules trust their input shape.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from pydantic import ValidationError
from sqlalchemy import func
from sqlmodel import Session, col, select

from libs.py_common.config import settings

from .errors import InvalidLedgerEntry
from .metrics import APP_ERRORS_TOTAL, LEDGER_ENTRIES_INGESTED_TOTAL
from .models import LedgerSource, LedgerType, PayoutBatch, WalletLedgerEntry, WalletLedgerEntryCreate

logger = structlog.get_logger(__name__)

# Document-store field names -> model field names
_DOCUMENT_KEYS = {
    "vendorId": "vendor_id",
    "eventId": "event_id",
    "amountMinor": "amount_minor",
    "targetPayoutAt": "target_payout_at",
    "targetPayoutKey": "target_payout_key",
    "payoutBatchId": "payout_batch_id",
    "createdAt": "created_at",
    "createdBy": "created_by",
}

_TIMESTAMP_FIELDS = ("created_at", "target_payout_at")


def _to_millis(value: Any) -> Any:
    """Coerces document-store timestamps to epoch ms; leaves anything else for validation."""
    if isinstance(value, datetime):
        return int(value.timestamp() * 1000)
    if isinstance(value, dict) and "seconds" in value:
        nanos = value.get("nanoseconds", value.get("nanos", 0)) or 0
        return int(value["seconds"]) * 1000 + int(nanos) // 1_000_000
    return value


def normalize_document(raw: Dict[str, Any]) -> Dict[str, Any]:
    data = {_DOCUMENT_KEYS.get(k, k): v for k, v in raw.items()}
    order_ref = data.pop("orderRef", None) or data.pop("order_ref", None)
    if isinstance(order_ref, dict):
        data.setdefault("order_collection", order_ref.get("collection", "orders"))
        data.setdefault("order_id", order_ref.get("id"))
    for name in _TIMESTAMP_FIELDS:
        if data.get(name) is not None:
            data[name] = _to_millis(data[name])
    # Empty strings mean "unset" in stored documents.
    if data.get("payout_batch_id") == "":
        data["payout_batch_id"] = None
    return data


class LedgerRepository:
    """Appends and reads wallet ledger entries through a SQLModel session."""

    def __init__(self, session: Session):
        self.session = session
        self._staged: List[WalletLedgerEntry] = []

    def validate(self, raw: Dict[str, Any]) -> WalletLedgerEntryCreate:
        try:
            return WalletLedgerEntryCreate.model_validate(normalize_document(raw))
        except ValidationError as e:
            APP_ERRORS_TOTAL.labels(component="ingest", error_type="validation").inc()
            logger.warning("ledger_entry_rejected", vendor_id=raw.get("vendorId", raw.get("vendor_id")), errors=e.errors())
            raise InvalidLedgerEntry(f"Malformed ledger entry: {e.error_count()} validation error(s)", errors=e.errors()) from e

    def ingest(self, raw: Dict[str, Any]) -> WalletLedgerEntry:
        return self.append(self.validate(raw))

    def append(self, entry: WalletLedgerEntryCreate, commit: bool = True) -> WalletLedgerEntry:
        """Adds an entry. With commit=False it is staged until commit() and dropped by rollback()."""
        db_entry = WalletLedgerEntry.model_validate(entry)
        self.session.add(db_entry)
        self._staged.append(db_entry)
        if commit:
            self.commit()
            self.session.refresh(db_entry)
        return db_entry

    def settle(self, entry: WalletLedgerEntry, batch_id: str, note: Optional[str] = None) -> None:
        """Marks a credit as paid by a batch. Only the batch id and note ever change."""
        entry.payout_batch_id = batch_id
        if note is not None:
            entry.note = note
        self.session.add(entry)

    def _vendor_entries(self, vendor_id: str, currency: Optional[str] = None):
        statement = select(WalletLedgerEntry).where(WalletLedgerEntry.vendor_id == vendor_id)
        if currency:
            statement = statement.where(func.upper(WalletLedgerEntry.currency) == currency.upper())
        return statement

    def list_entries(self, vendor_id: str, limit: Optional[int] = None) -> List[WalletLedgerEntry]:
        """Newest entries first, capped at the configured page size."""
        statement = (
            self._vendor_entries(vendor_id)
            .order_by(col(WalletLedgerEntry.created_at).desc(), col(WalletLedgerEntry.id).desc())
            .limit(limit or settings.ledger_page_limit)
        )
        return list(self.session.exec(statement).all())

    def all_entries(self, vendor_id: str, currency: Optional[str] = None) -> List[WalletLedgerEntry]:
        """The vendor's full ledger, oldest first. Balances are computed over this, never over a page."""
        statement = self._vendor_entries(vendor_id, currency).order_by(
            col(WalletLedgerEntry.created_at).asc(), col(WalletLedgerEntry.id).asc()
        )
        return list(self.session.exec(statement).all())

    def unsettled_credits(
        self,
        vendor_id: str,
        currency: Optional[str] = None,
        source: Optional[LedgerSource] = None,
    ) -> List[WalletLedgerEntry]:
        """Eligible credits not yet in a payout batch, oldest first."""
        statement = (
            self._vendor_entries(vendor_id, currency)
            .where(WalletLedgerEntry.type == LedgerType.CREDIT_ELIGIBLE)
            .where(col(WalletLedgerEntry.payout_batch_id).is_(None))
            .order_by(col(WalletLedgerEntry.created_at).asc(), col(WalletLedgerEntry.id).asc())
        )
        if source is not None:
            statement = statement.where(WalletLedgerEntry.source == source)
        return list(self.session.exec(statement).all())

    def get_payout_batch(self, batch_id: str) -> Optional[PayoutBatch]:
        return self.session.get(PayoutBatch, batch_id)

    def save_payout_batch(self, batch: PayoutBatch) -> PayoutBatch:
        """Inserts the batch record, replacing any record with the same batch id."""
        stored = self.session.merge(batch)
        self.session.commit()
        self.session.refresh(stored)
        return stored

    def commit(self) -> None:
        self.session.commit()
        staged, self._staged = self._staged, []
        for entry in staged:
            LEDGER_ENTRIES_INGESTED_TOTAL.labels(type=entry.type.value, source=entry.source.value).inc()
            logger.info("ledger_entry_appended", vendor_id=entry.vendor_id, type=entry.type.value, amount_minor=entry.amount_minor)

    def rollback(self) -> None:
        self.session.rollback()
        if self._staged:
            logger.info("ledger_entries_discarded", count=len(self._staged))
        self._staged = []
