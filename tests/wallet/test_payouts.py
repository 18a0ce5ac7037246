import pytest

from services.wallet.models import LedgerSource, LedgerType, PayoutStatus, WalletLedgerEntryCreate
from services.wallet.payouts import derive_payouts, payout_reference, payout_status, use_payouts

NOW = 1_757_678_400_000 # 2025-09-12T12:00:00Z
HOUR = 60 * 60 * 1000
DAY = 24 * HOUR


def _entry(**overrides) -> WalletLedgerEntryCreate:
    data = dict(
        vendor_id="vendor_123",
        currency="NGN",
        source=LedgerSource.EVENT,
        order_id="order_xyz789",
        amount_minor=500000,
        type=LedgerType.DEBIT_PAYOUT,
        target_payout_at=NOW - HOUR,
        target_payout_key="2025-09-12",
        payout_batch_id=None,
        created_at=NOW - DAY,
    )
    data.update(overrides)
    return WalletLedgerEntryCreate(**data)


def test_single_future_payout_is_pending():
    entry = _entry(target_payout_at=NOW + HOUR, payout_batch_id="batch_20250912AB")

    result = derive_payouts([entry], now_ms=NOW)

    assert len(result.payouts) == 1
    payout = result.payouts[0]
    assert payout.amount_minor == 500000
    assert payout.status == PayoutStatus.PENDING
    # Last eight characters of the batch id, upper-cased.
    assert payout.reference == "TXN_250912AB"
    assert payout.id == "batch_20250912AB"
    assert result.pending_payouts == 1
    assert result.completed_payouts == 0
    assert result.total_payouts == 500000


def test_single_past_payout_is_completed():
    entry = _entry(target_payout_at=NOW - HOUR, payout_batch_id="batch_20250912AB")

    result = derive_payouts([entry], now_ms=NOW)

    assert result.payouts[0].status == PayoutStatus.COMPLETED
    assert result.completed_payouts == 1
    assert result.pending_payouts == 0


def test_empty_ledger():
    result = derive_payouts([], now_ms=NOW)

    assert result.payouts == []
    assert result.total_payouts == 0
    assert result.pending_payouts == 0
    assert result.completed_payouts == 0


def test_non_payout_entries_are_ignored():
    entries = [
        _entry(type=LedgerType.CREDIT_ELIGIBLE, amount_minor=150000),
        _entry(type=LedgerType.DEBIT_HOLD, amount_minor=200000),
        _entry(type=LedgerType.DEBIT_REFUND, amount_minor=100000),
        _entry(type=LedgerType.CREDIT_RELEASE, amount_minor=50000),
    ]

    result = derive_payouts(entries, now_ms=NOW)

    assert result.payouts == []
    assert result.total_payouts == 0


def test_target_equal_to_now_is_completed():
    assert payout_status(NOW, NOW) == PayoutStatus.COMPLETED
    assert payout_status(NOW + 1, NOW) == PayoutStatus.PENDING


def test_missing_target_is_completed():
    result = derive_payouts([_entry(target_payout_at=None)], now_ms=NOW)

    assert result.payouts[0].status == PayoutStatus.COMPLETED
    assert result.payouts[0].target_payout_at is None


def test_id_is_synthesized_without_batch():
    entry = _entry(created_at=NOW - 5 * DAY, amount_minor=250000, payout_batch_id=None)

    payout = derive_payouts([entry], now_ms=NOW).payouts[0]

    assert payout.id == f"{NOW - 5 * DAY}-250000"
    assert payout.reference is None
    assert payout.payout_batch_id is None


def test_short_batch_id_reference():
    assert payout_reference("batch_001") == "TXN_ATCH_001"
    assert payout_reference("abc") == "TXN_ABC"
    assert payout_reference(None) is None
    assert payout_reference("") is None


def test_sorted_newest_first_with_mixed_statuses():
    entries = [
        _entry(created_at=NOW - 3 * DAY, payout_batch_id="batch_002", amount_minor=250000, target_payout_at=NOW - 7 * DAY),
        _entry(created_at=NOW - 1 * DAY, payout_batch_id="batch_001", amount_minor=500000, target_payout_at=NOW + 3 * DAY),
        _entry(created_at=NOW - 2 * DAY, payout_batch_id="batch_003", amount_minor=100000, target_payout_at=None),
        _entry(type=LedgerType.CREDIT_ELIGIBLE, created_at=NOW),
    ]

    result = derive_payouts(entries, now_ms=NOW)

    assert [p.id for p in result.payouts] == ["batch_001", "batch_003", "batch_002"]
    assert [p.status for p in result.payouts] == [
        PayoutStatus.PENDING,
        PayoutStatus.COMPLETED,
        PayoutStatus.COMPLETED,
    ]
    assert result.total_payouts == 850000
    assert result.pending_payouts == 1
    assert result.completed_payouts == 2


def test_derivation_is_idempotent():
    entries = [
        _entry(created_at=NOW - i * HOUR, payout_batch_id=f"batch_{i:03d}", target_payout_at=NOW + (i - 3) * HOUR)
        for i in range(8)
    ]

    first = derive_payouts(entries, now_ms=NOW)
    second = derive_payouts(entries, now_ms=NOW)

    assert first == second
    assert [p.id for p in first.payouts] == [p.id for p in second.payouts]


@pytest.mark.parametrize("offset", [-DAY, -1, 0, 1, DAY])
def test_status_follows_injected_clock(offset):
    entry = _entry(target_payout_at=NOW + offset)

    payout = derive_payouts([entry], now_ms=NOW).payouts[0]

    expected = PayoutStatus.PENDING if offset > 0 else PayoutStatus.COMPLETED
    assert payout.status == expected


def test_input_is_not_mutated():
    entries = [_entry(created_at=NOW - DAY), _entry(created_at=NOW)]
    before = [e.model_dump() for e in entries]

    derive_payouts(entries, now_ms=NOW)

    assert [e.model_dump() for e in entries] == before


def test_use_payouts_is_the_same_engine():
    assert use_payouts is derive_payouts
