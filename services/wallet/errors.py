# services/wallet/errors.py


class WalletError(Exception):
    """Base class for wallet ledger and payout errors."""


class InvalidAmount(WalletError, ValueError):
    """Raised for negative, non-integer or non-finite minor-unit amounts."""

    def __init__(self, amount):
        self.amount = amount
        super().__init__(f"Invalid amount in minor units: {amount!r}")


class UnknownScheduleType(WalletError, ValueError):
    """Raised when a payout schedule tag is not in the schedule table."""

    def __init__(self, schedule_type):
        self.schedule_type = schedule_type
        super().__init__(f"Unknown payout schedule type: {schedule_type!r}")


class InvalidLedgerEntry(WalletError, ValueError):
    """Raised when a raw ledger document fails validation at ingestion."""

    def __init__(self, message: str, errors=None):
        self.errors = errors or []
        super().__init__(message)


class MixedCurrencyLedger(WalletError, ValueError):
    """Raised when a balance is requested over entries in several currencies."""

    def __init__(self, currencies):
        self.currencies = sorted(currencies)
        super().__init__(
            f"Ledger contains multiple currencies ({', '.join(self.currencies)}); pass a currency to filter."
        )


class UnknownVendor(WalletError, LookupError):
    """Raised when a vendor has no ledger history."""

    def __init__(self, vendor_id: str):
        self.vendor_id = vendor_id
        super().__init__(f"Vendor {vendor_id} not found")
