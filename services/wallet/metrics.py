from prometheus_client import Counter

# HTTP metrics for the Wallet API come from starlette-prometheus (see main.py).

# --- Payout derivation & fee quotes ---
PAYOUT_DERIVATIONS_TOTAL = Counter(
    "wallet_payout_derivations_total",
    "Total payout list derivations served by the Wallet API."
)

FEE_QUOTES_TOTAL = Counter(
    "wallet_fee_quotes_total",
    "Total payout fee quotes computed.",
    ["schedule_type"]
)

# --- Ledger Metrics ---
LEDGER_ENTRIES_INGESTED_TOTAL = Counter(
    "wallet_ledger_entries_ingested_total",
    "Total ledger entries validated and appended.",
    ["type", "source"]
)

MANUAL_RECONCILIATIONS_TOTAL = Counter(
    "wallet_manual_reconciliations_total",
    "Total manual payout reconciliations.",
    ["outcome"] # success, overdrawn, failure
)

# --- General Application Metrics ---
APP_ERRORS_TOTAL = Counter(
    "wallet_app_errors_total",
    "Total application errors in the Wallet service.",
    ["component", "error_type"] # component: 'api', 'ingest', 'reconciliation'
)

PAYOUT_BATCH_BACKFILLS_TOTAL = Counter(
    "wallet_payout_batch_backfills_total",
    "Total payout batch records backfilled for manual payouts.",
    ["outcome"] # success, failure
)
