# libs/py_common/config.py

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    app_name: str = "CreatorWallet"
    log_level: str = "INFO"

    # Ledgers are single-currency; NGN is the only currency in production today.
    default_currency: str = "NGN"
    # Payout cut-offs and display dates are expressed in this zone.
    display_timezone: str = "Africa/Lagos"
    ledger_page_limit: int = 50

    wallet_db_url: str = Field(
        default="sqlite:///./wallet.db",
        validation_alias="WALLET_DB_CONNECTION_STRING",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

settings = Settings()
