"""Ledger configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerConfig(BaseSettings):
    """
    Ledger and document configuration.

    Every field can be set from a LEDGER_* environment variable
    (LEDGER_LOCK_TIMEOUT_SECONDS=2.5). Blank values fall back to defaults.

    Money values are minor units, rates are basis points (10000 = 100%),
    durations are seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Money
    default_currency: str = Field(
        default="AED",
        description="Currency for new reservations when none is given",
        min_length=3,
        max_length=3,
    )
    overpayment_floor_cents: int | None = Field(
        default=None,
        description=(
            "Largest credit a non-deposit payment may create. "
            "None allows any overpayment (flagged with a warning)."
        ),
        ge=0,
    )
    tax_rate_bps: int = Field(
        default=0,
        description="Flat tax rate used in price breakdowns",
        ge=0,
        le=10000,
    )
    cleaning_fee_cents: int = Field(
        default=5000,
        description="Cleaning fee shown in price breakdowns",
        ge=0,
    )

    # Concurrency
    lock_timeout_seconds: float = Field(
        default=5.0,
        description="How long a mutation waits for the reservation lock",
        gt=0,
        le=60,
    )
    lock_ttl_seconds: int = Field(
        default=30,
        description="Expiry of a distributed lock if its holder dies",
        ge=1,
        le=600,
    )

    # Documents
    rows_per_page: int = Field(
        default=40,
        description="Lines per page in paginated documents",
        ge=15,
        le=200,
    )
    business_name: str = Field(
        default="Roomy Vacation Rentals",
        description="Name printed on document headers",
    )
    default_locale: str = Field(
        default="en_US",
        description="Locale for amounts in documents and notifications",
    )
