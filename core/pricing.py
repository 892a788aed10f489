"""
Price breakdown and income split for a reservation total.

Display helpers for the finance screens. Neither writes to the ledger.
"""

from dataclasses import dataclass

from core.money import Money


@dataclass(frozen=True)
class PriceBreakdown:
    """
    Accommodation split per night plus cleaning fee and tax.

    Integer division leaves a remainder; it is added to the last night so
    nightly_rate * (nights - 1) + last_night_rate == accommodation.
    """

    nights: int
    nightly_rate: Money
    last_night_rate: Money
    accommodation: Money
    cleaning_fee: Money
    tax_rate_bps: int
    tax: Money
    grand_total: Money

    def to_dict(self) -> dict:
        return {
            "nights": self.nights,
            "currency": self.accommodation.currency,
            "nightly_rate_cents": self.nightly_rate.minor_units,
            "last_night_rate_cents": self.last_night_rate.minor_units,
            "accommodation_cents": self.accommodation.minor_units,
            "cleaning_fee_cents": self.cleaning_fee.minor_units,
            "tax_rate_bps": self.tax_rate_bps,
            "tax_cents": self.tax.minor_units,
            "grand_total_cents": self.grand_total.minor_units,
        }


@dataclass(frozen=True)
class IncomeDistribution:
    """Owner, agency and referring-agent shares that sum to the total."""

    owner: Money
    agency: Money
    agent: Money

    @property
    def total(self) -> Money:
        return self.owner + self.agency + self.agent

    def to_dict(self) -> dict:
        return {
            "currency": self.owner.currency,
            "owner_cents": self.owner.minor_units,
            "agency_cents": self.agency.minor_units,
            "agent_cents": self.agent.minor_units,
        }


def price_breakdown(
    total: Money,
    nights: int,
    cleaning_fee: Money,
    tax_rate_bps: int = 0,
) -> PriceBreakdown:
    """
    Break a stay total into nightly rates, cleaning fee and tax.

    Tax applies to accommodation plus cleaning, rounded half-up.

    Raises:
        ValueError: If nights < 1 or the total is not positive
    """
    if nights < 1:
        raise ValueError("A stay must be at least one night")
    if not total.is_positive():
        raise ValueError("Total must be greater than zero")

    nightly, remainder = divmod(total.minor_units, nights)
    taxable = total + cleaning_fee
    tax = taxable.percentage(tax_rate_bps)

    return PriceBreakdown(
        nights=nights,
        nightly_rate=Money(nightly, total.currency),
        last_night_rate=Money(nightly + remainder, total.currency),
        accommodation=total,
        cleaning_fee=cleaning_fee,
        tax_rate_bps=tax_rate_bps,
        tax=tax,
        grand_total=taxable + tax,
    )


def income_distribution(
    total: Money,
    owner_bps: int = 7000,
    agency_bps: int = 2500,
    agent_bps: int = 500,
) -> IncomeDistribution:
    """
    Split a reservation's income between owner, agency and referring agent.

    Default split is 70/25/5. Rounding leftovers go to the owner first.
    """
    owner, agency, agent = total.allocate([owner_bps, agency_bps, agent_bps])
    return IncomeDistribution(owner=owner, agency=agency, agent=agent)
