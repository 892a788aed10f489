"""
Fixed-precision money.

Amounts are held as integer minor units (cents for AED/USD/EUR) plus an
ISO 4217 currency code. AED 10.00 = Money(1000, "AED"). Nothing in this
module touches floats; conversion to and from display strings happens only
in from_major_units(), to_major_units() and format().
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

# Storage column is BIGINT
MAX_MINOR_UNITS = 2**63 - 1
MIN_MINOR_UNITS = -(2**63)

_MINOR_UNIT_EXPONENT = {
    "JPY": 0,
    "KWD": 3,
    "BHD": 3,
    "OMR": 3,
}

_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "AED": "AED",
}

# locale -> (group separator, decimal separator, symbol after amount)
_LOCALE_FORMATS = {
    "en_US": (",", ".", False),
    "en_GB": (",", ".", False),
    "ar_AE": (",", ".", False),
    "de_DE": (".", ",", True),
    "fr_FR": (" ", ",", True),
}
_DEFAULT_LOCALE = "en_US"


class CurrencyMismatchError(ValueError):
    """Arithmetic or comparison attempted across two currencies."""


def minor_unit_exponent(currency: str) -> int:
    """Number of decimal places for a currency (2 unless listed)."""
    return _MINOR_UNIT_EXPONENT.get(currency.upper(), 2)


def _checked(minor_units: int) -> int:
    if minor_units > MAX_MINOR_UNITS or minor_units < MIN_MINOR_UNITS:
        raise OverflowError(
            f"Amount {minor_units} exceeds the 64-bit minor-unit range"
        )
    return minor_units


@dataclass(frozen=True)
class Money:
    """
    Immutable monetary amount in integer minor units.

    Usage:
        price = Money.from_major_units("1000.00", "AED")
        paid = Money(40000, "AED")
        price.subtract(paid).format("en_US")  # "AED 600.00"
    """

    minor_units: int
    currency: str = "AED"

    def __post_init__(self):
        if isinstance(self.minor_units, bool) or not isinstance(self.minor_units, int):
            raise TypeError(
                f"minor_units must be int, got {type(self.minor_units).__name__}"
            )
        if len(self.currency) != 3 or not self.currency.isalpha():
            raise ValueError(f"Invalid ISO 4217 currency code: {self.currency!r}")
        object.__setattr__(self, "currency", self.currency.upper())
        _checked(self.minor_units)

    # -------------------------------------------------------------------------
    # Construction / conversion
    # -------------------------------------------------------------------------

    @classmethod
    def zero(cls, currency: str = "AED") -> "Money":
        return cls(0, currency)

    @classmethod
    def from_major_units(cls, value: str | int | Decimal, currency: str = "AED") -> "Money":
        """
        Parse a major-unit amount ("1000.50", 1000, Decimal("12.3")).

        Raises:
            TypeError: If value is a float (or any other non-exact type)
            ValueError: If value is not numeric or has sub-minor-unit precision
        """
        if isinstance(value, bool) or isinstance(value, float):
            raise TypeError("Money cannot be built from float; pass str or Decimal")
        if not isinstance(value, (str, int, Decimal)):
            raise TypeError(f"Unsupported amount type: {type(value).__name__}")

        try:
            amount = Decimal(value.strip() if isinstance(value, str) else value)
        except InvalidOperation:
            raise ValueError(f"Not a valid amount: {value!r}")

        if not amount.is_finite():
            raise ValueError(f"Not a valid amount: {value!r}")

        scaled = amount.scaleb(minor_unit_exponent(currency))
        if scaled != scaled.to_integral_value():
            raise ValueError(
                f"Amount {value} has more precision than {currency.upper()} allows"
            )
        return cls(int(scaled), currency)

    def to_major_units(self) -> Decimal:
        """Exact Decimal in major units (Money(1050, 'AED') -> Decimal('10.50'))."""
        exponent = minor_unit_exponent(self.currency)
        return Decimal(self.minor_units).scaleb(-exponent)

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    def _require_same_currency(self, other: "Money") -> None:
        if not isinstance(other, Money):
            raise TypeError(f"Expected Money, got {type(other).__name__}")
        if other.currency != self.currency:
            raise CurrencyMismatchError(
                f"Cannot combine {self.currency} with {other.currency}"
            )

    def add(self, other: "Money") -> "Money":
        self._require_same_currency(other)
        return Money(_checked(self.minor_units + other.minor_units), self.currency)

    def subtract(self, other: "Money") -> "Money":
        self._require_same_currency(other)
        return Money(_checked(self.minor_units - other.minor_units), self.currency)

    def negate(self) -> "Money":
        return Money(_checked(-self.minor_units), self.currency)

    def abs(self) -> "Money":
        return Money(_checked(abs(self.minor_units)), self.currency)

    def is_negative(self) -> bool:
        return self.minor_units < 0

    def is_zero(self) -> bool:
        return self.minor_units == 0

    def is_positive(self) -> bool:
        return self.minor_units > 0

    def compare(self, other: "Money") -> int:
        """Return -1, 0 or 1. Raises CurrencyMismatchError across currencies."""
        self._require_same_currency(other)
        if self.minor_units < other.minor_units:
            return -1
        if self.minor_units > other.minor_units:
            return 1
        return 0

    def percentage(self, basis_points: int) -> "Money":
        """
        Flat-rate share of this amount, rounded half-up to the minor unit.

        Basis points: 10000 = 100%, 500 = 5%. Halves round away from zero,
        so 5% of AED 0.10 is AED 0.01 and 5% of -AED 0.10 is -AED 0.01.
        """
        if isinstance(basis_points, bool) or not isinstance(basis_points, int):
            raise TypeError("basis_points must be int")
        quotient, remainder = divmod(abs(self.minor_units) * basis_points, 10000)
        if remainder * 2 >= 10000:
            quotient += 1
        if self.minor_units < 0:
            quotient = -quotient
        return Money(_checked(quotient), self.currency)

    def allocate(self, weights: list[int]) -> list["Money"]:
        """
        Split into shares proportional to weights without losing a minor unit.

        Leftover units go one each to the earliest shares, so the parts
        always sum back to this amount exactly.
        """
        if not weights or any(w < 0 for w in weights) or sum(weights) == 0:
            raise ValueError("weights must be non-negative and not all zero")

        total_weight = sum(weights)
        magnitude = abs(self.minor_units)
        shares = [magnitude * w // total_weight for w in weights]
        leftover = magnitude - sum(shares)
        weighted = [i for i, w in enumerate(weights) if w > 0]
        for i in range(leftover):
            shares[weighted[i % len(weighted)]] += 1

        sign = -1 if self.minor_units < 0 else 1
        return [Money(sign * share, self.currency) for share in shares]

    def __add__(self, other: "Money") -> "Money":
        return self.add(other)

    def __sub__(self, other: "Money") -> "Money":
        return self.subtract(other)

    def __neg__(self) -> "Money":
        return self.negate()

    def __lt__(self, other: "Money") -> bool:
        return self.compare(other) < 0

    def __le__(self, other: "Money") -> bool:
        return self.compare(other) <= 0

    def __gt__(self, other: "Money") -> bool:
        return self.compare(other) > 0

    def __ge__(self, other: "Money") -> bool:
        return self.compare(other) >= 0

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------

    def format(self, locale: str = _DEFAULT_LOCALE) -> str:
        """
        Human-readable amount for the given locale.

        en_US: "AED 1,234.50", "$1,234.50"
        de_DE: "1.234,50 €"
        Unknown locales fall back to en_US.
        """
        group_sep, decimal_sep, symbol_after = _LOCALE_FORMATS.get(
            locale, _LOCALE_FORMATS[_DEFAULT_LOCALE]
        )
        exponent = minor_unit_exponent(self.currency)
        whole, fraction = divmod(abs(self.minor_units), 10**exponent)

        digits = f"{whole:,}".replace(",", group_sep)
        if exponent:
            digits = f"{digits}{decimal_sep}{fraction:0{exponent}d}"

        symbol = _SYMBOLS.get(self.currency, self.currency)
        sign = "-" if self.minor_units < 0 else ""

        if symbol_after:
            return f"{sign}{digits} {symbol}"
        if len(symbol) == 1:
            return f"{sign}{symbol}{digits}"
        return f"{sign}{symbol} {digits}"

    def __str__(self) -> str:
        return self.format()
