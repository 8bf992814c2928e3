"""
Currency — Denomination-Aware Money for Table Entry Costs.

A Currency is a non-negative integer amount tagged with one of four units.
The units are related by fixed powers of ten:

    1 pp = 10 gp = 100 sp = 1000 cp

INVARIANTS:
- Equality, hashing and ordering use the Copper-normalized amount, so
  Currency.gold(1) == Currency.silver(10)
- Narrowing conversions (toward a coarser unit) truncate, never round
- Widening conversions (toward a finer unit) are exact
- The Copper-normalized amount always lies in 0..MAX_CURRENCY_COPPER;
  leaving that range is an arithmetic fault, not a user error
- Largest-denomination form is applied explicitly (construction from a
  raw amount, add, subtract), not after every operation
"""

import re
from dataclasses import dataclass
from enum import Enum

from rolltables.models.failure import FailureKind, KnownError

# =============================================================================
# HARD LIMITS (Constants — NOT Configurable)
# =============================================================================

# Width of the fixed 16-byte wire encoding
MAX_CURRENCY_COPPER = 2**128 - 1

DENOMINATION_RATIO = 10


# =============================================================================
# ERRORS
# =============================================================================


class CurrencyOverflowError(KnownError):
    """
    Raised when a Copper-normalized amount would exceed MAX_CURRENCY_COPPER.

    This is an arithmetic fault: table costs are bounded by practical
    values, so reaching the limit indicates a defect upstream.
    """

    def __init__(self, operation: str, copper_amount: int):
        self.operation = operation
        self.copper_amount = copper_amount
        super().__init__(
            kind=FailureKind.INVARIANT_VIOLATION,
            message="Currency amount is too large.",
            detail=f"{operation}: {copper_amount} cp exceeds {MAX_CURRENCY_COPPER} cp",
            suggestion="Use smaller costs or budgets.",
            status_code=500,
        )


class CurrencyUnderflowError(KnownError):
    """Raised when an operation would produce a negative amount."""

    def __init__(self, operation: str, copper_amount: int):
        self.operation = operation
        self.copper_amount = copper_amount
        super().__init__(
            kind=FailureKind.INVARIANT_VIOLATION,
            message="Currency amount cannot be negative.",
            detail=f"{operation}: result would be {copper_amount} cp",
            status_code=500,
        )


class CurrencyParseError(KnownError):
    """Raised when a serialized or formatted currency value is malformed."""

    def __init__(self, value: object, reason: str):
        self.value = value
        self.reason = reason
        super().__init__(
            kind=FailureKind.INVALID_INPUT,
            message=f"Could not read currency value {value!r}.",
            detail=reason,
            suggestion="Write amounts like '150 gp' (units: pp, gp, sp, cp).",
            status_code=400,
        )


# =============================================================================
# DENOMINATIONS
# =============================================================================


class Denomination(str, Enum):
    """Currency units, valued by their abbreviation."""

    PLATINUM = "pp"
    GOLD = "gp"
    SILVER = "sp"
    COPPER = "cp"

    @property
    def copper_value(self) -> int:
        """How many Copper one unit of this denomination is worth."""
        return _COPPER_VALUES[self]

    @property
    def larger(self) -> "Denomination | None":
        """The next coarser denomination, or None for Platinum."""
        index = _ASCENDING.index(self)
        return _ASCENDING[index + 1] if index + 1 < len(_ASCENDING) else None

    @property
    def smaller(self) -> "Denomination | None":
        """The next finer denomination, or None for Copper."""
        index = _ASCENDING.index(self)
        return _ASCENDING[index - 1] if index > 0 else None

    @classmethod
    def from_abbreviation(cls, abbreviation: str) -> "Denomination":
        """Look up a unit by abbreviation, ignoring case."""
        try:
            return cls(abbreviation.strip().lower())
        except ValueError:
            raise CurrencyParseError(
                abbreviation, f"Unknown currency unit '{abbreviation}'"
            ) from None


_ASCENDING: tuple[Denomination, ...] = (
    Denomination.COPPER,
    Denomination.SILVER,
    Denomination.GOLD,
    Denomination.PLATINUM,
)

_COPPER_VALUES: dict[Denomination, int] = {
    unit: DENOMINATION_RATIO**power for power, unit in enumerate(_ASCENDING)
}

# "<integer><whitespace><unit>", e.g. "150 gp"
FORMATTED_CURRENCY_PATTERN = re.compile(r"^\s*(\d+)\s+([A-Za-z]{2})\s*$")


# =============================================================================
# CURRENCY
# =============================================================================


@dataclass(frozen=True, eq=False)
class Currency:
    """
    An immutable amount of money in a single denomination.

    Attributes:
        unit: The denomination the amount is expressed in
        amount: Non-negative number of `unit` pieces
    """

    unit: Denomination = Denomination.COPPER
    amount: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise TypeError(f"Currency amount must be an int, got {type(self.amount).__name__}")
        if self.amount < 0:
            raise CurrencyUnderflowError("construct", self.amount * self.unit.copper_value)
        if self.amount * self.unit.copper_value > MAX_CURRENCY_COPPER:
            raise CurrencyOverflowError("construct", self.amount * self.unit.copper_value)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def platinum(cls, amount: int) -> "Currency":
        return cls(Denomination.PLATINUM, amount)

    @classmethod
    def gold(cls, amount: int) -> "Currency":
        return cls(Denomination.GOLD, amount)

    @classmethod
    def silver(cls, amount: int) -> "Currency":
        return cls(Denomination.SILVER, amount)

    @classmethod
    def copper(cls, amount: int) -> "Currency":
        return cls(Denomination.COPPER, amount)

    @classmethod
    def from_raw_amount(cls, copper_amount: int) -> "Currency":
        """Build a value from a Copper amount, expressed in its largest denomination."""
        return cls(Denomination.COPPER, copper_amount).to_largest_denomination()

    @classmethod
    def parse(cls, text: str) -> "Currency":
        """
        Parse the formatted form produced by str(), e.g. "150 gp".

        The unit is case-insensitive. The amount keeps the given unit.

        Raises:
            CurrencyParseError: If the text is not "<integer> <unit>"
        """
        match = FORMATTED_CURRENCY_PATTERN.match(text)
        if match is None:
            raise CurrencyParseError(text, "Expected '<integer> <unit>'")

        unit = Denomination.from_abbreviation(match.group(2))
        return cls(unit, int(match.group(1)))

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    @property
    def copper_amount(self) -> int:
        """The amount expressed in Copper."""
        return self.amount * self.unit.copper_value

    def convert_to(self, unit: Denomination) -> "Currency":
        """
        Express this value in another unit.

        Converting to a coarser unit truncates any remainder:
        Currency.silver(15).convert_to(Denomination.GOLD) is 1 gp.
        """
        return Currency(unit, self.copper_amount // unit.copper_value)

    def to_platinum(self) -> "Currency":
        return self.convert_to(Denomination.PLATINUM)

    def to_gold(self) -> "Currency":
        return self.convert_to(Denomination.GOLD)

    def to_silver(self) -> "Currency":
        return self.convert_to(Denomination.SILVER)

    def to_copper(self) -> "Currency":
        return self.convert_to(Denomination.COPPER)

    def try_convert_up(self) -> "Currency | None":
        """
        Promote one step to the next coarser unit if that is exact.

        Returns None for Platinum, zero, or amounts not divisible by ten.
        """
        larger = self.unit.larger
        if larger is None or self.amount == 0 or self.amount % DENOMINATION_RATIO:
            return None
        return Currency(larger, self.amount // DENOMINATION_RATIO)

    def convert_down(self) -> "Currency":
        """Demote one step to the next finer unit. Copper is returned unchanged."""
        smaller = self.unit.smaller
        if smaller is None:
            return self
        return Currency(smaller, self.amount * DENOMINATION_RATIO)

    def to_largest_denomination(self) -> "Currency":
        """Promote repeatedly while the promotion stays exact."""
        current = self
        while (promoted := current.try_convert_up()) is not None:
            current = promoted
        return current

    def clamp(self, minimum: "Currency", maximum: "Currency | None" = None) -> "Currency":
        """Restrict this value to [minimum, maximum]; no upper bound when maximum is None."""
        if self < minimum:
            return minimum
        if maximum is not None and self > maximum:
            return maximum
        return self

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    def add(self, other: "Currency") -> "Currency":
        total = self.copper_amount + other.copper_amount
        if total > MAX_CURRENCY_COPPER:
            raise CurrencyOverflowError("add", total)
        return Currency.from_raw_amount(total)

    def subtract(self, other: "Currency") -> "Currency":
        difference = self.copper_amount - other.copper_amount
        if difference < 0:
            raise CurrencyUnderflowError("subtract", difference)
        return Currency.from_raw_amount(difference)

    def multiply(self, count: int) -> "Currency":
        """Scale by a non-negative count, e.g. the total cost of a roll result."""
        if count < 0:
            raise CurrencyUnderflowError("multiply", self.copper_amount * count)
        product = self.copper_amount * count
        if product > MAX_CURRENCY_COPPER:
            raise CurrencyOverflowError("multiply", product)
        return Currency.from_raw_amount(product)

    def __add__(self, other: object) -> "Currency":
        if not isinstance(other, Currency):
            return NotImplemented
        return self.add(other)

    def __radd__(self, other: object) -> "Currency":
        # sum() starts from the integer 0
        if isinstance(other, int) and not isinstance(other, bool) and other == 0:
            return self
        return NotImplemented

    def __sub__(self, other: object) -> "Currency":
        if not isinstance(other, Currency):
            return NotImplemented
        return self.subtract(other)

    def __mul__(self, count: object) -> "Currency":
        if isinstance(count, bool) or not isinstance(count, int):
            return NotImplemented
        return self.multiply(count)

    __rmul__ = __mul__

    # -------------------------------------------------------------------------
    # Comparison
    # -------------------------------------------------------------------------

    def compare(self, other: "Currency") -> int:
        """Return -1, 0 or 1 comparing Copper-normalized amounts."""
        return (self.copper_amount > other.copper_amount) - (
            self.copper_amount < other.copper_amount
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Currency):
            return NotImplemented
        return self.copper_amount == other.copper_amount

    def __hash__(self) -> int:
        return hash(self.copper_amount)

    def __lt__(self, other: "Currency") -> bool:
        if not isinstance(other, Currency):
            return NotImplemented
        return self.copper_amount < other.copper_amount

    def __le__(self, other: "Currency") -> bool:
        if not isinstance(other, Currency):
            return NotImplemented
        return self.copper_amount <= other.copper_amount

    def __gt__(self, other: "Currency") -> bool:
        if not isinstance(other, Currency):
            return NotImplemented
        return self.copper_amount > other.copper_amount

    def __ge__(self, other: "Currency") -> bool:
        if not isinstance(other, Currency):
            return NotImplemented
        return self.copper_amount >= other.copper_amount

    # -------------------------------------------------------------------------
    # Formatting
    # -------------------------------------------------------------------------

    def format(self) -> str:
        return f"{self.amount} {self.unit.value}"

    def __str__(self) -> str:
        return self.format()
