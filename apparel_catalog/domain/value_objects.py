"""Value Objects for the domain layer.

Value objects are immutable objects that are defined by their attributes
rather than identity. They are interchangeable when their values are equal.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Self

from apparel_catalog.domain.base import ValueObject
from apparel_catalog.domain.exceptions import ValidationError

MIN_PRICE = Decimal("0")
MAX_PRICE = Decimal("10000")

_CENT = Decimal("0.01")


def round_price(amount: Decimal) -> Decimal:
    """Round an amount to two decimal places, half up."""
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


def to_price(value: Any, field: str = "price") -> Decimal:
    """Coerce a numeric input into a bounded, rounded price.

    Args:
        value: int, float, str or Decimal amount.
        field: Field name used in error messages.

    Returns:
        Price as a two-decimal Decimal.

    Raises:
        ValidationError: If the value is not numeric or out of range.
    """
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"{field} must be a number", field=field) from e

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number", field=field)
    if amount < MIN_PRICE or amount > MAX_PRICE:
        raise ValidationError(
            f"{field} must be between {MIN_PRICE} and {MAX_PRICE}",
            field=field,
            details={"value": str(amount)},
        )
    return round_price(amount)


class DiscountKind(str, Enum):
    """How a discount value is applied to a price."""

    AMOUNT = "amount"
    PERCENTAGE = "percentage"


@dataclass(frozen=True)
class Discount(ValueObject):
    """A design-wide discount shared by every size variant.

    Attributes:
        kind: Fixed amount off, or percentage off.
        value: Non-negative amount or percentage (at most 100).
    """

    kind: DiscountKind
    value: Decimal

    def __post_init__(self) -> None:
        """Validate discount constraints."""
        try:
            kind = DiscountKind(self.kind)
        except ValueError as e:
            raise ValidationError(
                f"Unknown discount type '{self.kind}'", field="discount.type"
            ) from e
        object.__setattr__(self, "kind", kind)

        try:
            value = Decimal(str(self.value))
        except (InvalidOperation, ValueError) as e:
            raise ValidationError("Discount value must be a number", field="discount.value") from e
        if not value.is_finite() or value < 0:
            raise ValidationError(
                "Discount value cannot be negative", field="discount.value"
            )
        if kind is DiscountKind.PERCENTAGE and value > 100:
            raise ValidationError(
                "Percentage discount cannot exceed 100", field="discount.value"
            )
        if kind is DiscountKind.AMOUNT and value > MAX_PRICE:
            raise ValidationError(
                f"Amount discount cannot exceed {MAX_PRICE}",
                field="discount.value",
                details={"value": str(value)},
            )
        # Stored as cents, so the value read back is the value applied
        object.__setattr__(self, "value", round_price(value))

    @classmethod
    def from_parts(cls, kind: str | None, value: Any) -> Self | None:
        """Rebuild a discount from its stored columns.

        Returns:
            Discount, or None when no discount is stored.
        """
        if kind is None or value is None:
            return None
        return cls(kind=DiscountKind(kind), value=Decimal(str(value)))

    def apply(self, price: Decimal) -> Decimal:
        """Compute the discounted price, never below zero.

        Args:
            price: Unit price before discount.

        Returns:
            Discounted price rounded to two decimals.
        """
        if self.kind is DiscountKind.AMOUNT:
            discounted = price - self.value
        else:
            discounted = price * (1 - self.value / 100)
        return round_price(max(Decimal("0"), discounted))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"type": self.kind.value, "value": float(self.value)}


def compute_final_price(price: Decimal, discount: Discount | None) -> Decimal:
    """Final price of a variant given its design's discount."""
    if discount is None:
        return round_price(price)
    return discount.apply(price)
