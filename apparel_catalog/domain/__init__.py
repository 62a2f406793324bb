"""Domain layer - value objects, domain events and exceptions.

Example usage:
    from apparel_catalog.domain import Discount, DiscountKind, compute_final_price

    discount = Discount(kind=DiscountKind.PERCENTAGE, value=Decimal("10"))
    compute_final_price(Decimal("2500"), discount)  # Decimal("2250.00")
"""

from apparel_catalog.domain.base import DomainEvent, ValueObject
from apparel_catalog.domain.events import DesignCreated, DesignDeleted, DesignUpdated
from apparel_catalog.domain.exceptions import (
    ConflictError,
    DomainError,
    NotFoundOrUnauthorizedError,
    PartialWriteError,
    UpstreamUnavailableError,
    ValidationError,
)
from apparel_catalog.domain.value_objects import (
    MAX_PRICE,
    MIN_PRICE,
    Discount,
    DiscountKind,
    compute_final_price,
    round_price,
    to_price,
)

__all__ = [
    # Base
    "DomainEvent",
    "ValueObject",
    # Events
    "DesignCreated",
    "DesignDeleted",
    "DesignUpdated",
    # Exceptions
    "ConflictError",
    "DomainError",
    "NotFoundOrUnauthorizedError",
    "PartialWriteError",
    "UpstreamUnavailableError",
    "ValidationError",
    # Value objects
    "MAX_PRICE",
    "MIN_PRICE",
    "Discount",
    "DiscountKind",
    "compute_final_price",
    "round_price",
    "to_price",
]
