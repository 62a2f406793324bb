"""Base classes for domain layer.

Value objects are frozen dataclasses compared by value. Domain events
describe a completed write on one design and serialize to the audit
envelope.
"""

import json
from abc import ABC
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, ClassVar
from uuid import UUID, uuid4


@dataclass(frozen=True)
class ValueObject(ABC):
    """Base class for value objects.

    Example:
        @dataclass(frozen=True)
        class Discount(ValueObject):
            kind: DiscountKind
            value: Decimal
    """


# ============================================================================
# Domain Event Base
# ============================================================================

ENVELOPE_FIELDS = frozenset({"design_id", "owner_id", "event_id", "occurred_at"})


@dataclass(frozen=True)
class DomainEvent(ABC):
    """Something that happened to a design.

    Subclasses set ``event_type`` and declare their payload as extra
    dataclass fields; tuples are emitted as JSON arrays.

    Attributes:
        design_id: ID of the design the event is about.
        owner_id: Seller that performed the write.
        event_id: Unique identifier for this event instance.
        occurred_at: Timestamp when the event occurred.
    """

    event_type: ClassVar[str]

    design_id: str
    owner_id: str
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def payload(self) -> dict[str, Any]:
        """Event-specific fields."""
        data: dict[str, Any] = {}
        for f in fields(self):
            if f.name in ENVELOPE_FIELDS:
                continue
            value = getattr(self, f.name)
            data[f.name] = list(value) if isinstance(value, tuple) else value
        return data

    def to_dict(self) -> dict[str, Any]:
        """Audit envelope: ids, type, timestamp and payload."""
        return {
            "event_id": str(self.event_id),
            "event_type": self.event_type,
            "design_id": self.design_id,
            "owner_id": self.owner_id,
            "occurred_at": self.occurred_at.isoformat(),
            "payload": self.payload,
        }

    def to_json(self) -> str:
        """Serialize the audit envelope."""
        return json.dumps(self.to_dict())
