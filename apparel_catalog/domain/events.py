"""Domain events for catalog writes.

Published to the audit queue after a write has been applied.
"""

from dataclasses import dataclass, field

from apparel_catalog.domain.base import DomainEvent


@dataclass(frozen=True)
class DesignCreated(DomainEvent):
    """A seller published a new design."""

    event_type = "design.created"

    name: str = ""
    sizes: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class DesignUpdated(DomainEvent):
    """A seller updated a design and possibly reconciled its sizes."""

    event_type = "design.updated"

    changed_fields: tuple[str, ...] = field(default_factory=tuple)
    updated_count: int = 0
    created_count: int = 0


@dataclass(frozen=True)
class DesignDeleted(DomainEvent):
    """A seller deleted a design and all of its variants."""

    event_type = "design.deleted"
