"""SQLAlchemy models for the apparel catalog.

Defines the normalized layout: one Design row per product design,
child Variant rows per size, and the two reference lookup tables
(sizes and design types).
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    TypeDecorator,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from apparel_catalog.domain.value_objects import Discount, compute_final_price
from apparel_catalog.infrastructure.database import Base


def _uuid() -> str:
    return str(uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC timestamp on every backend.

    SQLite drops the offset on the way in, so loaded values are tagged
    as UTC again; newly created and loaded rows then compare cleanly.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class SizeReference(Base):
    """Size lookup entry (e.g., M, L, XL, XXL).

    Attributes:
        id: Unique identifier.
        name: Upper-case size code.
        display_name: Human readable name (e.g., "Large").
        sort_order: Position in the size ordering (M=0, L=1, ...).
        is_active: Whether the size can be used for new variants.
    """

    __tablename__ = "size_references"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    display_name: Mapped[str] = mapped_column(String(50), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<SizeReference(name={self.name}, sort_order={self.sort_order})>"


class DesignType(Base):
    """Design type lookup entry (e.g., Casual, Formal)."""

    __tablename__ = "design_types"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<DesignType(name={self.name})>"


class Design(Base):
    """A sellable product design shared across sizes.

    Shared attributes (name, description, type, discount) live only
    here. Variants never duplicate them.

    Attributes:
        id: Unique design identifier.
        owner_id: Seller that owns the design.
        name: Design name.
        description: Optional description.
        design_type_id: Reference to the design type lookup.
        discount_kind: "amount" or "percentage", None when undiscounted.
        discount_value: Discount amount or percentage.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    __tablename__ = "designs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    owner_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    design_type_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("design_types.id"),
        nullable=False,
        index=True,
    )
    discount_kind: Mapped[str | None] = mapped_column(String(20), nullable=True)
    discount_value: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=_now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=_now,
        onupdate=_now,
    )

    # Relationships
    design_type: Mapped[DesignType] = relationship("DesignType", lazy="joined")
    variants: Mapped[list["Variant"]] = relationship(
        "Variant",
        back_populates="design",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )

    __table_args__ = (
        Index("ix_designs_owner_type", "owner_id", "design_type_id"),
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Design(id={self.id}, name={self.name[:30]})>"

    @property
    def discount(self) -> Discount | None:
        """Get the design-wide discount."""
        return Discount.from_parts(self.discount_kind, self.discount_value)

    @discount.setter
    def discount(self, value: Discount | None) -> None:
        if value is None:
            self.discount_kind = None
            self.discount_value = None
        else:
            self.discount_kind = value.kind.value
            self.discount_value = value.value

    @property
    def type_name(self) -> str:
        """Name of the design type."""
        return self.design_type.name


class Variant(Base):
    """One size instance of a design with its own price and stock.

    Attributes:
        id: Unique variant identifier.
        design_id: Parent design ID.
        size_reference_id: Reference to the size lookup.
        price: Unit price before discount.
        stock: Units available.
        image_url: Optional image for this size.
        final_price: Price after the design's discount; stored for filtering.
    """

    __tablename__ = "variants"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    design_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("designs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    size_reference_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("size_references.id"),
        nullable=False,
        index=True,
    )
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    final_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=_now,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=_now,
        onupdate=_now,
    )

    # Relationships
    design: Mapped[Design] = relationship("Design", back_populates="variants", lazy="joined")
    size: Mapped[SizeReference] = relationship("SizeReference", lazy="joined")

    __table_args__ = (
        UniqueConstraint("design_id", "size_reference_id", name="uq_variants_design_size"),
        Index("ix_variants_size_final_price", "size_reference_id", "final_price"),
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Variant(id={self.id}, design_id={self.design_id})>"

    @property
    def size_name(self) -> str:
        """Size code of this variant."""
        return self.size.name

    def reprice(self, discount: Discount | None) -> None:
        """Recompute final price from the current price and a discount."""
        self.final_price = compute_final_price(Decimal(self.price), discount)
