"""Read models for catalog responses.

The flat per-variant shape and the per-design grouped shape are built
at read time from Design and Variant rows; neither is persisted.
"""

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from apparel_catalog.catalog.models import Design, Variant
from apparel_catalog.domain.value_objects import Discount, DiscountKind

T = TypeVar("T")


class DiscountView(BaseModel):
    """Discount as returned to clients."""

    type: DiscountKind = Field(..., description="amount or percentage")
    value: float = Field(..., ge=0, description="Amount off, or percent off")


class SizeVariantView(BaseModel):
    """One size of a design, nested under the design."""

    id: str
    size: str
    price: float
    final_price: float
    stock: int
    image_url: str | None = None


class VariantView(BaseModel):
    """A variant joined with its design's shared attributes."""

    id: str
    design_id: str
    owner_id: str
    name: str
    description: str | None = None
    type: str
    size: str
    price: float
    discount: DiscountView | None = None
    final_price: float
    stock: int
    image_url: str | None = None
    created_at: datetime
    updated_at: datetime


class DesignGroupView(BaseModel):
    """A design with its matching variants folded in."""

    design_id: str
    owner_id: str
    name: str
    description: str | None = None
    type: str
    discount: DiscountView | None = None
    total_stock: int
    available_sizes: list[str]
    min_final_price: float
    max_final_price: float
    variants: list[SizeVariantView]
    created_at: datetime


class DesignDetail(BaseModel):
    """A design with all of its variants, zero-stock included."""

    id: str
    owner_id: str
    name: str
    description: str | None = None
    type: str
    discount: DiscountView | None = None
    variants: list[SizeVariantView]
    created_at: datetime
    updated_at: datetime


class ListingPage(BaseModel, Generic[T]):
    """Paginated listing envelope."""

    items: list[T]
    total: int
    page: int
    limit: int
    total_pages: int


# ============================================================================
# Builders
# ============================================================================


def discount_view(discount: Discount | None) -> DiscountView | None:
    """Convert a discount value object for output."""
    if discount is None:
        return None
    return DiscountView(type=discount.kind, value=float(discount.value))


def size_variant_view(variant: Variant) -> SizeVariantView:
    """Build the nested per-size view of a variant."""
    return SizeVariantView(
        id=variant.id,
        size=variant.size_name,
        price=float(variant.price),
        final_price=float(variant.final_price),
        stock=variant.stock,
        image_url=variant.image_url,
    )


def variant_view(variant: Variant) -> VariantView:
    """Build the flat view of a variant joined with its design."""
    design = variant.design
    return VariantView(
        id=variant.id,
        design_id=design.id,
        owner_id=design.owner_id,
        name=design.name,
        description=design.description,
        type=design.type_name,
        size=variant.size_name,
        price=float(variant.price),
        discount=discount_view(design.discount),
        final_price=float(variant.final_price),
        stock=variant.stock,
        image_url=variant.image_url,
        created_at=variant.created_at,
        updated_at=variant.updated_at,
    )


def design_detail(design: Design) -> DesignDetail:
    """Build the detail view of a design with every variant in size order."""
    variants = sorted(design.variants, key=lambda v: v.size.sort_order)
    return DesignDetail(
        id=design.id,
        owner_id=design.owner_id,
        name=design.name,
        description=design.description,
        type=design.type_name,
        discount=discount_view(design.discount),
        variants=[size_variant_view(v) for v in variants],
        created_at=design.created_at,
        updated_at=design.updated_at,
    )


def total_pages(total: int, limit: int) -> int:
    """Number of pages needed for total items at limit per page."""
    return (total + limit - 1) // limit
