"""API schemas for the apparel catalog.

Pydantic models for request/response validation and serialization.
Listing and detail responses reuse the catalog read models.
"""

from typing import Any

from pydantic import BaseModel, Field

from apparel_catalog.catalog.read_models import (
    DesignDetail,
    DesignGroupView,
    ListingPage,
    SizeVariantView,
    VariantView,
)
from apparel_catalog.domain.value_objects import DiscountKind


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(
        default_factory=dict, description="Additional error context"
    )
    request_id: str | None = Field(
        default=None, description="Request ID for correlation"
    )


class DiscountSchema(BaseModel):
    """Design-wide discount."""

    type: DiscountKind = Field(..., description="amount or percentage")
    value: float = Field(..., ge=0, description="Amount off, or percent off (≤ 100)")


class SizeStockSchema(BaseModel):
    """One size entry of a create or update batch."""

    size: str = Field(..., min_length=1, description="Size name (e.g., 'L') or id")
    stock: int = Field(..., description="Units in stock")
    price: float | None = Field(
        default=None, description="Unit price for this size; defaults to the request price"
    )
    image_url: str | None = Field(
        default=None, max_length=1000, description="Image for this size"
    )


# ============================================================================
# Design Schemas
# ============================================================================


class DesignCreateRequest(BaseModel):
    """Request to publish a design with its sizes."""

    name: str = Field(..., description="Design name (1-200 characters)")
    description: str | None = Field(default=None, description="Optional description")
    type: str = Field(..., description="Design type (e.g., 'Formal')")
    price: float | None = Field(
        default=None, description="Default unit price for sizes without their own price"
    )
    discount: DiscountSchema | None = Field(default=None, description="Optional discount")
    sizes: list[SizeStockSchema] = Field(
        ..., min_length=1, description="Sizes to create; at least one with positive stock"
    )


class DesignUpdateRequest(BaseModel):
    """Partial design update.

    Only fields present in the request body are applied. Sending
    ``"discount": null`` removes the discount.
    """

    name: str | None = Field(default=None, description="New design name")
    description: str | None = Field(default=None, description="New description")
    type: str | None = Field(default=None, description="New design type")
    discount: DiscountSchema | None = Field(default=None, description="New discount")
    size: str | None = Field(
        default=None, description="Size of the variant whose price/stock change"
    )
    price: float | None = Field(default=None, description="New unit price")
    stock: int | None = Field(default=None, description="New stock")
    sizes: list[SizeStockSchema] | None = Field(
        default=None, description="Sizes to update or create"
    )


class DesignUpdateResponse(BaseModel):
    """Result of a design update."""

    design: DesignDetail = Field(..., description="The design after the update")
    updated_sizes: list[SizeVariantView] = Field(
        default_factory=list, description="Existing sizes updated from the batch"
    )
    created_sizes: list[SizeVariantView] = Field(
        default_factory=list, description="Sizes created from the batch"
    )
    updated_count: int = Field(..., description="Number of updated sizes")
    created_count: int = Field(..., description="Number of created sizes")


class DesignDeleteResponse(BaseModel):
    """Result of a design deletion."""

    id: str = Field(..., description="Deleted design id")
    deleted: bool = Field(..., description="Whether the design was deleted")


VariantListResponse = ListingPage[VariantView]
DesignGroupListResponse = ListingPage[DesignGroupView]


# ============================================================================
# Reference Schemas
# ============================================================================


class SizeResponse(BaseModel):
    """An available size."""

    id: str = Field(..., description="Size id")
    name: str = Field(..., description="Size code (e.g., 'XL')")
    display_name: str = Field(..., description="Human readable name")
    sort_order: int = Field(..., description="Position in the size ordering")


class DesignTypeResponse(BaseModel):
    """An available design type."""

    id: str = Field(..., description="Design type id")
    name: str = Field(..., description="Design type name")
    description: str | None = Field(default=None, description="Design type description")
