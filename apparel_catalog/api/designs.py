"""Design API endpoints.

Provides endpoints for browsing and managing designs:
- GET /designs - filtered, paginated listing (optionally grouped by design)
- GET /designs/{id} - design with all of its sizes
- POST /designs - publish a design with its sizes
- PATCH /designs/{id} - partial update and size reconciliation
- DELETE /designs/{id} - delete a design and its sizes
"""

from fastapi import APIRouter, HTTPException, Query, status

from apparel_catalog.api.dependencies import CatalogServiceDep, OwnerIdDep
from apparel_catalog.api.schemas import (
    DesignCreateRequest,
    DesignDeleteResponse,
    DesignGroupListResponse,
    DesignUpdateRequest,
    DesignUpdateResponse,
    ErrorResponse,
    SizeStockSchema,
    VariantListResponse,
)
from apparel_catalog.catalog.listing import ListingQuery
from apparel_catalog.catalog.read_models import DesignDetail
from apparel_catalog.catalog.reconciliation import SHARED_FIELDS, SizeStock
from apparel_catalog.catalog.service import CreateDesignCommand, UpdateDesignCommand

router = APIRouter(prefix="/designs", tags=["Designs"])


# ============================================================================
# Converters
# ============================================================================


def to_size_stock(entry: SizeStockSchema) -> SizeStock:
    """Convert a request size entry to a reconciliation input."""
    return SizeStock(
        size=entry.size,
        stock=entry.stock,
        price=entry.price,
        image_url=entry.image_url,
    )


def to_update_command(request: DesignUpdateRequest) -> UpdateDesignCommand:
    """Convert a partial update request, keeping only fields that were sent."""
    sent = request.model_dump(exclude_unset=True)
    shared = {name: sent[name] for name in SHARED_FIELDS if name in sent}
    return UpdateDesignCommand(
        shared=shared,
        size=request.size,
        price=request.price,
        stock=request.stock,
        sizes=[to_size_stock(e) for e in request.sizes] if request.sizes else None,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "",
    response_model=VariantListResponse | DesignGroupListResponse,
    responses={400: {"model": ErrorResponse}},
    summary="List designs",
    description="Filtered, paginated listing. One entry per size variant, "
    "or one entry per design with groupBy=design.",
)
async def list_designs(
    service: CatalogServiceDep,
    size: str | None = Query(default=None, description="Filter by size (e.g., 'L')"),
    type: str | None = Query(default=None, description="Filter by design type"),
    min_price: str | None = Query(
        default=None, alias="minPrice", description="Minimum final price"
    ),
    max_price: str | None = Query(
        default=None, alias="maxPrice", description="Maximum final price"
    ),
    page: int = Query(default=1, description="Page number (1-based)"),
    limit: int | None = Query(default=None, description="Items per page (max 100)"),
    group_by: str | None = Query(
        default=None, alias="groupBy", description="Set to 'design' to group sizes"
    ),
) -> VariantListResponse | DesignGroupListResponse:
    """List variants or designs.

    Args:
        service: Catalog service.
        size: Size filter.
        type: Design type filter.
        min_price: Minimum final price.
        max_price: Maximum final price.
        page: Page number.
        limit: Items per page.
        group_by: Grouping mode.

    Returns:
        Paginated listing.
    """
    return await service.list_designs(
        ListingQuery(
            size=size,
            type=type,
            min_price=min_price,
            max_price=max_price,
            page=page,
            limit=limit,
            group_by=group_by,
        )
    )


@router.get(
    "/{design_id}",
    response_model=DesignDetail,
    responses={404: {"model": ErrorResponse}},
    summary="Get design",
    description="Get a design with all of its sizes, sold-out sizes included.",
)
async def get_design(design_id: str, service: CatalogServiceDep) -> DesignDetail:
    """Get a design by ID."""
    return await service.get_design(design_id)


@router.post(
    "",
    response_model=DesignDetail,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    summary="Create design",
    description="Publish a design with one or more sizes.",
)
async def create_design(
    request: DesignCreateRequest,
    owner_id: OwnerIdDep,
    service: CatalogServiceDep,
) -> DesignDetail:
    """Create a design and its size variants.

    Args:
        request: Design creation request.
        owner_id: Requesting seller.
        service: Catalog service.

    Returns:
        Created design.
    """
    return await service.create_design(
        owner_id,
        CreateDesignCommand(
            name=request.name,
            type=request.type,
            sizes=[to_size_stock(e) for e in request.sizes],
            price=request.price,
            description=request.description,
            discount=request.discount.model_dump() if request.discount else None,
        ),
    )


@router.patch(
    "/{design_id}",
    response_model=DesignUpdateResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    summary="Update design",
    description="Partially update a design and reconcile a batch of sizes.",
)
async def update_design(
    design_id: str,
    request: DesignUpdateRequest,
    owner_id: OwnerIdDep,
    service: CatalogServiceDep,
) -> DesignUpdateResponse:
    """Update a design.

    Shared attributes apply to every size. Batch sizes that exist are
    updated, new ones are created, and entries with zero stock are
    skipped.

    Args:
        design_id: Design identifier.
        request: Partial update.
        owner_id: Requesting seller.
        service: Catalog service.

    Returns:
        Updated design with the updated and created sizes.
    """
    result = await service.update_design(owner_id, design_id, to_update_command(request))
    return DesignUpdateResponse(
        design=result.design,
        updated_sizes=result.updated,
        created_sizes=result.created,
        updated_count=result.updated_count,
        created_count=result.created_count,
    )


@router.delete(
    "/{design_id}",
    response_model=DesignDeleteResponse,
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Delete design",
    description="Delete a design and all of its sizes.",
)
async def delete_design(
    design_id: str,
    owner_id: OwnerIdDep,
    service: CatalogServiceDep,
) -> DesignDeleteResponse:
    """Delete a design.

    Raises:
        HTTPException: If the design is absent or not owned.
    """
    deleted = await service.delete_design(owner_id, design_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error_code": "NOT_FOUND",
                "message": f"Design {design_id} not found or unauthorized",
            },
        )
    return DesignDeleteResponse(id=design_id, deleted=True)
