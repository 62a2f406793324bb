"""Listing engine.

Turns listing parameters into store queries and shapes the results,
either one entry per variant or one entry per design.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

import structlog

from apparel_catalog.catalog.cache import ListingKeyParams
from apparel_catalog.catalog.models import Variant
from apparel_catalog.catalog.read_models import (
    DesignGroupView,
    ListingPage,
    VariantView,
    discount_view,
    size_variant_view,
    total_pages,
    variant_view,
)
from apparel_catalog.catalog.references import ReferenceResolver
from apparel_catalog.catalog.repository import CatalogRepository, VariantFilter
from apparel_catalog.domain.exceptions import ValidationError
from apparel_catalog.domain.value_objects import MAX_PRICE
from apparel_catalog.infrastructure.config import settings

logger = structlog.get_logger()

GROUP_BY_DESIGN = "design"

# Largest row offset a listing may ask for (fits a 32-bit SQL integer)
MAX_OFFSET = 2**31 - 1

# Final prices never exceed MAX_PRICE, so any bound above it filters like this one
PRICE_BOUND_CEILING = MAX_PRICE + Decimal("0.01")


@dataclass
class ListingQuery:
    """Raw listing parameters as received from a caller.

    Attributes:
        size: Size name or id.
        type: Design type name or id.
        min_price: Minimum final price.
        max_price: Maximum final price.
        page: Page number (1-indexed).
        limit: Items per page.
        group_by: None for one entry per variant, "design" to group.
    """

    size: str | None = None
    type: str | None = None
    min_price: Any = None
    max_price: Any = None
    page: int = 1
    limit: int | None = None
    group_by: str | None = None


@dataclass
class ResolvedListing:
    """A validated listing request with reference names resolved.

    Attributes:
        filters: Store-level filter (ids).
        key: Cache key dimensions (canonical names).
        page: Page number.
        limit: Items per page.
        grouped: Whether results are grouped by design.
    """

    filters: VariantFilter
    key: ListingKeyParams
    page: int
    limit: int
    grouped: bool

    @property
    def offset(self) -> int:
        """Calculate offset from page number."""
        return (self.page - 1) * self.limit


def _parse_price_bound(value: Any, field: str) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"{field} must be a number", field=field) from e
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"{field} must be a non-negative number", field=field)
    return amount


def group_variants(
    variants: Iterable[Variant],
    size_id: str | None = None,
) -> list[DesignGroupView]:
    """Fold variants into one entry per design.

    Args:
        variants: Variants to group; their designs must be loaded.
        size_id: When set, only designs having a variant of this size
            survive. The matching variant's stock is not considered.

    Returns:
        Groups ordered newest design first.
    """
    members_by_design: dict[str, list[Variant]] = {}
    for variant in variants:
        members_by_design.setdefault(variant.design_id, []).append(variant)

    groups: list[tuple[Any, str, DesignGroupView]] = []
    for members in members_by_design.values():
        if size_id is not None and not any(m.size_reference_id == size_id for m in members):
            continue

        members.sort(key=lambda v: v.size.sort_order)
        design = members[0].design
        final_prices = [v.final_price for v in members]

        group = DesignGroupView(
            design_id=design.id,
            owner_id=design.owner_id,
            name=design.name,
            description=design.description,
            type=design.type_name,
            discount=discount_view(design.discount),
            total_stock=sum(v.stock for v in members),
            available_sizes=[v.size_name for v in members if v.stock > 0],
            min_final_price=float(min(final_prices)),
            max_final_price=float(max(final_prices)),
            variants=[size_variant_view(v) for v in members],
            created_at=design.created_at,
        )
        groups.append((design.created_at, design.id, group))

    groups.sort(key=lambda item: (item[0], item[1]), reverse=True)
    return [group for _, _, group in groups]


class ListingEngine:
    """Executes listing requests against the catalog repository.

    Example usage:
        engine = ListingEngine(repository, references)
        page = await engine.list(ListingQuery(size="L", page=1, limit=10))
    """

    def __init__(
        self,
        repository: CatalogRepository,
        references: ReferenceResolver,
        max_page_size: int | None = None,
    ) -> None:
        """Initialize engine.

        Args:
            repository: Catalog repository.
            references: Reference resolver for size/type filters.
            max_page_size: Upper bound on limit.
        """
        self.repository = repository
        self.references = references
        self.max_page_size = max_page_size or settings.max_page_size

    async def resolve(self, query: ListingQuery) -> ResolvedListing:
        """Validate a listing query and resolve its reference names.

        Raises:
            ValidationError: On out-of-range pagination, bad price bounds,
                unknown size/type, or unsupported grouping.
        """
        page = query.page
        limit = query.limit if query.limit is not None else settings.default_page_size

        if page < 1:
            raise ValidationError("page must be at least 1", field="page")
        if limit < 1 or limit > self.max_page_size:
            raise ValidationError(
                f"limit must be between 1 and {self.max_page_size}", field="limit"
            )
        if (page - 1) * limit > MAX_OFFSET:
            raise ValidationError(
                f"page is too large for limit {limit}",
                field="page",
                details={"max_offset": MAX_OFFSET},
            )
        if query.group_by not in (None, GROUP_BY_DESIGN):
            raise ValidationError(
                f"Unsupported groupBy '{query.group_by}'", field="groupBy"
            )

        min_price = _parse_price_bound(query.min_price, "minPrice")
        max_price = _parse_price_bound(query.max_price, "maxPrice")
        if min_price is not None and max_price is not None and min_price > max_price:
            raise ValidationError(
                "minPrice cannot be greater than maxPrice", field="minPrice"
            )
        if min_price is not None:
            min_price = min(min_price, PRICE_BOUND_CEILING)
        if max_price is not None:
            max_price = min(max_price, PRICE_BOUND_CEILING)

        size = await self.references.resolve_size(query.size) if query.size else None
        design_type = await self.references.resolve_type(query.type) if query.type else None

        return ResolvedListing(
            filters=VariantFilter(
                size_id=size.id if size else None,
                type_id=design_type.id if design_type else None,
                min_price=min_price,
                max_price=max_price,
            ),
            key=ListingKeyParams(
                page=page,
                limit=limit,
                size=size.name if size else None,
                type=design_type.name if design_type else None,
                min_price=min_price,
                max_price=max_price,
            ),
            page=page,
            limit=limit,
            grouped=query.group_by == GROUP_BY_DESIGN,
        )

    async def list(self, query: ListingQuery) -> ListingPage:
        """Resolve and run a listing query."""
        return await self.run(await self.resolve(query))

    async def run(self, resolved: ResolvedListing) -> ListingPage:
        """Run an already resolved listing."""
        if resolved.grouped:
            return await self.list_groups(resolved)
        return await self.list_variants(resolved)

    async def list_variants(self, resolved: ResolvedListing) -> ListingPage[VariantView]:
        """One entry per variant, newest first."""
        variants, total = await self.repository.query_variants(
            resolved.filters,
            offset=resolved.offset,
            limit=resolved.limit,
        )
        return ListingPage[VariantView](
            items=[variant_view(v) for v in variants],
            total=total,
            page=resolved.page,
            limit=resolved.limit,
            total_pages=total_pages(total, resolved.limit),
        )

    async def list_groups(self, resolved: ResolvedListing) -> ListingPage[DesignGroupView]:
        """One entry per design; pagination applies to designs.

        The size filter is applied after grouping: every variant
        matching the other filters is fetched, grouped, and then groups
        without a variant of the requested size are dropped.
        """
        filters = VariantFilter(
            type_id=resolved.filters.type_id,
            min_price=resolved.filters.min_price,
            max_price=resolved.filters.max_price,
            owner_id=resolved.filters.owner_id,
        )
        variants = await self.repository.query_all_variants(filters)
        groups = group_variants(variants, size_id=resolved.filters.size_id)

        start = resolved.offset
        page_items = groups[start:start + resolved.limit]

        logger.debug(
            "Grouped listing built",
            variants=len(variants),
            groups=len(groups),
            page=resolved.page,
        )

        return ListingPage[DesignGroupView](
            items=page_items,
            total=len(groups),
            page=resolved.page,
            limit=resolved.limit,
            total_pages=total_pages(len(groups), resolved.limit),
        )
