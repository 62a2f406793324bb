"""Catalog service for design operations.

High-level service that combines the repository, listing engine,
reconciliation engine, listing cache and audit publisher into the
read/write surface used by the API layer.
"""

from dataclasses import dataclass, field
from typing import Any

import structlog
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from apparel_catalog.catalog.cache import ListingCache, build_listing_key
from apparel_catalog.catalog.listing import ListingEngine, ListingQuery
from apparel_catalog.catalog.read_models import (
    DesignDetail,
    ListingPage,
    SizeVariantView,
    VariantView,
    design_detail,
    size_variant_view,
)
from apparel_catalog.catalog.reconciliation import (
    PrimaryUpdate,
    ReconciliationEngine,
    SizeStock,
    validate_description,
    validate_discount,
    validate_name,
    validate_size_batch,
)
from apparel_catalog.catalog.references import ReferenceResolver, SizeRef, TypeRef
from apparel_catalog.catalog.repository import CatalogRepository
from apparel_catalog.domain.events import DesignCreated, DesignDeleted, DesignUpdated
from apparel_catalog.domain.exceptions import (
    ConflictError,
    NotFoundOrUnauthorizedError,
    PartialWriteError,
    ValidationError,
)
from apparel_catalog.domain.value_objects import to_price
from apparel_catalog.infrastructure.audit import AuditPublisher

logger = structlog.get_logger()


# ============================================================================
# Commands and results
# ============================================================================


@dataclass
class CreateDesignCommand:
    """Input for publishing a new design.

    Attributes:
        name: Design name.
        type: Design type name or id.
        sizes: At least one size; at least one with positive stock.
        price: Default unit price for sizes without their own price.
        description: Optional description.
        discount: Optional discount ({"type", "value"} or Discount).
    """

    name: str
    type: str
    sizes: list[SizeStock]
    price: Any = None
    description: str | None = None
    discount: Any = None


@dataclass
class UpdateDesignCommand:
    """Input for a partial design update.

    Attributes:
        shared: Shared attributes to replace (name, description, type,
            discount). Absent keys are unchanged.
        size: Size of the variant whose price/stock are edited directly.
        price: New price of that variant; also the default for batch sizes.
        stock: New stock of that variant.
        sizes: Batch of sizes to update or create.
    """

    shared: dict[str, Any] = field(default_factory=dict)
    size: str | None = None
    price: Any = None
    stock: int | None = None
    sizes: list[SizeStock] | None = None


@dataclass
class UpdateDesignResult:
    """Result of updating a design."""

    design: DesignDetail
    updated: list[SizeVariantView] = field(default_factory=list)
    created: list[SizeVariantView] = field(default_factory=list)

    @property
    def updated_count(self) -> int:
        return len(self.updated)

    @property
    def created_count(self) -> int:
        return len(self.created)


# ============================================================================
# Service
# ============================================================================


class CatalogService:
    """Service for catalog operations.

    Every successful write invalidates the listing cache before it
    returns and then schedules an audit event. Cache and audit failures
    never fail the operation.

    Example usage:
        async with async_session_factory() as session:
            service = CatalogService(session, references, cache, audit)
            page = await service.list_designs(ListingQuery(size="L"))
    """

    def __init__(
        self,
        session: AsyncSession,
        references: ReferenceResolver,
        cache: ListingCache,
        audit: AuditPublisher,
        max_page_size: int | None = None,
    ) -> None:
        """Initialize service.

        Args:
            session: Async SQLAlchemy session.
            references: Shared reference resolver.
            cache: Listing cache.
            audit: Audit event publisher.
            max_page_size: Upper bound on listing page size.
        """
        self.session = session
        self.references = references
        self.cache = cache
        self.audit = audit
        self.repository = CatalogRepository(session)
        self.listing = ListingEngine(self.repository, references, max_page_size)
        self.reconciliation = ReconciliationEngine(self.repository, references)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_designs(self, query: ListingQuery) -> ListingPage:
        """List variants (cache-aside) or designs (grouped, uncached).

        Args:
            query: Listing parameters.

        Returns:
            Paginated listing.
        """
        resolved = await self.listing.resolve(query)
        if resolved.grouped:
            return await self.listing.run(resolved)

        key = build_listing_key(resolved.key)
        cached = await self.cache.get(key)
        if cached is not None:
            try:
                page = ListingPage[VariantView].model_validate_json(cached)
                logger.debug("Listing cache hit", key=key)
                return page
            except SchemaValidationError:
                logger.warning("Discarding unreadable listing cache entry", key=key)

        page = await self.listing.run(resolved)
        await self.cache.set(key, page.model_dump_json().encode())
        return page

    async def get_design(self, design_id: str) -> DesignDetail:
        """Get a design with all variants, zero-stock included.

        Raises:
            NotFoundOrUnauthorizedError: If the design does not exist.
        """
        design = await self.repository.find_design(design_id)
        if design is None:
            raise NotFoundOrUnauthorizedError("Design", design_id)
        return design_detail(design)

    async def list_sizes(self) -> list[SizeRef]:
        """Available sizes in size order."""
        return await self.references.sizes()

    async def list_types(self) -> list[TypeRef]:
        """Available design types."""
        return await self.references.types()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_design(
        self,
        owner_id: str,
        command: CreateDesignCommand,
    ) -> DesignDetail:
        """Publish a design with its initial size variants.

        The design row is committed first, then the variants. If the
        variants cannot be written the design is deleted again and a
        PartialWriteError reports whether that compensation succeeded.

        Raises:
            ValidationError: Invalid input; nothing was written.
            ConflictError: Duplicate size in the request; nothing was written.
            PartialWriteError: Variants could not be written.
        """
        name = validate_name(command.name)
        description = validate_description(command.description)
        discount = validate_discount(command.discount)
        if not command.type:
            raise ValidationError("Type is required", field="type")
        design_type = await self.references.resolve_type(command.type)
        default_price = to_price(command.price) if command.price is not None else None

        if not command.sizes:
            raise ValidationError("At least one size with stock is required", field="sizes")
        planned = await validate_size_batch(self.references, command.sizes)
        for index, entry in enumerate(planned):
            if entry.price is None and default_price is None:
                raise ValidationError("Price is required", field=f"sizes[{index}].price")

        design = await self.repository.create_design(
            owner_id=owner_id,
            name=name,
            design_type_id=design_type.id,
            description=description,
            discount=discount,
        )
        await self.repository.commit()
        design_id = design.id

        try:
            for entry in planned:
                await self.repository.create_variant(
                    design,
                    entry.size.id,
                    price=entry.price if entry.price is not None else default_price,
                    stock=entry.stock,
                    image_url=entry.image_url,
                )
            await self.repository.commit()
        except (SQLAlchemyError, ConflictError) as e:
            await self.repository.rollback()
            compensated = await self._compensate_create(design_id, owner_id)
            await self.cache.invalidate_all()
            logger.error(
                "Design variants could not be written",
                design_id=design_id,
                compensated=compensated,
                error=str(e),
            )
            raise PartialWriteError(design_id, str(e), compensated=compensated) from e

        await self.cache.invalidate_all()
        self.audit.publish(
            DesignCreated(
                design_id=design_id,
                owner_id=owner_id,
                name=name,
                sizes=tuple(p.size.name for p in planned),
            )
        )
        logger.info(
            "Design created",
            design_id=design_id,
            owner_id=owner_id,
            variant_count=len(planned),
        )
        return design_detail(design)

    async def update_design(
        self,
        owner_id: str,
        design_id: str,
        command: UpdateDesignCommand,
    ) -> UpdateDesignResult:
        """Apply a partial update and reconcile the size batch.

        Raises:
            NotFoundOrUnauthorizedError: Design absent or not owned.
            ValidationError: Invalid input; nothing was written.
            ConflictError: Duplicate size in the batch; nothing was written.
            PartialWriteError: Some writes were applied before a store failure.
        """
        try:
            result = await self.reconciliation.reconcile(
                design_id,
                owner_id,
                shared_updates=command.shared,
                size_stock_pairs=command.sizes,
                primary=PrimaryUpdate(
                    size=command.size,
                    price=command.price,
                    stock=command.stock,
                ),
            )
        except PartialWriteError:
            await self.cache.invalidate_all()
            raise

        await self.cache.invalidate_all()
        self.audit.publish(
            DesignUpdated(
                design_id=design_id,
                owner_id=owner_id,
                changed_fields=tuple(result.changed_fields),
                updated_count=result.updated_count,
                created_count=result.created_count,
            )
        )
        return UpdateDesignResult(
            design=design_detail(result.design),
            updated=[size_variant_view(v) for v in result.updated],
            created=[size_variant_view(v) for v in result.created],
        )

    async def delete_design(self, owner_id: str, design_id: str) -> bool:
        """Delete an owned design and its variants.

        Returns:
            True if deleted, False if absent or not owned.
        """
        deleted = await self.repository.delete_design(design_id, owner_id)
        if not deleted:
            return False

        await self.repository.commit()
        await self.cache.invalidate_all()
        self.audit.publish(DesignDeleted(design_id=design_id, owner_id=owner_id))
        logger.info("Design deleted", design_id=design_id, owner_id=owner_id)
        return True

    async def _compensate_create(self, design_id: str, owner_id: str) -> bool:
        try:
            deleted = await self.repository.delete_design(design_id, owner_id)
            await self.repository.commit()
            return deleted
        except SQLAlchemyError:
            await self.repository.rollback()
            logger.exception("Compensating delete failed", design_id=design_id)
            return False
