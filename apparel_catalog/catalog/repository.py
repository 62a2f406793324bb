"""Design and variant repository for database operations.

Provides point lookups, ownership-scoped queries and compound filter
queries over designs, variants and the reference lookup tables.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from apparel_catalog.catalog.models import Design, DesignType, SizeReference, Variant
from apparel_catalog.domain.exceptions import ConflictError
from apparel_catalog.domain.value_objects import Discount, compute_final_price


@dataclass
class VariantFilter:
    """Resolved filter for variant queries.

    Size and type are lookup-table ids, not names.

    Attributes:
        size_id: Filter by size reference.
        type_id: Filter by design type.
        min_price: Minimum final price (inclusive).
        max_price: Maximum final price (inclusive).
        owner_id: Filter by owning seller.
    """

    size_id: str | None = None
    type_id: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    owner_id: str | None = None


class CatalogRepository:
    """Repository for Design and Variant database operations.

    The repository only flushes; committing is left to the caller.

    Example usage:
        async with async_session_factory() as session:
            repo = CatalogRepository(session)
            items, total = await repo.query_variants(
                VariantFilter(size_id=large.id, max_price=Decimal("3000")),
                offset=0,
                limit=10,
            )
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def commit(self) -> None:
        """Commit the current unit of work."""
        await self.session.commit()

    async def rollback(self) -> None:
        """Roll back the current unit of work."""
        await self.session.rollback()

    # ------------------------------------------------------------------
    # Designs
    # ------------------------------------------------------------------

    async def create_design(
        self,
        owner_id: str,
        name: str,
        design_type_id: str,
        description: str | None = None,
        discount: Discount | None = None,
    ) -> Design:
        """Create a design with no variants.

        Args:
            owner_id: Owning seller.
            name: Design name.
            design_type_id: Resolved design type ID.
            description: Optional description.
            discount: Optional design-wide discount.

        Returns:
            The flushed design.
        """
        design = Design(
            owner_id=owner_id,
            name=name,
            description=description,
            design_type=await self._get_design_type(design_type_id),
            variants=[],
        )
        design.discount = discount
        self.session.add(design)
        await self.session.flush()
        return design

    async def find_design(self, design_id: str) -> Design | None:
        """Get design by ID with its variants loaded.

        Args:
            design_id: Design ID.

        Returns:
            Design if found, None otherwise.
        """
        query = (
            select(Design)
            .options(selectinload(Design.variants))
            .where(Design.id == design_id)
        )
        result = await self.session.execute(query)
        return result.unique().scalar_one_or_none()

    async def find_owned_design(self, design_id: str, owner_id: str) -> Design | None:
        """Get design by ID only if it belongs to the given owner.

        Args:
            design_id: Design ID.
            owner_id: Expected owner.

        Returns:
            Design if found and owned, None otherwise.
        """
        query = (
            select(Design)
            .options(selectinload(Design.variants))
            .where(
                and_(
                    Design.id == design_id,
                    Design.owner_id == owner_id,
                )
            )
        )
        result = await self.session.execute(query)
        return result.unique().scalar_one_or_none()

    async def reprice_design(self, design: Design) -> None:
        """Recompute the final price of every variant of a design."""
        discount = design.discount
        for variant in design.variants:
            variant.reprice(discount)
        await self.session.flush()

    async def set_design_type(self, design: Design, design_type_id: str) -> None:
        """Point a design at another design type."""
        design.design_type = await self._get_design_type(design_type_id)

    async def save_design(self, design: Design) -> Design:
        """Flush pending changes on a design."""
        self.session.add(design)
        await self.session.flush()
        return design

    async def delete_design(self, design_id: str, owner_id: str) -> bool:
        """Delete an owned design and, by cascade, its variants.

        Args:
            design_id: Design ID.
            owner_id: Requesting owner.

        Returns:
            True if deleted, False if absent or not owned.
        """
        design = await self.find_owned_design(design_id, owner_id)
        if design is None:
            return False

        await self.session.delete(design)
        await self.session.flush()
        return True

    # ------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------

    async def create_variant(
        self,
        design: Design,
        size_id: str,
        price: Decimal,
        stock: int,
        image_url: str | None = None,
    ) -> Variant:
        """Create a size variant of a design.

        Args:
            design: Parent design.
            size_id: Resolved size reference ID.
            price: Unit price.
            stock: Units available.
            image_url: Optional image URL.

        Returns:
            The flushed variant.

        Raises:
            ConflictError: If the design already has a variant of this size.
        """
        size = await self.session.get(SizeReference, size_id)
        if size is None:
            raise LookupError(f"Unknown size reference {size_id}")
        if await self._variant_exists(design.id, size.id):
            raise ConflictError(size.name, design.id)

        variant = Variant(
            size=size,
            price=price,
            stock=stock,
            image_url=image_url,
            final_price=compute_final_price(price, design.discount),
        )
        design.variants.append(variant)

        try:
            await self.session.flush()
        except IntegrityError as e:
            raise ConflictError(size.name, design.id) from e
        return variant

    async def update_variant(
        self,
        variant: Variant,
        discount: Discount | None,
        price: Decimal | None = None,
        stock: int | None = None,
    ) -> Variant:
        """Update price and/or stock of a variant and recompute its final price.

        Args:
            variant: Variant to update.
            discount: Current discount of the owning design.
            price: New unit price, if changing.
            stock: New stock, if changing.

        Returns:
            The updated variant.
        """
        if price is not None:
            variant.price = price
        if stock is not None:
            variant.stock = stock
        variant.reprice(discount)
        await self.session.flush()
        return variant

    async def find_variants_by_design(self, design_id: str) -> list[Variant]:
        """Get all variants of a design, zero-stock included, in size order.

        Args:
            design_id: Design ID.

        Returns:
            Variants ordered by size sort order.
        """
        query = (
            select(Variant)
            .join(SizeReference, Variant.size_reference_id == SizeReference.id)
            .where(Variant.design_id == design_id)
            .order_by(SizeReference.sort_order)
        )
        result = await self.session.execute(query)
        return list(result.unique().scalars().all())

    async def find_owned_variant(
        self,
        design_id: str,
        size_id: str,
        owner_id: str,
    ) -> Variant | None:
        """Get the variant of a given size, scoped to the design's owner.

        Args:
            design_id: Design ID.
            size_id: Size reference ID.
            owner_id: Expected owner of the design.

        Returns:
            Variant if it exists under a design owned by owner_id.
        """
        query = (
            select(Variant)
            .join(Design, Variant.design_id == Design.id)
            .where(
                and_(
                    Variant.design_id == design_id,
                    Variant.size_reference_id == size_id,
                    Design.owner_id == owner_id,
                )
            )
        )
        result = await self.session.execute(query)
        return result.unique().scalar_one_or_none()

    async def query_variants(
        self,
        filters: VariantFilter,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[Sequence[Variant], int]:
        """Find variants with filtering and pagination, newest first.

        Args:
            filters: Resolved filter.
            offset: Result offset.
            limit: Maximum results.

        Returns:
            Tuple of (page of variants, total matching count).
        """
        conditions = self._build_conditions(filters)

        query = (
            select(Variant)
            .join(Design, Variant.design_id == Design.id)
            .order_by(Variant.created_at.desc(), Variant.id.desc())
            .limit(limit)
            .offset(offset)
        )
        count_query = (
            select(func.count(Variant.id))
            .select_from(Variant)
            .join(Design, Variant.design_id == Design.id)
        )
        if conditions:
            query = query.where(and_(*conditions))
            count_query = count_query.where(and_(*conditions))

        result = await self.session.execute(query)
        items = result.unique().scalars().all()

        total = (await self.session.execute(count_query)).scalar_one()
        return items, total

    async def query_all_variants(self, filters: VariantFilter) -> list[Variant]:
        """Find every variant matching a filter, without pagination.

        Args:
            filters: Resolved filter.

        Returns:
            Matching variants, newest first.
        """
        query = (
            select(Variant)
            .join(Design, Variant.design_id == Design.id)
            .order_by(Variant.created_at.desc(), Variant.id.desc())
        )
        conditions = self._build_conditions(filters)
        if conditions:
            query = query.where(and_(*conditions))

        result = await self.session.execute(query)
        return list(result.unique().scalars().all())

    # ------------------------------------------------------------------
    # Reference data
    # ------------------------------------------------------------------

    async def list_sizes(self, active_only: bool = True) -> list[SizeReference]:
        """Get size references in sort order."""
        query = select(SizeReference).order_by(SizeReference.sort_order)
        if active_only:
            query = query.where(SizeReference.is_active.is_(True))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_design_types(self, active_only: bool = True) -> list[DesignType]:
        """Get design types ordered by name."""
        query = select(DesignType).order_by(DesignType.name)
        if active_only:
            query = query.where(DesignType.is_active.is_(True))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def upsert_size(
        self,
        name: str,
        display_name: str,
        sort_order: int,
    ) -> SizeReference:
        """Create or update a size reference by name."""
        name = name.strip().upper()
        result = await self.session.execute(
            select(SizeReference).where(SizeReference.name == name)
        )
        size = result.scalar_one_or_none()
        if size is None:
            size = SizeReference(name=name)
            self.session.add(size)
        size.display_name = display_name
        size.sort_order = sort_order
        size.is_active = True
        await self.session.flush()
        return size

    async def upsert_design_type(
        self,
        name: str,
        description: str | None = None,
    ) -> DesignType:
        """Create or update a design type by name."""
        name = name.strip()
        result = await self.session.execute(select(DesignType).where(DesignType.name == name))
        design_type = result.scalar_one_or_none()
        if design_type is None:
            design_type = DesignType(name=name)
            self.session.add(design_type)
        design_type.description = description
        design_type.is_active = True
        await self.session.flush()
        return design_type

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_design_type(self, design_type_id: str) -> DesignType:
        design_type = await self.session.get(DesignType, design_type_id)
        if design_type is None:
            raise LookupError(f"Unknown design type {design_type_id}")
        return design_type

    async def _variant_exists(self, design_id: str, size_id: str) -> bool:
        query = select(func.count(Variant.id)).where(
            and_(
                Variant.design_id == design_id,
                Variant.size_reference_id == size_id,
            )
        )
        result = await self.session.execute(query)
        return result.scalar_one() > 0

    def _build_conditions(self, filters: VariantFilter) -> list[Any]:
        conditions = []

        if filters.size_id is not None:
            conditions.append(Variant.size_reference_id == filters.size_id)

        if filters.type_id is not None:
            conditions.append(Design.design_type_id == filters.type_id)

        if filters.min_price is not None:
            conditions.append(Variant.final_price >= filters.min_price)

        if filters.max_price is not None:
            conditions.append(Variant.final_price <= filters.max_price)

        if filters.owner_id is not None:
            conditions.append(Design.owner_id == filters.owner_id)

        return conditions
