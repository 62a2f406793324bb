"""Variant reconciliation.

Merges a partial design update and a batch of (size, stock) changes
against the design's existing variants. Each requested size is
classified as update, create, or skip.

The whole request is validated before anything is written. Once
writing starts, every applied step is committed on its own; a store
failure part way through is reported with what was already applied.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError

from apparel_catalog.catalog.models import Design, Variant
from apparel_catalog.catalog.references import ReferenceResolver, SizeRef, TypeRef
from apparel_catalog.catalog.repository import CatalogRepository
from apparel_catalog.domain.exceptions import (
    ConflictError,
    NotFoundOrUnauthorizedError,
    PartialWriteError,
    ValidationError,
)
from apparel_catalog.domain.value_objects import Discount, to_price

logger = structlog.get_logger()

NAME_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000
SHARED_FIELDS = ("name", "description", "type", "discount")


# ============================================================================
# Inputs
# ============================================================================


@dataclass
class SizeStock:
    """One requested size with its stock and optional price."""

    size: str
    stock: int
    price: Any = None
    image_url: str | None = None


@dataclass
class PrimaryUpdate:
    """Direct price/stock edit of one variant of the design.

    Attributes:
        size: Size of the variant to edit. May be omitted when the
            design has exactly one variant.
        price: New unit price.
        stock: New stock.
    """

    size: str | None = None
    price: Any = None
    stock: int | None = None

    @property
    def is_empty(self) -> bool:
        return self.size is None and self.price is None and self.stock is None


# ============================================================================
# Validated plan
# ============================================================================


@dataclass
class PlannedSize:
    """A validated batch entry."""

    size: SizeRef
    stock: int
    price: Decimal | None = None
    image_url: str | None = None


@dataclass
class SharedChanges:
    """Validated shared-attribute changes; only present keys are applied."""

    values: dict[str, Any] = field(default_factory=dict)
    design_type: TypeRef | None = None


@dataclass
class ReconciliationResult:
    """Outcome of a reconciliation.

    Attributes:
        design: The updated design.
        primary: The directly edited variant, if any.
        updated: Existing variants updated from the batch.
        created: Variants created from the batch.
        changed_fields: Shared attributes that were replaced.
    """

    design: Design
    primary: Variant | None = None
    updated: list[Variant] = field(default_factory=list)
    created: list[Variant] = field(default_factory=list)
    changed_fields: list[str] = field(default_factory=list)

    @property
    def updated_count(self) -> int:
        return len(self.updated)

    @property
    def created_count(self) -> int:
        return len(self.created)


# ============================================================================
# Validation helpers (shared with design creation)
# ============================================================================


def validate_name(value: Any) -> str:
    """Trim and bound a design name."""
    if not isinstance(value, str):
        raise ValidationError("Name is required", field="name")
    name = value.strip()
    if not name:
        raise ValidationError("Name is required", field="name")
    if len(name) > NAME_MAX_LENGTH:
        raise ValidationError(
            f"Name must be less than {NAME_MAX_LENGTH} characters", field="name"
        )
    return name


def validate_description(value: Any) -> str | None:
    """Trim and bound an optional description."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("Description must be a string", field="description")
    description = value.strip()
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"Description must be less than {DESCRIPTION_MAX_LENGTH} characters",
            field="description",
        )
    return description or None


def validate_discount(value: Any) -> Discount | None:
    """Accept a Discount, a {"type", "value"} mapping, or None."""
    if value is None or isinstance(value, Discount):
        return value
    if isinstance(value, Mapping):
        return Discount(kind=value.get("type"), value=value.get("value"))
    raise ValidationError("Discount must have a type and a value", field="discount")


def validate_stock(value: Any, field_name: str = "stock") -> int:
    """Stock must be a non-negative integer."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("Stock must be an integer", field=field_name)
    if value < 0:
        raise ValidationError("Stock cannot be negative", field=field_name)
    return value


async def validate_size_batch(
    references: ReferenceResolver,
    entries: Sequence[SizeStock],
    require_positive_stock: bool = True,
) -> list[PlannedSize]:
    """Validate a (size, stock) batch as a whole.

    Raises:
        ValidationError: Unknown size, bad stock or price, or no size with
            positive stock.
        ConflictError: The same size appears twice.
    """
    planned: list[PlannedSize] = []
    seen: set[str] = set()

    for index, entry in enumerate(entries):
        size = await references.resolve_size(entry.size)
        if size.id in seen:
            raise ConflictError(size.name)
        seen.add(size.id)

        planned.append(
            PlannedSize(
                size=size,
                stock=validate_stock(entry.stock, f"sizes[{index}].stock"),
                price=(
                    to_price(entry.price, f"sizes[{index}].price")
                    if entry.price is not None
                    else None
                ),
                image_url=entry.image_url,
            )
        )

    if planned and require_positive_stock and not any(p.stock > 0 for p in planned):
        raise ValidationError("No size with positive stock", field="sizes")

    return planned


# ============================================================================
# Engine
# ============================================================================


class ReconciliationEngine:
    """Applies design updates and size batches for one owner.

    Example usage:
        engine = ReconciliationEngine(repository, references)
        result = await engine.reconcile(
            design_id,
            owner_id="seller-1",
            shared_updates={"discount": {"type": "percentage", "value": 10}},
            size_stock_pairs=[SizeStock("L", 30), SizeStock("XL", 5)],
        )
    """

    def __init__(
        self,
        repository: CatalogRepository,
        references: ReferenceResolver,
    ) -> None:
        """Initialize engine.

        Args:
            repository: Catalog repository.
            references: Reference resolver for size/type names.
        """
        self.repository = repository
        self.references = references

    async def reconcile(
        self,
        design_id: str,
        owner_id: str,
        shared_updates: Mapping[str, Any] | None = None,
        size_stock_pairs: Sequence[SizeStock] | None = None,
        primary: PrimaryUpdate | None = None,
    ) -> ReconciliationResult:
        """Update a design and reconcile a size batch against its variants.

        Args:
            design_id: Design to update.
            owner_id: Requesting owner.
            shared_updates: Partial shared attributes (name, description,
                type, discount); absent keys are left unchanged.
            size_stock_pairs: Sizes to update or create.
            primary: Direct edit of one existing variant.

        Returns:
            Reconciliation result.

        Raises:
            NotFoundOrUnauthorizedError: Design absent or not owned.
            ValidationError: Invalid input; nothing was written.
            ConflictError: Duplicate size in the batch; nothing was written.
            PartialWriteError: A store failure interrupted the writes.
        """
        design = await self.repository.find_owned_design(design_id, owner_id)
        if design is None:
            raise NotFoundOrUnauthorizedError("Design", design_id)

        # Validate everything before the first write
        shared = await self._validate_shared(shared_updates or {})
        primary = primary if primary is not None and not primary.is_empty else None
        primary_variant, primary_price, primary_stock = self._validate_primary(design, primary)
        batch = await validate_size_batch(self.references, size_stock_pairs or [])
        if (
            not design.variants
            and primary_price is None
            and any(e.price is None and e.stock > 0 for e in batch)
        ):
            raise ValidationError("price is required for new sizes", field="price")

        result = ReconciliationResult(design=design)
        applied: list[str] = []

        try:
            result.changed_fields = await self._apply_shared(design, shared)
            if result.changed_fields:
                applied.append("design")

            if primary_variant is not None:
                result.primary = await self.repository.update_variant(
                    primary_variant,
                    design.discount,
                    price=primary_price,
                    stock=primary_stock,
                )
                await self.repository.commit()
                applied.append(primary_variant.size_name)

            skip_size_id = primary_variant.size_reference_id if primary_variant else None
            for entry in batch:
                if entry.stock <= 0 or entry.size.id == skip_size_id:
                    continue
                await self._apply_entry(
                    design, owner_id, entry, primary_variant, primary_price, result
                )
                await self.repository.commit()
                applied.append(entry.size.name)
        except (SQLAlchemyError, ConflictError) as e:
            await self.repository.rollback()
            logger.error(
                "Reconciliation interrupted",
                design_id=design_id,
                applied=applied,
                error=str(e),
            )
            raise PartialWriteError(design_id, str(e), applied=applied) from e

        logger.info(
            "Design reconciled",
            design_id=design_id,
            owner_id=owner_id,
            changed_fields=result.changed_fields,
            updated_count=result.updated_count,
            created_count=result.created_count,
        )
        return result

    async def _validate_shared(self, updates: Mapping[str, Any]) -> SharedChanges:
        unknown = set(updates) - set(SHARED_FIELDS)
        if unknown:
            raise ValidationError(
                f"Unknown design fields: {', '.join(sorted(unknown))}",
                details={"fields": sorted(unknown)},
            )

        changes = SharedChanges()
        if "name" in updates:
            changes.values["name"] = validate_name(updates["name"])
        if "description" in updates:
            changes.values["description"] = validate_description(updates["description"])
        if "discount" in updates:
            changes.values["discount"] = validate_discount(updates["discount"])
        if "type" in updates:
            if not updates["type"]:
                raise ValidationError("Type cannot be empty", field="type")
            changes.design_type = await self.references.resolve_type(updates["type"])
        return changes

    def _validate_primary(
        self,
        design: Design,
        primary: PrimaryUpdate | None,
    ) -> tuple[Variant | None, Decimal | None, int | None]:
        if primary is None:
            return None, None, None

        price = to_price(primary.price) if primary.price is not None else None
        stock = validate_stock(primary.stock) if primary.stock is not None else None

        if primary.size is None:
            if len(design.variants) != 1:
                raise ValidationError(
                    "size is required to change price or stock of a multi-size design",
                    field="size",
                )
            return design.variants[0], price, stock

        wanted = primary.size.strip().upper()
        for variant in design.variants:
            if variant.size_name.upper() == wanted or variant.size_reference_id == primary.size:
                return variant, price, stock

        raise ValidationError(
            f"Design has no variant of size '{primary.size}'", field="size"
        )

    async def _apply_shared(self, design: Design, shared: SharedChanges) -> list[str]:
        changed: list[str] = []
        reprice = False

        for name, value in shared.values.items():
            if name == "discount":
                if value != design.discount:
                    design.discount = value
                    reprice = True
                    changed.append(name)
            elif getattr(design, name) != value:
                setattr(design, name, value)
                changed.append(name)

        if shared.design_type is not None and shared.design_type.id != design.design_type_id:
            await self.repository.set_design_type(design, shared.design_type.id)
            changed.append("type")

        if not changed:
            return changed

        await self.repository.save_design(design)
        if reprice:
            await self.repository.reprice_design(design)
        await self.repository.commit()
        return changed

    async def _apply_entry(
        self,
        design: Design,
        owner_id: str,
        entry: PlannedSize,
        primary_variant: Variant | None,
        primary_price: Decimal | None,
        result: ReconciliationResult,
    ) -> None:
        existing = await self.repository.find_owned_variant(design.id, entry.size.id, owner_id)
        price = entry.price if entry.price is not None else primary_price

        if existing is not None:
            if entry.image_url is not None:
                existing.image_url = entry.image_url
            result.updated.append(
                await self.repository.update_variant(
                    existing,
                    design.discount,
                    price=price,
                    stock=entry.stock,
                )
            )
            return

        if price is None:
            price = self._reference_price(design, primary_variant)
        result.created.append(
            await self.repository.create_variant(
                design,
                entry.size.id,
                price=price,
                stock=entry.stock,
                image_url=entry.image_url,
            )
        )

    def _reference_price(self, design: Design, primary_variant: Variant | None) -> Decimal:
        if primary_variant is not None:
            return Decimal(primary_variant.price)
        variants = sorted(design.variants, key=lambda v: v.size.sort_order)
        return Decimal(variants[0].price)
