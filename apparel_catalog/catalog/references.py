"""Reference data resolution.

Resolves size and design-type names (or ids) to lookup-table rows
through an in-memory read-through cache. The resolver is created once
per application and handed to the listing engine and the catalog
service explicitly.
"""

import asyncio
import time
from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from apparel_catalog.catalog.repository import CatalogRepository
from apparel_catalog.domain.exceptions import ValidationError

logger = structlog.get_logger()


@dataclass(frozen=True)
class SizeRef:
    """Snapshot of a size reference row."""

    id: str
    name: str
    display_name: str
    sort_order: int


@dataclass(frozen=True)
class TypeRef:
    """Snapshot of a design type row."""

    id: str
    name: str
    description: str | None = None


class ReferenceResolver:
    """Read-through cache over the size and design-type lookup tables.

    The tables are loaded on first use. A lookup that misses triggers
    one reload (at most once per ``refresh_interval`` seconds) so that
    newly seeded reference rows become visible without a restart.

    Args:
        session_factory: Factory for sessions used to load reference rows.
        refresh_interval: Minimum seconds between miss-triggered reloads.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        refresh_interval: float = 30.0,
    ) -> None:
        self._session_factory = session_factory
        self._refresh_interval = refresh_interval
        self._lock = asyncio.Lock()
        self._loaded_at: float | None = None
        self._sizes_by_name: dict[str, SizeRef] = {}
        self._sizes_by_id: dict[str, SizeRef] = {}
        self._types_by_name: dict[str, TypeRef] = {}
        self._types_by_id: dict[str, TypeRef] = {}

    async def refresh(self) -> None:
        """Reload both lookup tables."""
        async with self._lock:
            async with self._session_factory() as session:
                repository = CatalogRepository(session)
                sizes = await repository.list_sizes()
                types = await repository.list_design_types()

            self._sizes_by_name = {
                s.name.upper(): SizeRef(s.id, s.name, s.display_name, s.sort_order)
                for s in sizes
            }
            self._sizes_by_id = {ref.id: ref for ref in self._sizes_by_name.values()}
            self._types_by_name = {
                t.name.lower(): TypeRef(t.id, t.name, t.description) for t in types
            }
            self._types_by_id = {ref.id: ref for ref in self._types_by_name.values()}
            self._loaded_at = time.monotonic()

        logger.info(
            "Reference cache loaded",
            sizes=len(self._sizes_by_name),
            types=len(self._types_by_name),
        )

    async def sizes(self) -> list[SizeRef]:
        """All active sizes in sort order."""
        await self._ensure_loaded()
        return sorted(self._sizes_by_name.values(), key=lambda s: s.sort_order)

    async def types(self) -> list[TypeRef]:
        """All active design types ordered by name."""
        await self._ensure_loaded()
        return sorted(self._types_by_name.values(), key=lambda t: t.name)

    async def resolve_size(self, value: str) -> SizeRef:
        """Resolve a size name (case-insensitive) or id.

        Raises:
            ValidationError: If no such size exists.
        """
        ref = self._lookup_size(value)
        if ref is None and await self._refresh_on_miss():
            ref = self._lookup_size(value)
        if ref is None:
            valid = ", ".join(s.name for s in await self.sizes())
            raise ValidationError(
                f"Invalid size: '{value}'. Valid sizes are: {valid}",
                field="size",
            )
        return ref

    async def resolve_type(self, value: str) -> TypeRef:
        """Resolve a design type name (case-insensitive) or id.

        Raises:
            ValidationError: If no such type exists.
        """
        ref = self._lookup_type(value)
        if ref is None and await self._refresh_on_miss():
            ref = self._lookup_type(value)
        if ref is None:
            valid = ", ".join(t.name for t in await self.types())
            raise ValidationError(
                f"Invalid design type: '{value}'. Valid types are: {valid}",
                field="type",
            )
        return ref

    async def size_by_id(self, size_id: str) -> SizeRef | None:
        """Get a size snapshot by id, or None."""
        await self._ensure_loaded()
        return self._sizes_by_id.get(size_id)

    async def _ensure_loaded(self) -> None:
        if self._loaded_at is None:
            await self.refresh()

    async def _refresh_on_miss(self) -> bool:
        if self._loaded_at is not None:
            elapsed = time.monotonic() - self._loaded_at
            if elapsed < self._refresh_interval:
                return False
        await self.refresh()
        return True

    def _lookup_size(self, value: str) -> SizeRef | None:
        value = value.strip()
        return self._sizes_by_id.get(value) or self._sizes_by_name.get(value.upper())

    def _lookup_type(self, value: str) -> TypeRef | None:
        value = value.strip()
        return self._types_by_id.get(value) or self._types_by_name.get(value.lower())
