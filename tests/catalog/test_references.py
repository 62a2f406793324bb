"""Tests for the reference resolver."""

import pytest

from apparel_catalog.catalog.references import ReferenceResolver
from apparel_catalog.catalog.repository import CatalogRepository
from apparel_catalog.domain import ValidationError


class TestReferenceResolver:
    """Tests for size and type resolution."""

    @pytest.mark.asyncio
    async def test_resolve_size_case_insensitive(self, references: ReferenceResolver) -> None:
        """Size names resolve regardless of case."""
        lower = await references.resolve_size("xl")
        upper = await references.resolve_size("XL")
        assert lower == upper
        assert lower.name == "XL"
        assert lower.sort_order == 2

    @pytest.mark.asyncio
    async def test_resolve_by_id(self, references: ReferenceResolver) -> None:
        """Ids resolve to the same snapshot as names."""
        formal = await references.resolve_type("formal")
        assert await references.resolve_type(formal.id) == formal
        assert formal.name == "Formal"

    @pytest.mark.asyncio
    async def test_unknown_size_lists_valid_sizes(self, references: ReferenceResolver) -> None:
        """Unknown sizes raise a validation error naming the valid ones."""
        with pytest.raises(ValidationError) as exc_info:
            await references.resolve_size("S")

        assert exc_info.value.field == "size"
        assert "M, L, XL, XXL" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_unknown_type(self, references: ReferenceResolver) -> None:
        """Unknown design types raise a validation error."""
        with pytest.raises(ValidationError) as exc_info:
            await references.resolve_type("Pajama")
        assert exc_info.value.field == "type"

    @pytest.mark.asyncio
    async def test_sizes_in_sort_order(self, references: ReferenceResolver) -> None:
        """Sizes are listed in size order."""
        assert [s.name for s in await references.sizes()] == ["M", "L", "XL", "XXL"]

    @pytest.mark.asyncio
    async def test_miss_reloads_new_rows(self, session_factory) -> None:
        """A miss reloads the tables so newly seeded rows resolve."""
        references = ReferenceResolver(session_factory, refresh_interval=0)
        await references.sizes()

        async with session_factory() as session:
            await CatalogRepository(session).upsert_size("XXXL", "Triple Extra Large", 4)
            await session.commit()

        size = await references.resolve_size("xxxl")
        assert size.sort_order == 4

    @pytest.mark.asyncio
    async def test_miss_reload_is_rate_limited(self, session_factory) -> None:
        """Within the refresh interval a miss does not reload."""
        references = ReferenceResolver(session_factory, refresh_interval=3600)
        await references.sizes()

        async with session_factory() as session:
            await CatalogRepository(session).upsert_size("XS", "Extra Small", -1)
            await session.commit()

        with pytest.raises(ValidationError):
            await references.resolve_size("XS")

        await references.refresh()
        assert (await references.resolve_size("XS")).name == "XS"
