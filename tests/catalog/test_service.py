"""Tests for the catalog service."""

import json
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from apparel_catalog.catalog.cache import ListingCache
from apparel_catalog.catalog.listing import ListingQuery
from apparel_catalog.catalog.reconciliation import SizeStock
from apparel_catalog.catalog.service import (
    CatalogService,
    CreateDesignCommand,
    UpdateDesignCommand,
)
from apparel_catalog.domain import (
    ConflictError,
    NotFoundOrUnauthorizedError,
    PartialWriteError,
    ValidationError,
)
from apparel_catalog.infrastructure.audit import AuditPublisher


def shirt_command(**overrides) -> CreateDesignCommand:
    values = {
        "name": "Linen Shirt",
        "type": "Casual",
        "price": Decimal("1500"),
        "sizes": [SizeStock("M", 30), SizeStock("L", 25), SizeStock("XL", 0)],
    }
    values.update(overrides)
    return CreateDesignCommand(**values)


def listing_keys(redis_client) -> list[str]:
    return [key for key in redis_client.store if key.startswith("list:")]


class TestCreateDesign:
    """Tests for publishing designs."""

    @pytest.mark.asyncio
    async def test_create_persists_zero_stock_sizes(self, service: CatalogService) -> None:
        """Sold-out sizes are kept at creation."""
        detail = await service.create_design("seller-1", shirt_command())

        assert detail.owner_id == "seller-1"
        assert detail.type == "Casual"
        assert [(v.size, v.stock) for v in detail.variants] == [("M", 30), ("L", 25), ("XL", 0)]
        assert all(v.price == 1500.0 for v in detail.variants)

    @pytest.mark.asyncio
    async def test_entry_price_overrides_default(self, service: CatalogService) -> None:
        """A size's own price wins over the request price."""
        detail = await service.create_design(
            "seller-1",
            shirt_command(
                sizes=[SizeStock("M", 1), SizeStock("XXL", 1, price=Decimal("1750"))],
                discount={"type": "amount", "value": 250},
            ),
        )

        finals = {v.size: v.final_price for v in detail.variants}
        assert finals == {"M": 1250.0, "XXL": 1500.0}
        assert detail.discount.value == 250.0

    @pytest.mark.asyncio
    async def test_discount_stored_in_cents(self, service: CatalogService) -> None:
        """A sub-cent discount reads back as the value that was applied."""
        created = await service.create_design(
            "seller-1",
            shirt_command(
                price=Decimal("10"),
                sizes=[SizeStock("M", 1)],
                discount={"type": "amount", "value": "0.005"},
            ),
        )

        detail = await service.get_design(created.id)

        assert detail.discount.value == 0.01
        assert detail.variants[0].final_price == 9.99

    @pytest.mark.asyncio
    async def test_oversized_amount_discount_rejected(self, service: CatalogService) -> None:
        """Amount discounts beyond the largest price are a validation error."""
        with pytest.raises(ValidationError) as exc_info:
            await service.create_design(
                "seller-1", shirt_command(discount={"type": "amount", "value": 1e12})
            )

        assert exc_info.value.field == "discount.value"

    @pytest.mark.asyncio
    async def test_create_requires_positive_stock(self, service: CatalogService) -> None:
        """At least one size must be in stock."""
        with pytest.raises(ValidationError):
            await service.create_design(
                "seller-1", shirt_command(sizes=[SizeStock("M", 0), SizeStock("L", 0)])
            )

    @pytest.mark.asyncio
    async def test_create_requires_sizes(self, service: CatalogService) -> None:
        """A design needs at least one size."""
        with pytest.raises(ValidationError) as exc_info:
            await service.create_design("seller-1", shirt_command(sizes=[]))
        assert exc_info.value.field == "sizes"

    @pytest.mark.asyncio
    async def test_create_requires_a_price(self, service: CatalogService) -> None:
        """Every size needs a price from the entry or the request."""
        with pytest.raises(ValidationError) as exc_info:
            await service.create_design(
                "seller-1", shirt_command(price=None, sizes=[SizeStock("M", 3)])
            )
        assert exc_info.value.field == "sizes[0].price"

    @pytest.mark.asyncio
    async def test_duplicate_sizes_write_nothing(self, service: CatalogService) -> None:
        """Duplicates are rejected before the design is written."""
        with pytest.raises(ConflictError):
            await service.create_design(
                "seller-1", shirt_command(sizes=[SizeStock("L", 30), SizeStock("L", 30)])
            )

        page = await service.list_designs(ListingQuery())
        assert page.total == 0

    @pytest.mark.asyncio
    async def test_variant_failure_compensates(
        self, service: CatalogService, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """If sizes cannot be written the design is removed again."""

        async def failing_create(*args, **kwargs):
            raise OperationalError("INSERT INTO variants", {}, Exception("disk full"))

        monkeypatch.setattr(service.repository, "create_variant", failing_create)

        with pytest.raises(PartialWriteError) as exc_info:
            await service.create_design("seller-1", shirt_command())

        assert exc_info.value.compensated is True
        with pytest.raises(NotFoundOrUnauthorizedError):
            await service.get_design(exc_info.value.design_id)


class TestReadPath:
    """Tests for cache-aside listing and detail reads."""

    @pytest.mark.asyncio
    async def test_listing_populates_and_uses_cache(
        self, service: CatalogService, redis_client
    ) -> None:
        """The first read fills the cache; the second is served from it."""
        await service.create_design("seller-1", shirt_command())

        first = await service.list_designs(ListingQuery(size="m"))
        assert listing_keys(redis_client) == ["list:size:M:page:1:limit:10"]

        # Tamper with the stored page to prove the next read is a cache hit
        payload = json.loads(redis_client.store["list:size:M:page:1:limit:10"])
        payload["items"][0]["name"] = "From cache"
        redis_client.store["list:size:M:page:1:limit:10"] = json.dumps(payload).encode()

        second = await service.list_designs(ListingQuery(size="M"))

        assert first.items[0].name == "Linen Shirt"
        assert second.items[0].name == "From cache"
        assert second.total == first.total

    @pytest.mark.asyncio
    async def test_grouped_listing_not_cached(
        self, service: CatalogService, redis_client
    ) -> None:
        """Grouped listings always go to the store."""
        await service.create_design("seller-1", shirt_command())

        page = await service.list_designs(ListingQuery(group_by="design"))

        assert page.items[0].total_stock == 55
        assert page.items[0].available_sizes == ["M", "L"]
        assert listing_keys(redis_client) == []

    @pytest.mark.asyncio
    async def test_unreadable_cache_entry_is_ignored(
        self, service: CatalogService, redis_client
    ) -> None:
        """A corrupt cached page falls back to the store."""
        await service.create_design("seller-1", shirt_command())
        redis_client.store["list:page:1:limit:10"] = b"not json"

        page = await service.list_designs(ListingQuery())

        assert page.total == 3

    @pytest.mark.asyncio
    async def test_huge_price_bound_lists_everything(
        self, service: CatalogService, redis_client
    ) -> None:
        """A maxPrice far above any price behaves like no upper bound."""
        await service.create_design("seller-1", shirt_command())

        page = await service.list_designs(ListingQuery(max_price="1e30"))

        assert page.total == 3
        assert listing_keys(redis_client) == ["list:maxPrice:10000.01:page:1:limit:10"]

    @pytest.mark.asyncio
    async def test_get_design_includes_zero_stock(self, service: CatalogService) -> None:
        """Detail reads show every size in size order."""
        created = await service.create_design("seller-1", shirt_command())

        detail = await service.get_design(created.id)

        assert [v.size for v in detail.variants] == ["M", "L", "XL"]

    @pytest.mark.asyncio
    async def test_get_missing_design(self, service: CatalogService) -> None:
        """Unknown ids raise not found."""
        with pytest.raises(NotFoundOrUnauthorizedError):
            await service.get_design("no-such-design")


class TestInvalidation:
    """Tests for cache invalidation after writes."""

    async def _warm(self, service: CatalogService, redis_client) -> None:
        await service.list_designs(ListingQuery())
        await service.list_designs(ListingQuery(size="L", max_price="2000"))
        await service.list_designs(ListingQuery(page=2, limit=1))
        assert len(listing_keys(redis_client)) == 3

    @pytest.mark.asyncio
    async def test_create_invalidates(self, service: CatalogService, redis_client) -> None:
        """No listing key survives a create."""
        await self._warm(service, redis_client)
        await service.create_design("seller-1", shirt_command())
        assert listing_keys(redis_client) == []

    @pytest.mark.asyncio
    async def test_update_invalidates(self, service: CatalogService, redis_client) -> None:
        """No listing key survives an update, even one that counts nothing."""
        created = await service.create_design("seller-1", shirt_command())
        await self._warm(service, redis_client)

        result = await service.update_design(
            "seller-1", created.id, UpdateDesignCommand(size="M", price=Decimal("1400"))
        )

        assert result.updated_count == 0
        assert result.created_count == 0
        assert listing_keys(redis_client) == []

    @pytest.mark.asyncio
    async def test_delete_invalidates(self, service: CatalogService, redis_client) -> None:
        """No listing key survives a delete."""
        created = await service.create_design("seller-1", shirt_command())
        await self._warm(service, redis_client)

        assert await service.delete_design("seller-1", created.id) is True

        assert listing_keys(redis_client) == []
        assert (await service.list_designs(ListingQuery())).total == 0

    @pytest.mark.asyncio
    async def test_failed_delete_keeps_cache(self, service: CatalogService, redis_client) -> None:
        """A non-owner delete writes nothing and invalidates nothing."""
        created = await service.create_design("seller-1", shirt_command())
        await self._warm(service, redis_client)

        assert await service.delete_design("seller-2", created.id) is False
        assert len(listing_keys(redis_client)) == 3

    @pytest.mark.asyncio
    async def test_listing_reflects_update(self, service: CatalogService) -> None:
        """A read after a write sees the write."""
        created = await service.create_design("seller-1", shirt_command())
        before = await service.list_designs(ListingQuery(size="XL"))
        assert before.items[0].stock == 0

        await service.update_design(
            "seller-1",
            created.id,
            UpdateDesignCommand(sizes=[SizeStock("XL", 12)]),
        )

        after = await service.list_designs(ListingQuery(size="XL"))
        assert after.items[0].stock == 12


class TestUpdateDesign:
    """Tests for updates through the service."""

    @pytest.mark.asyncio
    async def test_update_returns_counts_and_detail(self, service: CatalogService) -> None:
        """Updated and created sizes are reported with the new detail."""
        created = await service.create_design("seller-1", shirt_command())

        result = await service.update_design(
            "seller-1",
            created.id,
            UpdateDesignCommand(
                shared={"name": "Linen Shirt II"},
                sizes=[SizeStock("L", 40), SizeStock("XXL", 5, price=Decimal("1600"))],
            ),
        )

        assert result.updated_count == 1
        assert result.created_count == 1
        assert result.design.name == "Linen Shirt II"
        assert [v.size for v in result.design.variants] == ["M", "L", "XL", "XXL"]
        assert result.created[0].price == 1600.0

    @pytest.mark.asyncio
    async def test_non_owner_update_rejected(self, service: CatalogService) -> None:
        """Another seller cannot update the design."""
        created = await service.create_design("seller-1", shirt_command())

        with pytest.raises(NotFoundOrUnauthorizedError):
            await service.update_design(
                "seller-2", created.id, UpdateDesignCommand(shared={"name": "Mine now"})
            )


class TestDegradedDependencies:
    """Tests for cache and audit failures."""

    @pytest.mark.asyncio
    async def test_writes_and_reads_survive_redis_outage(
        self, session, references, failing_redis
    ) -> None:
        """A down Redis never fails a request."""
        service = CatalogService(
            session,
            references,
            ListingCache(failing_redis, timeout_seconds=0.5),
            AuditPublisher(failing_redis, timeout_seconds=0.5),
        )

        created = await service.create_design("seller-1", shirt_command())
        page = await service.list_designs(ListingQuery())
        await service.update_design(
            "seller-1", created.id, UpdateDesignCommand(sizes=[SizeStock("XL", 3)])
        )
        await service.audit.drain()

        assert page.total == 3
        assert await service.delete_design("seller-1", created.id) is True

    @pytest.mark.asyncio
    async def test_audit_events_published(
        self, service: CatalogService, redis_client
    ) -> None:
        """Each write enqueues one audit event."""
        created = await service.create_design("seller-1", shirt_command())
        await service.update_design(
            "seller-1", created.id, UpdateDesignCommand(shared={"description": "Breezy"})
        )
        await service.delete_design("seller-1", created.id)
        await service.audit.drain()

        events = [json.loads(raw) for raw in redis_client.lists["catalog:audit"]]
        assert [e["event_type"] for e in events] == [
            "design.created",
            "design.updated",
            "design.deleted",
        ]
        assert events[0]["payload"]["sizes"] == ["M", "L", "XL"]
        assert events[1]["payload"]["changed_fields"] == ["description"]
        assert all(e["design_id"] == created.id for e in events)
