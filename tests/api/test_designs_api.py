"""Tests for design API endpoints."""

import httpx
import pytest

SHIRT = {
    "name": "Linen Shirt",
    "description": "Breathable summer linen",
    "type": "Casual",
    "price": 1500,
    "discount": {"type": "percentage", "value": 10},
    "sizes": [
        {"size": "M", "stock": 30},
        {"size": "L", "stock": 25},
        {"size": "XL", "stock": 0, "price": 1600},
    ],
}


async def create_shirt(client: httpx.AsyncClient, headers: dict[str, str], **overrides) -> dict:
    response = await client.post("/designs", json={**SHIRT, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateDesign:
    """Tests for POST /designs."""

    @pytest.mark.asyncio
    async def test_create_design(self, api_client: httpx.AsyncClient, owner_headers) -> None:
        """Creating a design returns it with every size."""
        data = await create_shirt(api_client, owner_headers)

        assert data["owner_id"] == "seller-1"
        assert data["type"] == "Casual"
        assert data["discount"] == {"type": "percentage", "value": 10.0}
        assert [(v["size"], v["final_price"]) for v in data["variants"]] == [
            ("M", 1350.0),
            ("L", 1350.0),
            ("XL", 1440.0),
        ]

    @pytest.mark.asyncio
    async def test_missing_owner_is_unauthorized(self, api_client: httpx.AsyncClient) -> None:
        """Writes require the owner header."""
        response = await api_client.post("/designs", json=SHIRT)

        assert response.status_code == 401
        data = response.json()
        assert data["error_code"] == "UNAUTHORIZED"
        assert "request_id" in data

    @pytest.mark.asyncio
    async def test_invalid_size_is_bad_request(
        self, api_client: httpx.AsyncClient, owner_headers
    ) -> None:
        """Unknown sizes map to 400 with the valid values."""
        body = {**SHIRT, "sizes": [{"size": "S", "stock": 3}]}
        response = await api_client.post("/designs", json=body, headers=owner_headers)

        assert response.status_code == 400
        data = response.json()
        assert data["error_code"] == "VALIDATION_ERROR"
        assert data["details"]["field"] == "size"
        assert "M, L, XL, XXL" in data["message"]

    @pytest.mark.asyncio
    async def test_duplicate_size_is_conflict(
        self, api_client: httpx.AsyncClient, owner_headers
    ) -> None:
        """Duplicate sizes map to 409."""
        body = {**SHIRT, "sizes": [{"size": "L", "stock": 30}, {"size": "L", "stock": 30}]}
        response = await api_client.post("/designs", json=body, headers=owner_headers)

        assert response.status_code == 409
        assert response.json()["error_code"] == "CONFLICT"

    @pytest.mark.asyncio
    async def test_all_zero_stock_is_bad_request(
        self, api_client: httpx.AsyncClient, owner_headers
    ) -> None:
        """A design must have some stock."""
        body = {**SHIRT, "sizes": [{"size": "M", "stock": 0}]}
        response = await api_client.post("/designs", json=body, headers=owner_headers)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_malformed_body_is_unprocessable(
        self, api_client: httpx.AsyncClient, owner_headers
    ) -> None:
        """Request shape errors are rejected by FastAPI."""
        response = await api_client.post(
            "/designs", json={"name": "No sizes"}, headers=owner_headers
        )
        assert response.status_code == 422


class TestListDesigns:
    """Tests for GET /designs."""

    @pytest.mark.asyncio
    async def test_list_variants(self, api_client: httpx.AsyncClient, owner_headers) -> None:
        """The listing is public and flat by default."""
        await create_shirt(api_client, owner_headers)

        response = await api_client.get("/designs", params={"size": "l"})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["page"] == 1
        assert data["limit"] == 10
        assert data["items"][0]["size"] == "L"
        assert data["items"][0]["name"] == "Linen Shirt"

    @pytest.mark.asyncio
    async def test_list_price_bounds(self, api_client: httpx.AsyncClient, owner_headers) -> None:
        """minPrice/maxPrice bound the final price."""
        await create_shirt(api_client, owner_headers)

        response = await api_client.get("/designs", params={"minPrice": "1400", "maxPrice": "1500"})

        assert [item["size"] for item in response.json()["items"]] == ["XL"]

    @pytest.mark.asyncio
    async def test_list_grouped(self, api_client: httpx.AsyncClient, owner_headers) -> None:
        """groupBy=design folds sizes into one entry."""
        await create_shirt(api_client, owner_headers)

        response = await api_client.get("/designs", params={"groupBy": "design"})

        assert response.status_code == 200
        group = response.json()["items"][0]
        assert group["total_stock"] == 55
        assert group["available_sizes"] == ["M", "L"]
        assert len(group["variants"]) == 3

    @pytest.mark.asyncio
    async def test_list_rejects_bad_parameters(self, api_client: httpx.AsyncClient) -> None:
        """Out-of-range parameters are 400s."""
        for params in (
            {"limit": "101"},
            {"page": "0"},
            {"page": "10000000000000000000"},
            {"minPrice": "10", "maxPrice": "5"},
            {"groupBy": "size"},
            {"type": "Pajama"},
        ):
            response = await api_client.get("/designs", params=params)
            assert response.status_code == 400, params
            assert response.json()["error_code"] == "VALIDATION_ERROR"


class TestGetDesign:
    """Tests for GET /designs/{id}."""

    @pytest.mark.asyncio
    async def test_get_design(self, api_client: httpx.AsyncClient, owner_headers) -> None:
        """Detail reads are public."""
        created = await create_shirt(api_client, owner_headers)

        response = await api_client.get(f"/designs/{created['id']}")

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

    @pytest.mark.asyncio
    async def test_get_missing_design(self, api_client: httpx.AsyncClient) -> None:
        """Unknown ids are 404."""
        response = await api_client.get("/designs/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"


class TestUpdateDesign:
    """Tests for PATCH /designs/{id}."""

    @pytest.mark.asyncio
    async def test_update_reports_sizes(
        self, api_client: httpx.AsyncClient, owner_headers
    ) -> None:
        """The response lists updated and created sizes with counts."""
        created = await create_shirt(api_client, owner_headers)

        response = await api_client.patch(
            f"/designs/{created['id']}",
            json={"sizes": [{"size": "XL", "stock": 4}, {"size": "XXL", "stock": 2}]},
            headers=owner_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["updated_count"] == 1
        assert data["created_count"] == 1
        assert data["updated_sizes"][0]["size"] == "XL"
        assert data["created_sizes"][0]["size"] == "XXL"

    @pytest.mark.asyncio
    async def test_remove_discount_with_null(
        self, api_client: httpx.AsyncClient, owner_headers
    ) -> None:
        """An explicit null discount removes it and reprices every size."""
        created = await create_shirt(api_client, owner_headers)

        response = await api_client.patch(
            f"/designs/{created['id']}",
            json={"discount": None},
            headers=owner_headers,
        )

        design = response.json()["design"]
        assert design["discount"] is None
        assert [v["final_price"] for v in design["variants"]] == [1500.0, 1500.0, 1600.0]

    @pytest.mark.asyncio
    async def test_omitted_fields_unchanged(
        self, api_client: httpx.AsyncClient, owner_headers
    ) -> None:
        """Fields not sent are left alone."""
        created = await create_shirt(api_client, owner_headers)

        response = await api_client.patch(
            f"/designs/{created['id']}",
            json={"name": "Linen Shirt II"},
            headers=owner_headers,
        )

        design = response.json()["design"]
        assert design["name"] == "Linen Shirt II"
        assert design["description"] == "Breathable summer linen"
        assert design["discount"] == {"type": "percentage", "value": 10.0}

    @pytest.mark.asyncio
    async def test_price_without_size_on_multi_size_design(
        self, api_client: httpx.AsyncClient, owner_headers
    ) -> None:
        """Price without size is ambiguous for a multi-size design."""
        created = await create_shirt(api_client, owner_headers)

        response = await api_client.patch(
            f"/designs/{created['id']}", json={"price": 1200}, headers=owner_headers
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_non_owner_gets_not_found(
        self, api_client: httpx.AsyncClient, owner_headers, other_owner_headers
    ) -> None:
        """Another seller cannot tell the design exists."""
        created = await create_shirt(api_client, owner_headers)

        response = await api_client.patch(
            f"/designs/{created['id']}", json={"name": "Mine"}, headers=other_owner_headers
        )

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"


class TestDeleteDesign:
    """Tests for DELETE /designs/{id}."""

    @pytest.mark.asyncio
    async def test_delete_design(self, api_client: httpx.AsyncClient, owner_headers) -> None:
        """The owner can delete; the design is gone afterwards."""
        created = await create_shirt(api_client, owner_headers)

        response = await api_client.delete(f"/designs/{created['id']}", headers=owner_headers)

        assert response.status_code == 200
        assert response.json() == {"id": created["id"], "deleted": True}
        assert (await api_client.get(f"/designs/{created['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_non_owner_delete(
        self, api_client: httpx.AsyncClient, owner_headers, other_owner_headers
    ) -> None:
        """Non-owners get 404 and nothing is deleted."""
        created = await create_shirt(api_client, owner_headers)

        response = await api_client.delete(
            f"/designs/{created['id']}", headers=other_owner_headers
        )

        assert response.status_code == 404
        assert (await api_client.get(f"/designs/{created['id']}")).status_code == 200
