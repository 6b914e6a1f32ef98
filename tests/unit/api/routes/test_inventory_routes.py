"""API tests for the inventory routes."""

import io
import json

import pytest
import pytest_asyncio
from openpyxl import load_workbook

from seedkeep.core.exceptions import StoreError

BASE = "/api/v1/inventory"

HEADER = "box_number,shelf_code,type,area_planted,year,season,location,description,pedigree,weight,remarks"
ROW = "4,B2,white,LBTR,2021,wet,Cold room,Parent line,P1 x P2,3.5,"


@pytest_asyncio.fixture
async def seeded(store, entry_factory):
    return await store.add_records([
        entry_factory(box_number=1, type="white", weight=5),
        entry_factory(box_number=2, type="yellow", weight=15),
        entry_factory(box_number=2, type="sorghum", weight=25),
    ], added_by="seed@example.com")


class TestAuthentication:
    """Test suite for access control on inventory routes."""

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get(BASE)
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_token(self, client):
        response = await client.get(BASE, headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_pending_user_is_forbidden(self, client, pending_headers):
        response = await client.get(BASE, headers=pending_headers)
        assert response.status_code == 403
        assert response.json()["detail"] == "Account pending approval"

    @pytest.mark.asyncio
    async def test_first_request_creates_unapproved_profile(self, client, store):
        from seedkeep.infrastructure.auth.jwt_service import jwt_service

        token = jwt_service.issue_token("uid-fresh", "fresh@example.com", name="Fresh")
        response = await client.get(BASE, headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
        profile = await store.get_user("uid-fresh")
        assert profile.approved is False
        assert profile.display_name == "Fresh"


class TestGridView:
    """Test suite for GET /inventory."""

    @pytest.mark.asyncio
    async def test_default_page(self, client, user_headers, seeded):
        response = await client.get(BASE, headers=user_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["page"]["total_rows"] == 3
        assert body["page"]["page_count"] == 1
        assert [h["id"] for h in body["headers"]][:3] == ["box_number", "shelf_code", "type"]
        assert body["placeholder"] is None

    @pytest.mark.asyncio
    async def test_numeric_filter_and_sort(self, client, user_headers, seeded):
        filters = json.dumps({"weight": {"kind": "numeric", "operator": ">", "value": 10}})
        response = await client.get(
            BASE,
            params={"filters": filters, "sort": "weight:desc"},
            headers=user_headers,
        )

        body = response.json()
        assert [row["cells"]["type"] for row in body["rows"]] == ["sorghum", "yellow"]
        assert body["filter_count"] == 1

    @pytest.mark.asyncio
    async def test_no_results_placeholder(self, client, user_headers, seeded):
        filters = json.dumps({"type": {"kind": "multi", "values": ["special maize"]}})
        body = (await client.get(BASE, params={"filters": filters}, headers=user_headers)).json()
        assert body["rows"] == []
        assert body["placeholder"] == "No results."

    @pytest.mark.asyncio
    async def test_page_index_is_clamped(self, client, user_headers, seeded):
        body = (await client.get(BASE, params={"page_index": 9}, headers=user_headers)).json()
        assert body["page"]["page_index"] == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "params",
        [
            {"page_size": 15},
            {"filters": "{not json"},
            {"filters": json.dumps({"weight": {"kind": "numeric", "operator": "range", "value": 1}})},
            {"sort": "weight:sideways"},
        ],
    )
    async def test_invalid_query(self, client, user_headers, params):
        response = await client.get(BASE, params=params, headers=user_headers)
        assert response.status_code == 422


class TestEntries:
    """Test suite for single-entry routes."""

    @pytest.mark.asyncio
    async def test_filter_options(self, client, user_headers, seeded):
        types = (await client.get(f"{BASE}/options/type", headers=user_headers)).json()
        assert types == ["white", "yellow", "sorghum", "special maize"]
        boxes = (await client.get(f"{BASE}/options/box_number", headers=user_headers)).json()
        assert boxes == ["1", "2"]
        missing = await client.get(f"{BASE}/options/colour", headers=user_headers)
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_create_entry(self, client, user_headers, entry_factory, store):
        response = await client.post(BASE, json=entry_factory(type="Yellow"), headers=user_headers)

        assert response.status_code == 201
        created = response.json()
        assert created["type"] == "yellow"
        assert created["added_by"] == "tech@example.com"
        history = await store.list_history(created["id"])
        assert history[0].action.value == "create"

    @pytest.mark.asyncio
    async def test_create_invalid_entry(self, client, user_headers, entry_factory):
        response = await client.post(BASE, json=entry_factory(type="rice"), headers=user_headers)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_get_entry_and_box(self, client, user_headers, seeded):
        record_id = seeded[0]["id"]
        response = await client.get(f"{BASE}/{record_id}", headers=user_headers)
        assert response.json()["type"] == "white"

        box = (await client.get(f"{BASE}/boxes/2", headers=user_headers)).json()
        assert sorted(r["type"] for r in box) == ["sorghum", "yellow"]

    @pytest.mark.asyncio
    async def test_unknown_entry(self, client, user_headers):
        response = await client.get(f"{BASE}/missing", headers=user_headers)
        assert response.status_code == 404


class TestUpdate:
    """Test suite for PATCH /inventory/{id}."""

    @pytest.mark.asyncio
    async def test_update_writes_history(self, client, user_headers, seeded, store):
        record_id = seeded[0]["id"]
        response = await client.patch(
            f"{BASE}/{record_id}",
            json={"values": {"type": "yellow"}},
            headers=user_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "saved"
        assert body["changes"] == [{"field": "type", "from": "white", "to": "yellow"}]
        assert body["notices"][-1]["message"] == "Inventory updated successfully!"

        history = (await client.get(f"{BASE}/{record_id}/history", headers=user_headers)).json()
        assert history[0]["action"] == "update"
        assert history[0]["actor"] == "tech@example.com"
        assert (await store.get_record(record_id))["type"] == "yellow"

    @pytest.mark.asyncio
    async def test_unchanged_values(self, client, user_headers, seeded, store):
        record_id = seeded[0]["id"]
        response = await client.patch(
            f"{BASE}/{record_id}",
            json={"values": {"weight": "5"}},
            headers=user_headers,
        )

        assert response.json()["status"] == "no_changes"
        assert await store.list_history(record_id) == []

    @pytest.mark.asyncio
    async def test_invalid_values(self, client, user_headers, seeded):
        response = await client.patch(
            f"{BASE}/{seeded[0]['id']}",
            json={"values": {"weight": "lots", "pedigree": ""}},
            headers=user_headers,
        )

        assert response.status_code == 422
        codes = {e["code"] for e in response.json()["detail"]["errors"]}
        assert codes == {"invalid_number", "required_missing"}

    @pytest.mark.asyncio
    async def test_system_field(self, client, user_headers, seeded):
        response = await client.patch(
            f"{BASE}/{seeded[0]['id']}",
            json={"values": {"added_by": "someone@else.com"}},
            headers=user_headers,
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_store_failure(self, client, user_headers, seeded, store, monkeypatch):
        async def broken_update(record_id, data):
            raise StoreError("disk full", operation="update_record")

        monkeypatch.setattr(store, "update_record", broken_update)
        response = await client.patch(
            f"{BASE}/{seeded[0]['id']}",
            json={"values": {"type": "yellow"}},
            headers=user_headers,
        )

        assert response.status_code == 502
        assert response.json()["detail"]["notices"][-1]["message"] == "Error updating inventory"


class TestDelete:
    """Test suite for DELETE /inventory/{id}."""

    @pytest.mark.asyncio
    async def test_requires_confirmation(self, client, user_headers, seeded, store):
        response = await client.delete(f"{BASE}/{seeded[0]['id']}", headers=user_headers)
        assert response.status_code == 428
        assert len(await store.fetch_all()) == 3

    @pytest.mark.asyncio
    async def test_confirmed_delete_keeps_history(self, client, user_headers, seeded, store):
        record_id = seeded[0]["id"]
        response = await client.delete(f"{BASE}/{record_id}", params={"confirm": True}, headers=user_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "deleted"
        assert len(await store.fetch_all()) == 2

        history = (await client.get(f"{BASE}/{record_id}/history", headers=user_headers)).json()
        assert history[0]["action"] == "delete"
        assert history[0]["snapshot"]["type"] == "white"
        activity = await store.list_activity()
        assert activity[0].message.startswith("Deleted inventory entry:")

    @pytest.mark.asyncio
    async def test_unknown_entry(self, client, user_headers):
        response = await client.delete(f"{BASE}/missing", params={"confirm": True}, headers=user_headers)
        assert response.status_code == 404


class TestExport:
    """Test suite for POST /inventory/export."""

    @pytest.mark.asyncio
    async def test_csv_export(self, client, user_headers, seeded):
        response = await client.post(
            f"{BASE}/export",
            json={"filters": {"weight": {"kind": "numeric", "operator": ">=", "value": 15}}, "format": "csv"},
            headers=user_headers,
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="inventory-export-' in response.headers["content-disposition"]
        assert len(response.text.split("\n")) == 3

    @pytest.mark.asyncio
    async def test_workbook_per_box(self, client, user_headers, seeded):
        response = await client.post(f"{BASE}/export", json={"format": "xlsx-per-box"}, headers=user_headers)
        workbook = load_workbook(io.BytesIO(response.content))
        assert workbook.sheetnames == ["Box 1", "Box 2"]

    @pytest.mark.asyncio
    async def test_empty_export(self, client, user_headers):
        response = await client.post(f"{BASE}/export", json={"format": "xlsx"}, headers=user_headers)
        assert response.status_code == 204


class TestStats:
    """Test suite for GET /inventory/stats."""

    @pytest.mark.asyncio
    async def test_requires_token(self, client):
        response = await client.get(f"{BASE}/stats")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_default_figures(self, client, user_headers, seeded):
        response = await client.get(f"{BASE}/stats", params={"bin_size": 10}, headers=user_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["total_rows"] == 3
        assert body["total_weight"] == 45
        assert body["low_stock"] == []
        assert body["weight_stats"]["median"] == 15
        assert [b["count"] for b in body["histogram"]] == [1, 2]
        assert body["comparison"] == "yearly"
        assert body["comparison_totals"] == [{"key": "2021", "count": 3, "weight": 45, "avg_weight": 15}]
        assert body["growth"][0]["count_growth"] == 0
        assert [g["key"] for g in body["breakdowns"]["type"]] == ["sorghum", "white", "yellow"]

    @pytest.mark.asyncio
    async def test_figures_follow_filters(self, client, user_headers, seeded):
        filters = json.dumps({"type": {"kind": "multi", "values": ["white"]}})
        response = await client.get(
            f"{BASE}/stats",
            params={"filters": filters, "threshold": 10, "comparison": "type"},
            headers=user_headers,
        )

        body = response.json()
        assert body["total_rows"] == 1
        assert body["total_weight"] == 5
        assert [r["weight"] for r in body["low_stock"]] == [5]
        assert body["growth"] == []

    @pytest.mark.asyncio
    async def test_no_weights(self, client, user_headers):
        body = (await client.get(f"{BASE}/stats", headers=user_headers)).json()
        assert body["total_rows"] == 0
        assert body["weight_stats"] is None
        assert body["histogram"] == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params", [{"threshold": -1}, {"bin_size": 0}, {"comparison": "monthly"}])
    async def test_invalid_parameters(self, client, user_headers, params):
        response = await client.get(f"{BASE}/stats", params=params, headers=user_headers)
        assert response.status_code == 422


class TestImport:
    """Test suite for the import routes."""

    @pytest.mark.asyncio
    async def test_preview_writes_nothing(self, client, user_headers, store):
        content = f"{HEADER}\n{ROW}\n".encode("utf-8")
        response = await client.post(
            f"{BASE}/import/preview",
            files={"file": ("seeds.csv", content, "text/csv")},
            headers=user_headers,
        )

        assert response.status_code == 200
        assert response.json()["ok"] is True
        assert response.json()["valid_rows"] == 1
        assert await store.fetch_all() == []

    @pytest.mark.asyncio
    async def test_import(self, client, user_headers, store):
        content = f"{HEADER}\n{ROW}\n{ROW}\n".encode("utf-8")
        response = await client.post(
            f"{BASE}/import",
            files={"file": ("seeds.csv", content, "text/csv")},
            headers=user_headers,
        )

        assert response.status_code == 201
        assert response.json()["imported"] == 2
        assert len(await store.fetch_all()) == 2

    @pytest.mark.asyncio
    async def test_import_with_errors_writes_nothing(self, client, user_headers, store):
        content = f"{HEADER}\n{ROW}\nx,,white,LBTR,2021,wet,Cold room,Parent line,P1 x P2,1,\n".encode("utf-8")
        response = await client.post(
            f"{BASE}/import",
            files={"file": ("seeds.csv", content, "text/csv")},
            headers=user_headers,
        )

        assert response.status_code == 422
        errors = response.json()["detail"]["errors"]
        assert errors[0]["row"] == 3
        assert await store.fetch_all() == []

    @pytest.mark.asyncio
    async def test_unsupported_file(self, client, user_headers):
        response = await client.post(
            f"{BASE}/import/preview",
            files={"file": ("seeds.pdf", b"%PDF", "application/pdf")},
            headers=user_headers,
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_corrupt_workbook(self, client, user_headers, store):
        response = await client.post(
            f"{BASE}/import",
            files={"file": ("inventory.xlsx", b"this is not a zip file", "application/octet-stream")},
            headers=user_headers,
        )
        assert response.status_code == 422
        assert "Could not read workbook" in response.json()["detail"]
        assert await store.fetch_all() == []
