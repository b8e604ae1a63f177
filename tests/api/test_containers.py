"""Tests for container API endpoints."""

from datetime import timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy import func, select

from src.models.base import utcnow
from src.models.container import Container, ContainerStatus
from src.models.user import Role


@pytest_asyncio.fixture
async def yard(seeder):
    """One member-owned client with the two common types."""
    owner = await seeder.account("owner@example.com")
    await seeder.container_type("20DV", "20' Dry Van", default_base_cost="800")
    await seeder.container_type("40HC", "40' High Cube")
    client_id = await seeder.client("Acme Logistics", owner.user_id)
    return {"owner": owner, "client_id": client_id}


def _container_payload(client_id: int, **overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "client_id": client_id,
        "container_number": " mscu1234567 ",
        "container_type": "20DV",
        "start_date": "2024-03-01",
        "nominal_volume_m3": "33",
        "base_cost": "",
        "measurement_day": "0",
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_container_normalizes_and_prefills_cost(
    api_client: AsyncClient, yard
) -> None:
    owner = yard["owner"]

    response = await api_client.post(
        "/api/containers", json=_container_payload(yard["client_id"]), headers=owner.headers
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["container_number"] == "MSCU1234567"
    assert payload["status"] == "active"
    assert Decimal(payload["base_cost"]) == Decimal("800")
    assert payload["measurement_day"] is None
    assert payload["created_by"] == owner.user_id


@pytest.mark.asyncio
async def test_duplicate_container_number_is_a_field_error(
    api_client: AsyncClient, yard, session_factory
) -> None:
    owner = yard["owner"]
    first = await api_client.post(
        "/api/containers", json=_container_payload(yard["client_id"]), headers=owner.headers
    )
    assert first.status_code == 201

    duplicate = await api_client.post(
        "/api/containers",
        json=_container_payload(yard["client_id"], container_number="MSCU1234567"),
        headers=owner.headers,
    )

    assert duplicate.status_code == 409
    assert duplicate.json()["field_errors"] == {
        "container_number": "Container number already exists"
    }

    async with session_factory() as session:
        count = await session.scalar(select(func.count(Container.id)))
    assert count == 1


@pytest.mark.asyncio
async def test_create_rejects_unknown_type_and_bad_dates(
    api_client: AsyncClient, yard
) -> None:
    owner = yard["owner"]

    unknown = await api_client.post(
        "/api/containers",
        json=_container_payload(yard["client_id"], container_type="99ZZ"),
        headers=owner.headers,
    )
    assert unknown.status_code == 422
    assert unknown.json()["field_errors"] == {"container_type": "Unknown container type"}

    bad_dates = await api_client.post(
        "/api/containers",
        json=_container_payload(yard["client_id"], end_date="2024-02-01"),
        headers=owner.headers,
    )
    assert bad_dates.status_code == 422
    assert "End date cannot be before start date" in bad_dates.json()["field_errors"].values()


@pytest.mark.asyncio
async def test_create_for_someone_elses_client_is_not_found(
    api_client: AsyncClient, seeder, yard
) -> None:
    stranger = await seeder.account("stranger@example.com")

    response = await api_client.post(
        "/api/containers", json=_container_payload(yard["client_id"]), headers=stranger.headers
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_containers_pages_and_reports_page_info(
    api_client: AsyncClient, seeder, yard
) -> None:
    for i in range(12):
        await seeder.container(f"TCLU{i:07d}", yard["client_id"])

    first = await api_client.get(
        "/api/containers", params={"page_size": 10}, headers=yard["owner"].headers
    )
    second = await api_client.get(
        "/api/containers", params={"page_size": 10, "page": 2}, headers=yard["owner"].headers
    )

    assert first.status_code == 200
    assert len(first.json()["items"]) == 10
    assert first.json()["page_count"] == 2
    assert second.json()["page_info"] == "Showing 11-12 of 12"
    assert first.json()["items"][0]["client_name"] == "Acme Logistics"


@pytest.mark.asyncio
async def test_list_rejects_unknown_page_size_and_filters(
    api_client: AsyncClient, yard
) -> None:
    headers = yard["owner"].headers

    bad_size = await api_client.get("/api/containers", params={"page_size": 7}, headers=headers)
    assert bad_size.status_code == 422
    assert "page_size" in bad_size.json()["field_errors"]

    bad_status = await api_client.get(
        "/api/containers", params={"status": "lost"}, headers=headers
    )
    assert bad_status.status_code == 422
    assert bad_status.json()["field_errors"] == {"status": "Unknown status"}


@pytest.mark.asyncio
async def test_list_filters_by_status_and_type(
    api_client: AsyncClient, seeder, yard
) -> None:
    await seeder.container("AAAU0000001", yard["client_id"])
    await seeder.container("AAAU0000002", yard["client_id"], container_type="40HC")
    await seeder.container(
        "AAAU0000003", yard["client_id"], status=ContainerStatus.INACTIVE
    )

    response = await api_client.get(
        "/api/containers",
        params={"status": "active", "container_type": "40HC"},
        headers=yard["owner"].headers,
    )

    numbers = [item["container_number"] for item in response.json()["items"]]
    assert numbers == ["AAAU0000002"]


@pytest.mark.asyncio
async def test_scope_hides_other_clients_containers(
    api_client: AsyncClient, seeder, yard
) -> None:
    other_owner = await seeder.account("other@example.com")
    other_client = await seeder.client("Globex Freight", other_owner.user_id)
    mine = await seeder.container("MINE0000001", yard["client_id"])
    theirs = await seeder.container("THEM0000001", other_client)
    operator = await seeder.account(
        "op@example.com", role=Role.OPERATOR, client_id=other_client
    )

    listed = await api_client.get("/api/containers", headers=yard["owner"].headers)
    assert [item["id"] for item in listed.json()["items"]] == [mine]

    operator_list = await api_client.get("/api/containers", headers=operator.headers)
    assert [item["id"] for item in operator_list.json()["items"]] == [theirs]

    denied = await api_client.get(f"/api/containers/{mine}", headers=operator.headers)
    assert denied.status_code == 403
    assert denied.json()["redirect_to"] == "/containers"


@pytest.mark.asyncio
async def test_unknown_container_is_not_found(api_client: AsyncClient, yard) -> None:
    response = await api_client.get("/api/containers/4242", headers=yard["owner"].headers)

    assert response.status_code == 404
    assert response.json() == {"detail": "Container not found"}


@pytest.mark.asyncio
async def test_status_transitions_follow_lifecycle(
    api_client: AsyncClient, seeder, yard
) -> None:
    headers = yard["owner"].headers
    container_id = await seeder.container("MSCU7654321", yard["client_id"])

    deactivated = await api_client.patch(
        f"/api/containers/{container_id}/status", json={"status": "inactive"}, headers=headers
    )
    assert deactivated.json()["status"] == "inactive"

    closed = await api_client.patch(
        f"/api/containers/{container_id}/status", json={"status": "closed"}, headers=headers
    )
    assert closed.json()["status"] == "closed"
    assert closed.json()["end_date"] is not None

    reopened = await api_client.patch(
        f"/api/containers/{container_id}/status", json={"status": "active"}, headers=headers
    )
    assert reopened.status_code == 409
    assert reopened.json()["field_errors"] == {"status": "Transition not allowed"}


@pytest.mark.asyncio
async def test_update_container_partial(api_client: AsyncClient, seeder, yard) -> None:
    headers = yard["owner"].headers
    container_id = await seeder.container("MSCU0000010", yard["client_id"])
    taken = await seeder.container("MSCU0000011", yard["client_id"])

    updated = await api_client.patch(
        f"/api/containers/{container_id}",
        json={"yard_location": "Row B-12", "container_type": "40HC"},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["yard_location"] == "Row B-12"
    assert updated.json()["container_type"] == "40HC"

    clash = await api_client.patch(
        f"/api/containers/{taken}", json={"container_number": "mscu0000010"}, headers=headers
    )
    assert clash.status_code == 409

    cleared = await api_client.patch(
        f"/api/containers/{container_id}", json={"start_date": None}, headers=headers
    )
    assert cleared.status_code == 422
    assert cleared.json()["field_errors"] == {"start_date": "This field cannot be empty"}

    early_end = await api_client.patch(
        f"/api/containers/{container_id}", json={"end_date": "2023-12-31"}, headers=headers
    )
    assert early_end.status_code == 422


@pytest.mark.asyncio
async def test_detail_includes_inventory_events_and_totals(
    api_client: AsyncClient, seeder, yard
) -> None:
    headers = yard["owner"].headers
    container_id = await seeder.container(
        "MSCU5550001", yard["client_id"], nominal_volume_m3=Decimal("10")
    )

    item = await api_client.post(
        f"/api/containers/{container_id}/inventory",
        json={
            "sku": "SKU-1",
            "product_name": "Coffee beans",
            "quantity": 4,
            "unit_volume_m3": "0.5",
            "unit_gross_weight_kg": "60",
        },
        headers=headers,
    )
    assert item.status_code == 201
    assert Decimal(item.json()["total_volume_m3"]) == Decimal("2")

    for event_type in ("Entry", "Partial Exit"):
        response = await api_client.post(
            f"/api/containers/{container_id}/events",
            json={"event_type": event_type, "quantity": 1},
            headers=headers,
        )
        assert response.status_code == 201

    detail = await api_client.get(f"/api/containers/{container_id}", headers=headers)

    assert detail.status_code == 200
    body = detail.json()
    assert body["client_name"] == "Acme Logistics"
    assert body["container_type_name"] == "20' Dry Van"
    assert [entry["sku"] for entry in body["inventory"]] == ["SKU-1"]
    assert [event["event_type"] for event in body["events"]] == ["partial-exit", "entry"]
    assert body["items_count"] == 1
    assert Decimal(body["used_volume"]) == Decimal("2")
    assert Decimal(body["total_gross_weight"]) == Decimal("240")
    assert body["occupancy_percent"] == pytest.approx(20.0)
    assert "gate-in" in body["suggested_event_types"]


@pytest.mark.asyncio
async def test_inventory_rejects_zero_quantity(api_client: AsyncClient, seeder, yard) -> None:
    container_id = await seeder.container("MSCU5550002", yard["client_id"])

    response = await api_client.post(
        f"/api/containers/{container_id}/inventory",
        json={"sku": "SKU-1", "product_name": "Tea", "quantity": 0},
        headers=yard["owner"].headers,
    )

    assert response.status_code == 422
    assert "quantity" in response.json()["field_errors"]


@pytest.mark.asyncio
async def test_closing_before_start_keeps_container_editable(
    api_client: AsyncClient, seeder, yard
) -> None:
    headers = yard["owner"].headers
    start = utcnow().date() + timedelta(days=10)
    container_id = await seeder.container("MSCU5550003", yard["client_id"], start_date=start)

    closed = await api_client.patch(
        f"/api/containers/{container_id}/status", json={"status": "closed"}, headers=headers
    )
    assert closed.status_code == 200
    assert closed.json()["end_date"] == start.isoformat()

    edited = await api_client.patch(
        f"/api/containers/{container_id}", json={"notes": "hello"}, headers=headers
    )
    assert edited.status_code == 200
    assert edited.json()["notes"] == "hello"
