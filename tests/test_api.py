"""
Integration tests for the REST API endpoints.

Uses an in-memory SQLite database with the production models; the DB
session dependency is overridden and Redis is mocked.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.api.middleware import limiter


# ── Fixture ───────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def client(session_factory):
    """AsyncClient backed by SQLite; worker and Redis are mocked."""
    limiter.reset()

    mock_redis = AsyncMock()
    mock_redis.set = AsyncMock(return_value=True)
    mock_redis.eval = AsyncMock(return_value=1)

    with (
        patch(
            "src.workers.reconciler.start_reconciliation_loop",
            new_callable=AsyncMock,
        ),
        patch(
            "src.workers.reconciler.stop_reconciliation_loop",
            new_callable=AsyncMock,
        ),
        patch(
            "src.workers.reconciler.get_redis",
            AsyncMock(return_value=mock_redis),
        ),
        patch("src.workers.reconciler.async_session_factory", session_factory),
        patch(
            "src.api.routes.admin.lock_backend_available",
            AsyncMock(return_value=True),
        ),
    ):
        # DB session dependency
        async def _test_db():
            async with session_factory() as session:
                try:
                    yield session
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise

        from src.api.app import create_app
        from src.api.dependencies import get_db

        app = create_app()
        app.dependency_overrides[get_db] = _test_db

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac


async def _vehicle(client: AsyncClient, name="Pickup 01") -> int:
    resp = await client.post("/api/v1/vehicles", json={"name": name})
    assert resp.status_code == 201
    return resp.json()["id"]


async def _driver(client: AsyncClient, email="ana@example.com") -> int:
    resp = await client.post("/api/v1/drivers", json={"name": "Ana", "email": email})
    assert resp.status_code == 201
    return resp.json()["id"]


# ── Health ────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/v1/admin/health")
    assert resp.status_code == 200
    assert resp.json() == {
        "status": "ok",
        "lock_backend": "ok",
        "reconciliation_running": False,
    }


@pytest.mark.asyncio
async def test_health_reports_missing_lock_backend(client: AsyncClient):
    with patch(
        "src.api.routes.admin.lock_backend_available", AsyncMock(return_value=False)
    ):
        resp = await client.get("/api/v1/admin/health")
    assert resp.json()["lock_backend"] == "unavailable"


# ── Vehicles / drivers ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_vehicle_starts_idle(client: AsyncClient):
    resp = await client.post(
        "/api/v1/vehicles",
        json={"name": "Van 01", "make": "Nissan", "model": "Urvan", "year": 2020},
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["status"] == "idle"
    assert data["assigned_driver_id"] is None

    listed = await client.get("/api/v1/vehicles")
    assert [v["id"] for v in listed.json()] == [data["id"]]


@pytest.mark.asyncio
async def test_get_vehicle_not_found(client: AsyncClient):
    resp = await client.get("/api/v1/vehicles/9999")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_duplicate_driver_email_rejected(client: AsyncClient):
    await _driver(client)
    resp = await client.post(
        "/api/v1/drivers", json={"name": "Other", "email": "ana@example.com"}
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_driver_email_validated(client: AsyncClient):
    resp = await client.post("/api/v1/drivers", json={"name": "Ana", "email": "nope"})
    assert resp.status_code == 422


# ── Vehicle schedules ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_overlapping_schedule_rejected_adjacent_accepted(client: AsyncClient):
    vehicle_id = await _vehicle(client)
    driver_id = await _driver(client)
    base = {"vehicle_id": vehicle_id, "driver_id": driver_id}

    first = await client.post(
        "/api/v1/vehicle-schedules",
        json={**base, "start_date": "2024-06-01", "end_date": "2024-06-10"},
    )
    assert first.status_code == 201
    assert first.json()["status"] == "scheduled"

    clash = await client.post(
        "/api/v1/vehicle-schedules",
        json={**base, "start_date": "2024-06-05", "end_date": "2024-06-12"},
    )
    assert clash.status_code == 409
    assert clash.json()["detail"].startswith("Schedule conflict")

    after = await client.post(
        "/api/v1/vehicle-schedules",
        json={**base, "start_date": "2024-06-11", "end_date": "2024-06-15"},
    )
    assert after.status_code == 201

    listed = await client.get(f"/api/v1/vehicle-schedules?vehicle_id={vehicle_id}")
    assert len(listed.json()) == 2


@pytest.mark.asyncio
async def test_schedule_with_inverted_range_rejected(client: AsyncClient):
    vehicle_id = await _vehicle(client)
    driver_id = await _driver(client)
    resp = await client.post(
        "/api/v1/vehicle-schedules",
        json={
            "vehicle_id": vehicle_id,
            "driver_id": driver_id,
            "start_date": "2024-06-10",
            "end_date": "2024-06-01",
        },
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_schedule_for_unknown_driver_rejected(client: AsyncClient):
    vehicle_id = await _vehicle(client)
    resp = await client.post(
        "/api/v1/vehicle-schedules",
        json={
            "vehicle_id": vehicle_id,
            "driver_id": 42,
            "start_date": "2024-06-01",
            "end_date": "2024-06-02",
        },
    )
    assert resp.status_code == 404


# ── Maintenance orders ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_maintenance_order(client: AsyncClient):
    vehicle_id = await _vehicle(client)
    resp = await client.post(
        "/api/v1/maintenance-orders",
        json={
            "vehicle_id": vehicle_id,
            "start_date": "2024-01-01",
            "estimated_completion_date": "2024-01-05",
            "type": "Preventive",
        },
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["status"] == "scheduled"
    assert data["order_number"] == f"MO-{data['id']:06d}"

    fetched = await client.get(f"/api/v1/maintenance-orders/{data['id']}")
    assert fetched.json()["estimated_completion_date"] == "2024-01-05"


@pytest.mark.asyncio
async def test_maintenance_order_for_unknown_vehicle(client: AsyncClient):
    resp = await client.post(
        "/api/v1/maintenance-orders",
        json={
            "vehicle_id": 77,
            "start_date": "2024-01-01",
            "estimated_completion_date": "2024-01-05",
        },
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_list_defaults_include_pending_authorization(client: AsyncClient):
    vehicle_id = await _vehicle(client)
    resp = await client.post(
        "/api/v1/maintenance-orders",
        json={
            "vehicle_id": vehicle_id,
            "start_date": "2024-01-01",
            "estimated_completion_date": "2024-01-05",
            "requires_authorization": True,
        },
    )
    assert resp.json()["status"] == "pending_authorization"

    listed = await client.get("/api/v1/maintenance-orders")
    assert [o["status"] for o in listed.json()] == ["pending_authorization"]
    completed = await client.get("/api/v1/maintenance-orders?status=completed")
    assert completed.json() == []


@pytest.mark.asyncio
async def test_authorize_pending_order(client: AsyncClient):
    vehicle_id = await _vehicle(client)
    created = await client.post(
        "/api/v1/maintenance-orders",
        json={
            "vehicle_id": vehicle_id,
            "start_date": "2024-01-01",
            "estimated_completion_date": "2024-01-05",
            "requires_authorization": True,
        },
    )
    order_id = created.json()["id"]

    resp = await client.patch(
        f"/api/v1/maintenance-orders/{order_id}/authorize",
        json={"cost": 950.0, "quotation_details": "Workshop quote #31"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "scheduled"
    assert data["cost"] == 950.0

    again = await client.patch(
        f"/api/v1/maintenance-orders/{order_id}/authorize",
        json={"cost": 950.0, "quotation_details": "Workshop quote #31"},
    )
    assert again.status_code == 409


@pytest.mark.asyncio
async def test_authorize_requires_quotation(client: AsyncClient):
    vehicle_id = await _vehicle(client)
    created = await client.post(
        "/api/v1/maintenance-orders",
        json={
            "vehicle_id": vehicle_id,
            "start_date": "2024-01-01",
            "estimated_completion_date": "2024-01-05",
            "requires_authorization": True,
        },
    )
    resp = await client.patch(
        f"/api/v1/maintenance-orders/{created.json()['id']}/authorize",
        json={"cost": 10, "quotation_details": "   "},
    )
    assert resp.status_code == 422

    still = await client.get(f"/api/v1/maintenance-orders/{created.json()['id']}")
    assert still.json()["status"] == "pending_authorization"


@pytest.mark.asyncio
async def test_authorize_rejected_when_dates_taken_meanwhile(client: AsyncClient):
    vehicle_id = await _vehicle(client)
    pending = await client.post(
        "/api/v1/maintenance-orders",
        json={
            "vehicle_id": vehicle_id,
            "start_date": "2024-06-03",
            "estimated_completion_date": "2024-06-04",
            "requires_authorization": True,
        },
    )
    # Pending orders don't block the calendar
    booked = await client.post(
        "/api/v1/maintenance-orders",
        json={
            "vehicle_id": vehicle_id,
            "start_date": "2024-06-01",
            "estimated_completion_date": "2024-06-05",
        },
    )
    assert booked.status_code == 201

    resp = await client.patch(
        f"/api/v1/maintenance-orders/{pending.json()['id']}/authorize",
        json={"cost": 100, "quotation_details": "quote"},
    )
    assert resp.status_code == 409
    assert str(booked.json()["id"]) in resp.json()["detail"]


# ── Reconciliation ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_reconcile_endpoint_runs_pass(client: AsyncClient):
    vehicle_id = await _vehicle(client)
    driver_id = await _driver(client)
    await client.post(
        "/api/v1/vehicle-schedules",
        json={
            "vehicle_id": vehicle_id,
            "driver_id": driver_id,
            "start_date": "2024-06-10",
            "end_date": "2024-06-20",
        },
    )

    resp = await client.post("/api/v1/admin/reconcile?today=2024-06-10")
    assert resp.status_code == 200
    report = resp.json()
    assert report["today"] == "2024-06-10"
    assert report["skipped"] is False
    assert report["failed"] == 0
    assert {(u["target"], u["ok"]) for u in report["updates"]} == {
        ("vehicle_schedule", True),
        ("vehicle", True),
    }

    vehicle = (await client.get(f"/api/v1/vehicles/{vehicle_id}")).json()
    assert vehicle["status"] == "active"
    assert vehicle["assigned_driver_id"] == driver_id

    again = await client.post("/api/v1/admin/reconcile?today=2024-06-10")
    assert again.json()["planned"] == 0


# ── Editing and deleting ──────────────────────────────────────────────


async def _schedule(client: AsyncClient, vehicle_id, driver_id, start, end) -> dict:
    resp = await client.post(
        "/api/v1/vehicle-schedules",
        json={
            "vehicle_id": vehicle_id,
            "driver_id": driver_id,
            "start_date": start,
            "end_date": end,
        },
    )
    assert resp.status_code == 201
    return resp.json()


async def _order(client: AsyncClient, vehicle_id, start, end, **extra) -> dict:
    resp = await client.post(
        "/api/v1/maintenance-orders",
        json={
            "vehicle_id": vehicle_id,
            "start_date": start,
            "estimated_completion_date": end,
            **extra,
        },
    )
    assert resp.status_code == 201
    return resp.json()


@pytest.mark.asyncio
async def test_edit_schedule_overlapping_only_itself_accepted(client: AsyncClient):
    vehicle_id = await _vehicle(client)
    driver_id = await _driver(client)
    schedule = await _schedule(client, vehicle_id, driver_id, "2024-06-01", "2024-06-10")

    resp = await client.patch(
        f"/api/v1/vehicle-schedules/{schedule['id']}",
        json={"start_date": "2024-06-03", "end_date": "2024-06-12"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert (data["start_date"], data["end_date"]) == ("2024-06-03", "2024-06-12")
    assert data["status"] == "scheduled"


@pytest.mark.asyncio
async def test_edit_schedule_into_neighbour_rejected(client: AsyncClient):
    vehicle_id = await _vehicle(client)
    driver_id = await _driver(client)
    first = await _schedule(client, vehicle_id, driver_id, "2024-06-01", "2024-06-10")
    second = await _schedule(client, vehicle_id, driver_id, "2024-06-11", "2024-06-20")

    resp = await client.patch(
        f"/api/v1/vehicle-schedules/{second['id']}", json={"start_date": "2024-06-10"}
    )
    assert resp.status_code == 409
    assert str(first["id"]) in resp.json()["detail"]

    unchanged = await client.get(f"/api/v1/vehicle-schedules/{second['id']}")
    assert unchanged.json()["start_date"] == "2024-06-11"


@pytest.mark.asyncio
async def test_edit_cannot_set_status(client: AsyncClient):
    vehicle_id = await _vehicle(client)
    driver_id = await _driver(client)
    schedule = await _schedule(client, vehicle_id, driver_id, "2024-06-01", "2024-06-10")

    resp = await client.patch(
        f"/api/v1/vehicle-schedules/{schedule['id']}", json={"status": "completed"}
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_edit_schedule_inverted_range_rejected(client: AsyncClient):
    vehicle_id = await _vehicle(client)
    driver_id = await _driver(client)
    schedule = await _schedule(client, vehicle_id, driver_id, "2024-06-05", "2024-06-10")

    resp = await client.patch(
        f"/api/v1/vehicle-schedules/{schedule['id']}", json={"end_date": "2024-06-01"}
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_edit_maintenance_order_dates(client: AsyncClient):
    vehicle_id = await _vehicle(client)
    first = await _order(client, vehicle_id, "2024-06-01", "2024-06-05")
    second = await _order(client, vehicle_id, "2024-06-10", "2024-06-12")

    extended = await client.patch(
        f"/api/v1/maintenance-orders/{first['id']}",
        json={"estimated_completion_date": "2024-06-08", "location": "Main workshop"},
    )
    assert extended.status_code == 200
    assert extended.json()["estimated_completion_date"] == "2024-06-08"
    assert extended.json()["location"] == "Main workshop"
    assert extended.json()["status"] == "scheduled"

    clash = await client.patch(
        f"/api/v1/maintenance-orders/{first['id']}",
        json={"estimated_completion_date": "2024-06-10"},
    )
    assert clash.status_code == 409
    assert str(second["id"]) in clash.json()["detail"]


@pytest.mark.asyncio
async def test_move_maintenance_order_to_another_vehicle(client: AsyncClient):
    first_vehicle = await _vehicle(client, "Pickup 01")
    other_vehicle = await _vehicle(client, "Pickup 02")
    order = await _order(client, first_vehicle, "2024-06-01", "2024-06-05")
    await _order(client, other_vehicle, "2024-06-04", "2024-06-06")

    clash = await client.patch(
        f"/api/v1/maintenance-orders/{order['id']}", json={"vehicle_id": other_vehicle}
    )
    assert clash.status_code == 409

    missing = await client.patch(
        f"/api/v1/maintenance-orders/{order['id']}", json={"vehicle_id": 999}
    )
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_delete_maintenance_order_before_it_starts(client: AsyncClient):
    vehicle_id = await _vehicle(client)
    order = await _order(
        client, vehicle_id, "2024-06-01", "2024-06-05", requires_authorization=True
    )

    resp = await client.delete(f"/api/v1/maintenance-orders/{order['id']}")
    assert resp.status_code == 204
    gone = await client.get(f"/api/v1/maintenance-orders/{order['id']}")
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_started_records_cannot_be_deleted(client: AsyncClient):
    vehicle_id = await _vehicle(client)
    driver_id = await _driver(client)
    schedule = await _schedule(client, vehicle_id, driver_id, "2024-06-10", "2024-06-20")
    other_vehicle = await _vehicle(client, "Van 01")
    order = await _order(client, other_vehicle, "2024-06-10", "2024-06-12")

    await client.post("/api/v1/admin/reconcile?today=2024-06-10")

    resp = await client.delete(f"/api/v1/vehicle-schedules/{schedule['id']}")
    assert resp.status_code == 409
    resp = await client.delete(f"/api/v1/maintenance-orders/{order['id']}")
    assert resp.status_code == 409

    # The driver of an active schedule stays put
    other_driver = await _driver(client, "carlos@example.com")
    resp = await client.patch(
        f"/api/v1/vehicle-schedules/{schedule['id']}", json={"driver_id": other_driver}
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_delete_scheduled_schedule(client: AsyncClient):
    vehicle_id = await _vehicle(client)
    driver_id = await _driver(client)
    schedule = await _schedule(client, vehicle_id, driver_id, "2024-06-01", "2024-06-10")

    resp = await client.delete(f"/api/v1/vehicle-schedules/{schedule['id']}")
    assert resp.status_code == 204
    listed = await client.get(f"/api/v1/vehicle-schedules?vehicle_id={vehicle_id}")
    assert listed.json() == []


@pytest.mark.asyncio
async def test_delete_driver(client: AsyncClient):
    vehicle_id = await _vehicle(client)
    busy = await _driver(client)
    free = await _driver(client, "carlos@example.com")
    await _schedule(client, vehicle_id, busy, "2024-06-01", "2024-06-10")

    resp = await client.delete(f"/api/v1/drivers/{busy}")
    assert resp.status_code == 409

    resp = await client.delete(f"/api/v1/drivers/{free}")
    assert resp.status_code == 204
    listed = await client.get("/api/v1/drivers")
    assert [d["id"] for d in listed.json()] == [busy]

    resp = await client.delete(f"/api/v1/drivers/{free}")
    assert resp.status_code == 404
