"""Activity Routes — admin upsert and read-back over HTTP.

Tests cover:
    - PUT creates (201) then updates (200)
    - GET reports display status and the live registration count
    - Unknown activity → 404 RESOURCE_NOT_FOUND
    - closes_at before opens_at → 400
    - GET registrations lists check-ins oldest first
    - PUT lowering capacity below current_count → 409 CAPACITY_BELOW_COUNT
"""

from datetime import timedelta


def _activity(clock, **overrides):
    body = {
        "title": "Morning lab",
        "latitude": -23.5505,
        "longitude": -46.6333,
        "radius_meters": 100,
        "opens_at": (clock() - timedelta(hours=1)).isoformat(),
        "closes_at": (clock() + timedelta(hours=1)).isoformat(),
        "capacity": 2,
    }
    body.update(overrides)
    return body


async def test_put_creates_then_updates(client, clock):
    created = await client.put("/api/v1/activities/LAB-1", json=_activity(clock))
    updated = await client.put(
        "/api/v1/activities/LAB-1", json=_activity(clock, title="Renamed"),
    )

    assert created.status_code == 201
    assert created.json()["current_count"] == 0
    assert created.json()["status"] == "active"
    assert updated.status_code == 200
    assert updated.json()["title"] == "Renamed"


async def test_get_reports_status_and_count(client, clock, seed_activity, services, inside):
    await seed_activity("LAB-1", capacity=1)
    await services.coordinator.register("LAB-1", "alice", inside, "alice@uni.edu")

    res = await client.get("/api/v1/activities/LAB-1")

    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "full"
    assert body["current_count"] == 1
    assert body["registration_count"] == 1


async def test_upcoming_status(client, clock):
    await client.put(
        "/api/v1/activities/LAB-2",
        json=_activity(
            clock,
            opens_at=(clock() + timedelta(hours=1)).isoformat(),
            closes_at=(clock() + timedelta(hours=2)).isoformat(),
        ),
    )
    res = await client.get("/api/v1/activities/LAB-2")
    assert res.json()["status"] == "upcoming"


async def test_unknown_activity_returns_404(client):
    res = await client.get("/api/v1/activities/NOPE")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_inverted_window_returns_400(client, clock):
    res = await client.put(
        "/api/v1/activities/LAB-1",
        json=_activity(
            clock,
            opens_at=clock().isoformat(),
            closes_at=(clock() - timedelta(minutes=1)).isoformat(),
        ),
    )
    assert res.status_code == 400


async def test_non_positive_radius_returns_400(client, clock):
    res = await client.put("/api/v1/activities/LAB-1", json=_activity(clock, radius_meters=0))
    assert res.status_code == 400


async def test_list_registrations(client, seed_activity, services, inside, clock):
    await seed_activity("LAB-1")
    await services.coordinator.register("LAB-1", "alice", inside, "alice@uni.edu")
    clock.advance(seconds=5)
    await services.coordinator.register("LAB-1", "bob", inside, "bob@uni.edu")

    res = await client.get("/api/v1/activities/LAB-1/registrations", params={"limit": 10})

    assert res.status_code == 200
    body = res.json()
    assert [r["identity_id"] for r in body["registrations"]] == ["alice", "bob"]
    assert body["limit"] == 10


async def test_list_registrations_unknown_activity(client):
    res = await client.get("/api/v1/activities/NOPE/registrations")
    assert res.status_code == 404


async def test_put_capacity_below_count_returns_409(client, clock, seed_activity, services, inside):
    await seed_activity("LAB-1", capacity=2)
    await services.coordinator.register("LAB-1", "alice", inside, "alice@uni.edu")
    await services.coordinator.register("LAB-1", "bob", inside, "bob@uni.edu")

    res = await client.put("/api/v1/activities/LAB-1", json=_activity(clock, capacity=1))

    assert res.status_code == 409
    assert res.json()["error"]["code"] == "CAPACITY_BELOW_COUNT"
    assert res.json()["error"]["category"] == "conflict"
    after = await client.get("/api/v1/activities/LAB-1")
    assert after.json()["capacity"] == 2
