"""Integration tests for the REST API.

Tests exercise the full HTTP stack via the ASGI test client against an
in-memory database.
"""

from datetime import date, timedelta

import pytest

from effort_ledger.config import get_settings

MONDAY = date(2024, 1, 1)
FRIDAY = MONDAY + timedelta(days=4)


async def _create(client, **body):
    payload = {"name": "Reading", "daily_quota_minutes": 30}
    payload.update(body)
    resp = await client.post("/api/v1/tasks", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _log(client, task_id, amount, day=MONDAY, **extra):
    return await client.post(
        "/api/v1/logs",
        json={"task_id": task_id, "amount": amount, "date": day.isoformat(), **extra},
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_task_crud(client):
    task = await _create(client, priority="CORE")
    assert task["priority"] == "CORE"
    assert task["priority_rank"] is None

    resp = await client.patch(f"/api/v1/tasks/{task['id']}", json={"name": "Reading (fiction)"})
    assert resp.json()["name"] == "Reading (fiction)"

    resp = await client.post(f"/api/v1/tasks/{task['id']}/archive")
    assert resp.json()["is_archived"] is True
    assert (await client.get("/api/v1/tasks")).json() == []
    assert len((await client.get("/api/v1/tasks", params={"include_archived": True})).json()) == 1

    resp = await client.post(f"/api/v1/tasks/{task['id']}/unarchive")
    assert resp.json()["is_archived"] is False

    assert (await client.delete(f"/api/v1/tasks/{task['id']}")).status_code == 200
    assert (await client.get(f"/api/v1/tasks/{task['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_create_task_validates_quota_fields(client):
    resp = await client.post(
        "/api/v1/tasks", json={"name": "Guitar", "quota_type": "WEEKLY"}
    )
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Logs
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_log_and_progress(client):
    task = await _create(client, allow_carryover=True)
    assert (await _log(client, task["id"], 50)).status_code == 201

    resp = await client.get(
        f"/api/v1/progress/{task['id']}", params={"date": (MONDAY + timedelta(days=1)).isoformat()}
    )
    body = resp.json()
    assert body["carryover_applied"] == 20
    assert body["effective_quota"] == 10
    assert body["remaining"] == 10
    assert body["is_done"] is False
    assert body["task"]["id"] == task["id"]


@pytest.mark.asyncio
async def test_log_errors(client):
    task = await _create(client)
    assert (await _log(client, 999, 10)).status_code == 404
    assert (await _log(client, task["id"], -5)).status_code == 422
    resp = await client.post("/api/v1/logs", json={"task_id": task["id"]})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_query_logs_by_range(client):
    task = await _create(client)
    await _log(client, task["id"], 10, MONDAY)
    await _log(client, task["id"], 20, MONDAY + timedelta(days=3))

    resp = await client.get(
        "/api/v1/logs", params={"task_id": task["id"], "start": "2024-01-01", "end": "2024-01-02"}
    )
    assert [e["amount"] for e in resp.json()] == [10]

    resp = await client.get("/api/v1/logs", params={"task_id": task["id"], "start": "bogus"})
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_undo(client):
    task = await _create(client)
    entry = (await _log(client, task["id"], 10)).json()

    resp = await client.delete(f"/api/v1/logs/{entry['id']}")
    assert resp.json() == {"undone": True}
    resp = await client.delete(f"/api/v1/logs/{entry['id']}")
    assert resp.json() == {"undone": False}


@pytest.mark.asyncio
async def test_undo_disabled_when_window_is_zero(client, monkeypatch):
    monkeypatch.setattr(get_settings(), "UNDO_WINDOW_MINUTES", 0)
    task = await _create(client)
    await _log(client, task["id"], 10)

    resp = await client.post(
        "/api/v1/logs/undo-last", json={"task_id": task["id"], "date": MONDAY.isoformat()}
    )
    assert resp.json() == {"undone": False}


# ---------------------------------------------------------------------------
# Streaks, warnings, recommendation
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_streak_refresh_and_export(client):
    task = await _create(client)
    assert (await client.get(f"/api/v1/streaks/{task['id']}")).status_code == 404

    await _log(client, task["id"], 30, MONDAY)
    await _log(client, task["id"], 30, MONDAY + timedelta(days=1))

    resp = await client.post(
        f"/api/v1/streaks/{task['id']}/refresh", params={"date": "2024-01-02"}
    )
    body = resp.json()
    assert body["current_streak"] == 2
    assert body["outcome"] == "continued"

    resp = await client.get(f"/api/v1/streaks/{task['id']}")
    assert resp.json()["longest_streak"] == 2

    exported = (await client.get("/api/v1/streaks")).json()
    assert exported[str(task["id"])]["streak_start_date"] == "2024-01-01"


@pytest.mark.asyncio
async def test_warnings_and_recommendation(client):
    weekly = await _create(
        client,
        name="Guitar",
        quota_type="WEEKLY",
        daily_quota_minutes=None,
        weekly_quota_minutes=300,
    )
    await _log(client, weekly["id"], 50, MONDAY)

    warnings = (await client.get("/api/v1/warnings", params={"date": FRIDAY.isoformat()})).json()
    assert len(warnings) == 1
    assert warnings[0]["severity"] == "high"
    assert warnings[0]["projection"]["days_remaining"] == 2

    rec = (await client.get("/api/v1/recommendation", params={"date": FRIDAY.isoformat()})).json()
    assert rec["task_id"] == weekly["id"]
    assert rec["daily_target"] == 84


@pytest.mark.asyncio
async def test_recommendation_is_null_when_all_done(client):
    task = await _create(client)
    await _log(client, task["id"], 30, MONDAY)
    resp = await client.get("/api/v1/recommendation", params={"date": MONDAY.isoformat()})
    assert resp.status_code == 200
    assert resp.json() is None


@pytest.mark.asyncio
async def test_progress_list_sorted(client):
    await _create(client, name="Walk", priority="OPTIONAL")
    await _create(client, name="Write", priority="CORE")
    resp = await client.get("/api/v1/progress", params={"date": MONDAY.isoformat()})
    assert [p["task"]["name"] for p in resp.json()] == ["Write", "Walk"]


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_rank_round_trips(client):
    existing = []
    for i in range(3):
        task = await _create(client, name=f"Core {i}", priority="CORE")
        resp = await client.post(f"/api/v1/tasks/{task['id']}/rank/skip")
        assert resp.json()["skipped"] is True
        existing.append(task)

    new = await _create(client, name="New", priority="CORE")
    url = f"/api/v1/tasks/{new['id']}/rank"

    prompt = (await client.post(url, json={"answers": []})).json()
    assert prompt["status"] == "needs_comparison"
    assert prompt["incumbent_id"] == existing[1]["id"]
    assert prompt["max_comparisons"] == 2

    result = (await client.post(url, json={"answers": [-1, -1]})).json()
    assert result["status"] == "ranked"
    assert result["priority_rank"] == 400
    assert result["comparison_count"] == 2

    assert (await client.post(url, json={"answers": [1, 1, 1, 1]})).status_code == 422
    assert (await client.post(url, json={"answers": [0]})).status_code == 422
    assert (await client.post("/api/v1/tasks/999/rank", json={"answers": []})).status_code == 404


# ---------------------------------------------------------------------------
# Allocation, focus and records
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_allocation_and_focus(client):
    core = await _create(client, name="Deep work", priority="CORE")
    important = await _create(client, name="Course", priority="IMPORTANT")
    optional = await _create(client, name="Blog", priority="OPTIONAL")
    await _log(client, core["id"], 140)
    await _log(client, important["id"], 40)
    await _log(client, optional["id"], 20)

    resp = await client.get(
        "/api/v1/allocation", params={"date": FRIDAY.isoformat(), "period": "week"}
    )
    body = resp.json()
    assert body["period"] == "week"
    assert body["date"] == FRIDAY.isoformat()
    assert [body["core_percentage"], body["important_percentage"], body["optional_percentage"]] == [
        70,
        20,
        10,
    ]
    assert body["is_balanced"] is True
    assert body["warnings"] == []

    empty = (
        await client.get("/api/v1/allocation", params={"date": FRIDAY.isoformat(), "period": "day"})
    ).json()
    assert empty["warnings"] == ["No time logged for this period"]
    assert (await client.get("/api/v1/allocation", params={"period": "year"})).status_code == 422

    focus = (await client.get("/api/v1/focus", params={"date": MONDAY.isoformat()})).json()
    assert focus["focus_percentage"] == 70
    assert focus["status"] == "excellent"

    weekly = (await client.get("/api/v1/focus/weekly", params={"date": FRIDAY.isoformat()})).json()
    assert weekly == {"week_start": MONDAY.isoformat(), "average_focus_percentage": 70}


@pytest.mark.asyncio
async def test_records(client):
    assert (await client.get("/api/v1/records")).json() == []

    task = await _create(client)
    await _log(client, task["id"], 95)
    await client.post(f"/api/v1/streaks/{task['id']}/refresh", params={"date": MONDAY.isoformat()})

    records = (await client.get("/api/v1/records")).json()
    assert [r["type"] for r in records] == ["longest_streak", "best_day", "weekly_champion"]
    assert records[1]["description"] == "1h 35m in one day"
    assert records[1]["date"] == MONDAY.isoformat()

    all_time = (await client.get("/api/v1/records/all-time")).json()
    assert all_time["longest_streak"] == 1
    assert all_time["best_day_minutes"] == 95
    assert all_time["total_hours"] == 2
    assert all_time["most_quotas_week_start"] == MONDAY.isoformat()
    assert all_time["next_milestone"] == 10
