import csv
import io
from datetime import timedelta

import pytest
from httpx import AsyncClient

from src.domain.base import utcnow
from src.domain.entities import AccountRole, AuditAction, AuditEvent, Severity

PASSWORD = "SecurePass123!"


@pytest.fixture
def seed_events(uow_scope):
    async def _seed(*events: AuditEvent):
        async with uow_scope() as uow:
            async with uow:
                for event in events:
                    await uow.audit_events.create(event)
                await uow.commit()

    return _seed


@pytest.mark.asyncio
async def test_list_activity_logs(client: AsyncClient, create_account, auth_headers, seed_events):
    """Admin lists events newest first with pagination metadata"""
    admin = await create_account(email="admin@bookit.test", role=AccountRole.admin)
    now = utcnow()
    await seed_events(
        *[
            AuditEvent(
                action=AuditAction.LOGIN,
                description=f"event {i}",
                user_email="alice@bookit.test",
                timestamp=now - timedelta(minutes=i + 1),
            )
            for i in range(5)
        ]
    )

    response = await client.get(
        "/activity-logs", params={"page": 1, "limit": 2}, headers=auth_headers(admin)
    )

    assert response.status_code == 200
    data = response.json()
    # 5 seeded + the VIEW_ACTIVITY_LOGS event recorded before the query
    assert data["pagination"] == {
        "current_page": 1,
        "page_size": 2,
        "total_pages": 3,
        "total_logs": 6,
        "has_next_page": True,
        "has_prev_page": False,
    }
    assert data["logs"][0]["action"] == "VIEW_ACTIVITY_LOGS"
    assert data["logs"][0]["user_email"] == "admin@bookit.test"
    assert data["logs"][1]["description"] == "event 0"
    assert data["logs"][1]["timestamp"].endswith("Z")


@pytest.mark.asyncio
async def test_list_activity_logs_filters(client: AsyncClient, create_account, auth_headers, seed_events):
    admin = await create_account(email="admin@bookit.test", role=AccountRole.admin)
    await seed_events(
        AuditEvent(action=AuditAction.FAILED_LOGIN, description="a", severity=Severity.MEDIUM,
                   success=False, user_email="Bob@BookIt.test"),
        AuditEvent(action=AuditAction.FAILED_LOGIN, description="b", severity=Severity.HIGH,
                   success=False, user_email="carol@bookit.test"),
        AuditEvent(action=AuditAction.LOGIN, description="c", user_email="bob@bookit.test"),
    )
    headers = auth_headers(admin)

    response = await client.get(
        "/activity-logs", params={"action": "FAILED_LOGIN", "user_email": "bob"}, headers=headers
    )
    assert [log["description"] for log in response.json()["logs"]] == ["a"]

    response = await client.get(
        "/activity-logs", params={"severity": "HIGH", "success": "false"}, headers=headers
    )
    assert [log["description"] for log in response.json()["logs"]] == ["b"]

    response = await client.get("/activity-logs", params={"action": "NOT_AN_ACTION"}, headers=headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_user_activity_logs(client: AsyncClient, create_account, auth_headers):
    admin = await create_account(email="admin@bookit.test", role=AccountRole.admin)
    alice = await create_account()
    await client.post("/auth/login", json={"email": "alice@bookit.test", "password": PASSWORD})
    await client.post("/auth/login", json={"email": "alice@bookit.test", "password": "Wrong!!!"})

    response = await client.get(f"/activity-logs/user/{alice.id}", headers=auth_headers(admin))

    assert response.status_code == 200
    logs = response.json()["logs"]
    assert [log["action"] for log in logs] == ["FAILED_LOGIN", "LOGIN"]
    assert all(log["user_id"] == str(alice.id) for log in logs)


@pytest.mark.asyncio
async def test_non_admin_is_denied_and_recorded(client: AsyncClient, create_account, auth_headers, fetch_events):
    alice = await create_account()

    response = await client.get("/activity-logs", headers=auth_headers(alice))

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "ACCESS_DENIED"

    [event] = await fetch_events(action=AuditAction.ACCESS_DENIED)
    assert event.user_id == alice.id
    assert event.success is False
    assert event.request_url == "/activity-logs"


@pytest.mark.asyncio
async def test_invalid_token_is_rejected(client: AsyncClient):
    response = await client.get(
        "/activity-logs/stats", headers={"Authorization": "Bearer not-a-real-token"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_stats_and_summary(client: AsyncClient, create_account, auth_headers, seed_events):
    admin = await create_account(email="admin@bookit.test", role=AccountRole.admin)
    now = utcnow()
    await seed_events(
        AuditEvent(action=AuditAction.FAILED_LOGIN, description="x", success=False,
                   severity=Severity.HIGH, ip_address="203.0.113.7", timestamp=now),
        AuditEvent(action=AuditAction.FAILED_LOGIN, description="y", success=False,
                   ip_address="203.0.113.7", timestamp=now),
        AuditEvent(action=AuditAction.LOGIN, description="z", ip_address="198.51.100.4",
                   timestamp=now - timedelta(days=10)),
    )
    headers = auth_headers(admin)

    response = await client.get("/activity-logs/stats", headers=headers)
    assert response.status_code == 200
    stats = response.json()
    # 3 seeded + the stats view itself
    assert stats["total_logs"] == 4
    assert {"key": "FAILED_LOGIN", "count": 2} in stats["action_stats"]
    assert stats["top_ips"][0] == {"key": "203.0.113.7", "count": 2}
    assert all(bucket["key"] != "198.51.100.4" for bucket in stats["top_ips"])
    assert stats["security_events"] == 1

    response = await client.get("/activity-logs/summary", headers=headers)
    assert response.status_code == 200
    summary = response.json()
    assert summary["failed_logins"] == 2
    assert summary["security_alerts"] == 1
    assert summary["today"] >= 3


@pytest.mark.asyncio
async def test_export_csv(client: AsyncClient, create_account, auth_headers, seed_events):
    admin = await create_account(email="admin@bookit.test", role=AccountRole.admin)
    await seed_events(
        AuditEvent(action=AuditAction.LOGIN, description='Said "hi", then left',
                   user_email="alice@bookit.test", user_role="user"),
    )

    response = await client.get(
        "/activity-logs/export",
        params={"format": "csv", "action": "LOGIN"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == "attachment; filename=activity_logs.csv"
    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0][:4] == ["Timestamp", "User Email", "User Role", "Action"]
    assert rows[1][1:5] == ["alice@bookit.test", "user", "LOGIN", 'Said "hi", then left']
    assert rows[1][5] == "N/A"


@pytest.mark.asyncio
async def test_export_json_and_bad_format(client: AsyncClient, create_account, auth_headers, fetch_events):
    admin = await create_account(email="admin@bookit.test", role=AccountRole.admin)
    headers = auth_headers(admin)

    response = await client.get("/activity-logs/export", headers=headers)
    assert response.status_code == 200
    assert response.headers["content-disposition"] == "attachment; filename=activity_logs.json"
    assert isinstance(response.json(), list)

    response = await client.get("/activity-logs/export", params={"format": "xml"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_EXPORT_FORMAT"

    assert len(await fetch_events(action=AuditAction.EXPORT_LOGS)) == 1


@pytest.mark.asyncio
async def test_cleanup_old_logs(client: AsyncClient, create_account, auth_headers, seed_events, fetch_events):
    """Purge removes only old events and records itself"""
    admin = await create_account(email="admin@bookit.test", role=AccountRole.admin)
    now = utcnow()
    await seed_events(
        AuditEvent(action=AuditAction.LOGIN, description="old", timestamp=now - timedelta(days=40)),
        AuditEvent(action=AuditAction.LOGIN, description="older", timestamp=now - timedelta(days=100)),
        AuditEvent(action=AuditAction.LOGIN, description="recent", timestamp=now - timedelta(days=1)),
    )
    headers = auth_headers(admin)

    response = await client.delete("/activity-logs/cleanup", params={"days": 30}, headers=headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Deleted 2 old activity logs", "deleted_count": 2}

    response = await client.delete("/activity-logs/cleanup", params={"days": 30}, headers=headers)
    assert response.json()["deleted_count"] == 0

    descriptions = {event.description for event in await fetch_events(action=AuditAction.LOGIN)}
    assert descriptions == {"recent"}
    purges = await fetch_events(action=AuditAction.DELETE_OLD_LOGS)
    assert sorted(event.description for event in purges) == [
        "Deleted 0 activity logs older than 30 days",
        "Deleted 2 activity logs older than 30 days",
    ]

    response = await client.delete("/activity-logs/cleanup", params={"days": 0}, headers=headers)
    assert response.status_code == 422
