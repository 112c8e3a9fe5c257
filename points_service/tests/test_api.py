from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from points_service.app.api.dependencies import ADMIN_TOKEN_HEADER
from points_service.app.config import AppConfig
from points_service.app.exceptions import (
    ConcurrentUpdateError,
    InsufficientBalanceError,
    RemoteStoreError,
)
from points_service.app.main import create_app, status_code_for
from points_service.app.services.container import ServiceContainer


@pytest.fixture
def client(container: ServiceContainer) -> TestClient:
    # lifespan 을 돌리지 않으므로 정리 스레드는 뜨지 않는다.
    return TestClient(create_app(container))


@pytest.fixture
def admin_headers(client: TestClient, app_config: AppConfig) -> dict[str, str]:
    response = client.post(
        "/api/v1/admin/login", json={"password": app_config.admin.password}
    )
    assert response.status_code == 200
    return {ADMIN_TOKEN_HEADER: response.json()["token"]}


def _register(client: TestClient, username: str = "player_one", name: str = "Player One"):
    return client.post(
        "/api/v1/customers",
        json={"username": username, "name": name, "phone": "010-0000", "email": "p@x.io"},
    )


def test_health_reports_store_backend(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "store": "memory"}


def test_register_and_login(client: TestClient) -> None:
    created = _register(client)
    assert created.status_code == 201
    assert created.json()["points"] == 0

    login = client.get("/api/v1/customers/player_one")
    assert login.status_code == 200
    assert login.json()["customer"]["name"] == "Player One"
    assert login.json()["transactions"] == []


@pytest.mark.parametrize(
    ("username", "message"),
    [
        ("ab", "Username must be at least 3 characters long"),
        ("bad name!", "Username can only contain letters, numbers, and underscores"),
    ],
)
def test_register_rejects_invalid_username(
    client: TestClient, username: str, message: str
) -> None:
    response = _register(client, username=username)

    assert response.status_code == 400
    assert response.json()["detail"] == {"code": "validation_error", "message": message}


def test_register_duplicate_username(client: TestClient) -> None:
    _register(client)

    response = _register(client, name="Someone Else")

    assert response.status_code == 400
    assert "already taken" in response.json()["detail"]["message"]


def test_login_unknown_username_is_not_found(client: TestClient) -> None:
    response = client.get("/api/v1/customers/nobody")

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "not_found"


def test_admin_endpoints_require_token(client: TestClient) -> None:
    assert client.get("/api/v1/admin/stats").status_code == 401
    assert (
        client.get("/api/v1/admin/stats", headers={ADMIN_TOKEN_HEADER: "bogus"}).status_code
        == 401
    )
    bad_login = client.post("/api/v1/admin/login", json={"password": "wrong"})
    assert bad_login.status_code == 401
    assert bad_login.json()["detail"]["code"] == "admin_auth_error"


def test_admin_logout_revokes_token(
    client: TestClient, admin_headers: dict[str, str]
) -> None:
    assert client.post("/api/v1/admin/logout", headers=admin_headers).status_code == 204
    assert client.get("/api/v1/admin/stats", headers=admin_headers).status_code == 401


def test_admin_adjusts_points(client: TestClient, admin_headers: dict[str, str]) -> None:
    _register(client)
    url = "/api/v1/admin/customers/player_one/points"

    added = client.post(
        url,
        json={"action": "add", "points": 10, "description": "Welcome bonus"},
        headers=admin_headers,
    )
    assert added.status_code == 200
    assert added.json()["balance"] == 10

    redeemed = client.post(
        url,
        json={"action": "redeem", "points": 4, "description": "Snack"},
        headers=admin_headers,
    )
    assert redeemed.json()["balance"] == 6

    overdrawn = client.post(
        url,
        json={"action": "redeem", "points": 7, "description": "Drink"},
        headers=admin_headers,
    )
    assert overdrawn.status_code == 402
    assert overdrawn.json()["detail"]["code"] == "insufficient_balance"

    history = client.get("/api/v1/customers/player_one/transactions").json()
    assert [(tx["type"], tx["points"]) for tx in history] == [("redeem", 4), ("add", 10)]
    assert history[0]["admin_user_id"].startswith("admin:")


@pytest.mark.parametrize(
    "body",
    [
        {"action": "add", "points": 0, "description": "Nothing"},
        {"action": "add", "points": 5, "description": "   "},
    ],
)
def test_admin_adjust_rejects_invalid_input(
    client: TestClient, admin_headers: dict[str, str], body
) -> None:
    _register(client)

    response = client.post(
        "/api/v1/admin/customers/player_one/points", json=body, headers=admin_headers
    )

    assert response.status_code == 400


def test_admin_customer_search(client: TestClient, admin_headers: dict[str, str]) -> None:
    _register(client, "player_one", "Player One")
    _register(client, "kim_minsu", "Kim Minsu")

    response = client.get(
        "/api/v1/admin/customers", params={"q": "kim"}, headers=admin_headers
    )

    body = response.json()
    assert body["total"] == 2
    assert body["matched"] == 1
    assert body["items"][0]["username"] == "kim_minsu"


def test_session_lifecycle(
    client: TestClient, container: ServiceContainer, scheduler, clock
) -> None:
    _register(client)

    started = client.post("/api/v1/sessions/player_one/start")
    assert started.status_code == 200
    assert started.json()["state"] == "running"
    assert started.json()["notices"][0]["level"] == "success"

    again = client.post("/api/v1/sessions/player_one/start")
    assert again.status_code == 409

    scheduler.advance(1800)
    status = client.get("/api/v1/sessions/player_one/status").json()
    assert status["display"]["elapsed"] == "30:00"
    assert status["display"]["next_point"] == "30:00"
    assert status["points_awarded"] == 1
    assert status["balance"] == 1
    assert any("You earned 1 point" in n["message"] for n in status["notices"])

    stopped = client.post("/api/v1/sessions/player_one/stop")
    assert stopped.json() == {"stopped": True}
    assert client.post("/api/v1/sessions/player_one/stop").json() == {"stopped": False}

    idle = client.get("/api/v1/sessions/player_one/status").json()
    assert idle["state"] == "stopped"
    assert idle["display"]["elapsed"] == "00:00"
    assert idle["balance"] == 1
    assert container.registry.get("player_one") is None


def test_session_start_for_unknown_customer(client: TestClient) -> None:
    assert client.post("/api/v1/sessions/ghost/start").status_code == 404
    assert client.get("/api/v1/sessions/ghost/status").status_code == 404


def test_admin_sees_and_force_stops_sessions(
    client: TestClient, admin_headers: dict[str, str], container: ServiceContainer, clock
) -> None:
    _register(client)
    client.post("/api/v1/sessions/player_one/start")
    clock.advance(30)

    listing = client.get("/api/v1/admin/sessions", headers=admin_headers).json()
    assert listing["liveness_threshold_seconds"] == 720
    [row] = listing["items"]
    assert row["username"] == "player_one"
    assert row["active"] is True
    assert row["elapsed_seconds"] == 30

    stats = client.get("/api/v1/admin/stats", headers=admin_headers).json()
    assert stats == {"total_customers": 1, "total_points": 0, "active_sessions": 1}

    forced = client.delete("/api/v1/admin/sessions/player_one", headers=admin_headers)
    assert forced.status_code == 204
    assert container.sessions.get("player_one").running is False

    status = client.get("/api/v1/sessions/player_one/status").json()
    assert status["state"] == "stopped"
    assert [n["message"] for n in status["notices"]] == [
        "Your session was ended by an administrator."
    ]

    missing = client.delete("/api/v1/admin/sessions/player_one", headers=admin_headers)
    assert missing.status_code == 404


def test_admin_error_log_filters(
    client: TestClient, admin_headers: dict[str, str], container: ServiceContainer
) -> None:
    container.error_logs.record("remote_store_error", "mongo timeout")
    container.error_logs.record(
        "session_award_failed", "balance write failed", username="player_one"
    )

    everything = client.get("/api/v1/admin/error-logs", headers=admin_headers).json()
    assert everything["total"] == 2

    filtered = client.get(
        "/api/v1/admin/error-logs",
        params={"error_type": "session_award_failed", "severity": "medium", "q": "PLAYER"},
        headers=admin_headers,
    ).json()
    assert [item["message"] for item in filtered["items"]] == ["balance write failed"]


def test_store_failure_maps_to_503_and_is_logged(
    client: TestClient, container: ServiceContainer, monkeypatch: pytest.MonkeyPatch
) -> None:
    def fail(username: str):
        raise RemoteStoreError("customers.find_one")

    monkeypatch.setattr(container.ledger, "get_customer", fail)

    response = client.get("/api/v1/customers/player_one")

    assert response.status_code == 503
    assert response.json()["detail"]["code"] == "remote_store_error"
    [log] = container.error_logs.list(error_type="remote_store_error")
    assert log.details["path"] == "/api/v1/customers/player_one"


def test_status_code_for_domain_errors() -> None:
    assert status_code_for(InsufficientBalanceError("p", 1, 5)) == 402
    assert status_code_for(ConcurrentUpdateError("retry")) == 409
    assert status_code_for(RemoteStoreError("op")) == 503


def test_rejected_start_leaves_no_stale_notice(client: TestClient) -> None:
    _register(client)
    client.post("/api/v1/sessions/player_one/start")

    assert client.post("/api/v1/sessions/player_one/start").status_code == 409

    status = client.get("/api/v1/sessions/player_one/status").json()
    assert status["state"] == "running"
    assert status["notices"] == []


def test_start_for_unknown_username_keeps_no_controller(
    client: TestClient, container: ServiceContainer
) -> None:
    for index in range(20):
        assert client.post(f"/api/v1/sessions/ghost_{index}/start").status_code == 404

    assert container.sessions.get("ghost_0") is None
    assert container.sessions.get("ghost_19") is None


def test_session_routes_trim_username(
    client: TestClient, container: ServiceContainer
) -> None:
    _register(client)

    started = client.post("/api/v1/sessions/%20player_one%20/start")
    assert started.status_code == 200
    assert started.json()["username"] == "player_one"
    assert container.sessions.get("player_one").running

    status = client.get("/api/v1/sessions/player_one%20/status")
    assert status.json()["state"] == "running"

    assert client.post("/api/v1/sessions/%20player_one/stop").json() == {"stopped": True}
