"""HTTP tests for the mess ledger endpoints (in-memory repositories)."""
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi import status
from fastapi.testclient import TestClient

from app.main import app

API = "/api/v1"


def add_member(client, name, role="viewer"):
    response = client.post(f"{API}/members", json={"name": name, "role": role})
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


def seed_cycle(client):
    alice = add_member(client, "Alice", "admin")
    bob = add_member(client, "Bob")

    client.post(f"{API}/members/{alice['id']}/deposits", json={"amount": 1000})
    client.post(f"{API}/members/{bob['id']}/deposits", json={"amount": 900})

    for amount, description, kind in [(1200, "Bazaar", "meal"), (650, "Utilities", "fixed")]:
        response = client.post(f"{API}/expenses", json={
            "amount": amount,
            "description": description,
            "type": kind,
            "paid_by": alice["id"]
        })
        assert response.status_code == status.HTTP_201_CREATED

    client.put(f"{API}/meals", json={"member_id": alice["id"], "count": 18, "date": "2024-03-01"})
    client.put(f"{API}/meals", json={"member_id": bob["id"], "count": 12, "date": "2024-03-01"})
    return alice, bob


def test_root(test_client):
    response = test_client.get("/")
    assert response.status_code == status.HTTP_200_OK


def test_add_and_list_members(test_client):
    created = add_member(test_client, "rahim", "admin")

    assert created["avatar"] == "RA"
    assert created["deposit"] == 0
    assert created["is_active"] is True

    response = test_client.get(f"{API}/members")
    assert response.status_code == status.HTTP_200_OK
    assert [m["name"] for m in response.json()] == ["rahim"]


def test_add_member_empty_name_is_400(test_client):
    response = test_client.post(f"{API}/members", json={"name": "", "role": "viewer"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_update_member(test_client):
    member = add_member(test_client, "Karim")

    response = test_client.patch(f"{API}/members/{member['id']}", json={"is_active": False})

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["is_active"] is False
    assert response.json()["name"] == "Karim"


def test_unknown_member_is_404(test_client):
    assert test_client.get(f"{API}/members/missing").status_code == status.HTTP_404_NOT_FOUND
    assert test_client.delete(f"{API}/members/missing").status_code == status.HTTP_404_NOT_FOUND
    response = test_client.post(f"{API}/members/missing/deposits", json={"amount": 5})
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_non_positive_deposit_is_400(test_client):
    member = add_member(test_client, "Karim")
    response = test_client.post(f"{API}/members/{member['id']}/deposits", json={"amount": 0})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_stats_and_member_stats(test_client):
    alice, _ = seed_cycle(test_client)

    stats = test_client.get(f"{API}/stats").json()
    assert stats["current_meal_rate"] == 40.0
    assert stats["fixed_cost_per_member"] == 325.0
    assert stats["total_meals_consumed"] == 30.0
    assert stats["remaining_cash"] == 50.0

    mine = test_client.get(f"{API}/members/{alice['id']}/stats").json()
    assert mine["meal_cost"] == 720.0
    assert mine["fixed_cost"] == 325.0
    assert mine["total_cost"] == 1045.0
    assert mine["balance"] == -45.0


def test_expense_filter_and_validation(test_client):
    seed_cycle(test_client)

    fixed = test_client.get(f"{API}/expenses", params={"type": "fixed"}).json()
    assert [e["description"] for e in fixed] == ["Utilities"]

    response = test_client.post(f"{API}/expenses", json={
        "amount": -1, "description": "Bad", "type": "meal", "paid_by": "missing"
    })
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_meal_log_upsert_and_delete(test_client):
    member = add_member(test_client, "Eater")
    body = {"member_id": member["id"], "date": "2024-03-02"}

    test_client.put(f"{API}/meals", json={**body, "count": 3})
    response = test_client.put(f"{API}/meals", json={**body, "count": 5})
    assert response.json()["log"]["count"] == 5.0

    logs = test_client.get(f"{API}/meals", params={"date": "2024-03-02"}).json()
    assert len(logs) == 1

    response = test_client.put(f"{API}/meals", json={**body, "count": 0})
    assert response.json()["log"] is None
    assert test_client.get(f"{API}/meals").json() == []


def test_negative_meal_count_is_400(test_client):
    member = add_member(test_client, "Eater")
    response = test_client.put(f"{API}/meals", json={
        "member_id": member["id"], "count": -1, "date": "2024-03-02"
    })
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_close_cycle_and_history(test_client):
    alice, _ = seed_cycle(test_client)

    response = test_client.post(f"{API}/cycle/close")
    assert response.status_code == status.HTTP_200_OK
    archive = response.json()
    assert archive["stats"]["current_meal_rate"] == 40.0
    archived_alice = next(m for m in archive["members"] if m["id"] == alice["id"])
    assert archived_alice["balance"] == -45.0

    assert test_client.get(f"{API}/expenses").json() == []
    assert test_client.get(f"{API}/members/{alice['id']}").json()["deposit"] == 0

    history = test_client.get(f"{API}/archives").json()
    assert [a["id"] for a in history] == [archive["id"]]

    assert test_client.delete(f"{API}/archives/{archive['id']}").status_code == status.HTTP_200_OK
    assert test_client.get(f"{API}/archives").json() == []
    assert test_client.delete(f"{API}/archives/{archive['id']}").status_code == status.HTTP_404_NOT_FOUND


def test_failed_cleanup_reports_inconsistent_state(test_client, repos):
    seed_cycle(test_client)
    repos.expenses.fail_on.add("delete_all")

    response = test_client.post(f"{API}/cycle/close")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = response.json()["detail"]
    assert detail["code"] == "inconsistent_state"
    assert detail["archive_id"]

    repos.expenses.fail_on.clear()
    assert test_client.post(f"{API}/cycle/cleanup").status_code == status.HTTP_200_OK
    assert test_client.get(f"{API}/expenses").json() == []


def test_persistence_failure_is_503(test_client, repos):
    repos.members.fail_on.add("insert")
    response = test_client.post(f"{API}/members", json={"name": "Ghost", "role": "viewer"})
    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE


def test_cleanup_on_healthy_ledger_changes_nothing(test_client):
    alice, _ = seed_cycle(test_client)

    assert test_client.post(f"{API}/cycle/cleanup").status_code == status.HTTP_200_OK

    assert len(test_client.get(f"{API}/expenses").json()) == 2
    assert test_client.get(f"{API}/members/{alice['id']}").json()["deposit"] == 1000.0
    assert test_client.get(f"{API}/archives").json() == []


def test_unstorable_amount_is_400(test_client):
    member = add_member(test_client, "Karim")
    response = test_client.post(f"{API}/expenses", json={
        "amount": "0.1234567890123456789012345678901234567",
        "description": "Rice",
        "type": "meal",
        "paid_by": member["id"]
    })
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_lifespan_loads_service_and_disconnects():
    mess = MagicMock()
    mess.load = AsyncMock()

    with patch("app.main.connect_to_mongo", new=AsyncMock()) as connect, \
         patch("app.main.disconnect_from_mongo", new=AsyncMock()) as disconnect, \
         patch("app.main.get_db", return_value=MagicMock()), \
         patch("app.main.MessService", return_value=mess):
        with TestClient(app) as client:
            assert client.get("/").status_code == status.HTTP_200_OK
            assert app.state.mess_service is mess
            connect.assert_awaited_once()
            mess.load.assert_awaited_once()
            disconnect.assert_not_awaited()

        disconnect.assert_awaited_once()
