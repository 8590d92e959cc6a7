import json

import pytest

from api.app import create_app
from budget_core.services import STORAGE_KEY


@pytest.fixture
def client(storage, clock):
    app = create_app(storage=storage, clock=clock)
    app.config.update(TESTING=True)
    return app.test_client()


def test_budget_starts_empty(client):
    response = client.get("/budget")
    assert response.status_code == 200
    body = response.get_json()
    assert body["period"] == "2024-02"
    assert body["income"] == 0
    assert body["expenses"] == []
    assert body["categories"] == []
    assert body["rolled_over"] is False


def test_end_to_end_flow(client):
    assert client.post("/income", json={"amount": 1000}).status_code == 201
    created = client.post("/expenses", json={"category": "Rent", "amount": 500, "note": ""})
    assert created.status_code == 201
    assert created.get_json()["warning"] == "no_limit"

    response = client.put("/limits/Rent", json={"limit": 600})
    body = response.get_json()
    assert response.status_code == 200
    assert body["remaining"] == 500
    [row] = body["categories"]
    percent = row.pop("percent")
    assert row == {"category": "Rent", "spent": 500, "limit": 600, "status": "ok"}
    assert float(percent) == pytest.approx(83.333, rel=1e-3)


def test_expense_warning_and_check(client):
    client.put("/limits/Food", json={"limit": 100})
    assert client.post("/expenses/check", json={"category": "Food", "amount": 95}).get_json() == {"warning": "near"}
    client.post("/expenses", json={"category": "Food", "amount": 95})
    response = client.post("/expenses", json={"category": "Food", "amount": 10})
    assert response.get_json()["warning"] == "over"


def test_list_and_delete_expenses(client):
    first = client.post("/expenses", json={"category": "Food", "amount": 12.5}).get_json()["expense"]
    client.post("/expenses", json={"category": "Rent", "amount": 300})

    listing = client.get("/expenses", query_string={"category": "Food"}).get_json()
    assert listing["total"] == "12.50"
    assert [item["id"] for item in listing["items"]] == [first["id"]]

    assert client.delete(f"/expenses/{first['id']}").status_code == 204
    assert client.delete(f"/expenses/{first['id']}").status_code == 204
    assert client.get("/expenses").get_json()["total"] == "300.00"


def test_remove_limit_and_reset(client, storage):
    client.post("/income", json={"amount": 50})
    client.put("/limits/Food", json={"limit": 10})
    assert client.delete("/limits/Food").status_code == 204
    assert client.get("/budget").get_json()["categories"] == []

    body = client.post("/reset").get_json()
    assert body["income"] == 0
    assert json.loads(storage.get(STORAGE_KEY))["income"] == 0


@pytest.mark.parametrize(
    "path, payload",
    [
        ("/income", {"amount": -5}),
        ("/income", {"amount": "abc"}),
        ("/expenses", {"category": "", "amount": 10}),
        ("/expenses", {"category": "Food", "amount": 0}),
    ],
)
def test_validation_errors_return_400(client, path, payload):
    response = client.post(path, json=payload)
    assert response.status_code == 400
    assert response.get_json()["error"] == "Validation error"


def test_non_json_body_is_rejected(client):
    response = client.post("/income", data="amount=5")
    assert response.status_code == 400


def test_persistence_error_returns_500(failing_storage, clock):
    app = create_app(storage=failing_storage, clock=clock)
    client = app.test_client()
    failing_storage.fail_writes = True
    response = client.post("/income", json={"amount": 5})
    assert response.status_code == 500
    assert response.get_json()["error"] == "Persistence error"
    failing_storage.fail_writes = False
    assert client.get("/budget").get_json()["income"] == 0


def test_rollover_is_reported_once(storage, clock):
    storage.set(STORAGE_KEY, json.dumps({"period": "2024-01", "income": 5, "expenses": [], "limits": {}}))
    client = create_app(storage=storage, clock=clock).test_client()
    assert client.get("/budget").get_json()["rolled_over"] is True
    assert client.get("/budget").get_json()["rolled_over"] is False


def test_reading_budget_after_month_change_rolls_over(client, storage, clock):
    client.post("/income", json={"amount": 100})
    clock.now = clock.now.replace(month=3, day=1)
    body = client.get("/budget").get_json()
    assert body["period"] == "2024-03"
    assert body["income"] == 0
    assert body["rolled_over"] is True
    assert json.loads(storage.get(STORAGE_KEY))["period"] == "2024-03"


def test_large_income_is_returned_exactly(client):
    client.post("/income", data='{"amount": 12345678901234567.89}', content_type="application/json")
    response = client.get("/budget")
    assert b"12345678901234567.89" in response.data
