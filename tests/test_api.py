"""
HTTP surface tests.

The app runs against the seeded SQLite database through a get_db override.
Seeded irrigation dates are in 2024, so relative to today every seeded batch
is long overdue.
"""
from datetime import date

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from fastapi_users.password import PasswordHelper

from conftest import FakeAssistantModel, sample_chart, sql_decision
from smartfarm.dependencies import current_user, get_db
from smartfarm.main import app
from smartfarm.models import User
from smartfarm.services.assistant import RouteDecision, UNSAFE_QUERY_MESSAGE
from smartfarm.services.llm import get_assistant_model

OWNED_BATCHES_SQL = (
    "SELECT COUNT(*) AS total FROM plant_batches pb JOIN fields f ON pb.field_id = f.id "
    "WHERE f.user_id = :user_id AND pb.deleted_at IS NULL AND f.deleted_at IS NULL"
)


@pytest.fixture()
def use_test_db(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides.clear()


@pytest.fixture()
def client(use_test_db, farm):
    farmer = User(
        id=farm["farmer_id"],
        email="farmer@example.com",
        hashed_password="x",
        name="Farmer One",
        role="farmer",
        is_active=True,
        is_superuser=False,
        is_verified=False,
    )
    app.dependency_overrides[current_user] = lambda: farmer
    return TestClient(app)


@pytest.fixture()
def with_model():
    def _install(model):
        app.dependency_overrides[get_assistant_model] = lambda: model
        return model
    return _install


# ---------------------------------------------------------------------------
# Health and auth
# ---------------------------------------------------------------------------


def test_health():
    response = TestClient(app).get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "connected"}


def test_routes_require_authentication(use_test_db, farm):
    unauthenticated = TestClient(app)
    assert unauthenticated.get("/api/dashboard/stats").status_code == 401
    assert unauthenticated.get("/api/irrigation/overdue").status_code == 401
    assert unauthenticated.post("/api/chat", json={"message": "hi"}).status_code == 401


@pytest_asyncio.fixture()
async def registered_farmer(session_maker, farm):
    async with session_maker() as session:
        user = User(
            email="login@example.com",
            hashed_password=PasswordHelper().hash("correct horse"),
            name="Login Farmer",
        )
        session.add(user)
        await session.commit()
        return user.id


def test_bearer_login_and_me(use_test_db, registered_farmer):
    client = TestClient(app)

    bad = client.post("/auth/bearer/login", data={"username": "login@example.com", "password": "wrong"})
    assert bad.status_code == 400

    login = client.post("/auth/bearer/login", data={"username": "login@example.com", "password": "correct horse"})
    assert login.status_code == 200
    token = login.json()["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["id"] == registered_farmer
    assert me.json()["name"] == "Login Farmer"
    assert me.json()["role"] == "farmer"


def test_me_with_override(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 200
    assert response.json()["email"] == "farmer@example.com"


# ---------------------------------------------------------------------------
# Plant batches
# ---------------------------------------------------------------------------


def test_list_plant_types(client):
    names = [t["name"] for t in client.get("/api/plant-batches/types").json()]
    assert names == ["Tomato", "Wheat"]


def test_list_plant_batches_with_filters(client, farm):
    all_batches = client.get("/api/plant-batches").json()
    assert {b["id"] for b in all_batches} == {
        farm["on_time_id"], farm["overdue_id"], farm["critical_id"], farm["never_id"]
    }

    south = client.get("/api/plant-batches", params={"field_id": farm["south_id"]}).json()
    assert {b["batch_name"] for b in south} == {"Wheat A", "Wheat B"}

    at_risk = client.get("/api/plant-batches", params={"status": "at_risk"}).json()
    assert [b["id"] for b in at_risk] == [farm["overdue_id"]]
    assert at_risk[0]["field"]["name"] == "North Field"

    assert client.get("/api/plant-batches", params={"status": "wilting"}).status_code == 422


def test_plant_batch_detail_includes_irrigation_status(client, farm):
    response = client.get(f"/api/plant-batches/{farm['never_id']}")
    assert response.status_code == 200
    body = response.json()
    assert body["irrigation_status"] == {"status": "critical", "days_overdue": 0, "next_due_date": None}
    assert body["plant_type"]["name"] == "Wheat"
    assert body["status_history"] == []


def test_other_farmers_batch_is_not_found(client, farm):
    assert client.get(f"/api/plant-batches/{farm['neighbour_id']}").status_code == 404
    assert client.get(f"/api/plant-batches/{farm['deleted_batch_id']}").status_code == 404


def test_status_change_is_recorded(client, farm):
    batch_id = farm["overdue_id"]

    response = client.put(f"/api/plant-batches/{batch_id}/status", json={"status": "critical", "reason": "blight"})
    assert response.status_code == 200
    assert response.json()["current_status"] == "critical"

    history = client.get(f"/api/plant-batches/{batch_id}").json()["status_history"]
    assert len(history) == 1
    assert history[0]["status"] == "critical"
    assert history[0]["previous_status"] == "at_risk"
    assert history[0]["reason"] == "blight"
    assert history[0]["changed_by"] == farm["farmer_id"]


# ---------------------------------------------------------------------------
# Irrigation
# ---------------------------------------------------------------------------


def test_overdue_list_orders_never_irrigated_first(client, farm):
    response = client.get("/api/irrigation/overdue")
    assert response.status_code == 200
    body = response.json()

    assert [item["batch_id"] for item in body] == [
        farm["never_id"], farm["critical_id"], farm["overdue_id"], farm["on_time_id"]
    ]
    assert body[0]["never_irrigated"] is True
    assert body[0]["days_overdue"] == 0
    assert all(item["severity"] == "critical" for item in body)


def test_recording_irrigation_clears_overdue(client, farm):
    batch_id = farm["overdue_id"]
    today = date.today().isoformat()

    response = client.post("/api/irrigation", json={
        "plant_batch_id": batch_id,
        "scheduled_date": today,
        "executed_date": today,
        "water_amount_liters": 20,
        "method": "drip",
    })
    assert response.status_code == 201
    assert response.json()["status"] == "completed"

    detail = client.get(f"/api/plant-batches/{batch_id}").json()
    assert detail["last_irrigation_date"] == today
    assert detail["irrigation_status"]["status"] == "on_time"

    overdue_ids = [item["batch_id"] for item in client.get("/api/irrigation/overdue").json()]
    assert batch_id not in overdue_ids

    events = client.get("/api/irrigation", params={"plant_batch_id": batch_id}).json()
    assert len(events) == 1
    assert events[0]["method"] == "drip"


def test_planned_irrigation_then_complete(client, farm):
    batch_id = farm["never_id"]

    planned = client.post("/api/irrigation", json={"plant_batch_id": batch_id, "scheduled_date": "2030-01-01"})
    assert planned.status_code == 201
    assert planned.json()["status"] == "planned"
    assert client.get(f"/api/plant-batches/{batch_id}").json()["last_irrigation_date"] is None

    event_id = planned.json()["id"]
    completed = client.put(f"/api/irrigation/{event_id}/complete", json={"water_amount_liters": 5})
    assert completed.status_code == 200
    assert completed.json()["status"] == "completed"
    assert completed.json()["executed_date"] == date.today().isoformat()

    detail = client.get(f"/api/plant-batches/{batch_id}").json()
    assert detail["last_irrigation_date"] == date.today().isoformat()


def test_irrigation_for_foreign_batch_is_rejected(client, farm):
    response = client.post("/api/irrigation", json={
        "plant_batch_id": farm["neighbour_id"],
        "scheduled_date": "2024-12-09",
        "status": "completed",
    })
    assert response.status_code == 404
    assert client.get("/api/irrigation", params={"plant_batch_id": farm["neighbour_id"]}).status_code == 404
    assert client.put("/api/irrigation/99999/complete", json={}).status_code == 404


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


def test_dashboard_stats(client, farm):
    response = client.get("/api/dashboard/stats")
    assert response.status_code == 200
    body = response.json()

    assert body["total_plants"] == 4
    assert body["irrigation"] == {"overdue": 0, "critical": 4, "total_overdue": 4}
    assert body["problem_plants"] == 2
    assert body["recent_activity"] == {"notes_last_7_days": 1}
    assert {"status": "healthy", "count": 2} in body["plants_by_status"]
    assert [f["field_name"] for f in body["plants_by_field"]] == ["North Field", "South Field"]


def test_dashboard_alerts_ranked_and_limited(client, farm):
    alerts = client.get("/api/dashboard/alerts").json()

    assert len(alerts) == 6
    assert [a["severity"] for a in alerts] == ["critical"] * 5 + ["warning"]
    assert alerts[0]["message"] == "Wheat B in South Field has never been irrigated"
    assert alerts[-1] == {
        "type": "status",
        "severity": "warning",
        "message": "Tomato B in North Field has status: at_risk",
        "plant_batch_id": farm["overdue_id"],
        "batch_name": "Tomato B",
        "field_name": "North Field",
        "days_overdue": None,
        "status": "at_risk",
    }

    assert len(client.get("/api/dashboard/alerts", params={"limit": 2}).json()) == 2
    assert client.get("/api/dashboard/alerts", params={"limit": 0}).status_code == 422


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


def test_chat_text_answer_runs_scoped_query(client, with_model):
    model = with_model(FakeAssistantModel(decision=sql_decision(OWNED_BATCHES_SQL), summary="You have 4 batches."))

    response = client.post("/api/chat", json={
        "message": "How many plants do I have?",
        "conversation_history": [{"role": "user", "content": "hello"}],
    })

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["route"] == 1
    assert body["response"]["content"] == "You have 4 batches."
    assert body["response"]["raw_data"] == [{"total": 4}]
    assert "html" not in body["response"]
    assert model.called("classify")[0][2] == [{"role": "user", "content": "hello"}]


def test_chat_chart_answer(client, with_model):
    with_model(FakeAssistantModel(decision=sql_decision(OWNED_BATCHES_SQL, route=2), chart=sample_chart()))

    body = client.post("/api/chat", json={"message": "Chart my plants"}).json()

    assert body["route"] == 2
    assert body["response"]["type"] == "chart"
    assert "max-height: 400px" in body["response"]["html"]


def test_chat_rejects_destructive_sql(client, with_model, farm):
    with_model(FakeAssistantModel(decision=sql_decision("DROP TABLE users;")))

    body = client.post("/api/chat", json={"message": "drop everything"}).json()

    assert body["response"]["content"] == UNSAFE_QUERY_MESSAGE
    assert len(client.get("/api/plant-batches").json()) == 4


def test_chat_off_topic(client, with_model):
    with_model(FakeAssistantModel(decision=RouteDecision(route=0, data="Let's talk about your farm instead.")))

    body = client.post("/api/chat", json={"message": "Who won the match?"}).json()

    assert body["route"] == 0
    assert body["response"] == {"type": "text", "content": "Let's talk about your farm instead.", "language": "en"}


def test_chat_requires_message(client, with_model):
    with_model(FakeAssistantModel())
    assert client.post("/api/chat", json={"message": ""}).status_code == 422


def test_chat_without_api_key(client):
    response = client.post("/api/chat", json={"message": "How many plants?"})
    assert response.status_code == 500
    assert response.json() == {"error": "OpenAI API key not configured"}


def test_chat_suggestions(client):
    suggestions = client.get("/api/chat/suggestions").json()["suggestions"]
    assert len(suggestions) == 10
