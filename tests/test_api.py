"""Tests for the HTTP API."""

import base64

import pytest
from fastapi.testclient import TestClient

from cravecare.adapters.local_store import InMemoryKeyValueStore, LocalCraveCareStore
from cravecare.api.app import create_app
from cravecare.containers import AppContainer
from cravecare.domain.grading import MOM_TIPS
from tests.conftest import FakeGenerativeClient, sequential_ids

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


@pytest.fixture
def live_store() -> LocalCraveCareStore:
    # Services read the wall clock, so stored timestamps must use it too.
    return LocalCraveCareStore(InMemoryKeyValueStore(), id_factory=sequential_ids())


@pytest.fixture
def client(container: AppContainer, live_store: LocalCraveCareStore) -> TestClient:
    container.local_store = live_store
    return TestClient(create_app(container))


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_onboarding_moves_session_into_app(client: TestClient) -> None:
    before = client.get("/session").json()

    response = client.post(
        "/onboarding",
        json={
            "name": "Asha",
            "appliances": ["kettle"],
            "last_period_date": "2024-05-01",
            "daily_budget": 150,
        },
    )
    after = client.get("/session").json()

    assert before == {"state": "onboarding", "mode": "local", "profile": None}
    assert response.status_code == 200
    assert response.json()["state"] == "app"
    assert after["state"] == "app"
    assert after["profile"]["name"] == "Asha"
    assert after["profile"]["appliances"] == ["kettle"]


def test_onboarding_rejects_blank_name(client: TestClient) -> None:
    response = client.post("/onboarding", json={"name": ""})

    assert response.status_code == 422


def test_phase_reports_day_and_info(client: TestClient) -> None:
    body = client.get("/phase").json()

    assert body["phase"] in {"menstrual", "follicular", "ovulatory", "luteal"}
    assert {"name", "emoji", "nutrient", "tip"} <= set(body["info"])


def test_spend_add_list_and_delete(client: TestClient) -> None:
    created = client.post("/spend", json={"label": "Chai", "amount": 20})
    entry_id = created.json()["entry"]["id"]

    listed = client.get("/spend").json()
    deleted = client.delete(f"/spend/{entry_id}")
    after = client.get("/spend").json()

    assert created.status_code == 200
    assert created.json()["status"]["remaining"] == 180
    assert [entry["label"] for entry in listed["entries"]] == ["Chai"]
    assert listed["status"]["spent"] == 20
    assert listed["message"] == "Budget queen energy! 💰"
    assert deleted.json() == {"status": "ok"}
    assert after["entries"] == []


@pytest.mark.parametrize("amount", [0, -5])
def test_spend_rejects_non_positive_amounts(client: TestClient, amount: int) -> None:
    response = client.post("/spend", json={"label": "Chai", "amount": amount})

    assert response.status_code == 422
    assert client.get("/spend").json()["entries"] == []


def test_healthy_meal_tokens_are_capped_per_day(client: TestClient) -> None:
    first = client.post("/rewards/healthy-meal")
    second = client.post("/rewards/healthy-meal")
    third = client.post("/rewards/healthy-meal")

    assert first.status_code == 200
    assert second.json()["available"] == 2
    assert second.json()["can_earn"]["healthy_meal"] is False
    assert third.status_code == 409
    assert client.get("/rewards").json()["available"] == 2


def test_under_budget_claim_needs_a_logged_day(client: TestClient) -> None:
    empty = client.post("/rewards/under-budget").json()
    client.post("/spend", json={"label": "Thali", "amount": 90})
    claimed = client.post("/rewards/under-budget").json()
    repeated = client.post("/rewards/under-budget").json()

    assert empty["awarded"] is False
    assert claimed["awarded"] is True
    assert claimed["token"]["reason"] == "under_budget"
    assert repeated["awarded"] is False


def test_redeem_without_enough_tokens_is_rejected(client: TestClient) -> None:
    client.post("/rewards/healthy-meal")

    response = client.post("/rewards/redeem")

    assert response.status_code == 409
    assert response.json()["available"] == 1
    assert response.json()["cost"] == 5
    assert client.get("/rewards").json()["cheat_days"] == []


def test_grocery_flow(client: TestClient) -> None:
    client.post("/grocery", json={"name": "Salt"})
    added = client.post(
        "/grocery/from-recipe",
        json={
            "recipe_name": "Overnight Oats",
            "recipe_emoji": "🥣",
            "ingredients": ["Oats", "  ", "Milk"],
        },
    ).json()

    assert [item["name"] for item in added["added"]] == ["Oats", "Milk"]
    assert [group["recipe"] for group in added["groups"]] == ["Overnight Oats", None]

    oats_id = added["added"][0]["id"]
    toggled = client.post(f"/grocery/{oats_id}/toggle").json()
    assert (toggled["checked_count"], toggled["unchecked_count"]) == (1, 2)

    cleared = client.post("/grocery/clear-checked").json()
    assert cleared["removed"] == 1
    assert sorted(item["name"] for item in cleared["items"]) == ["Milk", "Salt"]


def test_toggle_unknown_grocery_item_is_404(client: TestClient) -> None:
    assert client.post("/grocery/missing/toggle").status_code == 404


def test_recipes_filter_by_appliance(client: TestClient) -> None:
    body = client.get("/recipes", params={"appliance": "kettle"}).json()

    assert body["recipes"]
    assert {recipe["appliance"] for recipe in body["recipes"]} == {"kettle"}
    assert body["tip"] in MOM_TIPS


def test_generate_recipe_falls_back(client: TestClient) -> None:
    response = client.post(
        "/recipes/generate", json={"appliance": "kettle", "phase": "luteal"}
    )

    body = response.json()
    assert response.status_code == 200
    assert body["used_fallback"] is True
    assert body["recipe"]["name"] == "Hot Cocoa Comfort"
    assert body["notice"]


def test_grade_dish_saves_meal_snap(
    client: TestClient,
    generative_client: FakeGenerativeClient,
    live_store: LocalCraveCareStore,
) -> None:
    generative_client.script["gemini-2.5-flash"] = [
        '{"grade": "A", "protein": 20, "verdict": "Great plate!"}'
    ]

    response = client.post(
        "/dishes/grade",
        json={"image_base64": base64.b64encode(PNG_BYTES).decode("ascii")},
    )

    body = response.json()
    assert body["used_fallback"] is False
    assert body["result"]["grade"] == "A"
    assert body["snap"]["grade"] == "A"
    assert len(live_store.list_meal_snaps("local")) == 1


def test_grade_dish_fallback_is_not_saved(
    client: TestClient, live_store: LocalCraveCareStore
) -> None:
    response = client.post(
        "/dishes/grade",
        json={"image_base64": base64.b64encode(PNG_BYTES).decode("ascii")},
    )

    assert response.json()["used_fallback"] is True
    assert response.json()["snap"] is None
    assert live_store.list_meal_snaps("local") == []


def test_grade_dish_rejects_invalid_base64(client: TestClient) -> None:
    response = client.post("/dishes/grade", json={"image_base64": "not base64!!"})

    assert response.status_code == 422


def test_remote_requests_use_the_remote_store(
    remote_container: AppContainer,
    remote_store: LocalCraveCareStore,
    store: LocalCraveCareStore,
) -> None:
    client = TestClient(create_app(remote_container))
    headers = {"Authorization": "Bearer good-token"}

    session = client.get("/session", headers=headers).json()
    client.post("/spend", json={"label": "Chai", "amount": 20}, headers=headers)

    assert session["mode"] == "remote"
    assert [entry.label for entry in remote_store.list_spend("user-1")] == ["Chai"]
    assert store.list_spend("local") == []


@pytest.mark.parametrize("header", ["Bearer expired", "Basic abc", "Bearer "])
def test_unknown_credentials_are_rejected(
    remote_container: AppContainer, header: str
) -> None:
    client = TestClient(create_app(remote_container))

    response = client.get("/session", headers={"Authorization": header})

    assert response.status_code == 401


def test_under_budget_uses_profile_budget(client: TestClient) -> None:
    client.post("/onboarding", json={"name": "Asha", "daily_budget": 200})
    client.post("/spend", json={"label": "Zomato", "amount": 250})

    response = client.post("/rewards/under-budget", json={"daily_budget": 100000})

    assert response.status_code == 200
    assert response.json()["awarded"] is False
    assert client.get("/rewards").json()["available"] == 0


def test_meal_snaps_lists_graded_dishes(
    client: TestClient, generative_client: FakeGenerativeClient
) -> None:
    generative_client.script["gemini-2.5-flash"] = [
        '{"grade": "B", "protein": 12, "verdict": "Solid lunch"}'
    ]
    before = client.get("/meal-snaps").json()

    client.post(
        "/dishes/grade",
        json={"image_base64": base64.b64encode(PNG_BYTES).decode("ascii")},
    )
    after = client.get("/meal-snaps").json()

    assert before == {"snaps": []}
    assert len(after["snaps"]) == 1
    assert after["snaps"][0]["grade"] == "B"
