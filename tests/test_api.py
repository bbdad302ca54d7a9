"""Integration tests for the API."""

import pytest
import os
from fastapi.testclient import TestClient
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

os.environ.setdefault("RECIPE_DATA_DIR", str(Path(__file__).parent.parent / "data"))
os.environ.setdefault("RECIPE_TICK_MODE", "manual")

from app import main as main_module

app = main_module.app


@pytest.fixture
def client():
    """Create test client."""
    with TestClient(app) as client:
        yield client


def advance(timer_id: str, ticks: int) -> int:
    """Deliver ticks to a live timer's manual tick source."""
    return main_module.registry.get(timer_id).timer.tick_source.advance(ticks)


def create_live(client, **body) -> dict:
    response = client.post("/api/v1/live-timers", json=body)
    assert response.status_code == 201
    return response.json()


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_returns_ok(self, client):
        """Test health endpoint returns 200."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["tick_mode"] == "manual"
        assert data["recipes_loaded"] > 0
        assert "version" in data


class TestLiveTimerEndpoints:
    """Tests for /api/v1/live-timers endpoints."""

    def test_create_live_timer(self, client):
        """Test creating a timer returns its idle state."""
        data = create_live(client, minutes=5, seconds=30, title="Custom Timer")

        assert data["title"] == "Custom Timer"
        assert data["display"] == "05:30"
        assert data["phase"] == "idle"
        assert data["is_running"] is False

    def test_create_defaults(self, client):
        data = create_live(client)

        assert data["display"] == "00:00"
        assert data["title"] == "Timer"

    def test_create_validates_seconds(self, client):
        """Test out-of-range seconds are rejected."""
        response = client.post("/api/v1/live-timers", json={"minutes": 1, "seconds": 60})

        assert response.status_code == 422

    def test_list_and_get(self, client):
        created = create_live(client, minutes=1)

        listed = client.get("/api/v1/live-timers").json()
        fetched = client.get(f"/api/v1/live-timers/{created['id']}").json()

        assert [t["id"] for t in listed] == [created["id"]]
        assert fetched["display"] == "01:00"

    def test_get_not_found(self, client):
        response = client.get("/api/v1/live-timers/missing")

        assert response.status_code == 404

    def test_start_and_pause(self, client):
        """Test starting, ticking and pausing."""
        timer_id = create_live(client, minutes=1)["id"]

        response = client.post(f"/api/v1/live-timers/{timer_id}/start")
        assert response.json()["applied"] is True
        assert response.json()["timer"]["phase"] == "running"

        advance(timer_id, 1)
        response = client.post(f"/api/v1/live-timers/{timer_id}/pause")
        assert response.json()["timer"]["display"] == "00:59"
        assert response.json()["timer"]["phase"] == "paused"

        assert advance(timer_id, 3) == 0
        assert client.get(f"/api/v1/live-timers/{timer_id}").json()["display"] == "00:59"

    def test_start_twice_not_applied(self, client):
        timer_id = create_live(client, minutes=1)["id"]
        client.post(f"/api/v1/live-timers/{timer_id}/start")

        response = client.post(f"/api/v1/live-timers/{timer_id}/start")

        assert response.status_code == 200
        assert response.json()["applied"] is False

    def test_completion_delivers_notification(self, client):
        """Test completion after the start gesture granted permission."""
        timer_id = create_live(client, seconds=2, title="Eggs")["id"]
        client.post(f"/api/v1/live-timers/{timer_id}/start")

        advance(timer_id, 2)
        data = client.get(f"/api/v1/live-timers/{timer_id}").json()

        assert data["phase"] == "completed"
        assert data["display"] == "00:00"
        assert data["completions"] == 1

        notifications = client.get("/api/v1/notifications").json()
        assert [n["body"] for n in notifications] == ["Eggs has finished!"]

    def test_restart_after_completion(self, client):
        timer_id = create_live(client, seconds=2)["id"]
        client.post(f"/api/v1/live-timers/{timer_id}/start")
        advance(timer_id, 2)

        response = client.post(f"/api/v1/live-timers/{timer_id}/toggle")

        assert response.json()["timer"]["display"] == "00:02"
        assert response.json()["timer"]["phase"] == "running"

    def test_reset(self, client):
        """Test reset restores the initial duration."""
        timer_id = create_live(client, minutes=1)["id"]
        client.post(f"/api/v1/live-timers/{timer_id}/start")
        advance(timer_id, 5)

        response = client.post(f"/api/v1/live-timers/{timer_id}/reset")

        assert response.json()["applied"] is True
        assert response.json()["timer"]["display"] == "01:00"
        assert response.json()["timer"]["is_running"] is False

    def test_edit_and_save(self, client):
        """Test editing the duration."""
        timer_id = create_live(client, minutes=1)["id"]
        client.post(f"/api/v1/live-timers/{timer_id}/edit")

        response = client.post(
            f"/api/v1/live-timers/{timer_id}/save",
            json={"minutes": "2", "seconds": "0"}
        )

        assert response.status_code == 200
        assert response.json()["timer"]["display"] == "02:00"
        assert response.json()["timer"]["phase"] == "idle"

    def test_save_invalid_keeps_editing(self, client):
        """Test invalid seconds are rejected and edit mode is kept."""
        timer_id = create_live(client)["id"]
        client.post(f"/api/v1/live-timers/{timer_id}/edit")

        response = client.post(
            f"/api/v1/live-timers/{timer_id}/save",
            json={"minutes": 0, "seconds": 70}
        )

        assert response.status_code == 422
        assert response.json()["detail"] == "Please enter a valid time"
        data = client.get(f"/api/v1/live-timers/{timer_id}").json()
        assert data["is_editing"] is True
        assert data["display"] == "00:00"

        messages = client.get("/api/v1/messages").json()
        assert any(m["level"] == "error" for m in messages)

    def test_cancel_edit(self, client):
        timer_id = create_live(client, minutes=1)["id"]
        client.post(f"/api/v1/live-timers/{timer_id}/edit")

        response = client.post(f"/api/v1/live-timers/{timer_id}/cancel")

        assert response.json()["timer"]["is_editing"] is False
        assert response.json()["timer"]["display"] == "01:00"

    def test_edit_while_running_not_applied(self, client):
        timer_id = create_live(client, minutes=1)["id"]
        client.post(f"/api/v1/live-timers/{timer_id}/start")

        response = client.post(f"/api/v1/live-timers/{timer_id}/edit")

        assert response.json()["applied"] is False
        assert response.json()["timer"]["is_editing"] is False

    def test_unknown_action(self, client):
        timer_id = create_live(client, minutes=1)["id"]

        response = client.post(f"/api/v1/live-timers/{timer_id}/explode")

        assert response.status_code == 404

    def test_delete_releases_timer(self, client):
        """Test deleting a running timer stops its ticks."""
        timer_id = create_live(client, minutes=1)["id"]
        client.post(f"/api/v1/live-timers/{timer_id}/start")
        source = main_module.registry.get(timer_id).timer.tick_source

        response = client.delete(f"/api/v1/live-timers/{timer_id}")

        assert response.status_code == 200
        assert not source.is_active
        assert client.get(f"/api/v1/live-timers/{timer_id}").status_code == 404


class TestSavedTimerEndpoints:
    """Tests for /api/v1/timers endpoints."""

    def test_create_and_list(self, client):
        """Test saving and listing named timers."""
        response = client.post(
            "/api/v1/timers",
            json={"name": "Pasta boiling time", "minutes": 8, "seconds": 0}
        )

        assert response.status_code == 201
        created = response.json()
        assert created["duration"] == 480

        listed = client.get("/api/v1/timers").json()
        assert [t["id"] for t in listed] == [created["id"]]

    def test_create_requires_name(self, client):
        response = client.post("/api/v1/timers", json={"name": " ", "minutes": 5})

        assert response.status_code == 400
        assert response.json()["detail"] == "Please enter a timer name"

    def test_create_validates_time(self, client):
        response = client.post("/api/v1/timers", json={"name": "Rice", "minutes": 5, "seconds": 75})

        assert response.status_code == 400
        assert response.json()["detail"] == "Please enter a valid time"

    def test_create_requires_duration(self, client):
        """Test a saved timer without a duration is rejected."""
        response = client.post("/api/v1/timers", json={"name": "Nothing"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Timer duration is required"
        assert client.get("/api/v1/timers").json() == []

    def test_update(self, client):
        timer_id = client.post("/api/v1/timers", json={"name": "Rice", "minutes": 15}).json()["id"]

        response = client.put(f"/api/v1/timers/{timer_id}", json={"name": "Brown rice", "minutes": 25})

        assert response.status_code == 200
        assert response.json()["name"] == "Brown rice"
        assert response.json()["minutes"] == 25

    def test_get_and_delete(self, client):
        timer_id = client.post("/api/v1/timers", json={"name": "Rice", "minutes": 15}).json()["id"]

        assert client.get(f"/api/v1/timers/{timer_id}").status_code == 200
        assert client.delete(f"/api/v1/timers/{timer_id}").status_code == 200
        assert client.get(f"/api/v1/timers/{timer_id}").status_code == 404
        assert client.delete(f"/api/v1/timers/{timer_id}").status_code == 404

    def test_use_saved_timer(self, client):
        """Test instantiating a live countdown from a saved timer."""
        saved = client.post("/api/v1/timers", json={"name": "Tea", "minutes": 3, "seconds": 30}).json()

        response = client.post(f"/api/v1/timers/{saved['id']}/live")

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Tea"
        assert data["display"] == "03:30"
        assert data["source"] == f"timer:{saved['id']}"


class TestRecipesEndpoint:
    """Tests for /api/v1/recipes endpoints."""

    def test_list_recipes(self, client):
        """Test listing recipes."""
        response = client.get("/api/v1/recipes")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] > 0
        assert len(data["recipes"]) > 0

    def test_list_recipes_with_tag(self, client):
        """Test filtering recipes by tag."""
        response = client.get("/api/v1/recipes?tag=breakfast")

        assert response.status_code == 200
        for recipe in response.json()["recipes"]:
            assert "breakfast" in [t.lower() for t in recipe["tags"]]

    def test_search_recipes(self, client):
        """Test typo tolerant title search."""
        response = client.get("/api/v1/recipes?q=spagetti")

        titles = [r["title"] for r in response.json()["recipes"]]
        assert "Spaghetti Aglio e Olio" in titles

    def test_get_recipe_by_id(self, client):
        response = client.get("/api/v1/recipes/r0001")

        assert response.status_code == 200
        assert response.json()["id"] == "r0001"

    def test_get_recipe_not_found(self, client):
        assert client.get("/api/v1/recipes/r9999").status_code == 404

    def test_recipe_timer(self, client):
        """Test a recipe's cooking time seeds a live timer."""
        response = client.post("/api/v1/recipes/r0001/timer", json={"start": True})

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Soft Boiled Eggs"
        assert data["initial_minutes"] == 6
        assert data["phase"] == "running"
        assert data["source"] == "recipe:r0001"

    def test_create_recipe(self, client):
        """Test adding a recipe to the catalogue."""
        response = client.post("/api/v1/recipes", json={
            "title": "Poached Eggs",
            "description": "Silky eggs",
            "ingredients": ["2 eggs", "vinegar"],
            "steps": ["Simmer water", "Poach for 3 minutes"],
            "cook_time_min": 3
        })

        assert response.status_code == 201
        recipe_id = response.json()["id"]
        assert client.get(f"/api/v1/recipes/{recipe_id}").json()["title"] == "Poached Eggs"

        timer = client.post(f"/api/v1/recipes/{recipe_id}/timer").json()
        assert timer["display"] == "03:00"

    def test_create_recipe_requires_fields(self, client):
        """Test a recipe without ingredients is rejected."""
        response = client.post("/api/v1/recipes", json={
            "title": "Air",
            "description": "Nothing",
            "steps": ["Wait"]
        })

        assert response.status_code == 400
        assert "ingredients" in response.json()["detail"]

    def test_update_recipe(self, client):
        response = client.put("/api/v1/recipes/r0001", json={"cook_time_min": 7})

        assert response.status_code == 200
        assert response.json()["cook_time_min"] == 7
        assert response.json()["title"] == "Soft Boiled Eggs"

    def test_update_recipe_not_found(self, client):
        response = client.put("/api/v1/recipes/r9999", json={"title": "Ghost"})

        assert response.status_code == 404

    def test_delete_recipe(self, client):
        """Test removing a recipe."""
        assert client.delete("/api/v1/recipes/r0002").status_code == 200
        assert client.get("/api/v1/recipes/r0002").status_code == 404
        assert client.delete("/api/v1/recipes/r0002").status_code == 404

    def test_recipe_to_new_shopping_list(self, client):
        """Test a recipe's ingredients start a new shopping list."""
        recipe = client.get("/api/v1/recipes/r0001").json()

        response = client.post("/api/v1/recipes/r0001/shopping-list")

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Soft Boiled Eggs"
        assert [i["name"] for i in data["items"]] == recipe["ingredients"]
        assert all(i["recipe_id"] == "r0001" for i in data["items"])

    def test_recipe_to_existing_shopping_list(self, client):
        list_id = client.post("/api/v1/shopping-lists", json={"name": "Weekend"}).json()["id"]

        client.post("/api/v1/recipes/r0001/shopping-list", json={"list_id": list_id})
        response = client.post("/api/v1/recipes/r0001/shopping-list", json={"list_id": list_id})

        recipe = client.get("/api/v1/recipes/r0001").json()
        assert response.json()["id"] == list_id
        assert response.json()["pending_count"] == len(recipe["ingredients"])

    def test_recipe_to_missing_shopping_list(self, client):
        response = client.post("/api/v1/recipes/r0001/shopping-list", json={"list_id": "missing"})

        assert response.status_code == 404


class TestShoppingListEndpoints:
    """Tests for /api/v1/shopping-lists endpoints."""

    def test_create_and_list(self, client):
        """Test creating and listing shopping lists."""
        response = client.post("/api/v1/shopping-lists", json={"name": "Groceries", "items": ["milk", "bread"]})

        assert response.status_code == 201
        created = response.json()
        assert created["pending_count"] == 2

        listed = client.get("/api/v1/shopping-lists").json()
        assert [s["id"] for s in listed] == [created["id"]]

    def test_create_requires_name(self, client):
        response = client.post("/api/v1/shopping-lists", json={"name": ""})

        assert response.status_code == 400
        assert response.json()["detail"] == "Shopping list name is required"

    def test_add_and_toggle_items(self, client):
        """Test checking items off and clearing them."""
        list_id = client.post("/api/v1/shopping-lists", json={"name": "Groceries"}).json()["id"]

        data = client.post(f"/api/v1/shopping-lists/{list_id}/items", json={"items": ["milk", "Milk", "eggs"]}).json()
        assert [i["name"] for i in data["items"]] == ["milk", "eggs"]

        item_id = data["items"][0]["id"]
        toggled = client.post(f"/api/v1/shopping-lists/{list_id}/items/{item_id}/toggle").json()
        assert toggled["completed"] is True

        cleared = client.post(f"/api/v1/shopping-lists/{list_id}/clear-completed").json()
        assert [i["name"] for i in cleared["items"]] == ["eggs"]

    def test_toggle_unknown_item(self, client):
        list_id = client.post("/api/v1/shopping-lists", json={"name": "Groceries"}).json()["id"]

        response = client.post(f"/api/v1/shopping-lists/{list_id}/items/missing/toggle")

        assert response.status_code == 404

    def test_update_and_delete(self, client):
        list_id = client.post("/api/v1/shopping-lists", json={"name": "Groceries", "items": ["milk"]}).json()["id"]

        response = client.put(f"/api/v1/shopping-lists/{list_id}", json={"name": "Market", "items": ["flour"]})

        assert response.json()["name"] == "Market"
        assert [i["name"] for i in response.json()["items"]] == ["flour"]
        assert client.delete(f"/api/v1/shopping-lists/{list_id}").status_code == 200
        assert client.get(f"/api/v1/shopping-lists/{list_id}").status_code == 404


class TestNotificationEndpoints:
    """Tests for notification permission and messages."""

    def test_permission_flow(self, client):
        """Test the permission prompt."""
        assert client.get("/api/v1/notifications/permission").json()["permission"] == "default"

        response = client.post("/api/v1/notifications/permission", json={"request": True})

        assert response.json()["permission"] == "granted"
        texts = [m["text"] for m in client.get("/api/v1/messages").json()]
        assert "Notifications enabled for timers" in texts

    def test_saved_timer_messages(self, client):
        client.post("/api/v1/timers", json={"name": "Rice", "minutes": 15})

        texts = [m["text"] for m in client.get("/api/v1/messages").json()]

        assert "Timer created successfully" in texts
