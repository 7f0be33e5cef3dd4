from __future__ import annotations

import pytest
from conftest import ANALYSIS_PROMPT, MARKDOWN_PROMPT, SELECT_PROMPT, FakeGateway, selection
from fastapi.testclient import TestClient

from kanban_agents.api.main import create_app
from kanban_agents.config.settings import Settings
from kanban_agents.storage.memory import InMemoryTaskStore

TASK_ID = "task-1"


@pytest.fixture
def client() -> TestClient:
    store = InMemoryTaskStore()
    store.add_task(title="Renew passport", description="renew it", task_id=TASK_ID)
    gateway = FakeGateway(
        {
            SELECT_PROMPT: selection(context=False, actions=False),
            ANALYSIS_PROMPT: {"context": "DESK", "priority": "low", "confidence": 0.6},
            MARKDOWN_PROMPT: {"formattedDescription": "Renew it.", "confidence": 0.9},
        }
    )
    app = create_app(store=store, settings_override=Settings(_env_file=None), gateway=gateway)
    return TestClient(app)


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_process_task_returns_result_and_hints(client: TestClient) -> None:
    response = client.post(f"/tasks/{TASK_ID}/process", json={"update_task": True})

    assert response.status_code == 200
    payload = response.json()
    assert payload["result"]["task_id"] == TASK_ID
    assert payload["result"]["task_analysis"]["success"] is True
    assert {hint["hint_type"] for hint in payload["hints"]} == {"context", "priority"}
    assert payload["applied_hint_ids"] == []
    assert payload["markdown"]["formatted_description"] == "Renew it."
    assert payload["progress"][-1]["progress"] == 100


def test_process_unknown_task_is_404(client: TestClient) -> None:
    response = client.post("/tasks/missing/process")
    assert response.status_code == 404


def test_hint_lifecycle(client: TestClient) -> None:
    client.post(f"/tasks/{TASK_ID}/process", json={"update_task": False})

    hints = client.get(f"/tasks/{TASK_ID}/hints").json()
    by_type = {hint["hint_type"]: hint for hint in hints}

    applied = client.post(f"/hints/{by_type['priority']['hint_id']}/apply")
    assert applied.status_code == 200
    assert applied.json()["applied"] is True

    dismissed = client.post(f"/hints/{by_type['context']['hint_id']}/dismiss")
    assert dismissed.status_code == 200
    assert dismissed.json()["applied"] is True

    markdown = by_type["description"]
    assert client.delete(f"/hints/{markdown['hint_id']}").status_code == 204
    remaining = client.get(f"/tasks/{TASK_ID}/hints").json()
    assert markdown["hint_id"] not in {hint["hint_id"] for hint in remaining}


def test_unknown_hint_and_task_are_404(client: TestClient) -> None:
    assert client.get("/tasks/missing/hints").status_code == 404
    assert client.post("/hints/missing/apply").status_code == 404
    assert client.post("/hints/missing/dismiss").status_code == 404
    assert client.delete("/hints/missing").status_code == 404


def test_events_are_recorded_per_task(client: TestClient) -> None:
    assert client.get(f"/tasks/{TASK_ID}/events").json() == []

    client.post(f"/tasks/{TASK_ID}/process")

    events = client.get(f"/tasks/{TASK_ID}/events").json()
    types = [event["type"] for event in events]
    assert types[0] == "agent.progress"
    assert types.count("agent.completed") == 1
    assert all(event["board_id"] == "board-1" for event in events)
