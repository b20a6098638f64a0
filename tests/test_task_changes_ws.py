"""WebSocket change feed tests."""

import pytest
from starlette.websockets import WebSocketDisconnect

from app.models.user import UserRole
from app.services.realtime import broker
from app.services.security import create_access_token

pytestmark = pytest.mark.api


def _feed(client, user):
    return client.websocket_connect(f"/tasks/ws?token={create_access_token(user.id)}")


def test_child_is_told_about_new_and_updated_tasks(client, headers, parent, child):
    with _feed(client, child) as ws:
        assert ws.receive_json() == {"event": "SUBSCRIBED"}

        res = client.post(
            "/tasks/", json={"title": "Make the bed", "assigned_to_id": child.id}, headers=headers(parent)
        )
        task_id = res.json()["id"]
        event = ws.receive_json()
        assert event == {
            "event": "INSERT",
            "task_id": task_id,
            "status": "pending",
            "family_id": parent.family_id,
            "assigned_to_id": child.id,
        }

        client.post(f"/tasks/{task_id}/start", headers=headers(child))
        event = ws.receive_json()
        assert event["event"] == "UPDATE"
        assert event["status"] == "in_progress"


def test_parent_sees_children_progress(client, headers, parent, child):
    res = client.post("/tasks/", json={"title": "Homework", "assigned_to_id": child.id}, headers=headers(parent))
    task_id = res.json()["id"]

    with _feed(client, parent) as ws:
        assert ws.receive_json()["event"] == "SUBSCRIBED"
        client.post(f"/tasks/{task_id}/start", headers=headers(child))
        client.post(f"/tasks/{task_id}/complete", headers=headers(child))
        statuses = [ws.receive_json()["status"], ws.receive_json()["status"]]
        assert statuses == ["in_progress", "completed"]


def test_subscription_removed_on_disconnect(client, child):
    with _feed(client, child) as ws:
        ws.receive_json()
        assert broker.subscriber_count() == 1
    assert broker.subscriber_count() == 0


def test_bad_token_closes_with_policy_violation(client):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect("/tasks/ws?token=garbage") as ws:
            ws.receive_json()
    assert exc.value.code == 1008


def test_leaving_family_stops_old_family_events(client, headers, parent, child, make_user):
    dad = make_user("dad@example.com", family_code=parent.family_id)
    with _feed(client, dad) as ws:
        assert ws.receive_json()["event"] == "SUBSCRIBED"

        new_family = client.post("/families/leave", headers=headers(dad)).json()["family_id"]
        client.post("/tasks/", json={"title": "Old family chore", "assigned_to_id": child.id}, headers=headers(parent))

        stepkid = make_user("stepkid@example.com", role=UserRole.CHILD, family_code=new_family)
        res = client.post(
            "/tasks/", json={"title": "New family chore", "assigned_to_id": stepkid.id}, headers=headers(dad)
        )
        event = ws.receive_json()
        assert event["task_id"] == res.json()["id"]
        assert event["family_id"] == new_family
