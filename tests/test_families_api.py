"""API tests for the profile and family endpoints."""

import pytest

from app.models.user import UserRole

pytestmark = pytest.mark.api


def test_me_includes_family_and_balance(client, headers, parent):
    res = client.get("/users/me", headers=headers(parent))
    assert res.status_code == 200
    body = res.json()
    assert body["family_id"] == parent.family_id
    assert body["family_name"] == "Family mom"
    assert body["balance"] == {"stars": 0, "money": 0, "screen_time": 0}


def test_update_phone(client, headers, parent):
    res = client.patch("/users/me", json={"phone": " +123 "}, headers=headers(parent))
    assert res.status_code == 200
    assert res.json()["phone"] == "+123"


def test_my_family_lists_members(client, headers, parent, child):
    res = client.get("/families/me", headers=headers(child))
    assert res.status_code == 200
    body = res.json()
    assert body["family_id"] == parent.family_id
    assert [(m["email"], m["role"]) for m in body["members"]] == [
        ("mom@example.com", "parent"),
        ("kid@example.com", "child"),
    ]


def test_join_by_code(client, headers, parent, other_parent):
    res = client.post(f"/families/join/{parent.family_id.lower()}", headers=headers(other_parent))
    assert res.status_code == 200, res.text
    assert len(res.json()["members"]) == 2


def test_join_unknown_code(client, headers, parent):
    res = client.post("/families/join/XXXXXXXX", headers=headers(parent))
    assert res.status_code == 404
    assert res.json()["detail"] == "Family not found"


def test_join_current_family_conflicts(client, headers, parent):
    res = client.post(f"/families/join/{parent.family_id}", headers=headers(parent))
    assert res.status_code == 409


def test_leave_family_creates_new_one(client, headers, parent, child):
    res = client.post("/families/leave", headers=headers(child))
    assert res.status_code == 200
    body = res.json()
    assert body["family_id"] != parent.family_id
    assert body["family_name"] == "Family kid"
    assert [m["email"] for m in body["members"]] == ["kid@example.com"]


def test_create_named_family(client, headers, parent):
    res = client.post("/families/", json={"family_name": "Cabin crew"}, headers=headers(parent))
    assert res.status_code == 200
    assert res.json()["family_name"] == "Cabin crew"


def test_children_overview_for_parents_only(client, headers, parent, child, make_user):
    make_user("grandpa@example.com", role=UserRole.GUARDIAN, family_code=parent.family_id)
    res = client.get("/families/me/children", headers=headers(parent))
    assert res.status_code == 200
    assert [c["email"] for c in res.json()] == ["kid@example.com"]
    assert res.json()[0]["balance"]["stars"] == 0

    denied = client.get("/families/me/children", headers=headers(child))
    assert denied.status_code == 403


def test_get_other_family_forbidden(client, headers, parent, other_parent):
    assert client.get(f"/families/{parent.family_id}", headers=headers(parent)).status_code == 200
    assert client.get(f"/families/{parent.family_id}", headers=headers(other_parent)).status_code == 403
    assert client.get("/families/NOSUCH99", headers=headers(parent)).status_code == 404
