import uuid

import pytest


pytestmark = pytest.mark.asyncio


async def test_todo_crud_flow(client, logged_in):
    user, headers = await logged_in()

    create_resp = await client.post(
        "/api/v1/todos",
        headers=headers,
        json={"title": "  Buy milk ", "priority": "high"},
    )
    assert create_resp.status_code == 201
    todo = create_resp.json()["data"]
    assert todo["title"] == "Buy milk"
    assert todo["completed"] is False
    assert todo["createdBy"]["id"] == str(user.id)

    list_resp = await client.get("/api/v1/todos", headers=headers)
    assert list_resp.json()["count"] == 1

    update_resp = await client.put(
        f"/api/v1/todos/{todo['id']}",
        headers=headers,
        json={"completed": True, "description": "2 litres"},
    )
    assert update_resp.status_code == 200
    assert update_resp.json()["data"]["completed"] is True
    assert update_resp.json()["data"]["description"] == "2 litres"

    delete_resp = await client.delete(f"/api/v1/todos/{todo['id']}", headers=headers)
    assert delete_resp.status_code == 200
    missing = await client.get(f"/api/v1/todos/{todo['id']}", headers=headers)
    assert missing.status_code == 404


async def test_assignee_visibility_and_limits(client, logged_in):
    owner, owner_headers = await logged_in()
    assignee, assignee_headers = await logged_in()
    _, stranger_headers = await logged_in()

    todo = (await client.post(
        "/api/v1/todos",
        headers=owner_headers,
        json={"title": "Shared", "assignedTo": [str(assignee.id)]},
    )).json()["data"]
    assert [a["id"] for a in todo["assignedTo"]] == [str(assignee.id)]

    # Assignee sees it in their list and can open it
    listed = (await client.get("/api/v1/todos", headers=assignee_headers)).json()
    assert [t["id"] for t in listed["data"]] == [todo["id"]]
    assert (await client.get(f"/api/v1/todos/{todo['id']}", headers=assignee_headers)).status_code == 200

    # Assignee may toggle completion only
    toggle = await client.put(f"/api/v1/todos/{todo['id']}", headers=assignee_headers, json={"completed": True})
    assert toggle.status_code == 200
    rename = await client.put(f"/api/v1/todos/{todo['id']}", headers=assignee_headers, json={"title": "Mine"})
    assert rename.status_code == 403
    assert rename.json()["error"]["code"] == "FORBIDDEN"
    assert (await client.delete(f"/api/v1/todos/{todo['id']}", headers=assignee_headers)).status_code == 403

    # Stranger is forbidden, not "not found"
    assert (await client.get(f"/api/v1/todos/{todo['id']}", headers=stranger_headers)).status_code == 403
    assert (await client.get("/api/v1/todos", headers=stranger_headers)).json()["count"] == 0


async def test_todo_validation(client, logged_in):
    _, headers = await logged_in()

    no_title = await client.post("/api/v1/todos", headers=headers, json={"description": "x"})
    assert no_title.status_code == 400
    assert no_title.json()["error"]["code"] == "VALIDATION_ERROR"

    bad_priority = await client.post("/api/v1/todos", headers=headers, json={"title": "x", "priority": "urgent"})
    assert bad_priority.status_code == 400

    unknown_user = await client.post(
        "/api/v1/todos", headers=headers, json={"title": "x", "assignedTo": [str(uuid.uuid4())]}
    )
    assert unknown_user.status_code == 400
    assert "Unknown user" in unknown_user.json()["error"]["message"]


async def test_unknown_fields_are_ignored(client, logged_in):
    user, headers = await logged_in()
    todo = (await client.post("/api/v1/todos", headers=headers, json={"title": "x"})).json()["data"]

    resp = await client.put(
        f"/api/v1/todos/{todo['id']}",
        headers=headers,
        json={"createdBy": str(uuid.uuid4()), "id": "hijack"},
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["id"] == todo["id"]
    assert resp.json()["data"]["createdBy"]["id"] == str(user.id)
