import pytest


pytestmark = pytest.mark.asyncio


async def test_healthz(client):
    resp = await client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


async def test_unknown_route_uses_error_envelope(client):
    resp = await client.get("/api/v1/nowhere")
    assert resp.status_code == 404
    assert resp.json()["success"] is False
    assert "code" in resp.json()["error"]


async def test_request_validation_is_400(client, logged_in):
    _, headers = await logged_in()
    resp = await client.get("/api/v1/projects/not-a-uuid", headers=headers)
    body = resp.json()
    assert resp.status_code == 400
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert any("project_id" in m for m in body["error"]["messages"])
