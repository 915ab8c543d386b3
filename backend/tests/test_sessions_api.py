from helpers.payloads import INSTANCE_A
from helpers.payloads import make_event
from helpers.payloads import make_window


def _create(client, headers, **overrides):
    body = {"name": "Work", "tags": ["a"], "windows": [make_window(1, ["https://a", "https://b"])]}
    body.update(overrides)
    return client.post("/api/v1/sessions", json=body, headers=headers)


def test_create_and_fetch(client, instance_headers):
    r = _create(client, instance_headers)
    assert r.status_code == 201, r.text
    created = r.json()["data"]
    assert created["sessionId"].startswith("session-")
    assert created["tabCount"] == 2
    assert created["windowCount"] == 1

    detail = client.get(f"/api/v1/sessions/{created['sessionId']}").json()["data"]
    assert detail["windows"][0]["windowId"] == 1
    assert [t["url"] for t in detail["windows"][0]["tabs"]] == ["https://a", "https://b"]
    assert detail["windows"][0]["tabs"][1]["favIconUrl"] is None


def test_create_requires_instance_header(client):
    r = _create(client, {})
    assert r.status_code == 400
    assert "X-Instance-ID" in r.json()["detail"]


def test_create_rejects_missing_name(client, instance_headers):
    r = client.post("/api/v1/sessions", json={"windows": []}, headers=instance_headers)
    assert r.status_code == 422


def test_list_update_delete(client, instance_headers):
    session_id = _create(client, instance_headers).json()["data"]["sessionId"]

    listed = client.get("/api/v1/sessions", params={"instanceId": INSTANCE_A}).json()["data"]
    assert [s["sessionId"] for s in listed] == [session_id]

    r = client.put(f"/api/v1/sessions/{session_id}", json={"description": "later"})
    assert r.status_code == 200
    assert client.get(f"/api/v1/sessions/{session_id}").json()["data"]["description"] == "later"

    assert client.delete(f"/api/v1/sessions/{session_id}").status_code == 200
    assert client.get(f"/api/v1/sessions/{session_id}").status_code == 404
    assert client.delete(f"/api/v1/sessions/{session_id}").status_code == 404
    assert client.put(f"/api/v1/sessions/{session_id}", json={"name": "x"}).status_code == 404


def test_batch_create(client, instance_headers):
    r = client.post(
        "/api/v1/sessions/batch",
        json={"sessions": [{"name": "one"}, {"description": "no name"}, {"name": "two"}]},
        headers=instance_headers,
    )
    assert r.status_code == 201, r.text
    data = r.json()["data"]
    assert data["created"] == 2
    assert data["failed"] == 1
    assert len(data["sessionIds"]) == 2
    assert data["errors"][0].startswith("Session 2:")


def test_events_endpoints(client, instance_headers):
    client.post(
        "/api/v1/sync/events",
        json={
            "instanceId": INSTANCE_A,
            "events": [make_event("a", 100), make_event("b", 200, "tab-created"), make_event("c", 300, "tab-created")],
        },
        headers=instance_headers,
    )

    page = client.get("/api/v1/events", params={"eventType": "tab-created", "limit": 1}).json()["data"]
    assert page["total"] == 2
    assert [e["documentId"] for e in page["events"]] == ["c"]

    ranged = client.get("/api/v1/events", params={"from": 100, "to": 200}).json()["data"]
    assert ranged["total"] == 2

    stats = client.get("/api/v1/events/stats").json()["data"]
    assert stats["totalEvents"] == 3
    assert stats["eventsByType"] == {"navigation": 1, "tab-created": 2}

    instances = client.get("/api/v1/events/instances").json()["data"]
    assert instances == [{"instanceId": INSTANCE_A, "eventCount": 3, "firstEventAt": 100, "lastEventAt": 300}]

    deleted = client.delete("/api/v1/events", params={"olderThan": 250}).json()["data"]
    assert deleted == {"deleted": 2}


def test_events_rejects_bad_instance_filter(client):
    assert client.get("/api/v1/events", params={"instanceId": "nope"}).status_code == 400
    assert client.delete("/api/v1/events").status_code == 422
