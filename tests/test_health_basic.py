def test_health_ping(client):
    r = client.get("/health/ping")
    assert r.status_code == 200
    js = r.json()
    assert js["ok"] is True
    assert js["ping"] == "pong"


def test_request_id_is_echoed(client):
    r = client.get("/health/ping", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"
