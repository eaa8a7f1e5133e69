import json

from app.services import aggregator_service


def fake_upstream(status, body, calls=None):
    async def fetch(url, auth_token, user_agent=None):
        if calls is not None:
            calls.append({"url": url, "auth_token": auth_token, "user_agent": user_agent})
        return status, body
    return fetch


def test_proxy_preflight(client):
    response = client.options("/api/alnair/proxy")
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"


def test_proxy_rejects_get(client):
    response = client.get("/api/alnair/proxy")
    assert response.status_code == 405
    assert response.json() == {"error": "Method POST required"}


def test_proxy_requires_endpoint(client, alnair_token):
    response = client.post("/api/alnair/proxy", json={"queryParams": {"limit": 1}})
    assert response.status_code == 400
    assert response.json() == {"error": "Endpoint parameter is required"}


def test_proxy_requires_token(client, monkeypatch):
    monkeypatch.setattr(aggregator_service.settings, "ALNAIR_AUTH_TOKEN", "")
    response = client.post("/api/alnair/proxy", json={"endpoint": "/project/find"})
    assert response.status_code == 500
    assert response.json() == {"error": "ALNAIR_AUTH_TOKEN is not configured in environment variables"}


def test_proxy_success_forwards_user_agent(client, alnair_token, monkeypatch):
    calls = []
    monkeypatch.setattr(
        aggregator_service, "fetch_upstream", fake_upstream(200, json.dumps({"data": {"items": []}}), calls)
    )

    response = client.post(
        "/api/alnair/proxy",
        json={"endpoint": "/project/find", "queryParams": {"limit": 5, "page": None}},
        headers={"User-Agent": "Mozilla/5.0 Test"},
    )

    assert response.status_code == 200
    assert response.json() == {"data": {"items": []}}
    assert response.headers["cache-control"] == "public, s-maxage=300, stale-while-revalidate=60"
    assert response.headers["access-control-allow-origin"] == "*"
    assert calls[0]["url"].endswith("/project/find?limit=5")
    assert calls[0]["auth_token"] == alnair_token
    assert calls[0]["user_agent"] == "Mozilla/5.0 Test"


def test_proxy_relays_upstream_status(client, alnair_token, monkeypatch):
    monkeypatch.setattr(aggregator_service, "fetch_upstream", fake_upstream(403, "blocked by edge"))

    response = client.post("/api/alnair/proxy", json={"endpoint": "/project/find"})
    assert response.status_code == 403
    assert response.json() == {"error": "Alnair API Error: 403", "details": "blocked by edge"}


def test_proxy_invalid_json_is_502(client, alnair_token, monkeypatch):
    monkeypatch.setattr(aggregator_service, "fetch_upstream", fake_upstream(200, "<html>captcha</html>"))

    response = client.post("/api/alnair/proxy", json={"endpoint": "/project/find"})
    assert response.status_code == 502
    assert response.json()["error"] == "Invalid JSON from Alnair API"


def test_proxy_transport_failure_is_500(client, alnair_token, monkeypatch):
    async def unreachable(url, auth_token, user_agent=None):
        raise aggregator_service.UpstreamTransportError("curl exited with code 35")

    monkeypatch.setattr(aggregator_service, "fetch_upstream", unreachable)

    response = client.post("/api/alnair/proxy", json={"endpoint": "/project/find"})
    assert response.status_code == 500
    assert response.json() == {
        "error": "Proxy failed to reach Alnair API",
        "message": "curl exited with code 35",
    }


def test_proxy_malformed_endpoint_is_relay_500(client, alnair_token, monkeypatch):
    async def curl_rejects(url, auth_token, user_agent):
        raise RuntimeError("curl exited with code 3: URL rejected: Port number was not a decimal number")

    monkeypatch.setattr(aggregator_service, "_fetch_with_curl", curl_rejects)

    response = client.post("/api/alnair/proxy", json={"endpoint": ":abc"})
    assert response.status_code == 500
    assert response.json()["error"] == "Proxy failed to reach Alnair API"
    assert "curl exited with code 3" in response.json()["message"]
    assert response.headers["access-control-allow-origin"] == "*"


def test_browse_projects_filters_and_enriches(client, alnair_token, monkeypatch, aggregator_project):
    items = [
        aggregator_project(id=1),
        aggregator_project(id=2, title="Palm Villas", statistics={"total": {"price_from": 4_000_000}}),
    ]
    monkeypatch.setattr(
        aggregator_service, "fetch_upstream", fake_upstream(200, json.dumps({"data": {"items": items}}))
    )

    response = client.get("/api/alnair/projects", params={"max_price": 2_000_000})
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    project = body["data"][0]
    assert project["id"] == 1
    assert project["formatted_price"] == "AED 900K"
    assert project["construction"] == {"percentage": 45, "status": "structure"}
    assert project["badge"]["label"] == "Under Construction"
    assert project["emirate"] == "Dubai"


def test_browse_projects_rejects_unknown_sort(client):
    assert client.get("/api/alnair/projects", params={"sort": "name"}).status_code == 422


def test_browse_upstream_error_maps_status(client, alnair_token, monkeypatch):
    monkeypatch.setattr(aggregator_service, "fetch_upstream", fake_upstream(503, "maintenance"))
    response = client.get("/api/alnair/markers")
    assert response.status_code == 503


def test_project_details(client, alnair_token, monkeypatch, aggregator_project):
    details = aggregator_project(description="The creekΓÇÖs first tower.\n\nMore detail.")
    monkeypatch.setattr(aggregator_service, "fetch_upstream", fake_upstream(200, json.dumps(details)))

    response = client.get("/api/alnair/projects/creek-views/tower-a/unit-1")
    assert response.status_code == 200
    body = response.json()
    assert body["description"]["text"] == "The creek's first tower.\n\nMore detail."
    assert body["units"]["types"] == ["1 BR", "2 BR"]
    assert "Waterfront" in body["features"]


def test_markers_and_districts(client, alnair_token, monkeypatch, aggregator_project):
    items = [
        aggregator_project(id=1),
        aggregator_project(id=2, latitude=None, longitude=None),
        aggregator_project(id=3, district={"title": "Business Bay"}),
        aggregator_project(id=4, district={"title": "Business Bay"}),
    ]
    monkeypatch.setattr(
        aggregator_service, "fetch_upstream", fake_upstream(200, json.dumps({"data": {"items": items}}))
    )

    markers = client.get("/api/alnair/markers").json()
    assert [m["id"] for m in markers["data"]] == [1, 3, 4]

    districts = client.get("/api/alnair/districts").json()
    assert districts["data"] == [
        {"district": "Business Bay", "count": 2},
        {"district": "Dubai Creek Harbour", "count": 2},
    ]
