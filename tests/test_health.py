from fastapi.testclient import TestClient

from server.api import app

client = TestClient(app)

def test_health():
    """Test the health endpoint returns OK status."""
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "service": "whisper-tree-notion-api"}

def test_detailed_health_before_startup():
    """Detailed health reports the service as starting until the cache is warmed."""
    r = client.get("/health/detailed")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "starting"
    assert data["cache"] is None
    assert set(data["notion"]["collections"]) == {"faq", "template", "knowledge"}

def test_root_lists_endpoints():
    r = client.get("/")
    assert r.status_code == 200
    assert "POST /api/concept/generate" in r.json()["endpoints"]

def test_metrics_endpoint():
    """Prometheus metrics are exposed in text format."""
    client.get("/health")
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "whisper_tree_http_requests_total" in r.text
