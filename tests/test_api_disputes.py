from conftest import FakeDisputeGateway, client_for, make_dispute

from app.core.config import get_settings
from app.core.errors import ServiceUnavailable, UpstreamError
from app.dependencies import CurrentUser, get_current_user
from app.main import app


def test_health_reports_stripe_state(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "stripe_configured": True}


def test_current_user_is_resolved_identity(client):
    response = client.get("/api/auth/user")
    assert response.status_code == 200
    assert response.json()["id"] == "demo-user"


def test_list_disputes_filters_by_status(db_session):
    gateway = FakeDisputeGateway(
        [
            make_dispute("dp_1", status="needs_response", created=100),
            make_dispute("dp_2", status="won", created=200),
        ]
    )
    with client_for(db_session, gateway) as client:
        everything = client.get("/api/disputes")
        open_only = client.get("/api/disputes", params={"status": "needs_response"})
        bad_status = client.get("/api/disputes", params={"status": "bogus"})

    assert [d["id"] for d in everything.json()["disputes"]] == ["dp_2", "dp_1"]
    assert everything.json()["disputes"][1]["created_at"] == 100 * 1000
    assert [d["id"] for d in open_only.json()["disputes"]] == ["dp_1"]
    assert bad_status.status_code == 400
    assert "error" in bad_status.json()


def test_dispute_detail_includes_template(client):
    response = client.get("/api/disputes/dp_1")
    assert response.status_code == 200
    body = response.json()
    assert body["dispute"]["id"] == "dp_1"
    assert body["template"]["reason"] == "product_not_received"
    assert body["template"]["required"] == ["Shipping tracking", "Proof of delivery", "Invoice"]


def test_unknown_dispute_is_404(client):
    response = client.get("/api/disputes/dp_missing")
    assert response.status_code == 404
    assert response.json() == {"error": "Dispute not found"}


def test_stripe_not_configured_is_503(db_session):
    gateway = FakeDisputeGateway(error=ServiceUnavailable("Stripe not configured"))
    with client_for(db_session, gateway) as client:
        listing = client.get("/api/disputes")
        detail = client.get("/api/disputes/dp_1")
        packet = client.post("/api/packets/dp_1")

    for response in (listing, detail, packet):
        assert response.status_code == 503
        assert response.json() == {"error": "Stripe not configured"}


def test_upstream_failure_is_500_with_message(db_session):
    gateway = FakeDisputeGateway(error=UpstreamError("Card network timeout"))
    with client_for(db_session, gateway) as client:
        response = client.get("/api/disputes/dp_1")
    assert response.status_code == 500
    assert response.json() == {"error": "Card network timeout"}


def test_dashboard_summary(client):
    response = client.get("/api/disputes/summary")
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["open"] == 1
    assert body["amount_at_risk"] == {"usd": 2550}


def test_explanation_round_trip_without_stripe(db_session):
    gateway = FakeDisputeGateway(error=ServiceUnavailable("Stripe not configured"))
    with client_for(db_session, gateway) as client:
        empty = client.get("/api/disputes/dp_1/explanation")
        saved = client.put("/api/disputes/dp_1/explanation", json={"text": "  Shipped via UPS.  "})
        updated = client.put("/api/disputes/dp_1/explanation", json={"text": "Delivered Jan 3."})
        fetched = client.get("/api/disputes/dp_1/explanation")

    assert empty.status_code == 200
    assert empty.json() == {"explanation": None}
    assert saved.json()["explanation"]["text"] == "Shipped via UPS."
    assert updated.json()["explanation"]["text"] == "Delivered Jan 3."
    assert fetched.json()["explanation"]["text"] == "Delivered Jan 3."


def test_blank_explanation_is_rejected(client):
    response = client.put("/api/disputes/dp_1/explanation", json={"text": "   "})
    assert response.status_code == 400
    assert response.json() == {"error": "Explanation text is required"}
    assert client.get("/api/disputes/dp_1/explanation").json() == {"explanation": None}


def test_liveness_probe(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["uptime_seconds"] >= 0


def test_readiness_probe_checks_database(client):
    response = client.get("/readyz")
    assert response.status_code == 200
    assert response.json()["status"] == "ready"


def test_unexpected_error_is_json_500(db_session):
    gateway = FakeDisputeGateway(error=RuntimeError("socket closed"))
    with client_for(db_session, gateway, raise_server_exceptions=False) as client:
        response = client.get("/api/disputes/dp_1")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_dispute_routes_resolve_identity(db_session, gateway):
    resolved = []

    def _resolve_user():
        resolved.append("demo-user")
        return CurrentUser(id="demo-user")

    with client_for(db_session, gateway) as client:
        app.dependency_overrides[get_current_user] = _resolve_user
        for path in ("/api/disputes", "/api/disputes/summary", "/api/disputes/dp_1", "/api/disputes/dp_1/template"):
            assert client.get(path).status_code == 200

    assert len(resolved) == 4


def test_readiness_reports_blocked_storage(client, tmp_path, monkeypatch):
    monkeypatch.setattr(get_settings(), "storage_root", str(tmp_path))

    response = client.get("/readyz")

    assert response.status_code == 503
    assert response.json() == {"status": "not_ready", "error": "unavailable: storage"}
