from conftest import client_for, png_bytes

from app.core.config import get_settings
from app.models import EvidenceFile, PdfPacket
from app.services import file_storage


def _uploads():
    return sorted(get_settings().uploads_dir.glob("*"))


def _upload(client, *, kind="tracking", filename="tracking.png", content_type="image/png", data=None):
    return client.post(
        "/api/evidence/dp_1/upload",
        files={"file": (filename, data if data is not None else png_bytes(), content_type)},
        data={"kind": kind},
    )


def test_upload_then_list(client):
    response = _upload(client)
    assert response.status_code == 200
    evidence = response.json()["evidence"]
    assert evidence["kind"] == "tracking"
    assert evidence["filename"] == "tracking.png"
    assert evidence["stored_path"].startswith("uploads/")
    assert evidence["size_bytes"] == len(png_bytes())
    assert file_storage.resolve_path(evidence["stored_path"]).is_file()

    listing = client.get("/api/evidence/dp_1")
    assert [item["id"] for item in listing.json()["evidence"]] == [evidence["id"]]
    assert client.get("/api/evidence/dp_2").json() == {"evidence": []}


def test_upload_rejects_non_image_without_side_effects(client, db_session):
    before = _uploads()
    response = _upload(client, filename="notes.pdf", content_type="application/pdf", data=b"%PDF-1.4 fake")

    assert response.status_code == 400
    assert "Only PNG and JPEG images are allowed" in response.json()["error"]
    assert db_session.query(EvidenceFile).count() == 0
    assert _uploads() == before


def test_upload_rejects_unknown_kind(client, db_session):
    response = _upload(client, kind="selfie")
    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid evidence kind")
    assert db_session.query(EvidenceFile).count() == 0


def test_upload_requires_file(client):
    response = client.post("/api/evidence/dp_1/upload", data={"kind": "invoice"})
    assert response.status_code == 400
    assert response.json() == {"error": "No file uploaded"}


def test_upload_rejects_oversize_file(client, db_session, monkeypatch):
    monkeypatch.setattr(get_settings(), "max_upload_bytes", 16)
    before = _uploads()

    response = _upload(client)

    assert response.status_code == 400
    assert response.json()["error"] == "File too large. Maximum upload size is 16 bytes."
    assert db_session.query(EvidenceFile).count() == 0
    assert _uploads() == before


def test_delete_evidence_removes_row_and_file(client):
    evidence = _upload(client).json()["evidence"]
    path = file_storage.resolve_path(evidence["stored_path"])

    response = client.delete(f"/api/evidence/{evidence['id']}")

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert not path.exists()
    assert client.get("/api/evidence/dp_1").json() == {"evidence": []}


def test_delete_other_users_evidence_is_404(db_session, gateway):
    with client_for(db_session, gateway) as owner:
        evidence = _upload(owner).json()["evidence"]

    with client_for(db_session, gateway, user_id="intruder") as intruder:
        response = intruder.delete(f"/api/evidence/{evidence['id']}")
        not_numeric = intruder.delete("/api/evidence/abc")

    assert response.status_code == 404
    assert response.json() == {"error": "Evidence not found"}
    assert not_numeric.status_code == 404
    assert db_session.query(EvidenceFile).count() == 1
    assert file_storage.resolve_path(evidence["stored_path"]).is_file()


def test_generate_latest_and_download_packet(client):
    _upload(client)
    assert client.get("/api/packets/latest/dp_1").json() == {"packet": None}

    created = client.post("/api/packets/dp_1")
    assert created.status_code == 200
    body = created.json()
    assert body["ok"] is True
    assert body["download_url"] == f"/api/packets/download/{body['packet_id']}"

    latest = client.get("/api/packets/latest/dp_1").json()["packet"]
    assert latest["id"] == body["packet_id"]
    assert latest["dispute_id"] == "dp_1"

    history = client.get("/api/packets/history/dp_1").json()["packets"]
    assert [p["id"] for p in history] == [body["packet_id"]]

    download = client.get(body["download_url"])
    assert download.status_code == 200
    assert download.headers["content-type"] == "application/pdf"
    assert "attachment" in download.headers["content-disposition"]
    assert "dispute_dp_1_" in download.headers["content-disposition"]
    assert download.content.startswith(b"%PDF")


def test_packet_for_unknown_dispute_is_404(client, db_session):
    response = client.post("/api/packets/dp_missing")
    assert response.status_code == 404
    assert response.json() == {"error": "Dispute not found"}
    assert db_session.query(PdfPacket).count() == 0


def test_download_is_owner_scoped(db_session, gateway):
    with client_for(db_session, gateway) as owner:
        packet_id = owner.post("/api/packets/dp_1").json()["packet_id"]

    with client_for(db_session, gateway, user_id="intruder") as intruder:
        response = intruder.get(f"/api/packets/download/{packet_id}")

    assert response.status_code == 404
    assert response.json() == {"error": "Packet not found"}


def test_download_missing_file_is_404(client, db_session):
    packet_id = client.post("/api/packets/dp_1").json()["packet_id"]
    row = db_session.get(PdfPacket, packet_id)
    file_storage.remove_file(row.filename)

    response = client.get(f"/api/packets/download/{packet_id}")
    assert response.status_code == 404
    assert response.json() == {"error": "Packet file missing on server"}
    assert client.get("/api/packets/download/not-a-number").status_code == 404


def test_blocked_packet_directory_returns_json_error(client, db_session, tmp_path, monkeypatch):
    (tmp_path / "packets").write_text("not a directory")
    monkeypatch.setattr(get_settings(), "storage_root", str(tmp_path))

    response = client.post("/api/packets/dp_1")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to write packet file"}
    assert db_session.query(PdfPacket).count() == 0
