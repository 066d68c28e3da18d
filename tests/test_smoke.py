import base64
from urllib.parse import quote

from fastapi.testclient import TestClient

from csv_formatter.config import Settings, get_settings
from csv_formatter.main import app, content_disposition

client = TestClient(app)


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_config_exposes_branding():
    app.dependency_overrides[get_settings] = lambda: Settings(environment="development")
    try:
        r = client.get("/config")
    finally:
        app.dependency_overrides.clear()

    assert r.status_code == 200
    data = r.json()
    assert data["app_name"] == "CSV Formatter Pro"
    assert data["simulate_unlock"] is True
    assert "Removes duplicate rows" in data["features"]


def test_simulate_unlock_disabled_in_production():
    app.dependency_overrides[get_settings] = lambda: Settings(environment="production")
    try:
        r = client.get("/config")
    finally:
        app.dependency_overrides.clear()

    assert r.json()["simulate_unlock"] is False


def test_format_cleans_upload():
    raw = "name,phone,joined\nAnn,+1 (234) 567-8901,2024-01-05\nAnn,+1 (234) 567-8901,2024-01-05\n".encode("utf-8")

    files = {"file": ("leads.csv", raw, "text/csv")}
    r = client.post("/format", files=files)
    assert r.status_code == 200

    data = r.json()
    assert data["preview"][1] == ["Ann", "(234) 567-8901", "2024-01-05"]
    assert data["summary"]["duplicates_removed"] == 1
    assert data["output"]["filename"] == "processed-leads.csv"

    out_text = base64.b64decode(data["output"]["content_b64"]).decode("utf-8")
    assert out_text == "name,phone,joined\nAnn,(234) 567-8901,2024-01-05"


def test_format_accepts_txt():
    files = {"file": ("paste.txt", b"a,b\n", "text/plain")}
    r = client.post("/format", files=files)
    assert r.status_code == 200


def test_format_rejects_other_types():
    files = {"file": ("data.xlsx", b"a,b\n", "application/octet-stream")}
    r = client.post("/format", files=files)
    assert r.status_code == 422


def test_format_rejects_large_upload():
    app.dependency_overrides[get_settings] = lambda: Settings(max_upload_mb=0.001)
    try:
        files = {"file": ("big.csv", b"a,b\n" * 1000, "text/csv")}
        r = client.post("/format", files=files)
    finally:
        app.dependency_overrides.clear()

    assert r.status_code == 413
    assert "too large" in r.json()["detail"]


def test_download_returns_csv_attachment():
    files = {"file": ("notes.csv", b'x,"He said ""hi"", bye"\n', "text/csv")}
    r = client.post("/format/download", files=files)

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert 'filename="processed-notes.csv"' in r.headers["content-disposition"]
    assert r.text == 'x,"He said ""hi"", bye"'


def test_download_with_non_latin1_filename():
    files = {"file": ("报告.csv", b"a,b\n", "text/csv")}
    r = client.post("/format/download", files=files)

    assert r.status_code == 200
    disposition = r.headers["content-disposition"]
    assert 'filename="processed-__.csv"' in disposition
    assert "filename*=utf-8''" + quote("processed-报告.csv", safe="") in disposition
    assert r.text == "a,b"


def test_content_disposition_escapes_quotes():
    header = content_disposition('processed-say "hi".csv')
    assert header.startswith('attachment; filename="processed-say _hi_.csv";')
    assert "filename*=utf-8''processed-say%20%22hi%22.csv" in header
