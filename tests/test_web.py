import io
import re

import pytest

from filecompress.config import Settings
from web import app as web_app
from web.app import create_app

from conftest import make_image_bytes, make_pdf_bytes


@pytest.fixture
def client():
    app = create_app(Settings())
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


def upload(client, url, data, filename, mime_type, **fields):
    form = {"file": (io.BytesIO(data), filename, mime_type)}
    form.update(fields)
    return client.post(url, data=form, content_type="multipart/form-data")


def test_index_renders_both_sections(client):
    response = client.get("/")

    assert response.status_code == 200
    assert b"image-drop-zone" in response.data
    assert b"document-drop-zone" in response.data


def test_image_upload_and_download(client):
    response = upload(client, "/api/image", make_image_bytes(size=(120, 80)), "photo.jpg", "image/jpeg",
                      quality="0.4", via="drop")

    assert response.status_code == 200
    body = response.get_json()
    assert body["accepted"] and body["processed"]
    assert body["via"] == "drop"
    assert body["result"]["mime_type"] == "image/jpeg"

    download = client.get("/api/download/image")
    assert download.status_code == 200
    assert download.mimetype == "image/jpeg"
    assert "compressed_" in download.headers["Content-Disposition"]


def test_document_upload_and_download(client):
    response = upload(client, "/api/document", make_pdf_bytes(), "report.pdf", "application/pdf")

    assert response.get_json()["processed"]

    download = client.get("/api/download/document")
    assert download.status_code == 200
    assert download.data.startswith(b"%PDF")
    assert ".pdf" in download.headers["Content-Disposition"]


def test_download_without_result_is_refused(client):
    assert client.get("/api/download/image").status_code == 404
    assert client.get("/api/download/document").status_code == 404
    assert client.get("/api/download/video").status_code == 404


def test_mismatched_file_is_ignored(client):
    response = upload(client, "/api/document", make_image_bytes(), "photo.jpg", "image/jpeg", via="drop")

    assert response.status_code == 200
    assert response.get_json()["accepted"] is False
    assert client.get("/api/state").get_json()["document"] is None


def test_invalid_pdf_reports_error(client):
    response = upload(client, "/api/document", b"nope", "broken.pdf", "application/pdf")

    assert response.status_code == 422
    body = response.get_json()
    assert "valid PDF" in body["error"]
    assert body["notices"] == [{"level": "error", "message": body["error"]}]


def test_bad_quality_is_rejected(client):
    response = upload(client, "/api/image", make_image_bytes(), "photo.jpg", "image/jpeg", quality="3")
    assert response.status_code == 400


def test_missing_file_is_ignored(client):
    response = client.post("/api/image", data={}, content_type="multipart/form-data")

    assert response.status_code == 200
    assert response.get_json()["reason"] == "No file provided"


def test_tab_switch_keeps_results(client):
    upload(client, "/api/image", make_image_bytes(), "photo.jpg", "image/jpeg")

    assert client.post("/api/tab", json={"tab": "document"}).get_json() == {"active_tab": "document"}
    assert client.post("/api/tab", json={"tab": "image"}).status_code == 200

    state = client.get("/api/state").get_json()
    assert state["active_tab"] == "image"
    assert state["image"] is not None
    assert client.get("/api/download/image").status_code == 200


def test_tab_switch_validation(client):
    assert client.post("/api/tab", json={}).status_code == 400
    assert client.post("/api/tab", json={"tab": "audio"}).status_code == 400


def test_new_page_load_starts_empty(client):
    upload(client, "/api/document", make_pdf_bytes(), "report.pdf", "application/pdf")

    client.get("/")

    assert client.get("/api/state").get_json()["document"] is None


def page_id_of(response) -> str:
    return re.search(rb'data-page-id="([^"]+)"', response.data).group(1).decode()


def test_second_page_does_not_discard_first_pages_results(client):
    first = {"X-Page-Id": page_id_of(client.get("/"))}
    form = {"file": (io.BytesIO(make_pdf_bytes()), "report.pdf", "application/pdf")}
    client.post("/api/document", data=form, headers=first, content_type="multipart/form-data")

    second = {"X-Page-Id": page_id_of(client.get("/"))}

    assert first != second
    assert client.get("/api/state", headers=second).get_json()["document"] is None
    assert client.get("/api/download/document", headers=second).status_code == 404

    download = client.get("/api/download/document", headers=first)
    assert download.status_code == 200
    assert download.data.startswith(b"%PDF")


def test_page_id_may_be_sent_as_query_parameter(client):
    page = page_id_of(client.get("/"))
    client.post(
        "/api/image",
        data={"file": (io.BytesIO(make_image_bytes()), "photo.jpg", "image/jpeg")},
        headers={"X-Page-Id": page},
        content_type="multipart/form-data",
    )

    assert client.get(f"/api/download/image?page={page}").status_code == 200


def test_reads_without_a_page_do_not_create_workspaces():
    app = create_app(Settings())
    client = app.test_client(use_cookies=False)
    before = len(web_app.workspaces)

    for _ in range(10):
        assert client.get("/api/state").status_code == 200
        assert client.get("/api/download/image").status_code == 404

    assert len(web_app.workspaces) == before


def test_idle_workspaces_are_evicted(client):
    page = page_id_of(client.get("/"))
    headers = {"X-Page-Id": page}
    upload_form = {"file": (io.BytesIO(make_pdf_bytes()), "report.pdf", "application/pdf")}
    client.post("/api/document", data=upload_form, headers=headers, content_type="multipart/form-data")
    assert page in web_app.workspaces

    web_app.workspaces[page].last_used -= Settings().workspace_ttl_seconds + 1
    client.get("/")

    assert page not in web_app.workspaces
    assert client.get("/api/download/document", headers=headers).status_code == 404


def test_recently_used_workspaces_survive_cleanup(client):
    page = page_id_of(client.get("/"))

    web_app.cleanup_old_workspaces(Settings().workspace_ttl_seconds)

    assert page in web_app.workspaces


@pytest.mark.parametrize("max_size_mb", ["inf", "-inf", "nan"])
def test_non_finite_size_limit_is_rejected(client, max_size_mb):
    response = upload(client, "/api/image", make_image_bytes(), "photo.jpg", "image/jpeg",
                      max_size_mb=max_size_mb)

    assert response.status_code == 400
    assert "Maximum size" in response.get_json()["error"]
