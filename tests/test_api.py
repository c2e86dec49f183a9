import base64
import io
import zipfile

import pytest
from fastapi.testclient import TestClient

from engine.decoder import decode
from main import app

from conftest import PASSWORD


@pytest.fixture
def client():
    return TestClient(app)


def _pdf_upload(data: bytes, name: str = "input.pdf"):
    return (name, data, "application/pdf")


def test_root_lists_features(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["message"] == "PDF Tools API"


def test_health_reports_dependencies(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] in ("healthy", "degraded")
    assert set(body["dependencies"]) == {"PIL", "PyMuPDF", "pikepdf", "numpy"}


def test_merge_returns_pdf(client, make_pdf, labels_of):
    files = [
        ("files", _pdf_upload(make_pdf([(100, 100)] * 2, prefix="A"), "a.pdf")),
        ("files", _pdf_upload(make_pdf([(100, 100)], prefix="B"), "b.pdf")),
    ]
    response = client.post("/merge", files=files)

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert 'filename="merged.pdf"' in response.headers["content-disposition"]
    assert labels_of(response.content) == ["A-1", "A-2", "B-1"]


def test_merge_single_document_is_bad_request(client, make_pdf):
    response = client.post("/merge", files=[("files", _pdf_upload(make_pdf()))])
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "insufficient_input"


def test_split_returns_zip(client, three_page_pdf):
    response = client.post("/split", files={"file": _pdf_upload(three_page_pdf)})

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
        assert archive.namelist() == [
            "split_pages/page_001.pdf",
            "split_pages/page_002.pdf",
            "split_pages/page_003.pdf",
        ]


def test_split_with_page_range_as_json(client, three_page_pdf):
    response = client.post(
        "/split",
        params={"start_page": 2, "response_format": "json"},
        files={"file": _pdf_upload(three_page_pdf)},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["operation"] == "split"
    assert body["directory"] == "split_pages"
    assert [f["name"] for f in body["files"]] == ["page_002.pdf", "page_003.pdf"]
    with decode(base64.b64decode(body["files"][0]["data"])) as doc:
        assert doc.page_count == 1


def test_split_with_inverted_range_is_bad_request(client, three_page_pdf):
    response = client.post(
        "/split",
        params={"start_page": 3, "end_page": 1},
        files={"file": _pdf_upload(three_page_pdf)},
    )
    assert response.status_code == 400


def test_pdf_to_images_returns_jpegs(client, make_pdf):
    response = client.post("/pdf-to-images", files={"file": _pdf_upload(make_pdf([(50, 50)] * 2))})

    assert response.status_code == 200
    with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
        assert archive.namelist() == ["pdf_images/page_001.jpg", "pdf_images/page_002.jpg"]
        assert archive.read("pdf_images/page_001.jpg")[:2] == b"\xff\xd8"


def test_images_to_pdf(client, make_image):
    files = [
        ("files", ("one.png", make_image("PNG", (30, 20)), "image/png")),
        ("files", ("two.jpg", make_image("JPEG", (20, 30)), "image/jpeg")),
    ]
    response = client.post("/images-to-pdf", files=files)

    assert response.status_code == 200
    with decode(response.content) as doc:
        assert [page.size for page in doc] == [(30, 20), (20, 30)]


def test_images_to_pdf_with_mislabelled_image(client, make_image):
    files = [("files", ("one.jpg", make_image("PNG"), "image/jpeg"))]
    response = client.post("/images-to-pdf", files=files)
    assert response.status_code == 415


def test_malformed_pdf_is_bad_request(client):
    response = client.post("/pdf-to-images", files={"file": _pdf_upload(b"not a pdf")})
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "malformed_document"


def test_unlock_success(client, encrypted_pdf):
    response = client.post(
        "/unlock",
        data={"password": PASSWORD},
        files={"file": _pdf_upload(encrypted_pdf)},
    )

    assert response.status_code == 200
    with decode(response.content) as doc:
        assert not doc.is_encrypted
        assert doc.page_count == 2


@pytest.mark.parametrize("form", [{"password": "wrong"}, {}])
def test_unlock_wrong_or_missing_password_is_unauthorized(client, encrypted_pdf, form):
    response = client.post("/unlock", data=form, files={"file": _pdf_upload(encrypted_pdf)})

    assert response.status_code == 401
    detail = response.json()["detail"]
    assert detail["error"] == "incorrect_password"
    assert "wrong" not in detail["message"]
