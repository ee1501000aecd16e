# ---------------------------------------------------------------------------
# Unit Tests: HTTP API
#
# Drives the FastAPI app end to end with TestClient. Storage, metadata and
# session dependencies are overridden with in-process instances, and
# requests.put / requests.delete are mocked so B2 is never contacted.
#
# Covered behavior:
#   - admin login and bearer-token enforcement
#   - upload URL issuance and upload policy (type / size)
#   - metadata registration, listing and search
#   - proxied multipart uploads (requests.put mocked)
#   - signed download and embed URLs with their expiry windows
#   - delete-file idempotence and tolerance of B2 outages
#   - CORS preflight handling
# ---------------------------------------------------------------------------
from urllib.parse import parse_qs, urlparse

import pytest
import requests
from fastapi.testclient import TestClient

from contenthost.api.routers.files import storage_service
from contenthost.main import app
from contenthost.repositories.files_repo import InMemoryFilesRepo, get_files_repo
from contenthost.services import storage as storage_mod
from contenthost.services.sessions import SessionStore, get_session_store, hash_password
from contenthost.services.storage import Storage, StorageConfig

CONFIG = StorageConfig(
    bucket="media-bucket",
    region="us-west-004",
    endpoint="s3.us-west-004.backblazeb2.com",
    public_url="https://f004.backblazeb2.com/file/media-bucket",
    access_key_id="004keyid",
    secret_access_key="K004secretsecret",
)


@pytest.fixture
def repo():
    return InMemoryFilesRepo()


@pytest.fixture
def client(repo, monkeypatch):
    monkeypatch.delenv("EMBED_BASE_URL", raising=False)
    sessions = SessionStore(hash_password("hunter2"))
    storage = Storage(CONFIG)
    app.dependency_overrides[storage_service] = lambda: storage
    app.dependency_overrides[get_files_repo] = lambda: repo
    app.dependency_overrides[get_session_store] = lambda: sessions
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth(client):
    resp = client.post("/api/auth", json={"password": "hunter2"})
    return {"Authorization": f"Bearer {resp.json()['token']}"}


def _expires(url):
    return parse_qs(urlparse(url).query)["X-Amz-Expires"][0]


def _register(client, auth, file_id="f1", filename="cat.png", content_type="image/png"):
    return client.post(
        "/api/register-upload",
        headers=auth,
        json={
            "fileId": file_id,
            "filename": filename,
            "contentType": content_type,
            "size": 2048,
            "b2Key": f"images/{file_id}.png",
        },
    )


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


def test_login_success(client):
    resp = client.post("/api/auth", json={"password": "hunter2"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert len(body["token"]) == 64


def test_login_wrong_password(client):
    resp = client.post("/api/auth", json={"password": "nope"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid password"


def test_login_empty_password(client):
    assert client.post("/api/auth", json={}).status_code == 400


def test_protected_route_requires_bearer(client):
    resp = client.post("/api/upload-url", json={"filename": "a.mp4", "contentType": "video/mp4"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Unauthorized"


def test_protected_route_rejects_unknown_token(client):
    resp = client.get("/api/list-files", headers={"Authorization": "Bearer not-a-session"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid or expired session"


# ---------------------------------------------------------------------------
# Upload flow
# ---------------------------------------------------------------------------


def test_upload_url(client, auth):
    resp = client.post(
        "/api/upload-url",
        headers=auth,
        json={"filename": "Clip.MP4", "contentType": "video/mp4", "size": 1000},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["fileId"]) == 12
    assert body["b2Key"] == f"videos/{body['fileId']}.mp4"
    assert body["uploadUrl"].startswith(
        f"https://s3.us-west-004.backblazeb2.com/media-bucket/{body['b2Key']}?"
    )
    assert _expires(body["uploadUrl"]) == "3600"


def test_upload_url_rejects_type(client, auth):
    resp = client.post(
        "/api/upload-url", headers=auth, json={"filename": "a.exe", "contentType": "application/x-msdownload"}
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid file type"


def test_upload_url_rejects_size(client, auth):
    resp = client.post(
        "/api/upload-url",
        headers=auth,
        json={"filename": "big.mp4", "contentType": "video/mp4", "size": 500 * 1024 * 1024 + 1},
    )
    assert resp.status_code == 400


def test_register_and_list(client, auth):
    resp = _register(client, auth)
    assert resp.status_code == 200
    assert resp.json()["fileId"] == "f1"
    assert resp.json()["uploadDate"].endswith("Z")

    listing = client.get("/api/list-files", headers=auth).json()
    assert listing["total"] == 1
    assert listing["limit"] == 100 and listing["offset"] == 0
    f = listing["files"][0]
    assert f["contentType"] == "image/png"
    assert f["mediaUrl"] == "https://f004.backblazeb2.com/file/media-bucket/images/f1.png"
    assert f["thumbnailUrl"] == f["mediaUrl"]


def test_register_video_has_no_thumbnail(client, auth, repo):
    _register(client, auth, file_id="v1", filename="clip.mp4", content_type="video/mp4")
    assert repo.get("v1").thumbnail_url is None


def test_register_duplicate(client, auth):
    _register(client, auth)
    assert _register(client, auth).status_code == 409


def test_list_search(client, auth):
    _register(client, auth, file_id="f1", filename="cat.png")
    _register(client, auth, file_id="f2", filename="dog.png")
    listing = client.get("/api/list-files", headers=auth, params={"search": "DOG"}).json()
    assert [f["fileId"] for f in listing["files"]] == ["f2"]
    assert listing["total"] == 1


# ---------------------------------------------------------------------------
# Signed access
# ---------------------------------------------------------------------------


def test_sign_url(client, auth):
    _register(client, auth)
    resp = client.get("/api/sign-url", params={"fileId": "f1"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["filename"] == "cat.png"
    assert body["contentType"] == "image/png"
    assert "/media-bucket/images/f1.png?" in body["url"]
    assert _expires(body["url"]) == "1800"


def test_sign_url_errors(client):
    assert client.get("/api/sign-url").status_code == 400
    assert client.get("/api/sign-url", params={"fileId": "missing"}).status_code == 404


def test_get_embed_url(client, auth):
    _register(client, auth)
    body = client.get("/api/get-embed-url", params={"id": "f1"}).json()
    assert body["embedUrl"] == "https://contenthosting.org/embed/f1"
    assert body["embedCode"].startswith('<iframe src="https://contenthosting.org/embed/f1"')
    assert _expires(body["mediaUrl"]) == "21600"
    assert body["thumbnailUrl"].endswith("/images/f1.png")


def test_get_embed_url_custom_base(client, auth, monkeypatch):
    monkeypatch.setenv("EMBED_BASE_URL", "https://media.example.org/")
    _register(client, auth)
    body = client.get("/api/get-embed-url", params={"id": "f1"}).json()
    assert body["embedUrl"] == "https://media.example.org/embed/f1"


def test_unconfigured_storage_is_500(client, monkeypatch):
    app.dependency_overrides.pop(storage_service)
    monkeypatch.setattr(storage_mod, "_storage_instance", None)
    monkeypatch.delenv("B2_BUCKET", raising=False)
    resp = client.get("/api/sign-url", params={"fileId": "f1"})
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Storage not configured"


# ---------------------------------------------------------------------------
# Proxied upload
# ---------------------------------------------------------------------------


def _b2_reply(mocker, status=200, text=""):
    return mocker.patch(
        "contenthost.aws.s3_utils.requests.put",
        return_value=mocker.Mock(status_code=status, text=text),
    )


def test_proxy_upload_image(client, auth, repo, mocker):
    mock_put = _b2_reply(mocker)
    body = b"\x89PNG\r\n\x1a\n" + b"\x00" * 56
    resp = client.post(
        "/api/proxy-upload",
        headers=auth,
        files={"file": ("Cat.PNG", body, "image/png")},
        data={"description": "the cat"},
    )
    assert resp.status_code == 200
    out = resp.json()
    assert out["success"] is True
    assert out["b2Key"] == f"images/{out['fileId']}.png"
    assert out["uploadDate"].endswith("Z")

    (url,), kwargs = mock_put.call_args
    assert url.startswith(f"https://{CONFIG.endpoint}/media-bucket/{out['b2Key']}?")
    assert _expires(url) == "3600"
    assert kwargs["data"] == body
    assert kwargs["headers"] == {"Content-Type": "image/png"}
    assert kwargs["timeout"] > 0

    record = repo.get(out["fileId"])
    assert record.filename == "Cat.PNG"
    assert record.size == 64
    assert record.description == "the cat"
    assert record.thumbnail_url == f"{CONFIG.public_url}/{out['b2Key']}"


def test_proxy_upload_accepts_x_png(client, auth, repo, mocker):
    mock_put = _b2_reply(mocker, status=201)
    resp = client.post(
        "/api/proxy-upload",
        headers=auth,
        files={"file": ("scan", b"png-bytes", "image/x-png")},
    )
    assert resp.status_code == 200
    assert resp.json()["b2Key"].endswith(".png")
    assert mock_put.call_args.kwargs["headers"] == {"Content-Type": "image/x-png"}
    assert repo.get(resp.json()["fileId"]).type == "image/x-png"


def test_proxy_upload_video_uses_form_filename(client, auth, repo, mocker):
    _b2_reply(mocker)
    resp = client.post(
        "/api/proxy-upload",
        headers=auth,
        files={"file": ("blob", b"\x00\x00\x00\x18ftypmp42", "video/mp4")},
        data={"filename": "holiday.mp4"},
    )
    assert resp.status_code == 200
    record = repo.get(resp.json()["fileId"])
    assert record.b2_key.startswith("videos/")
    assert record.filename == "holiday.mp4"
    assert record.thumbnail_url is None


def test_proxy_upload_rejects_type(client, auth, mocker):
    mock_put = _b2_reply(mocker)
    resp = client.post(
        "/api/proxy-upload", headers=auth, files={"file": ("a.txt", b"hi", "text/plain")}
    )
    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Invalid file type")
    mock_put.assert_not_called()


def test_proxy_upload_rejects_oversize(client, auth, repo, mocker, monkeypatch):
    monkeypatch.setattr("contenthost.api.routers.files.MAX_PROXY_UPLOAD_BYTES", 10)
    mock_put = _b2_reply(mocker)
    resp = client.post(
        "/api/proxy-upload", headers=auth, files={"file": ("a.gif", b"x" * 11, "image/gif")}
    )
    assert resp.status_code == 400
    assert "max 100MB" in resp.json()["detail"]
    mock_put.assert_not_called()
    assert repo.count() == 0


def test_proxy_upload_requires_file_and_session(client, auth):
    assert client.post("/api/proxy-upload", files={"file": ("a.gif", b"x", "image/gif")}).status_code == 401
    resp = client.post("/api/proxy-upload", headers=auth, data={"filename": "a.gif"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "No file provided"


def test_proxy_upload_b2_rejection_is_500(client, auth, repo, mocker):
    _b2_reply(mocker, status=403, text="<Error><Code>AccessDenied</Code></Error>")
    resp = client.post(
        "/api/proxy-upload", headers=auth, files={"file": ("a.jpg", b"jpeg", "image/jpeg")}
    )
    assert resp.status_code == 500
    assert resp.json()["detail"].startswith("Upload failed")
    assert repo.count() == 0


def test_proxy_upload_b2_outage_is_500(client, auth, repo, mocker):
    mocker.patch("contenthost.aws.s3_utils.requests.put", side_effect=requests.ConnectionError())
    resp = client.post(
        "/api/proxy-upload", headers=auth, files={"file": ("a.webm", b"webm", "video/webm")}
    )
    assert resp.status_code == 500
    assert "X-Amz-Signature" not in resp.text
    assert repo.count() == 0


# ---------------------------------------------------------------------------
# Deletion
# ---------------------------------------------------------------------------


def test_delete_file_already_absent_in_b2(client, auth, repo, mocker):
    _register(client, auth)
    mock_delete = mocker.patch(
        "contenthost.aws.s3_utils.requests.delete",
        return_value=mocker.Mock(status_code=404),
    )
    resp = client.delete("/api/delete-file", headers=auth, params={"id": "f1"})
    assert resp.status_code == 200
    assert resp.json()["message"] == "File deleted successfully"
    assert repo.get("f1") is None
    mock_delete.assert_called_once()


def test_delete_file_survives_b2_outage(client, auth, repo, mocker):
    _register(client, auth)
    mocker.patch("contenthost.aws.s3_utils.requests.delete", side_effect=requests.ConnectionError())
    resp = client.post("/api/delete-file", headers=auth, params={"id": "f1"})
    assert resp.status_code == 200
    assert repo.count() == 0


def test_delete_file_unknown(client, auth):
    assert client.delete("/api/delete-file", headers=auth, params={"id": "nope"}).status_code == 404


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def test_preflight(client):
    resp = client.options("/api/upload-url")
    assert resp.status_code == 204
    assert resp.headers["access-control-allow-origin"] == "*"
    assert "Authorization" in resp.headers["access-control-allow-headers"]
