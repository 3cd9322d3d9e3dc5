"""附件接口集成测试：multipart 上传、替换、删除与静态访问。"""

import base64

from fastapi.testclient import TestClient

from app.packages.upload.core.config import get_settings


def _create(client: TestClient, title: str = "contract", content: bytes = b"hello world", filename: str = "Contract Final.txt"):
    return client.post(
        "/api/v1/attachments",
        data={"title": title},
        files={"file_file": (filename, content, "text/plain")},
    )


def test_health_and_request_id(client: TestClient):
    resp = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert resp.status_code == 200
    assert resp.json() == {"msg": "OK", "data": {"status": "healthy"}, "code": 200}
    assert resp.headers["x-request-id"] == "req-123"


def test_attachment_lifecycle(client: TestClient, upload_root):
    resp = _create(client)
    assert resp.status_code == 200
    body = resp.json()
    data = body["data"]
    assert body["code"] == 200
    assert data["title"] == "contract"
    assert data["errors"] == {}

    link = data["file"]
    attachment_id = data["id"]
    assert link.startswith("attachment/0/0/0/file/")
    assert link.endswith(".txt")
    assert data["file_url"] == f"/uploads/{link}"
    assert (upload_root / link).read_bytes() == b"hello world"

    # 静态访问
    static = client.get(data["file_url"])
    assert static.status_code == 200
    assert static.content == b"hello world"

    detail = client.get(f"/api/v1/attachments/{attachment_id}")
    assert detail.status_code == 200
    assert detail.json()["data"]["file"] == link

    listing = client.get("/api/v1/attachments")
    assert listing.status_code == 200
    assert any(item["id"] == attachment_id for item in listing.json()["data"]["items"])

    # 替换文件：旧文件被删除
    updated = client.put(
        f"/api/v1/attachments/{attachment_id}",
        data={"title": "contract v2"},
        files={"file_file": ("v2.md", b"# v2", "text/markdown")},
    )
    assert updated.status_code == 200
    new_link = updated.json()["data"]["file"]
    assert updated.json()["data"]["title"] == "contract v2"
    assert new_link != link and new_link.endswith(".md")
    assert not (upload_root / link).exists()
    assert (upload_root / new_link).read_bytes() == b"# v2"

    # 只修改标题，文件保持不变
    renamed = client.put(f"/api/v1/attachments/{attachment_id}", data={"title": "final"})
    assert renamed.status_code == 200
    assert renamed.json()["data"]["file"] == new_link

    deleted = client.delete(f"/api/v1/attachments/{attachment_id}")
    assert deleted.status_code == 200
    assert deleted.json()["data"] == {"id": attachment_id}
    assert not (upload_root / new_link).exists()

    missing = client.get(f"/api/v1/attachments/{attachment_id}")
    assert missing.status_code == 404
    assert missing.json()["code"] == 404


def test_string_upload_rejected_when_disabled(client: TestClient):
    before = client.get("/api/v1/attachments").json()["data"]["total"]

    resp = client.post(
        "/api/v1/attachments",
        data={"title": "remote", "file_file": "https://example.com/a.pdf"},
    )
    assert resp.status_code == 422
    body = resp.json()
    assert body["data"]["errors"] == {"file": ["This type of upload is not supported"]}

    after = client.get("/api/v1/attachments").json()["data"]["total"]
    assert after == before


def test_data_uri_upload_when_enabled(client: TestClient, upload_root, monkeypatch):
    monkeypatch.setattr(get_settings(), "upload_handle_not_uploaded_files", True)
    payload = base64.b64encode(b"from base64").decode()

    resp = client.post(
        "/api/v1/attachments",
        data={"title": "inline", "file_file": f"data:text/plain;base64,{payload}"},
    )
    assert resp.status_code == 200
    link = resp.json()["data"]["file"]
    assert link.endswith(".txt")
    assert (upload_root / link).read_bytes() == b"from base64"


def test_invalid_data_uri_reports_field_error(client: TestClient, monkeypatch):
    monkeypatch.setattr(get_settings(), "upload_handle_not_uploaded_files", True)

    resp = client.post("/api/v1/attachments", data={"file_file": "data:text/plain;base64,@@@"})
    assert resp.status_code == 422
    assert resp.json()["data"]["errors"] == {"file": ["Unable to decode base64 data"]}


def test_attachment_without_file(client: TestClient):
    resp = client.post("/api/v1/attachments", data={"title": "empty"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["file"] is None
    assert data["file_url"] is None
