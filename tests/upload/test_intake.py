"""上传值归一化：multipart、远程 URL、base64 data URI、本地路径。"""

import base64
import io

import pytest
import requests
from starlette.datastructures import Headers, UploadFile

from app.packages.upload.core.enums import UploadErrorKind, UploadSourceKind
from app.packages.upload.core.exceptions import UploadError
from app.packages.upload.services import intake


class _FakeResponse:
    def __init__(self, content: bytes, status_code: int = 200):
        self.content = content
        self.status_code = status_code

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]


def _upload_file(content: bytes, filename: str, content_type: str) -> UploadFile:
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


@pytest.mark.parametrize("value", [None, "", "   ", _upload_file(b"", "", "text/plain")])
def test_empty_values_are_ignored(value):
    assert intake.normalize(value, True) is None


def test_multipart_passthrough():
    source = intake.normalize(_upload_file(b"hello", "Notes.TXT", "text/plain"))
    assert source.kind == UploadSourceKind.MULTIPART
    assert source.name == "Notes.TXT"
    assert source.extension == "txt"
    assert source.mime_type == "text/plain"
    assert source.stream.read() == b"hello"


def test_strings_rejected_when_non_multipart_disabled():
    with pytest.raises(UploadError) as exc_info:
        intake.normalize("https://example.com/a.png", False)
    assert exc_info.value.kind == UploadErrorKind.UNSUPPORTED_UPLOAD_KIND


def test_unhandled_value_type():
    with pytest.raises(UploadError) as exc_info:
        intake.normalize(12345, True)
    assert exc_info.value.kind == UploadErrorKind.UNHANDLED_UPLOAD


def test_remote_url_downloads_to_temp_file(monkeypatch):
    calls = []

    def fake_get(url, stream=False, timeout=None):
        calls.append((url, stream, timeout))
        return _FakeResponse(b"%PDF-1.4 body")

    monkeypatch.setattr(intake.requests, "get", fake_get)

    source = intake.normalize("https://example.com/files/report.pdf?v=2", True, fetch_timeout=3)
    try:
        assert calls == [("https://example.com/files/report.pdf?v=2", True, 3)]
        assert source.kind == UploadSourceKind.REMOTE_URL
        assert source.name == "report.pdf"
        assert source.mime_type == "application/pdf"
        assert source.path.read_bytes() == b"%PDF-1.4 body"
        assert source.path.name.startswith("ub_")
    finally:
        source.discard()
    assert not source.path.exists()


def test_protocol_relative_url_uses_https(monkeypatch):
    seen = []
    monkeypatch.setattr(intake.requests, "get", lambda url, **kw: seen.append(url) or _FakeResponse(b"x"))

    source = intake.normalize("//cdn.example.com/img/a.png", True)
    source.discard()
    assert seen == ["https://cdn.example.com/img/a.png"]


@pytest.mark.parametrize(
    "failure",
    [requests.ConnectionError("down"), requests.Timeout("slow")],
)
def test_remote_fetch_failure(monkeypatch, failure):
    def fake_get(url, **kwargs):
        raise failure

    monkeypatch.setattr(intake.requests, "get", fake_get)
    with pytest.raises(UploadError) as exc_info:
        intake.normalize("http://example.com/a.png", True)
    assert exc_info.value.kind == UploadErrorKind.FETCH_FAILED
    assert exc_info.value.params == {"name": "a.png"}


def test_remote_http_error_status(monkeypatch):
    monkeypatch.setattr(intake.requests, "get", lambda url, **kw: _FakeResponse(b"", status_code=404))
    with pytest.raises(UploadError) as exc_info:
        intake.normalize("http://example.com/missing.png", True)
    assert exc_info.value.kind == UploadErrorKind.FETCH_FAILED


def test_data_uri_decoded_to_temp_file():
    payload = base64.b64encode(b"\x89PNG fake").decode()
    source = intake.normalize(f"data:image/png;base64,{payload}", True)
    try:
        assert source.kind == UploadSourceKind.BASE64
        assert source.mime_type == "image/png"
        assert source.name.startswith("ub_")
        assert source.extension == "png"
        assert source.path.read_bytes() == b"\x89PNG fake"
    finally:
        source.discard()


@pytest.mark.parametrize(
    "value",
    ["data:image/png;base64,", "data:image/png;base64,!!not-base64!!", "data:image/png;base64"],
)
def test_data_uri_decode_failure(value):
    with pytest.raises(UploadError) as exc_info:
        intake.normalize(value, True)
    assert exc_info.value.kind == UploadErrorKind.DECODE_FAILED


def test_local_path_is_referenced_not_copied(tmp_path):
    local = tmp_path / "scan.pdf"
    local.write_bytes(b"scan")

    source = intake.normalize(str(local), True)
    assert source.kind == UploadSourceKind.LOCAL_PATH
    assert source.path == local.resolve()
    assert source.name == "scan.pdf"
    assert source.mime_type == "application/pdf"

    # 本地文件不是临时文件，discard 不会删除
    source.discard()
    assert local.exists()


def test_each_source_gets_unique_token():
    first = intake.normalize(_upload_file(b"a", "a.txt", "text/plain"))
    second = intake.normalize(_upload_file(b"a", "a.txt", "text/plain"))
    assert first.token != second.token


@pytest.mark.parametrize("name", ["folder", "absent.txt"])
def test_local_path_must_be_a_regular_file(tmp_path, name):
    (tmp_path / "folder").mkdir()

    with pytest.raises(UploadError) as exc_info:
        intake.normalize(str(tmp_path / name), True)
    assert exc_info.value.kind == UploadErrorKind.UNHANDLED_UPLOAD
    assert (tmp_path / "folder").is_dir()
