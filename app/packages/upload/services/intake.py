"""上传值归一化：将 multipart 上传、远程 URL、base64 data URI 与服务器本地路径
统一转换为 :class:`UploadSource`。

- multipart：原样透传（保留上传流，不做拷贝）；
- 远程 URL（``http://``、``https://``、``//``）：下载到临时文件，MIME 按扩展名推断；
- base64 data URI：解码到临时文件，MIME 取自 URI 头，文件名随机生成；
- 其它非空字符串：视为服务器本地路径，直接引用，不复制。
"""

from __future__ import annotations

import base64
import binascii
import mimetypes
import os
import posixpath
import re
import tempfile
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Optional
from urllib.parse import unquote, urlparse

import requests
from starlette.datastructures import UploadFile

from app.packages.upload.core.constants import TEMP_FILE_PREFIX
from app.packages.upload.core.enums import UploadErrorKind, UploadSourceKind
from app.packages.upload.core.exceptions import UploadError
from app.packages.upload.core.logger import logger
from app.packages.upload.utils.path_utils import split_extension

REMOTE_URL_PATTERN = re.compile(r"^(http://|https://|//).*", re.IGNORECASE)
DATA_URI_PATTERN = re.compile(r"^data:([\w/+.-]+);base64", re.IGNORECASE)

DEFAULT_FETCH_TIMEOUT = 10.0


def _new_token() -> str:
    return uuid.uuid4().hex


@dataclass
class UploadSource:
    """一次上传在“归一化 -> 落地”周期内的统一表示。"""

    kind: UploadSourceKind
    name: str
    mime_type: Optional[str] = None
    path: Optional[Path] = None
    stream: Optional[BinaryIO] = field(default=None, repr=False)
    token: str = field(default_factory=_new_token)

    @property
    def extension(self) -> str:
        return split_extension(self.name)

    @property
    def is_multipart(self) -> bool:
        return self.kind == UploadSourceKind.MULTIPART

    @property
    def is_temporary(self) -> bool:
        return self.kind in (UploadSourceKind.REMOTE_URL, UploadSourceKind.BASE64)

    def discard(self) -> None:
        """删除归一化阶段生成的临时文件（仅远程 URL / base64 来源）。"""
        if self.is_temporary and self.path is not None and self.path.exists():
            self.path.unlink()


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, UploadFile):
        return not value.filename
    if isinstance(value, (str, bytes)):
        return not value.strip()
    return False


def _make_temp_path() -> Path:
    fd, name = tempfile.mkstemp(prefix=TEMP_FILE_PREFIX)
    os.close(fd)
    return Path(name)


def from_multipart(upload: UploadFile) -> UploadSource:
    return UploadSource(
        kind=UploadSourceKind.MULTIPART,
        name=os.path.basename(upload.filename or ""),
        mime_type=upload.content_type,
        stream=upload.file,
    )


def from_remote_url(url: str, *, timeout: float = DEFAULT_FETCH_TIMEOUT) -> UploadSource:
    target = "https:" + url if url.startswith("//") else url
    name = posixpath.basename(unquote(urlparse(target).path)) or uuid.uuid4().hex
    mime_type, _ = mimetypes.guess_type(name)

    temp_path = _make_temp_path()
    try:
        with requests.get(target, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            with open(temp_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=64 * 1024):
                    if chunk:
                        f.write(chunk)
    except (requests.RequestException, OSError) as exc:
        logger.warning("Remote upload fetch failed url=%s: %s", target, exc)
        temp_path.unlink(missing_ok=True)
        raise UploadError(UploadErrorKind.FETCH_FAILED, {"name": name}) from exc

    return UploadSource(kind=UploadSourceKind.REMOTE_URL, name=name, mime_type=mime_type, path=temp_path)


def from_data_uri(value: str) -> UploadSource:
    match = DATA_URI_PATTERN.match(value)
    if match is None:
        raise UploadError(UploadErrorKind.DECODE_FAILED)
    mime_type = match.group(1).lower()
    _, sep, payload = value.partition(",")
    if not sep:
        raise UploadError(UploadErrorKind.DECODE_FAILED)
    try:
        data = base64.b64decode("".join(payload.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise UploadError(UploadErrorKind.DECODE_FAILED) from exc
    if not data:
        raise UploadError(UploadErrorKind.DECODE_FAILED)

    name = f"{TEMP_FILE_PREFIX}{uuid.uuid4().hex[:13]}"
    extension = mimetypes.guess_extension(mime_type)
    if extension:
        name += extension

    temp_path = _make_temp_path()
    with open(temp_path, "wb") as f:
        f.write(data)
    return UploadSource(kind=UploadSourceKind.BASE64, name=name, mime_type=mime_type, path=temp_path)


def from_local_path(value: str) -> UploadSource:
    path = Path(os.path.expanduser(value.strip())).resolve()
    # 目录、设备等非普通文件不能作为上传内容
    if not path.is_file():
        raise UploadError(UploadErrorKind.UNHANDLED_UPLOAD)
    mime_type, _ = mimetypes.guess_type(path.name)
    return UploadSource(kind=UploadSourceKind.LOCAL_PATH, name=path.name, mime_type=mime_type, path=path)


def normalize(
    raw_value: Any,
    allow_non_multipart: bool = False,
    *,
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
) -> Optional[UploadSource]:
    """归一化原始上传值；空值返回 ``None``，无法处理时抛出 :class:`UploadError`。"""
    if isinstance(raw_value, UploadSource):
        return raw_value
    if _is_empty(raw_value):
        return None
    if isinstance(raw_value, UploadFile):
        return from_multipart(raw_value)
    if not isinstance(raw_value, str):
        raise UploadError(UploadErrorKind.UNHANDLED_UPLOAD)

    value = raw_value.strip()
    if not allow_non_multipart:
        raise UploadError(UploadErrorKind.UNSUPPORTED_UPLOAD_KIND)
    if REMOTE_URL_PATTERN.match(value):
        return from_remote_url(value, timeout=fetch_timeout)
    if DATA_URI_PATTERN.match(value):
        return from_data_uri(value)
    return from_local_path(value)
