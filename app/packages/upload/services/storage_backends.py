"""存储后端：封装上传根目录下的本地文件操作（路径解析、目录创建、落地、删除）。"""

from __future__ import annotations

import mimetypes
import shutil
from pathlib import Path
from typing import BinaryIO

from app.packages.upload.core.constants import DIRECTORY_MODE, HTTP_STATUS_BAD_REQUEST
from app.packages.upload.core.exceptions import AppException
from app.packages.upload.core.logger import logger


def _norm_mime(path: str) -> str:
    mime, _ = mimetypes.guess_type(path)
    return mime or "application/octet-stream"


class LocalBackend:
    """以 ``root`` 为根的本地文件系统后端，所有相对路径都被限制在根目录内。"""

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()

    # 统一的安全路径拼接，防止路径遍历
    def resolve(self, rel: str) -> Path:
        rel_norm = (rel or "").strip().replace("\\", "/").lstrip("/")
        candidate = (self.root / rel_norm).resolve()
        try:
            candidate.relative_to(self.root)
        except ValueError as exc:
            raise AppException("Illegal path: outside of storage root", HTTP_STATUS_BAD_REQUEST) from exc
        return candidate

    def exists(self, path: Path) -> bool:
        return path.exists() and path.is_file()

    def ensure_directory(self, directory: Path) -> Path:
        """幂等地递归创建目录；失败时抛出 ``OSError`` 由调用方转换为业务错误。"""
        directory.mkdir(mode=DIRECTORY_MODE, parents=True, exist_ok=True)
        return directory

    def write_stream(self, dst: Path, stream: BinaryIO) -> None:
        if hasattr(stream, "seek"):
            stream.seek(0)
        with open(dst, "wb") as f:
            shutil.copyfileobj(stream, f)

    def write_bytes(self, dst: Path, content: bytes) -> None:
        with open(dst, "wb") as f:
            f.write(content)

    def read_bytes(self, path: Path) -> bytes:
        with open(path, "rb") as f:
            return f.read()

    def move_in(self, src: str | Path, dst: Path) -> None:
        # 同一文件系统内为 rename，跨设备时 shutil 会退化为 复制 + 删除
        shutil.move(str(src), str(dst))

    def copy_in(self, src: str | Path, dst: Path) -> None:
        shutil.copy2(str(src), str(dst))

    def delete(self, path: Path) -> bool:
        if not self.exists(path):
            return False
        path.unlink()
        logger.info("Deleted stored file %s", path)
        return True

    def media_type(self, path: Path) -> str:
        return _norm_mime(str(path))


def build_backend(root: str | Path) -> LocalBackend:
    return LocalBackend(root)
