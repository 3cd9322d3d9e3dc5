"""路径工具：链接归一化、分片目录与文件名清理。

存储位置解析与上传行为共用以下约定：
- 链接是 POSIX 相对路径，以 ``/`` 分隔，不带前导斜杠，空片段会被合并；
- 分片目录把数字标识分到三级目录树中，每级最多 500 个子目录。
"""

from __future__ import annotations

import posixpath
import re
from typing import Iterable, Optional

from app.packages.upload.core.constants import (
    SHARD_LEVEL_BOTTOM,
    SHARD_LEVEL_MIDDLE,
    SHARD_LEVEL_TOP,
    UNSAFE_FILENAME_CHARS,
)

_LEADING_INT = re.compile(r"^\s*(\d+)")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def normalize_link(raw: Optional[str]) -> str:
    s = (raw or "").replace("\\", "/").strip()
    if not s:
        return ""
    s = posixpath.normpath("/" + s).lstrip("/")
    return "" if s == "." else s


def join_link(*segments: Optional[str]) -> str:
    """用 ``/`` 拼接非空片段并归一化。"""
    parts = [str(segment) for segment in segments if segment not in (None, "")]
    return normalize_link("/".join(parts))


def shard_folder(identifier: int) -> str:
    n = max(int(identifier), 0)
    c = n // SHARD_LEVEL_TOP
    a = (n - c * SHARD_LEVEL_TOP) // SHARD_LEVEL_MIDDLE
    b = (n - a * SHARD_LEVEL_MIDDLE - c * SHARD_LEVEL_TOP) // SHARD_LEVEL_BOTTOM
    return f"{c}/{a}/{b}"


def leading_int(value: object) -> int:
    """标识开头的整数（``"42_7"`` -> 42），没有时返回 0。"""
    match = _LEADING_INT.match(str(value if value is not None else ""))
    return int(match.group(1)) if match else 0


def sanitize_filename(filename: str, chars: Iterable[str] = UNSAFE_FILENAME_CHARS) -> str:
    result = filename or ""
    for ch in chars:
        result = result.replace(ch, "-")
    return result


def camel_to_id(name: str, separator: str = "-") -> str:
    # BlogPost -> blog-post, HTTPRequestLog -> http-request-log
    return _CAMEL_BOUNDARY.sub(separator, name or "").lower()


def split_extension(filename: str) -> str:
    ext = posixpath.splitext(filename or "")[1]
    return ext[1:].lower() if ext else ""
