"""时区工具方法：按配置时区格式化记录时间。"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from app.packages.upload.core.config import get_settings


def to_local(value: Optional[datetime]) -> Optional[datetime]:
    """将 ``datetime`` 转换为配置时区；无时区对象按 UTC 处理（SQLite 不保存时区）。"""
    if value is None:
        return None
    tz = get_settings().timezone_info
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz)


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    """将时间格式化为 ``YYYY-MM-DD HH:MM:SS`` 字符串。"""
    localized = to_local(value)
    if localized is None:
        return None
    return localized.strftime("%Y-%m-%d %H:%M:%S")
