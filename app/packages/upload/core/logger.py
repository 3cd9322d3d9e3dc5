"""日志配置：控制台彩色输出 + 按天轮转的文件日志，可切换为 JSON 行格式。

每条记录都会带上当前请求的 ``request_id``；上传与缩略图相关的日志可以通过
``extra={"attribute": ..., "link": ...}`` 附带上下文，JSON 格式下会单独输出。
"""

import json
import logging
import logging.config
import sys
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Dict, Optional

from .config import Settings, get_settings

LOGGER_NAME = "app"
TEXT_FORMAT = "%(asctime)s [%(request_id)s] %(name)s %(levelname)s: %(message)s"
LOG_BACKUP_DAYS = 14

_request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def set_request_id(request_id: Optional[str]) -> None:
    _request_id_ctx.set(request_id)


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        record.request_id = _request_id_ctx.get() or "-"
        return True


class LocalTimeFormatter(logging.Formatter):
    """时间戳使用 ``Settings.timezone``，默认输出带毫秒的 ISO-8601。"""

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:  # noqa: N802
        moment = datetime.fromtimestamp(record.created, get_settings().timezone_info)
        return moment.strftime(datefmt) if datefmt else moment.isoformat(sep=" ", timespec="milliseconds")


class ColorFormatter(LocalTimeFormatter):
    """按级别着色；输出目标不是终端时自动关闭颜色。"""

    LEVEL_COLORS = {
        logging.DEBUG: "36",
        logging.INFO: "32",
        logging.WARNING: "33",
        logging.ERROR: "31",
        logging.CRITICAL: "41",
    }

    def __init__(self, fmt: str = TEXT_FORMAT, datefmt: Optional[str] = None, use_colors: Optional[bool] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_colors = sys.stderr.isatty() if use_colors is None else use_colors

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        code = self.LEVEL_COLORS.get(record.levelno)
        if not (self.use_colors and code):
            return text
        return f"\033[{code}m{text}\033[0m"


class JsonFormatter(LocalTimeFormatter):
    """一行一个 JSON 对象。"""

    CONTEXT_FIELDS = ("attribute", "link", "width", "height")

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", None),
            "msg": record.getMessage(),
        }
        entry.update(
            {field: getattr(record, field) for field in self.CONTEXT_FIELDS if getattr(record, field, None) is not None}
        )
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def build_logging_config(settings: Settings) -> Dict[str, Any]:
    formatter = "json" if settings.log_json else "color"
    handler_names = ["console", "file"]
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"request_id": {"()": RequestIdFilter}},
        "formatters": {
            "color": {"()": ColorFormatter},
            "text": {"()": LocalTimeFormatter, "fmt": TEXT_FORMAT},
            "json": {"()": JsonFormatter},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": settings.log_level,
                "formatter": formatter,
                "filters": ["request_id"],
            },
            "file": {
                "class": "logging.handlers.TimedRotatingFileHandler",
                "level": settings.log_level,
                # 文件中不写入颜色控制符
                "formatter": "json" if settings.log_json else "text",
                "filters": ["request_id"],
                "filename": str(settings.log_file_path),
                "when": "midnight",
                "backupCount": LOG_BACKUP_DAYS,
                "encoding": "utf-8",
                "delay": True,
            },
        },
        "loggers": {
            name: {"handlers": handler_names, "level": settings.log_level, "propagate": False}
            for name in (LOGGER_NAME, "uvicorn", "uvicorn.error", "uvicorn.access")
        },
        "root": {"handlers": handler_names, "level": settings.log_level},
    }


def setup_logging() -> None:
    """根据当前配置安装日志处理器，可重复调用。"""
    settings = get_settings()
    settings.log_directory.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(settings))


logger = logging.getLogger(LOGGER_NAME)
