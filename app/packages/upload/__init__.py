"""上传业务包：文件上传行为、附件/图片示例模型与按需缩略图接口。"""

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.packages.types import AppPackage

from .api.v1 import api_router
from .core.config import get_settings
from .core.exceptions import generic_exception_handler, http_exception_handler
from .core.logger import logger, setup_logging
from .core.responses import create_response
from .db.init_db import init_db


def configure_app(app: FastAPI) -> None:
    """以只读方式暴露已存储的上传文件（目录在首次上传时才会创建）。"""
    settings = get_settings()
    # 外部 CDN 地址无需挂载
    if not settings.upload_base_url.startswith("/"):
        return
    app.mount(
        settings.upload_base_url.rstrip("/") or "/",
        StaticFiles(directory=settings.upload_directory, check_dir=False),
        name="uploads",
    )


package = AppPackage(
    name="upload",
    api_router=api_router,
    get_settings=get_settings,
    setup_logging=setup_logging,
    logger=logger,
    init_db=init_db,
    create_response=create_response,
    http_exception_handler=http_exception_handler,
    generic_exception_handler=generic_exception_handler,
    configure_app=configure_app,
)

__all__ = ["package", "api_router", "get_settings"]
