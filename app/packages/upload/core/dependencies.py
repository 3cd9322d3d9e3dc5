"""依赖注入模块：封装 FastAPI 中复用度高的依赖函数。"""

from collections.abc import Generator
from functools import lru_cache

from sqlalchemy.orm import Session

from app.packages.upload.core.config import get_settings
from app.packages.upload.db import session as db_session
from app.packages.upload.models.photo import Photo
from app.packages.upload.services.thumbnail_service import ThumbnailService


def get_db() -> Generator[Session, None, None]:
    """生成一个数据库会话，并在请求结束后自动关闭。"""
    db = db_session.SessionLocal()
    try:
        yield db
    finally:
        db.close()


@lru_cache
def get_thumbnail_service() -> ThumbnailService:
    """按配置构建图片模型的缩略图服务，首次使用时创建并缓存。"""
    settings = get_settings()
    return ThumbnailService(Photo, size_list=settings.thumbnail_size_list)
