"""模型包初始化，便于统一导入 ORM 实体并触发模型注册。"""

from app.packages.upload.models.attachment import Attachment
from app.packages.upload.models.photo import Photo

__all__ = ["Attachment", "Photo"]
