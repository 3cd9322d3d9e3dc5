"""图片模型：原图存放在 ``original/`` 下，缩略图由图片接口按需生成。"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.upload.models.base import Base, TimestampMixin, UploadLink
from app.packages.upload.models.uploadable import UploadableMixin
from app.packages.upload.services.upload_behavior import ImageUploadBehavior


class Photo(UploadableMixin, TimestampMixin, Base):
    __tablename__ = "photos"
    __upload_behaviors__ = (ImageUploadBehavior("image"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    caption: Mapped[str] = mapped_column(String(255), default="")
    image: Mapped[UploadLink]
