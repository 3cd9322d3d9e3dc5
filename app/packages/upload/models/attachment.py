"""附件模型：通用文件上传示例，文件存放在 ``attachment/<分片>/file/`` 下。"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.upload.models.base import Base, TimestampMixin, UploadLink
from app.packages.upload.models.uploadable import UploadableMixin
from app.packages.upload.services.upload_behavior import FileUploadBehavior


class Attachment(UploadableMixin, TimestampMixin, Base):
    __tablename__ = "attachments"
    __upload_behaviors__ = (FileUploadBehavior("file"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(255), default="")
    # 相对链接，例如 ``attachment/0/0/0/file/1_<token>.pdf``
    file: Mapped[UploadLink]
