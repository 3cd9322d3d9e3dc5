"""附件 CRUD 封装。"""

from app.packages.upload.crud.base import CRUDUploadBase
from app.packages.upload.models.attachment import Attachment


class CRUDAttachment(CRUDUploadBase[Attachment]):
    pass


attachment_crud = CRUDAttachment(Attachment)
