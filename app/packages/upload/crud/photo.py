"""图片 CRUD 封装。"""

from app.packages.upload.crud.base import CRUDUploadBase
from app.packages.upload.models.photo import Photo


class CRUDPhoto(CRUDUploadBase[Photo]):
    pass


photo_crud = CRUDPhoto(Photo)
