"""可上传记录服务：附件与图片的增删改查，返回统一响应结构。"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Sequence

from sqlalchemy.orm import Session

from app.packages.upload.core.constants import HTTP_STATUS_NOT_FOUND, HTTP_STATUS_OK, HTTP_STATUS_UNPROCESSABLE_ENTITY
from app.packages.upload.core.exceptions import AppException
from app.packages.upload.core.logger import logger
from app.packages.upload.core.responses import create_response
from app.packages.upload.core.timezone import format_datetime
from app.packages.upload.crud.attachment import attachment_crud
from app.packages.upload.crud.base import CRUDUploadBase
from app.packages.upload.crud.photo import photo_crud


class UploadRecordService:
    """``fields`` 为可直接写入的普通字段；上传属性由模型的上传行为决定。"""

    def __init__(self, crud: CRUDUploadBase, *, label: str, fields: Sequence[str]) -> None:
        self.crud = crud
        self.label = label
        self.fields = tuple(fields)

    @property
    def upload_attributes(self) -> list[str]:
        attributes: list[str] = []
        for behavior in self.crud.model.upload_behaviors():
            attributes.extend(behavior.attributes)
        return attributes

    def split_form(self, form: Mapping[str, Any]) -> tuple[Dict[str, Any], Dict[str, Any]]:
        """把表单拆成 普通字段 与 上传值（按模型属性名索引）。"""
        values = {key: form.get(key) for key in self.fields if key in form}
        uploads = {attribute: form.get(field) for field, attribute in self.upload_fields().items() if field in form}
        return values, uploads

    def upload_fields(self) -> Dict[str, str]:
        """表单字段名 -> 模型属性名，例如 ``{"file_image": "image"}``。"""
        mapping: Dict[str, str] = {}
        for behavior in self.crud.model.upload_behaviors():
            for attribute in behavior.attributes:
                mapping[behavior.field_name(attribute)] = attribute
        return mapping

    # ----------------------------
    # 查询
    # ----------------------------
    def list_records(self, db: Session, *, skip: int = 0, limit: int = 100) -> Dict[str, Any]:
        items = [self._serialize(item) for item in self.crud.get_multi(db, skip=skip, limit=limit)]
        return create_response(f"获取{self.label}列表成功", {"items": items, "total": self.crud.count(db)}, HTTP_STATUS_OK)

    def get_record(self, db: Session, *, id: int) -> Dict[str, Any]:
        return create_response(f"获取{self.label}成功", self._serialize(self._get_or_404(db, id)), HTTP_STATUS_OK)

    # ----------------------------
    # 变更
    # ----------------------------
    def create_record(self, db: Session, values: Mapping[str, Any], uploads: Mapping[str, Any]) -> Dict[str, Any]:
        record = self.crud.model(**self._pick_fields(values))
        record = self._save(db, record, uploads)
        return create_response(f"创建{self.label}成功", self._serialize(record), HTTP_STATUS_OK)

    def update_record(
        self,
        db: Session,
        *,
        id: int,
        values: Mapping[str, Any],
        uploads: Mapping[str, Any],
    ) -> Dict[str, Any]:
        record = self._get_or_404(db, id)
        for key, value in self._pick_fields(values).items():
            setattr(record, key, value)
        record = self._save(db, record, uploads)
        return create_response(f"更新{self.label}成功", self._serialize(record), HTTP_STATUS_OK)

    def delete_record(self, db: Session, *, id: int) -> Dict[str, Any]:
        record = self._get_or_404(db, id)
        self.crud.delete_with_uploads(db, record)
        logger.info("Deleted %s id=%s", self.crud.model.__name__, id)
        return create_response(f"删除{self.label}成功", {"id": id}, HTTP_STATUS_OK)

    # ----------------------------
    # 内部工具
    # ----------------------------
    def _get_or_404(self, db: Session, id: int):
        record = self.crud.get(db, id)
        if record is None:
            raise AppException(f"{self.label}不存在", HTTP_STATUS_NOT_FOUND)
        return record

    def _pick_fields(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        return {key: values[key] for key in self.fields if values.get(key) is not None}

    def _save(self, db: Session, record: Any, uploads: Mapping[str, Any]):
        if not self.crud.save_with_uploads(db, record, uploads):
            db.rollback()
            raise AppException(
                "上传校验失败",
                HTTP_STATUS_UNPROCESSABLE_ENTITY,
                data={"errors": record.get_errors()},
            )
        return record

    def _serialize(self, record: Any) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": record.id}
        for key in self.fields:
            data[key] = getattr(record, key)
        for attribute in self.upload_attributes:
            data[attribute] = getattr(record, attribute)
            data[f"{attribute}_url"] = record.get_upload_url(attribute)
        data["errors"] = record.get_errors()
        data["create_time"] = format_datetime(record.create_time)
        data["update_time"] = format_datetime(record.update_time)
        return data


attachment_service = UploadRecordService(attachment_crud, label="附件", fields=("title",))
photo_service = UploadRecordService(photo_crud, label="图片", fields=("caption",))
