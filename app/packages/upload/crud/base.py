"""CRUD 基类：为各实体提供通用的数据访问方法，并为可上传模型串联上传流程。"""

from typing import Any, Generic, List, Mapping, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from app.packages.upload.core.logger import logger
from app.packages.upload.models.base import Base
from app.packages.upload.models.uploadable import UploadableMixin

ModelType = TypeVar("ModelType", bound=Base)
UploadModelType = TypeVar("UploadModelType", bound=UploadableMixin)


class CRUDBase(Generic[ModelType]):
    """封装常见的查询、创建与保存逻辑，减少重复代码。"""

    def __init__(self, model: Type[ModelType]):
        self.model = model

    def get(self, db: Session, id: Any) -> Optional[ModelType]:
        return self.query(db).filter(self.model.id == id).first()

    def get_multi(self, db: Session, *, skip: int = 0, limit: int = 100) -> List[ModelType]:
        return self.query(db).order_by(self.model.id.desc()).offset(skip).limit(limit).all()

    def count(self, db: Session) -> int:
        return self.query(db).count()

    def save(self, db: Session, db_obj: ModelType, *, auto_commit: bool = True) -> ModelType:
        db.add(db_obj)
        if auto_commit:
            db.commit()
            db.refresh(db_obj)
        return db_obj

    def hard_delete(self, db: Session, db_obj: ModelType, *, auto_commit: bool = True) -> None:
        """物理删除行，并提交事务。"""
        db.delete(db_obj)
        if auto_commit:
            try:
                db.commit()
            except Exception:
                db.rollback()
                raise

    def query(self, db: Session):
        return db.query(self.model)


class CRUDUploadBase(CRUDBase[UploadModelType]):
    """可上传模型的 CRUD：保存与删除时按顺序驱动上传行为的各个阶段。

    保存顺序：
    1. 写入原始上传值并归一化，有字段错误时直接返回，不写库；
    2. 提交记录，得到主键；
    3. 落地文件并回填链接，再次提交。

    落地阶段的失败只记录到记录的字段错误上，记录本身已经保存。
    """

    def save_with_uploads(
        self,
        db: Session,
        db_obj: UploadModelType,
        uploads: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """返回记录是否已写库；归一化失败时为 ``False``，字段错误见 ``db_obj.get_errors()``。"""
        # 同一实例再次保存时不沿用上一轮的字段错误
        db_obj.clear_errors()
        for attribute, value in (uploads or {}).items():
            db_obj.set_upload_value(attribute, value)

        if not db_obj.normalize_uploads():
            logger.info("Upload intake rejected for %s: %s", self.model.__name__, db_obj.get_errors())
            self._discard_pending(db_obj)
            return False

        self.save(db, db_obj)
        try:
            changed = db_obj.persist_uploads()
            if changed:
                self.save(db, db_obj)
        finally:
            self._discard_pending(db_obj)
        return True

    def delete_with_uploads(self, db: Session, db_obj: UploadModelType) -> None:
        db_obj.delete_upload_artifacts()
        self.hard_delete(db, db_obj)

    @staticmethod
    def _discard_pending(db_obj: UploadModelType) -> None:
        # 未落地的下载/解码临时文件
        state = db_obj.upload_state
        for attribute in list(state.files):
            source = state.pop_file(attribute)
            if source is not None:
                source.discard()
