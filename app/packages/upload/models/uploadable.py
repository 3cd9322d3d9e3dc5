"""可上传模型混入：为 ORM 实体提供上传值、待落地文件与字段错误的显式存取。

行为（``FileUploadBehavior``/``ImageUploadBehavior``）在类定义时通过
``__upload_behaviors__`` 挂载到模型上，保存流程按以下顺序显式调用：

1. ``normalize_uploads()``：校验前，将原始上传值归一化为 ``UploadSource``；
2. ``persist_uploads()``：记录提交、主键可用之后，把文件写入最终位置；
3. ``delete_upload_artifacts()``：删除记录之前清理已存储的文件。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Dict, List, Optional, Sequence

if TYPE_CHECKING:  # pragma: no cover
    from app.packages.upload.services.intake import UploadSource
    from app.packages.upload.services.upload_behavior import FileUploadBehavior


@dataclass
class UploadState:
    """单条记录在一次“归一化 -> 落地”周期内的上传状态。"""

    values: Dict[str, Any] = field(default_factory=dict)
    files: Dict[str, "UploadSource"] = field(default_factory=dict)
    errors: Dict[str, List[str]] = field(default_factory=dict)

    def get_value(self, attribute: str) -> Any:
        value = self.values.get(attribute)
        return value if value else None

    def set_value(self, attribute: str, value: Any) -> None:
        self.values[attribute] = value

    def get_file(self, attribute: str) -> Optional["UploadSource"]:
        return self.files.get(attribute)

    def set_file(self, attribute: str, source: "UploadSource") -> None:
        self.files[attribute] = source

    def has_file(self, attribute: str) -> bool:
        return self.files.get(attribute) is not None

    def pop_file(self, attribute: str) -> Optional["UploadSource"]:
        return self.files.pop(attribute, None)


class UploadableMixin:
    """为模型提供 ``get_upload_value``/``set_upload_value`` 等显式访问方法。"""

    __upload_behaviors__: ClassVar[Sequence["FileUploadBehavior"]] = ()

    @property
    def upload_state(self) -> UploadState:
        state = self.__dict__.get("_upload_state")
        if state is None:
            state = UploadState()
            # 非映射属性，直接写入实例字典，避免触发 ORM 属性拦截
            self.__dict__["_upload_state"] = state
        return state

    @classmethod
    def upload_behaviors(cls) -> Sequence["FileUploadBehavior"]:
        return tuple(cls.__upload_behaviors__)

    @classmethod
    def upload_behavior_for(cls, attribute: str) -> Optional["FileUploadBehavior"]:
        for behavior in cls.upload_behaviors():
            if attribute in behavior.attributes:
                return behavior
        return None

    # ----------------------------
    # 上传值存取
    # ----------------------------
    def get_upload_value(self, attribute: str) -> Any:
        return self.upload_state.get_value(attribute)

    def set_upload_value(self, attribute: str, value: Any) -> None:
        self.upload_state.set_value(attribute, value)

    # ----------------------------
    # 字段错误
    # ----------------------------
    def add_error(self, attribute: str, message: str) -> None:
        self.upload_state.errors.setdefault(attribute, []).append(message)

    def get_errors(self, attribute: Optional[str] = None) -> Dict[str, List[str]] | List[str]:
        errors = self.upload_state.errors
        if attribute is None:
            return {key: list(items) for key, items in errors.items()}
        return list(errors.get(attribute, []))

    def has_errors(self, attribute: Optional[str] = None) -> bool:
        if attribute is None:
            return any(self.upload_state.errors.values())
        return bool(self.upload_state.errors.get(attribute))

    def clear_errors(self) -> None:
        self.upload_state.errors.clear()

    # ----------------------------
    # 保存流程的显式阶段
    # ----------------------------
    def normalize_uploads(self) -> bool:
        """归一化全部上传值，返回是否没有产生任何字段错误。"""
        for behavior in self.upload_behaviors():
            behavior.normalize_intake(self)
        return not self.has_errors()

    def persist_uploads(self) -> List[str]:
        """落地全部待处理文件，返回链接发生变化的属性名。"""
        changed: List[str] = []
        for behavior in self.upload_behaviors():
            changed.extend(behavior.persist(self))
        return changed

    def delete_upload_artifacts(self) -> None:
        for behavior in self.upload_behaviors():
            behavior.delete_artifacts(self)

    def get_upload_url(self, attribute: str, **kwargs: Any) -> Optional[str]:
        behavior = self.upload_behavior_for(attribute)
        if behavior is None:
            return None
        return behavior.get_file_url(self, attribute, **kwargs)
