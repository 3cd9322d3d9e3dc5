"""上传行为：为 ORM 模型挂载文件上传处理能力。

支持的上传形式：
 - multipart/form-data 上传；
 - 远程文件 URL；
 - base64 data URI；
 - 服务器本地路径。

行为在模型类定义时创建（``__upload_behaviors__``），配置在此之后保持不变；
保存流程通过 :class:`~app.packages.upload.models.uploadable.UploadableMixin`
显式调用 ``normalize_intake`` -> ``persist`` -> ``delete_artifacts``。
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from app.packages.upload.core.config import get_settings
from app.packages.upload.core.constants import DEFAULT_NAME_TEMPLATE, DEFAULT_UPLOAD_PREFIX, ORIGINAL_FOLDER
from app.packages.upload.core.enums import UploadErrorKind
from app.packages.upload.core.exceptions import InvalidConfigurationError, UploadError
from app.packages.upload.core.logger import logger
from app.packages.upload.core.messages import message_for
from app.packages.upload.services import image_tools
from app.packages.upload.services.intake import UploadSource, normalize
from app.packages.upload.services.placement import PlacementPolicy, resolve_link
from app.packages.upload.services.storage_backends import LocalBackend, build_backend
from app.packages.upload.utils.path_utils import join_link, normalize_link


@dataclass(frozen=True)
class UploadEvent:
    """``before_upload``/``after_upload`` 事件携带的上下文。"""

    name: str
    owner: Any
    attribute: str
    link: str
    path: Path


UploadListener = Callable[[UploadEvent], None]


def _parse_attributes(attributes: Union[str, Sequence[str], None]) -> List[str]:
    if isinstance(attributes, str):
        items = [item.strip() for item in attributes.split(",")]
    else:
        items = [str(item).strip() for item in (attributes or [])]
    items = [item for item in items if item]
    if not items:
        raise InvalidConfigurationError("attributes")
    return items


class FileUploadBehavior:
    EVENT_BEFORE_UPLOAD = "before_upload"
    EVENT_AFTER_UPLOAD = "after_upload"

    def __init__(
        self,
        attributes: Union[str, Sequence[str]],
        *,
        prefix: str = DEFAULT_UPLOAD_PREFIX,
        base_path: Optional[Union[str, Path]] = None,
        base_url: Optional[str] = None,
        handle_not_uploaded_files: Optional[bool] = None,
        name_template: Any = DEFAULT_NAME_TEMPLATE,
        model_folder: Any = True,
        shard_folder: Any = True,
        attribute_folder: Any = True,
        delete_with_owner: Optional[bool] = None,
        delete_temp_file: Optional[bool] = None,
        fetch_timeout: Optional[float] = None,
        messages: Optional[Mapping[Any, str]] = None,
    ) -> None:
        self.attributes = _parse_attributes(attributes)
        self.prefix = prefix
        self._base_path = base_path
        self._base_url = base_url
        self._handle_not_uploaded_files = handle_not_uploaded_files
        self._delete_with_owner = delete_with_owner
        self._delete_temp_file = delete_temp_file
        self._fetch_timeout = fetch_timeout
        self.policy = PlacementPolicy.build(
            model_folder=model_folder,
            shard_folder=shard_folder,
            attribute_folder=attribute_folder,
            name_template=name_template,
        )
        self.messages: Dict[Any, str] = dict(messages or {})
        self._listeners: Dict[str, List[UploadListener]] = {}

    # ----------------------------
    # 配置（未显式传入时回落到 Settings）
    # ----------------------------
    @property
    def base_path(self) -> Path:
        if self._base_path is not None:
            return Path(self._base_path)
        return get_settings().upload_directory

    @property
    def base_url(self) -> str:
        return self._base_url if self._base_url is not None else get_settings().upload_base_url

    @property
    def handle_not_uploaded_files(self) -> bool:
        if self._handle_not_uploaded_files is not None:
            return self._handle_not_uploaded_files
        return get_settings().upload_handle_not_uploaded_files

    @property
    def delete_with_owner(self) -> bool:
        if self._delete_with_owner is not None:
            return self._delete_with_owner
        return get_settings().upload_delete_with_owner

    @property
    def delete_temp_file(self) -> bool:
        if self._delete_temp_file is not None:
            return self._delete_temp_file
        return get_settings().upload_delete_temp_file

    @property
    def fetch_timeout(self) -> float:
        return self._fetch_timeout if self._fetch_timeout is not None else get_settings().upload_fetch_timeout

    @property
    def backend(self) -> LocalBackend:
        return build_backend(self.base_path)

    def field_name(self, attribute: str) -> str:
        """表单中承载该属性上传值的字段名，例如 ``file_avatar``。"""
        return f"{self.prefix}{attribute}"

    # ----------------------------
    # 事件
    # ----------------------------
    def on(self, event: str, listener: UploadListener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def trigger(self, event: str, owner: Any, attribute: str, link: str, path: Path) -> None:
        payload = UploadEvent(name=event, owner=owner, attribute=attribute, link=link, path=path)
        for listener in self._listeners.get(event, []):
            listener(payload)

    def add_error(self, owner: Any, attribute: str, kind: UploadErrorKind, params: Optional[Mapping[str, Any]] = None) -> None:
        owner.add_error(attribute, message_for(kind, params, self.messages))

    # ----------------------------
    # 阶段一：归一化
    # ----------------------------
    def normalize_intake(self, owner: Any) -> None:
        """校验前调用：把各属性的原始上传值转换为待落地的 ``UploadSource``。

        每个属性独立处理，某个属性失败只记录该字段错误，其它属性照常继续。
        """
        state = owner.upload_state
        for attribute in self.attributes:
            value = state.get_value(attribute)
            try:
                source = normalize(
                    value,
                    self.handle_not_uploaded_files,
                    fetch_timeout=self.fetch_timeout,
                )
            except UploadError as exc:
                logger.info("Upload intake rejected attribute=%s kind=%s", attribute, exc.kind.value)
                self.add_error(owner, attribute, exc.kind, exc.params)
                continue
            if source is not None:
                state.set_file(attribute, source)

    # ----------------------------
    # 阶段二：落地
    # ----------------------------
    def get_file_link(self, owner: Any, attribute: str) -> Optional[str]:
        file = owner.upload_state.get_file(attribute)
        if file is None:
            return None
        return resolve_link(owner, attribute, file, self.policy)

    def get_file_path(self, link: str) -> Path:
        return self.backend.resolve(normalize_link(link))

    def persist(self, owner: Any) -> List[str]:
        """记录提交（主键已知）后调用：写入文件并把链接回填到属性上。

        返回成功更新链接的属性名列表；失败的属性记录字段错误，属性值保持不变。
        """
        changed: List[str] = []
        state = owner.upload_state
        for attribute in self.attributes:
            if not state.has_file(attribute):
                continue

            link = self.get_file_link(owner, attribute)
            path = self.get_file_path(link)
            directory = path.parent

            self.trigger(self.EVENT_BEFORE_UPLOAD, owner, attribute, link, path)
            try:
                self.backend.ensure_directory(directory)
            except OSError:
                logger.exception("Unable to create upload directory %s", directory)
                self.add_error(owner, attribute, UploadErrorKind.DIRECTORY_CREATE_FAILED, {"directory": str(directory)})
                continue

            if self.save_file(owner, attribute, path):
                setattr(owner, attribute, link)
                state.pop_file(attribute)
                changed.append(attribute)
                logger.info("Stored upload %s", link, extra={"attribute": attribute, "link": link})
                self.trigger(self.EVENT_AFTER_UPLOAD, owner, attribute, link, path)
        return changed

    def save_file(self, owner: Any, attribute: str, path: Path) -> bool:
        file: Optional[UploadSource] = owner.upload_state.get_file(attribute)
        if file is None:
            return False

        result = False
        try:
            if file.is_multipart:
                self.backend.write_stream(path, file.stream)
                result = True
            elif not self.handle_not_uploaded_files:
                result = False
            elif self.delete_temp_file:
                self.backend.move_in(file.path, path)
                result = True
            else:
                self.backend.copy_in(file.path, path)
                result = True
        except (OSError, TypeError):
            logger.exception("Unable to save upload attribute=%s to %s", attribute, path)
            result = False

        if not result:
            self.add_error(owner, attribute, UploadErrorKind.SAVE_FAILED)
            return False

        try:
            self.process_saved_file(file, path)
        except (OSError, UploadError):
            logger.exception("Unable to process saved upload attribute=%s at %s", attribute, path)
            # 新文件作废，属性与此前存储的文件保持不变
            if path != self._stored_path(owner, attribute):
                self.backend.delete(path)
            self.add_error(owner, attribute, UploadErrorKind.SAVE_FAILED)
            return False

        # 替换上传：删除该属性此前存储的文件（与新文件同路径时保留）
        self.delete_file(owner, attribute, keep=path)
        return True

    def process_saved_file(self, file: UploadSource, path: Path) -> None:
        """文件写入最终位置之后、替换旧文件之前的处理，失败时抛出 ``OSError``/``UploadError``。"""

    def _stored_path(self, owner: Any, attribute: str) -> Optional[Path]:
        link = getattr(owner, attribute, None)
        return self.get_file_path(link) if link else None

    # ----------------------------
    # 阶段三：删除
    # ----------------------------
    def delete_file(self, owner: Any, attribute: str, *, keep: Optional[Path] = None) -> Optional[bool]:
        """删除属性当前链接指向的文件：属性为空返回 ``None``，文件不存在返回 ``False``。"""
        link = getattr(owner, attribute, None)
        if not link:
            return None
        path = self.get_file_path(link)
        if keep is not None and path == keep:
            return False
        return self.backend.delete(path)

    def delete_artifacts(self, owner: Any) -> None:
        """删除记录之前调用：启用 ``delete_with_owner`` 时清理所有属性的文件。"""
        if not self.delete_with_owner:
            return
        for attribute in self.attributes:
            self.delete_file(owner, attribute)

    def get_file_url(self, owner: Any, attribute: str) -> Optional[str]:
        link = getattr(owner, attribute, None)
        if not link:
            return None
        return _join_url(self.base_url, link)


def _join_url(base_url: str, *parts: str) -> str:
    base = (base_url or "").rstrip("/")
    suffix = join_link(*parts)
    if "://" in base:
        return f"{base}/{suffix}"
    return posixpath.normpath(f"{base}/{suffix}") if base else f"/{suffix}"


class ImageUploadBehavior(FileUploadBehavior):
    """图片上传行为：原图存放在 ``original`` 子目录，缩略图按 ``{width}x{height}`` 目录派生。"""

    def __init__(
        self,
        attributes: Union[str, Sequence[str]],
        *,
        original_folder: Optional[str] = ORIGINAL_FOLDER,
        fix_image_orientation: Optional[bool] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(attributes, **kwargs)
        self.original_folder = original_folder or None
        self._fix_image_orientation = fix_image_orientation

    @property
    def fix_image_orientation(self) -> bool:
        if self._fix_image_orientation is not None:
            return self._fix_image_orientation
        return get_settings().upload_fix_image_orientation

    def get_file_path(self, link: str) -> Path:
        return self.backend.resolve(join_link(self.original_folder, link))

    def get_size_path(self, width: int, height: int, link: str) -> Path:
        return self.backend.resolve(join_link(f"{int(width)}x{int(height)}", link))

    def process_saved_file(self, file: UploadSource, path: Path) -> None:
        if self.fix_image_orientation and file.mime_type == "image/jpeg":
            image_tools.fix_orientation(path)

    def get_file_url(self, owner: Any, attribute: str, size: Optional[str] = None) -> Optional[str]:
        link = getattr(owner, attribute, None)
        if not link:
            return None
        return _join_url(self.base_url, size or self.original_folder or "", link)
