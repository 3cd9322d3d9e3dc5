"""缩略图服务：按需懒生成 + 文件级缓存。

- 接口：get_or_create(width=, height=, link=)
  - 原图：<base_path>/original/<link>
  - 缩略图：<base_path>/<width>x<height>/<link>
  - 首次请求生成并写入，之后直接复用；原图变更不会使已有缩略图失效。
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional

from app.packages.upload.core.enums import UploadErrorKind
from app.packages.upload.core.exceptions import InvalidConfigurationError, UploadError
from app.packages.upload.core.logger import logger
from app.packages.upload.services import image_tools
from app.packages.upload.services.upload_behavior import ImageUploadBehavior


@dataclass
class Thumbnail:
    path: Path
    content: bytes
    media_type: str
    created: bool = False


class ThumbnailService:
    def __init__(
        self,
        model_class: Any = None,
        *,
        size_list: Optional[Iterable[str]] = None,
        messages: Optional[Mapping[Any, str]] = None,
    ) -> None:
        if model_class is None:
            raise InvalidConfigurationError("model_class")
        behaviors = [
            behavior
            for behavior in getattr(model_class, "__upload_behaviors__", ())
            if isinstance(behavior, ImageUploadBehavior)
        ]
        if not behaviors:
            raise InvalidConfigurationError("model_class")
        self.model_class = model_class
        self.behaviors: List[ImageUploadBehavior] = behaviors
        self.size_list = [str(item).strip() for item in (size_list or []) if str(item).strip()]
        self.messages = dict(messages or {})

    def _error(self, kind: UploadErrorKind, **params: Any) -> UploadError:
        return UploadError(kind, params, messages=self.messages)

    def check_size(self, width: int, height: int) -> None:
        if self.size_list and width > 0 and height > 0 and f"{width}x{height}" not in self.size_list:
            raise self._error(UploadErrorKind.SIZE_NOT_ALLOWED, width=width, height=height)

    def _locate_original(self, link: str) -> tuple[ImageUploadBehavior, Path]:
        first: Optional[Path] = None
        for behavior in self.behaviors:
            path = behavior.get_file_path(link)
            if behavior.backend.exists(path):
                return behavior, path
            first = first or path
        raise self._error(UploadErrorKind.NOT_FOUND, name=(first.name if first else link))

    def get_or_create(self, *, width: int, height: int, link: str) -> Thumbnail:
        width, height = int(width or 0), int(height or 0)
        self.check_size(width, height)

        behavior, original = self._locate_original(link)
        if not image_tools.is_image(original):
            raise self._error(UploadErrorKind.NOT_AN_IMAGE, name=original.name)

        target = behavior.get_size_path(width, height, link)
        backend = behavior.backend
        _, media_type = image_tools.image_format(original)
        media_type = media_type or backend.media_type(original)

        # 命中缓存：直接返回，不检查原图是否更新
        if backend.exists(target):
            return Thumbnail(path=target, content=backend.read_bytes(target), media_type=media_type)

        directory = target.parent
        try:
            backend.ensure_directory(directory)
        except OSError as exc:
            logger.exception("Unable to create thumbnail directory %s", directory)
            raise self._error(UploadErrorKind.DIRECTORY_CREATE_FAILED, directory=str(directory)) from exc

        content, _, thumb_media_type = image_tools.make_thumbnail(original, width, height)
        # 并发请求可能同时生成同一尺寸，内容确定，后写入者覆盖即可
        backend.write_bytes(target, content)
        logger.info(
            "Generated thumbnail %sx%s for %s", width, height, link, extra={"link": link, "width": width, "height": height}
        )
        return Thumbnail(path=target, content=content, media_type=thumb_media_type or media_type, created=True)
