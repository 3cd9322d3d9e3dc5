"""存储位置解析：根据记录标识、属性名与放置策略计算确定性的相对链接。

链接结构为 ``{模型目录}/{分片目录}/{属性目录}/{文件名}``，各目录片段与文件名模板
都是 :class:`Segment` 的四种形态之一：

- ``Segment.disabled()``：省略该片段（文件名模板禁用时保留清洗后的原始文件名）；
- ``Segment.literal(text)``：固定字符串（文件名模板中可以包含变量）；
- ``Segment.default()``：默认规则（模型类名 / 主键分片 / 属性名 / 默认模板）；
- ``Segment.custom(fn)``：自定义函数 ``fn(owner, attribute, file) -> str``。

对相同的输入（记录、属性、上传文件、策略），:func:`resolve_link` 总是返回相同结果；
``{name}`` 变量取自 ``UploadSource.token``，在归一化阶段生成一次。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional

from sqlalchemy import inspect
from sqlalchemy.exc import NoInspectionAvailable

from app.packages.upload.core.constants import DEFAULT_NAME_TEMPLATE
from app.packages.upload.core.enums import SegmentKind
from app.packages.upload.utils.path_utils import (
    camel_to_id,
    join_link,
    leading_int,
    sanitize_filename,
    shard_folder,
)

if TYPE_CHECKING:  # pragma: no cover
    from app.packages.upload.services.intake import UploadSource

SegmentFunc = Callable[[Any, str, "UploadSource"], Optional[str]]


@dataclass(frozen=True)
class Segment:
    kind: SegmentKind
    value: Optional[str] = None
    func: Optional[SegmentFunc] = field(default=None, compare=False)

    @classmethod
    def disabled(cls) -> "Segment":
        return cls(SegmentKind.DISABLED)

    @classmethod
    def literal(cls, value: str) -> "Segment":
        return cls(SegmentKind.LITERAL, value=value)

    @classmethod
    def default(cls) -> "Segment":
        return cls(SegmentKind.DEFAULT)

    @classmethod
    def custom(cls, func: SegmentFunc) -> "Segment":
        return cls(SegmentKind.CUSTOM, func=func)

    @classmethod
    def coerce(cls, raw: Any) -> "Segment":
        """兼容宽松配置：``True`` -> 默认，``False``/``None``/``""`` -> 禁用，字符串 -> 固定值，可调用对象 -> 自定义。"""
        if isinstance(raw, Segment):
            return raw
        if raw is True:
            return cls.default()
        if raw is None or raw is False or raw == "":
            return cls.disabled()
        if isinstance(raw, str):
            return cls.literal(raw)
        if callable(raw):
            return cls.custom(raw)
        raise TypeError(f"Unsupported segment configuration: {raw!r}")

    @property
    def enabled(self) -> bool:
        return self.kind != SegmentKind.DISABLED


@dataclass(frozen=True)
class PlacementPolicy:
    """放置策略：在行为挂载时确定，之后不可变。"""

    model_folder: Segment = field(default_factory=Segment.default)
    shard_folder: Segment = field(default_factory=Segment.default)
    attribute_folder: Segment = field(default_factory=Segment.default)
    name_template: Segment = field(default_factory=lambda: Segment.literal(DEFAULT_NAME_TEMPLATE))

    @classmethod
    def build(
        cls,
        *,
        model_folder: Any = True,
        shard_folder: Any = True,
        attribute_folder: Any = True,
        name_template: Any = DEFAULT_NAME_TEMPLATE,
    ) -> "PlacementPolicy":
        return cls(
            model_folder=Segment.coerce(model_folder),
            shard_folder=Segment.coerce(shard_folder),
            attribute_folder=Segment.coerce(attribute_folder),
            name_template=Segment.coerce(name_template),
        )


def record_identifier(owner: Any) -> str:
    """读取记录主键；复合主键按 ``_`` 拼接。非 ORM 对象回退到 ``owner.id``。"""
    try:
        state = inspect(owner)
        values = state.mapper.primary_key_from_instance(owner)
    except NoInspectionAvailable:
        values = [getattr(owner, "id", None)]
    return "_".join("" if value is None else str(value) for value in values)


def model_folder_name(owner: Any) -> str:
    return camel_to_id(type(owner).__name__)


def _apply(segment: Segment, owner: Any, attribute: str, file: "UploadSource", default: Callable[[], str]) -> Optional[str]:
    if segment.kind == SegmentKind.DISABLED:
        return None
    if segment.kind == SegmentKind.LITERAL:
        return segment.value
    if segment.kind == SegmentKind.CUSTOM:
        result = segment.func(owner, attribute, file) if segment.func else None
        return None if result is None else str(result)
    return default()


def render_name_template(template: str, *, record_id: str, attribute: str, file: "UploadSource") -> str:
    return (
        template.replace("{id}", record_id)
        .replace("{attribute}", attribute)
        .replace("{name}", file.token)
        .replace("{ext}", file.extension)
    )


def resolve_file_name(
    owner: Any,
    attribute: str,
    file: "UploadSource",
    policy: PlacementPolicy,
    *,
    record_id: Optional[str] = None,
) -> str:
    segment = policy.name_template
    if segment.kind == SegmentKind.DISABLED:
        return sanitize_filename(file.name)
    if segment.kind == SegmentKind.CUSTOM:
        return str(_apply(segment, owner, attribute, file, lambda: "") or "")
    template = segment.value if segment.kind == SegmentKind.LITERAL else DEFAULT_NAME_TEMPLATE
    rid = record_id if record_id is not None else record_identifier(owner)
    return render_name_template(template or DEFAULT_NAME_TEMPLATE, record_id=rid, attribute=attribute, file=file)


def resolve_folder(
    owner: Any,
    attribute: str,
    file: "UploadSource",
    policy: PlacementPolicy,
    *,
    record_id: Optional[str] = None,
) -> str:
    """返回不含文件名的目录链接（不含基础路径）。"""
    rid = record_id if record_id is not None else record_identifier(owner)
    return join_link(
        _apply(policy.model_folder, owner, attribute, file, lambda: model_folder_name(owner)),
        _apply(policy.shard_folder, owner, attribute, file, lambda: shard_folder(leading_int(rid))),
        _apply(policy.attribute_folder, owner, attribute, file, lambda: attribute),
    )


def resolve_link(
    owner: Any,
    attribute: str,
    file: "UploadSource",
    policy: PlacementPolicy,
    *,
    record_id: Optional[str] = None,
) -> str:
    rid = record_id if record_id is not None else record_identifier(owner)
    return join_link(
        resolve_folder(owner, attribute, file, policy, record_id=rid),
        resolve_file_name(owner, attribute, file, policy, record_id=rid),
    )
