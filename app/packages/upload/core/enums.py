"""枚举定义：约束上传来源、占位段类型以及错误类型的可选值。"""

from enum import Enum


class UploadSourceKind(str, Enum):
    """上传值经过归一化后的来源类型。"""

    MULTIPART = "multipart"
    REMOTE_URL = "remote_url"
    BASE64 = "base64"
    LOCAL_PATH = "local_path"


class SegmentKind(str, Enum):
    """路径片段（模型目录/分片目录/属性目录/文件名模板）的配置形态。"""

    DISABLED = "disabled"
    LITERAL = "literal"
    DEFAULT = "default"
    CUSTOM = "custom"


class UploadErrorKind(str, Enum):
    """上传与缩略图流程中所有可能出现的错误类型。"""

    UNSUPPORTED_UPLOAD_KIND = "unsupported_upload_kind"
    FETCH_FAILED = "fetch_failed"
    DECODE_FAILED = "decode_failed"
    UNHANDLED_UPLOAD = "unhandled_upload"
    DIRECTORY_CREATE_FAILED = "directory_create_failed"
    SAVE_FAILED = "save_failed"
    SIZE_NOT_ALLOWED = "size_not_allowed"
    NOT_FOUND = "not_found"
    NOT_AN_IMAGE = "not_an_image"
    MISSING_DEPENDENCY = "missing_dependency"
    INVALID_CONFIGURATION = "invalid_configuration"
