"""常量定义：集中维护 HTTP 状态码与上传/缩略图相关的固定取值。"""

from fastapi import status

HTTP_STATUS_OK = status.HTTP_200_OK
HTTP_STATUS_BAD_REQUEST = status.HTTP_400_BAD_REQUEST
HTTP_STATUS_FORBIDDEN = status.HTTP_403_FORBIDDEN
HTTP_STATUS_NOT_FOUND = status.HTTP_404_NOT_FOUND
HTTP_STATUS_UNPROCESSABLE_ENTITY = status.HTTP_422_UNPROCESSABLE_ENTITY
HTTP_STATUS_INTERNAL_SERVER_ERROR = status.HTTP_500_INTERNAL_SERVER_ERROR

# 表单字段前缀：``file_<attribute>`` 对应模型属性 ``<attribute>`` 的上传值
DEFAULT_UPLOAD_PREFIX = "file_"

# 默认文件名模板，可用变量：{id}、{attribute}、{name}、{ext}
DEFAULT_NAME_TEMPLATE = "{id}_{name}.{ext}"

# 图片原图所在的固定子目录，缩略图目录为 ``{width}x{height}``
ORIGINAL_FOLDER = "original"

# 动态分片目录：三级嵌套，每级不超过 500 个子目录
SHARD_LEVEL_TOP = 125_000_000
SHARD_LEVEL_MIDDLE = 250_000
SHARD_LEVEL_BOTTOM = 500

# 非 HTTP 上传落地时使用的临时文件前缀
TEMP_FILE_PREFIX = "ub_"

# 新建目录的权限（实际权限仍受 umask 影响）
DIRECTORY_MODE = 0o777

# 文件名中需要替换为 '-' 的字符
UNSAFE_FILENAME_CHARS = (" ", '"', "'", "&", "/", "\\", "?", "#")
