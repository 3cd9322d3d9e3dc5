"""异常处理模块：定义统一的业务异常、上传错误类型与响应格式。"""

from typing import Any, Mapping, Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from app.packages.upload.core.constants import (
    HTTP_STATUS_BAD_REQUEST,
    HTTP_STATUS_FORBIDDEN,
    HTTP_STATUS_INTERNAL_SERVER_ERROR,
    HTTP_STATUS_NOT_FOUND,
    HTTP_STATUS_UNPROCESSABLE_ENTITY,
)
from app.packages.upload.core.enums import UploadErrorKind
from app.packages.upload.core.logger import logger
from app.packages.upload.core.messages import message_for


class AppException(HTTPException):
    """携带统一响应结构的业务异常，方便在全局处理中转换响应体。"""

    def __init__(self, msg: str, code: int = status.HTTP_400_BAD_REQUEST, data=None) -> None:
        super().__init__(status_code=code, detail=msg)
        self.data = data


# 错误类型到 HTTP 状态码的映射：缩略图请求区分 未找到/禁止/配置错误；
# 上传相关错误通常以字段错误的形式返回，直接抛出时按 422 处理。
STATUS_BY_KIND: dict[UploadErrorKind, int] = {
    UploadErrorKind.UNSUPPORTED_UPLOAD_KIND: HTTP_STATUS_UNPROCESSABLE_ENTITY,
    UploadErrorKind.FETCH_FAILED: HTTP_STATUS_UNPROCESSABLE_ENTITY,
    UploadErrorKind.DECODE_FAILED: HTTP_STATUS_UNPROCESSABLE_ENTITY,
    UploadErrorKind.UNHANDLED_UPLOAD: HTTP_STATUS_UNPROCESSABLE_ENTITY,
    UploadErrorKind.SAVE_FAILED: HTTP_STATUS_UNPROCESSABLE_ENTITY,
    UploadErrorKind.DIRECTORY_CREATE_FAILED: HTTP_STATUS_FORBIDDEN,
    UploadErrorKind.SIZE_NOT_ALLOWED: HTTP_STATUS_BAD_REQUEST,
    UploadErrorKind.NOT_FOUND: HTTP_STATUS_NOT_FOUND,
    UploadErrorKind.NOT_AN_IMAGE: HTTP_STATUS_FORBIDDEN,
    UploadErrorKind.MISSING_DEPENDENCY: HTTP_STATUS_INTERNAL_SERVER_ERROR,
    UploadErrorKind.INVALID_CONFIGURATION: HTTP_STATUS_INTERNAL_SERVER_ERROR,
}


class UploadError(AppException):
    """上传/缩略图流程中的类型化错误。

    ``kind`` 标识错误类型，``params`` 保存渲染文案所需的占位符取值，
    以便上层（例如上传行为）使用自定义模板重新生成字段错误信息。
    """

    def __init__(
        self,
        kind: UploadErrorKind,
        params: Optional[Mapping[str, Any]] = None,
        *,
        msg: Optional[str] = None,
        messages: Optional[Mapping[Any, str]] = None,
        code: Optional[int] = None,
    ) -> None:
        self.kind = kind
        self.params = dict(params or {})
        super().__init__(
            msg or message_for(kind, self.params, messages),
            code or STATUS_BY_KIND[kind],
            data={"kind": kind.value},
        )


class InvalidConfigurationError(UploadError):
    """配置缺失或非法，发生在行为/服务初始化阶段，不可在请求内恢复。"""

    def __init__(self, name: str, *, msg: Optional[str] = None) -> None:
        super().__init__(UploadErrorKind.INVALID_CONFIGURATION, {"name": name}, msg=msg)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:  # pragma: no cover - framework glue
    """将 FastAPI 的 ``HTTPException`` 转换为统一响应格式。"""
    payload = {"msg": exc.detail, "data": getattr(exc, "data", None), "code": exc.status_code}
    return JSONResponse(status_code=exc.status_code, content=payload)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # pragma: no cover - framework glue
    """兜底处理：将未捕获异常转换为标准的 500 响应结构。"""
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    payload = {
        "msg": "Internal server error",
        "data": None,
        "code": status.HTTP_500_INTERNAL_SERVER_ERROR,
    }
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)
