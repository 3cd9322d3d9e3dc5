"""应用入口：按当前启用的业务包组装 FastAPI 实例。"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.middleware.request_id import RequestIdMiddleware
from app.packages import get_active_package
from app.packages.types import AppPackage


def _validation_handler(package: AppPackage):
    async def handle(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = jsonable_encoder(exc.errors(), custom_encoder={Exception: str})
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
        return JSONResponse(status_code=code, content=package.create_response("请求参数验证失败", errors, code))

    return handle


def create_app(package: AppPackage) -> FastAPI:
    package.setup_logging()
    settings = package.get_settings()

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        package.init_db()
        package.logger.info("SUCCESS - Application running at http://127.0.0.1:%s", settings.app_port)
        yield

    application = FastAPI(title=settings.project_name, debug=settings.debug, lifespan=lifespan)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    application.add_middleware(RequestIdMiddleware)

    application.add_exception_handler(HTTPException, package.http_exception_handler)
    application.add_exception_handler(RequestValidationError, _validation_handler(package))
    application.add_exception_handler(Exception, package.generic_exception_handler)

    @application.get("/health")
    async def health_check() -> dict:
        """健康检查，供编排器与监控系统探活。"""
        return package.create_response("OK", {"status": "healthy"})

    application.include_router(package.api_router, prefix=settings.api_v1_str)
    if package.configure_app is not None:
        package.configure_app(application)
    return application


app = create_app(get_active_package())
