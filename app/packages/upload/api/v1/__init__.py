"""API v1 汇总路由：统一挂载所有版本化的子路由。"""

from fastapi import APIRouter

from app.packages.upload.api.v1.endpoints import attachments, images, photos

api_router = APIRouter()
api_router.include_router(attachments.router)
api_router.include_router(photos.router)
api_router.include_router(images.router)
