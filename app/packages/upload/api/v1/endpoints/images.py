"""图片缩略图路由：``GET /images/{width}x{height}/{link}``。

``link`` 为图片记录中保存的相对链接；宽或高为 0 时按原图比例推算，
两者都为 0 时输出原图尺寸。首次请求生成并缓存到 ``<上传根目录>/{width}x{height}/``。
"""

from fastapi import APIRouter, Depends, Response
from starlette.concurrency import run_in_threadpool

from app.packages.upload.core.dependencies import get_thumbnail_service
from app.packages.upload.services.thumbnail_service import ThumbnailService

router = APIRouter(tags=["images"])


@router.get("/images/{width:int}x{height:int}/{link:path}")
async def get_image(
    width: int,
    height: int,
    link: str,
    service: ThumbnailService = Depends(get_thumbnail_service),
):
    thumbnail = await run_in_threadpool(service.get_or_create, width=width, height=height, link=link)
    return Response(content=thumbnail.content, media_type=thumbnail.media_type)
