"""图片相关路由：表单字段 ``caption`` 与上传字段 ``file_image``。

上传字段既可以是 multipart 文件，也可以是远程 URL / base64 data URI / 服务器路径
（后三者需开启 ``UPLOAD_HANDLE_NOT_UPLOADED_FILES``）。

原图地址见响应中的 ``image_url``，缩略图通过 ``/images/{width}x{height}/{image}`` 获取。
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.packages.upload.api.v1.schemas.uploads import PhotoListResponse, PhotoResponse, DeletedResponse
from app.packages.upload.core.dependencies import get_db
from app.packages.upload.services.record_service import photo_service

router = APIRouter(prefix="/photos", tags=["photos"])


@router.get("", response_model=PhotoListResponse)
def list_photos(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return photo_service.list_records(db, skip=skip, limit=limit)


@router.get("/{photo_id}", response_model=PhotoResponse)
def get_photo(photo_id: int, db: Session = Depends(get_db)):
    return photo_service.get_record(db, id=photo_id)


@router.post("", response_model=PhotoResponse)
async def create_photo(request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    values, uploads = photo_service.split_form(form)
    # 远程下载与文件写入是阻塞操作
    return await run_in_threadpool(photo_service.create_record, db, values, uploads)


@router.put("/{photo_id}", response_model=PhotoResponse)
async def update_photo(photo_id: int, request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    values, uploads = photo_service.split_form(form)
    return await run_in_threadpool(
        photo_service.update_record, db, id=photo_id, values=values, uploads=uploads
    )


@router.delete("/{photo_id}", response_model=DeletedResponse)
def delete_photo(photo_id: int, db: Session = Depends(get_db)):
    return photo_service.delete_record(db, id=photo_id)
