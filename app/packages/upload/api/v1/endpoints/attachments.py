"""附件相关路由：表单字段 ``title`` 与上传字段 ``file_file``。

上传字段既可以是 multipart 文件，也可以是远程 URL / base64 data URI / 服务器路径
（后三者需开启 ``UPLOAD_HANDLE_NOT_UPLOADED_FILES``）。
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.packages.upload.api.v1.schemas.uploads import AttachmentListResponse, AttachmentResponse, DeletedResponse
from app.packages.upload.core.dependencies import get_db
from app.packages.upload.services.record_service import attachment_service

router = APIRouter(prefix="/attachments", tags=["attachments"])


@router.get("", response_model=AttachmentListResponse)
def list_attachments(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return attachment_service.list_records(db, skip=skip, limit=limit)


@router.get("/{attachment_id}", response_model=AttachmentResponse)
def get_attachment(attachment_id: int, db: Session = Depends(get_db)):
    return attachment_service.get_record(db, id=attachment_id)


@router.post("", response_model=AttachmentResponse)
async def create_attachment(request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    values, uploads = attachment_service.split_form(form)
    # 远程下载与文件写入是阻塞操作
    return await run_in_threadpool(attachment_service.create_record, db, values, uploads)


@router.put("/{attachment_id}", response_model=AttachmentResponse)
async def update_attachment(attachment_id: int, request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    values, uploads = attachment_service.split_form(form)
    return await run_in_threadpool(
        attachment_service.update_record, db, id=attachment_id, values=values, uploads=uploads
    )


@router.delete("/{attachment_id}", response_model=DeletedResponse)
def delete_attachment(attachment_id: int, db: Session = Depends(get_db)):
    return attachment_service.delete_record(db, id=attachment_id)
