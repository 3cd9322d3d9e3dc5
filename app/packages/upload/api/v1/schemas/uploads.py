"""附件/图片接口的响应模型。"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from app.packages.upload.api.v1.schemas.common import ResponseEnvelope


class UploadRecordData(BaseModel):
    id: int
    # 落地失败时的字段错误：属性名 -> 错误信息列表
    errors: Dict[str, List[str]] = Field(default_factory=dict)
    create_time: Optional[str] = None
    update_time: Optional[str] = None


class AttachmentData(UploadRecordData):
    title: str = ""
    file: Optional[str] = None
    file_url: Optional[str] = None


class PhotoData(UploadRecordData):
    caption: str = ""
    image: Optional[str] = None
    image_url: Optional[str] = None


class AttachmentListData(BaseModel):
    items: List[AttachmentData]
    total: int


class PhotoListData(BaseModel):
    items: List[PhotoData]
    total: int


class DeletedData(BaseModel):
    id: int


AttachmentResponse = ResponseEnvelope[AttachmentData]
AttachmentListResponse = ResponseEnvelope[AttachmentListData]
PhotoResponse = ResponseEnvelope[PhotoData]
PhotoListResponse = ResponseEnvelope[PhotoListData]
DeletedResponse = ResponseEnvelope[DeletedData]
