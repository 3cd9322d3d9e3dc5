"""缩略图服务：尺寸推算、缓存、允许列表与错误类型。"""

import io

import pytest
from PIL import Image

from app.packages.upload.core.enums import UploadErrorKind
from app.packages.upload.core.exceptions import InvalidConfigurationError, UploadError
from app.packages.upload.models.uploadable import UploadableMixin
from app.packages.upload.services.storage_backends import LocalBackend
from app.packages.upload.services.thumbnail_service import ThumbnailService
from app.packages.upload.services.upload_behavior import FileUploadBehavior, ImageUploadBehavior

LINK = "gallery/0/0/0/image/1_abc.png"


def _gallery_class(base_path):
    class Gallery(UploadableMixin):
        __upload_behaviors__ = (ImageUploadBehavior("image", base_path=base_path),)

    return Gallery


def _write_image(path, size=(1600, 900), fmt="PNG", color=(200, 30, 30)):
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(path, format=fmt)
    return path


@pytest.fixture()
def service(tmp_path):
    _write_image(tmp_path / "original" / LINK)
    return ThumbnailService(_gallery_class(tmp_path))


def _size_of(content: bytes):
    with Image.open(io.BytesIO(content)) as img:
        return img.size


def test_missing_dimension_keeps_aspect_ratio(service, tmp_path):
    thumb = service.get_or_create(width=800, height=0, link=LINK)

    assert thumb.created is True
    assert thumb.media_type == "image/png"
    assert thumb.path == (tmp_path / "800x0" / LINK).resolve()
    assert _size_of(thumb.content) == (800, 450)
    assert thumb.path.read_bytes() == thumb.content


def test_height_only(service):
    assert _size_of(service.get_or_create(width=0, height=90, link=LINK).content) == (160, 90)


def test_both_dimensions_crop_to_fill(service):
    assert _size_of(service.get_or_create(width=100, height=100, link=LINK).content) == (100, 100)


def test_zero_size_keeps_original_dimensions(service):
    assert _size_of(service.get_or_create(width=0, height=0, link=LINK).content) == (1600, 900)


def test_small_originals_are_not_upscaled(tmp_path):
    _write_image(tmp_path / "original" / "small.png", size=(200, 100))
    svc = ThumbnailService(_gallery_class(tmp_path))
    assert _size_of(svc.get_or_create(width=400, height=400, link="small.png").content) == (200, 100)


def test_second_request_reuses_cached_file(service):
    first = service.get_or_create(width=320, height=0, link=LINK)
    second = service.get_or_create(width=320, height=0, link=LINK)

    assert first.created is True
    assert second.created is False
    assert second.content == first.content


def test_cached_thumbnail_is_not_invalidated(service, tmp_path):
    service.get_or_create(width=64, height=64, link=LINK)
    # 替换原图后仍然返回已缓存的缩略图
    _write_image(tmp_path / "original" / LINK, size=(300, 300), color=(0, 0, 255))
    cached = service.get_or_create(width=64, height=64, link=LINK)
    with Image.open(io.BytesIO(cached.content)) as img:
        red, _, blue = img.convert("RGB").getpixel((10, 10))
    assert red > 150 and blue < 100


def test_jpeg_thumbnail_keeps_format(tmp_path):
    _write_image(tmp_path / "original" / "photo.jpg", fmt="JPEG")
    svc = ThumbnailService(_gallery_class(tmp_path))
    thumb = svc.get_or_create(width=160, height=90, link="photo.jpg")
    assert thumb.media_type == "image/jpeg"
    with Image.open(io.BytesIO(thumb.content)) as img:
        assert img.format == "JPEG"
        assert img.size == (160, 90)


def test_size_not_in_allow_list(tmp_path):
    _write_image(tmp_path / "original" / LINK)
    svc = ThumbnailService(_gallery_class(tmp_path), size_list=["100x100", "800x0"])

    assert _size_of(svc.get_or_create(width=800, height=0, link=LINK).content) == (800, 450)
    # 只给出一个维度时不受列表限制
    assert _size_of(svc.get_or_create(width=400, height=0, link=LINK).content) == (400, 225)
    with pytest.raises(UploadError) as exc_info:
        svc.get_or_create(width=50, height=50, link=LINK)
    assert exc_info.value.kind == UploadErrorKind.SIZE_NOT_ALLOWED
    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "Size 50x50 is not allowed"
    assert not (tmp_path / "50x50").exists()


def test_missing_original(service):
    with pytest.raises(UploadError) as exc_info:
        service.get_or_create(width=10, height=10, link="nope/missing.png")
    assert exc_info.value.kind == UploadErrorKind.NOT_FOUND
    assert exc_info.value.status_code == 404
    assert exc_info.value.detail == "File 'missing.png' not found"


def test_original_that_is_not_an_image(tmp_path):
    fake = tmp_path / "original" / "notes.png"
    fake.parent.mkdir(parents=True)
    fake.write_text("plain text")
    svc = ThumbnailService(_gallery_class(tmp_path))

    with pytest.raises(UploadError) as exc_info:
        svc.get_or_create(width=10, height=10, link="notes.png")
    assert exc_info.value.kind == UploadErrorKind.NOT_AN_IMAGE
    assert exc_info.value.status_code == 403
    assert not (tmp_path / "10x10").exists()


def test_thumbnail_directory_failure(service, monkeypatch):
    def fail(self, directory):
        raise PermissionError("denied")

    monkeypatch.setattr(LocalBackend, "ensure_directory", fail)
    with pytest.raises(UploadError) as exc_info:
        service.get_or_create(width=10, height=10, link=LINK)
    assert exc_info.value.kind == UploadErrorKind.DIRECTORY_CREATE_FAILED
    assert exc_info.value.status_code == 403


def test_custom_messages(service):
    svc = ThumbnailService(service.model_class, messages={UploadErrorKind.NOT_FOUND: "No such image: {name}"})
    with pytest.raises(UploadError) as exc_info:
        svc.get_or_create(width=10, height=10, link="x.png")
    assert exc_info.value.detail == "No such image: x.png"


def test_model_class_is_required(tmp_path):
    class Plain(UploadableMixin):
        __upload_behaviors__ = (FileUploadBehavior("file", base_path=tmp_path),)

    with pytest.raises(InvalidConfigurationError):
        ThumbnailService(None)
    with pytest.raises(InvalidConfigurationError) as exc_info:
        ThumbnailService(Plain)
    assert exc_info.value.detail == "Parameter 'model_class' is required"
