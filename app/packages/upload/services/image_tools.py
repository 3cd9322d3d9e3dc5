"""图片处理工具：基于 Pillow 的方向修正、尺寸推算与“填满裁剪”式缩放。"""

from __future__ import annotations

import io
import math
import platform
import sys
from pathlib import Path
from typing import Any, Optional, Tuple

from app.packages.upload.core.enums import UploadErrorKind
from app.packages.upload.core.exceptions import UploadError
from app.packages.upload.core.logger import logger

# EXIF Orientation 标签及需要旋转的三种取值
EXIF_ORIENTATION_TAG = 0x0112
ORIENTATION_NORMAL = 1
ORIENTATION_BOTTOM_RIGHT = 3  # 旋转 180°
ORIENTATION_RIGHT_TOP = 6  # 顺时针 90°
ORIENTATION_LEFT_BOTTOM = 8  # 逆时针 90°


def load_pillow() -> Any:
    """导入 Pillow 的 ``Image`` 模块，失败时抛出 ``MissingDependency``。"""
    try:
        from PIL import Image
    except ImportError as exc:
        logger.error(
            "Pillow import failed: %s; python=%s; platform=%s",
            exc,
            sys.version.split()[0],
            platform.platform(),
        )
        raise UploadError(UploadErrorKind.MISSING_DEPENDENCY) from exc
    return Image


def is_image(path: Path) -> bool:
    """判断文件是否为 Pillow 可完整解码的栅格图片，截断的文件视为非图片。"""
    Image = load_pillow()
    try:
        with Image.open(path) as img:
            img.load()
    except (OSError, SyntaxError, ValueError):
        return False
    return True


def image_format(path: Path) -> Tuple[Optional[str], Optional[str]]:
    """返回 ``(格式, MIME)``，例如 ``("PNG", "image/png")``。"""
    Image = load_pillow()
    with Image.open(path) as img:
        fmt = img.format
    return fmt, Image.MIME.get(fmt) if fmt else None


def fix_orientation(path: Path) -> None:
    """按 EXIF 方向旋转 JPEG 原图，并把方向标签重写为“正常”后覆盖保存。"""
    Image = load_pillow()
    with Image.open(path) as img:
        img.load()
        exif = img.getexif()
        orientation = exif.get(EXIF_ORIENTATION_TAG, ORIENTATION_NORMAL)

        if orientation == ORIENTATION_BOTTOM_RIGHT:
            rotated = img.transpose(Image.Transpose.ROTATE_180)
        elif orientation == ORIENTATION_RIGHT_TOP:
            rotated = img.transpose(Image.Transpose.ROTATE_270)
        elif orientation == ORIENTATION_LEFT_BOTTOM:
            rotated = img.transpose(Image.Transpose.ROTATE_90)
        else:
            rotated = img.copy()

        exif[EXIF_ORIENTATION_TAG] = ORIENTATION_NORMAL
        fmt = img.format or "JPEG"

    rotated.save(path, format=fmt, exif=exif.tobytes(), quality=95)
    logger.info("Fixed image orientation=%s path=%s", orientation, path)


def infer_box(width: int, height: int, source_size: Tuple[int, int]) -> Tuple[int, int]:
    """补全缺失的一维：按原图宽高比向上取整；两者皆为 0 时使用原图尺寸。"""
    src_w, src_h = source_size
    width, height = int(width or 0), int(height or 0)
    if width and height:
        return width, height
    if width:
        return width, max(1, -(-width * src_h // src_w))
    if height:
        return max(1, -(-height * src_w // src_h)), height
    return src_w, src_h


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def outbound(img: Any, box: Tuple[int, int], resample: Any) -> Any:
    """缩放到刚好覆盖目标框后居中裁剪；原图小于目标框时不放大，目标框收缩到原图范围内。"""
    width, height = box
    src_w, src_h = img.size
    if width <= src_w and height <= src_h:
        ratio = max(width / src_w, height / src_h)
        scaled = (max(1, _round_half_up(src_w * ratio)), max(1, _round_half_up(src_h * ratio)))
        if scaled != img.size:
            img = img.resize(scaled, resample)
    else:
        width, height = min(src_w, width), min(src_h, height)
    cur_w, cur_h = img.size
    left = max(0, _round_half_up((cur_w - width) / 2))
    top = max(0, _round_half_up((cur_h - height) / 2))
    return img.crop((left, top, left + width, top + height))


def make_thumbnail(path: Path, width: int, height: int) -> Tuple[bytes, str, Optional[str]]:
    """读取原图并生成缩略图，返回 ``(内容, 格式, MIME)``，编码格式与原图一致。"""
    Image = load_pillow()
    with Image.open(path) as img:
        img.load()
        fmt = img.format or "PNG"
        box = infer_box(width, height, img.size)
        thumb = outbound(img, box, Image.Resampling.LANCZOS)

    if fmt == "JPEG" and thumb.mode not in ("RGB", "L", "CMYK"):
        thumb = thumb.convert("RGB")

    out = io.BytesIO()
    thumb.save(out, format=fmt)
    return out.getvalue(), fmt, Image.MIME.get(fmt)
