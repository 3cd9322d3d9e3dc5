"""错误消息目录：默认英文文案 + 多语言翻译 + 命名占位符渲染。

调用方可以为每种错误提供自定义模板（支持 ``{directory}``、``{name}``、
``{width}``、``{height}`` 等占位符），未提供时回落到按 ``Settings.language``
翻译后的默认文案。
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from app.packages.upload.core.config import get_settings
from app.packages.upload.core.enums import UploadErrorKind

DEFAULT_MESSAGES: dict[UploadErrorKind, str] = {
    UploadErrorKind.UNSUPPORTED_UPLOAD_KIND: "This type of upload is not supported",
    UploadErrorKind.FETCH_FAILED: "Unable to fetch remote file",
    UploadErrorKind.DECODE_FAILED: "Unable to decode base64 data",
    UploadErrorKind.UNHANDLED_UPLOAD: "Unable to handle file",
    UploadErrorKind.DIRECTORY_CREATE_FAILED: "Unable to create directory '{directory}'",
    UploadErrorKind.SAVE_FAILED: "Unable to save file",
    UploadErrorKind.SIZE_NOT_ALLOWED: "Size {width}x{height} is not allowed",
    UploadErrorKind.NOT_FOUND: "File '{name}' not found",
    UploadErrorKind.NOT_AN_IMAGE: "File '{name}' is not an image",
    UploadErrorKind.MISSING_DEPENDENCY: "Pillow not installed",
    UploadErrorKind.INVALID_CONFIGURATION: "Parameter '{name}' is required",
}

TRANSLATIONS: dict[str, dict[str, str]] = {
    "ru": {
        "This type of upload is not supported": "Этот тип загрузки не поддерживается",
        "Unable to fetch remote file": "Не удалось загрузить удалённый файл",
        "Unable to decode base64 data": "Не удалось декодировать данные base64",
        "Unable to handle file": "Невозможно обработать файл",
        "Unable to create directory '{directory}'": "Не удалось создать директорию '{directory}'",
        "Unable to save file": "Невозможно сохранить файл",
        "Size {width}x{height} is not allowed": "Размер {width}x{height} не разрешён",
        "File '{name}' not found": "Файл '{name}' не найден",
        "File '{name}' is not an image": "Файл '{name}' не является изображением",
        "Pillow not installed": "Pillow не установлен",
        "Parameter '{name}' is required": "Параметр '{name}' обязателен",
    },
    "uk": {
        "This type of upload is not supported": "Цей тип завантаження не підтримується",
        "Unable to fetch remote file": "Не вдалося завантажити віддалений файл",
        "Unable to decode base64 data": "Не вдалося декодувати дані base64",
        "Unable to handle file": "Не вдалося обробити файл",
        "Unable to create directory '{directory}'": "Неможливо створити каталог '{directory}'",
        "Unable to save file": "Не вдалося зберегти файл",
        "Size {width}x{height} is not allowed": "Розмір {width}x{height} не дозволено",
        "File '{name}' not found": "Файл '{name}' не знайдено",
        "File '{name}' is not an image": "Файл '{name}' не є зображенням",
        "Pillow not installed": "Pillow не встановлено",
        "Parameter '{name}' is required": "Параметр '{name}' обов'язковий",
    },
    "zh": {
        "This type of upload is not supported": "不支持该上传方式",
        "Unable to fetch remote file": "远程文件下载失败",
        "Unable to decode base64 data": "base64 数据解码失败",
        "Unable to handle file": "无法处理该文件",
        "Unable to create directory '{directory}'": "无法创建目录 '{directory}'",
        "Unable to save file": "文件保存失败",
        "Size {width}x{height} is not allowed": "不允许的尺寸 {width}x{height}",
        "File '{name}' not found": "文件 '{name}' 不存在",
        "File '{name}' is not an image": "文件 '{name}' 不是图片",
        "Pillow not installed": "未安装 Pillow",
        "Parameter '{name}' is required": "参数 '{name}' 不能为空",
    },
}

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def render(template: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """替换模板中的 ``{key}`` 占位符，未知占位符保持原样。"""
    values = params or {}

    def _replace(match: re.Match) -> str:
        key = match.group(1)
        if key in values:
            return str(values[key])
        return match.group(0)

    return _PLACEHOLDER.sub(_replace, template)


def _catalog_for(language: str) -> Mapping[str, str]:
    lang = (language or "").strip().lower().replace("_", "-")
    if lang in TRANSLATIONS:
        return TRANSLATIONS[lang]
    return TRANSLATIONS.get(lang.split("-", 1)[0], {})


def translate(message: str, params: Optional[Mapping[str, Any]] = None, language: Optional[str] = None) -> str:
    catalog = _catalog_for(language if language is not None else get_settings().language)
    return render(catalog.get(message, message), params)


def message_for(
    kind: UploadErrorKind,
    params: Optional[Mapping[str, Any]] = None,
    overrides: Optional[Mapping[Any, str]] = None,
) -> str:
    """返回某类错误的最终文案：优先调用方模板，其次翻译后的默认文案。

    ``overrides`` 的键既可以是 :class:`UploadErrorKind`，也可以是其字符串值。
    """
    if overrides:
        custom = overrides.get(kind) or overrides.get(kind.value)
        if custom:
            return render(custom, params)
    return translate(DEFAULT_MESSAGES[kind], params)
