"""配置模块：从 ``.env`` 文件与环境变量加载上传服务的设置，并缓存为单例。

环境文件的加载顺序（后者覆盖前者）：

1. ``ENV_FILE`` 指定的文件（设置后只加载这一个）；
2. 项目根目录的 ``.env``（不覆盖已存在的环境变量）；
3. ``.env.<ENVIRONMENT>``，``DEBUG`` 为真且未设置 ``ENVIRONMENT`` 时取 ``development``。
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Iterator, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

TRUTHY = {"1", "true", "yes", "on"}


def _project_root() -> Path:
    """包含 ``app`` 目录的最近一级祖先目录。"""
    here = Path(__file__).resolve()
    return next((parent for parent in here.parents if (parent / "app").is_dir()), here.parent)


BASE_DIR = _project_root()


def _env_files() -> Iterator[Tuple[Path, bool]]:
    """依次产出 ``(文件路径, 是否覆盖)``。"""
    explicit = os.getenv("ENV_FILE")
    if explicit:
        yield BASE_DIR / explicit, True
        return

    yield BASE_DIR / ".env", False

    environment = os.getenv("ENVIRONMENT")
    if environment is None and (os.getenv("DEBUG") or "").strip().lower() in TRUTHY:
        environment = "development"
    if environment:
        name = environment if environment.startswith(".env") else f".env.{environment}"
        yield BASE_DIR / name, True


for _path, _override in _env_files():
    if _path.exists():
        load_dotenv(_path, override=_override, encoding="utf-8")


class Settings(BaseSettings):
    """上传服务的全部配置项，每个字段都可以通过同名环境变量（见 alias）重写。

    ``upload_*`` 是上传行为的默认取值，行为实例未显式传参时读取这里。
    """

    model_config = SettingsConfigDict(extra="ignore")

    project_name: str = Field(default="Upload Service API", alias="PROJECT_NAME")
    api_v1_str: str = Field(default="/api/v1", alias="API_V1_STR")
    debug: bool = Field(default=False, alias="DEBUG")
    app_port: int = Field(default=8000, alias="APP_PORT")

    database_url: str = Field(default="sqlite:///./upload.db", alias="DATABASE_URL")
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: str = Field(default="log", alias="LOG_DIR")
    log_file_name: str = Field(default="app.log", alias="LOG_FILE_NAME")
    log_json: bool = Field(default=False, alias="LOG_JSON")

    timezone: str = Field(default="UTC", alias="TIMEZONE")
    # 错误文案语言：en / ru / uk / zh，未知语言使用英文
    language: str = Field(default="en-US", alias="UPLOAD_LANGUAGE")

    upload_base_path: str = Field(default="uploads", alias="UPLOAD_BASE_PATH")
    upload_base_url: str = Field(default="/uploads", alias="UPLOAD_BASE_URL")
    upload_handle_not_uploaded_files: bool = Field(default=False, alias="UPLOAD_HANDLE_NOT_UPLOADED_FILES")
    upload_delete_temp_file: bool = Field(default=True, alias="UPLOAD_DELETE_TEMP_FILE")
    upload_delete_with_owner: bool = Field(default=True, alias="UPLOAD_DELETE_WITH_OWNER")
    upload_fix_image_orientation: bool = Field(default=False, alias="UPLOAD_FIX_IMAGE_ORIENTATION")
    upload_fetch_timeout: float = Field(default=10.0, alias="UPLOAD_FETCH_TIMEOUT")

    # 形如 "100x100,200x0"；为空表示不限制
    thumbnail_size_list_raw: str = Field(default="", alias="THUMBNAIL_SIZE_LIST")

    @staticmethod
    def _under_root(raw: str) -> Path:
        path = Path(raw)
        return path if path.is_absolute() else BASE_DIR / path

    @property
    def sql_database_url(self) -> str:
        return self.database_url

    @property
    def log_directory(self) -> Path:
        return self._under_root(self.log_dir)

    @property
    def log_file_path(self) -> Path:
        return self.log_directory / self.log_file_name

    @property
    def upload_directory(self) -> Path:
        """上传根目录（原图、缩略图都在其下），相对路径基于项目根目录。"""
        return self._under_root(self.upload_base_path)

    @property
    def timezone_info(self) -> ZoneInfo:
        try:
            return ZoneInfo(self.timezone)
        except ZoneInfoNotFoundError:
            return ZoneInfo("UTC")

    @property
    def thumbnail_size_list(self) -> list[str]:
        return [item.strip() for item in (self.thumbnail_size_list_raw or "").split(",") if item.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()

