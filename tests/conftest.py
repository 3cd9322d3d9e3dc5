"""测试夹具：为 pytest 提供数据库、上传目录与客户端的共享配置。"""

import os
import shutil
import tempfile
from typing import Generator

# 必须在导入应用之前设置，配置对象会被缓存
TEST_ROOT = tempfile.mkdtemp(prefix="upload_tests_")
TEST_DB_PATH = os.path.join(TEST_ROOT, "test.db")
TEST_DATABASE_URL = f"sqlite:///{TEST_DB_PATH}"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["UPLOAD_BASE_PATH"] = os.path.join(TEST_ROOT, "uploads")
os.environ["UPLOAD_BASE_URL"] = "/uploads"
os.environ["LOG_DIR"] = os.path.join(TEST_ROOT, "log")
os.environ["UPLOAD_LANGUAGE"] = "en-US"
os.environ["UPLOAD_HANDLE_NOT_UPLOADED_FILES"] = "false"
os.environ["THUMBNAIL_SIZE_LIST"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from app.main import app  # noqa: E402
from app.packages.upload.core.config import get_settings  # noqa: E402
from app.packages.upload.core.dependencies import get_db  # noqa: E402
from app.packages.upload.db import session as db_session  # noqa: E402
from app.packages.upload.db.init_db import init_db  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def setup_test_database() -> Generator[None, None, None]:
    """创建隔离的 SQLite 测试数据库，并在会话结束后清理临时目录。"""
    engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    db_session.engine = engine
    db_session.SessionLocal = TestingSessionLocal

    init_db()
    yield

    engine.dispose()
    shutil.rmtree(TEST_ROOT, ignore_errors=True)


@pytest.fixture()
def upload_root():
    """应用配置中的上传根目录。"""
    return get_settings().upload_directory


@pytest.fixture()
def db_session_fixture() -> Generator[Session, None, None]:
    """提供给测试用例使用的数据库会话。"""
    session = db_session.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db_session_fixture):
    """构建 FastAPI TestClient，并注入测试专用的数据库依赖。"""
    def override_get_db() -> Generator[Session, None, None]:
        session = db_session.SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
