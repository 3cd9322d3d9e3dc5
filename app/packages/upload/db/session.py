"""Database engine and session factory configuration."""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.packages.upload.core.config import get_settings

settings = get_settings()

# SQLite 默认只允许创建连接的线程使用，FastAPI 的同步依赖运行在线程池中，需要放开限制。
_connect_args = {"check_same_thread": False} if settings.sql_database_url.startswith("sqlite") else {}

engine = create_engine(
    settings.sql_database_url,
    pool_pre_ping=True,
    echo=settings.database_echo,
    connect_args=_connect_args,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
