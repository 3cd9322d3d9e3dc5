"""Database bootstrapping utilities."""

from __future__ import annotations

import logging

from app.packages.upload.db import session as db_session
from app.packages.upload.models.base import Base
from app.packages.upload.models.attachment import Attachment  # noqa: F401 - ensure table creation
from app.packages.upload.models.photo import Photo  # noqa: F401 - ensure table creation

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Create all database tables if they do not exist."""
    Base.metadata.create_all(bind=db_session.engine)
    logger.info("Database tables ensured: %s", ", ".join(sorted(Base.metadata.tables)))
