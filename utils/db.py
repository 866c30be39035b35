# utils/db.py

import logging
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from .config import config

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None


def get_db_engine() -> Engine:
    """Get the shared SQLAlchemy engine, creating it on first use"""
    global _engine
    if _engine is None:
        url = config.get_database_url()
        kwargs = {"pool_pre_ping": True}
        if not url.startswith("sqlite"):
            kwargs["pool_size"] = config.get_app_setting("DB_POOL_SIZE", 5)
            kwargs["pool_recycle"] = config.get_app_setting("DB_POOL_RECYCLE", 3600)
        _engine = create_engine(url, **kwargs)
        logger.info(f"Database engine created ({_engine.dialect.name})")
    return _engine

