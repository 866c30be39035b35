# utils/config.py

import os
import logging
from dotenv import load_dotenv
from typing import Any

# Initialize logger
logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

DEFAULT_SQLITE_URL = "sqlite:///uniform_inventory.db"


def is_running_on_streamlit_cloud() -> bool:
    """Detect if running on Streamlit Cloud"""
    try:
        import streamlit as st
        return hasattr(st, 'secrets') and "DB_CONFIG" in st.secrets
    except Exception:
        return False


class Config:
    """Centralized configuration management for the Uniform Inventory app"""

    def __init__(self):
        self.is_cloud = is_running_on_streamlit_cloud()
        self._load_config()

    def _load_config(self):
        """Load configuration based on environment"""
        if self.is_cloud:
            self._load_cloud_config()
        else:
            self._load_local_config()

        # Common configuration
        self._load_app_config()

    def _load_cloud_config(self):
        """Load configuration from Streamlit Cloud secrets"""
        import streamlit as st

        # Database configuration
        self.db_config = dict(st.secrets["DB_CONFIG"])
        self.database_url = self.db_config.pop("url", None)

        logger.info("☁️  Running in STREAMLIT CLOUD")
        self._log_config_status()

    def _load_local_config(self):
        """Load configuration from local environment"""
        # Load .env file
        load_dotenv()

        # A full URL wins over the individual parts
        self.database_url = os.getenv("DATABASE_URL")

        self.db_config = {
            "host": os.getenv("DB_HOST"),
            "port": int(os.getenv("DB_PORT", "3306")),
            "user": os.getenv("DB_USER"),
            "password": os.getenv("DB_PASSWORD"),
            "database": os.getenv("DB_NAME", os.getenv("DB_DATABASE", "uniform_inventory"))
        }

        logger.info("💻 Running in LOCAL environment")
        self._log_config_status()

    def _load_app_config(self):
        """Load application-specific configuration"""
        self.app_config = {
            # Allocation ledger
            "STRICT_ONCE_ALLOCATION": os.getenv("STRICT_ONCE_ALLOCATION", "false").lower() == "true",
            "LOCK_BATCH_ON_ALLOCATE": os.getenv("LOCK_BATCH_ON_ALLOCATE", "true").lower() == "true",

            # Performance
            "CACHE_TTL_SECONDS": int(os.getenv("CACHE_TTL_SECONDS", "300")),  # 5 minutes
            "DB_POOL_SIZE": int(os.getenv("DB_POOL_SIZE", "5")),
            "DB_POOL_RECYCLE": int(os.getenv("DB_POOL_RECYCLE", "3600")),

            # Display
            "CURRENCY": os.getenv("CURRENCY", "KES"),
        }

    def _has_db_parts(self) -> bool:
        return all([
            self.db_config.get('host'),
            self.db_config.get('user'),
            self.db_config.get('password'),
        ])

    def _log_config_status(self):
        """Log configuration status for debugging"""

        logger.info("─" * 55)
        logger.info("📊 DATABASE CONFIGURATION")

        if self.database_url:
            # Never log credentials embedded in the URL
            logger.info(f"   ✅ URL: {self.database_url.split('@')[-1]}")
        elif self._has_db_parts():
            logger.info(f"   ✅ Host: {self.db_config['host']}:{self.db_config.get('port', 3306)}")
            logger.info(f"   ✅ Database: {self.db_config.get('database')}")
            logger.info(f"   ✅ User: {self.db_config['user']}")
            logger.info(f"   ✅ Password: {'*' * 8} (configured)")
        else:
            logger.warning(f"   ⚠️  No database configured, using {DEFAULT_SQLITE_URL}")
        logger.info("─" * 55)

    def get_database_url(self) -> str:
        """Get SQLAlchemy database URL"""
        if self.database_url:
            return self.database_url
        if self._has_db_parts():
            db = self.db_config
            return (
                f"mysql+pymysql://{db['user']}:{db['password']}"
                f"@{db['host']}:{db.get('port', 3306)}/{db.get('database')}"
            )
        return DEFAULT_SQLITE_URL

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        """Get application setting"""
        return self.app_config.get(key, default)


# Create singleton instance
config = Config()

# Export all
__all__ = [
    'config',
    'Config',
]
