"""Database initialization and the app settings table."""

import logging
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from peewee import CharField, DatabaseProxy, DateTimeField, Model, TextField
from playhouse.pool import PooledSqliteDatabase
from playhouse.shortcuts import ThreadSafeDatabaseMetadata

from .consts import (
    DB_MAX_CONNECTIONS,
    DB_PRAGMAS,
    DB_STALE_TIMEOUT,
    DEFAULT_APP_SETTINGS,
    DEFAULT_SETTING_TYPES,
)

logger = logging.getLogger(__name__)

UTC = ZoneInfo("UTC")

# Use DatabaseProxy for deferred database binding
database_proxy = DatabaseProxy()
database = None


class BaseModel(Model):
    """Base model class - supports thread-safe metadata"""

    class Meta:
        database = database_proxy
        model_metadata_class = ThreadSafeDatabaseMetadata


class AppSetting(BaseModel):
    """Application setting row"""

    setting_key = CharField(unique=True)
    setting_value = TextField(default="")
    setting_type = CharField(default="string")
    description = TextField(null=True)
    created_at = DateTimeField(default=lambda: datetime.now(UTC))
    updated_at = DateTimeField(default=lambda: datetime.now(UTC))

    class Meta:
        table_name = "app_settings"

    def save(self, *args, **kwargs):
        """Override save method to auto-update updated_at"""
        if self._pk is not None:
            self.updated_at = datetime.now(UTC)
        return super().save(*args, **kwargs)


def init_db(db_path: str):
    """Initialize database connection pool."""
    global database

    db_file = Path(db_path)
    db_dir = db_file.parent
    if db_dir and not db_dir.exists():
        db_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created database directory: {db_dir}")

    database = PooledSqliteDatabase(
        db_path,
        max_connections=DB_MAX_CONNECTIONS,
        stale_timeout=DB_STALE_TIMEOUT,
        pragmas=DB_PRAGMAS,
        check_same_thread=False,
    )

    database_proxy.initialize(database)
    logger.info(f"Database connection pool initialized: {db_path}")


def create_tables():
    """Create database tables and seed default settings."""
    database.create_tables([AppSetting], safe=True)

    rows = [
        {
            "setting_key": key,
            "setting_value": value,
            "setting_type": DEFAULT_SETTING_TYPES.get(key, "string"),
        }
        for key, value in DEFAULT_APP_SETTINGS.items()
    ]
    with database.atomic():
        AppSetting.insert_many(rows).on_conflict_ignore().execute()

    logger.info("Database tables created")


def close_db():
    """Close database connection."""
    global database
    if database:
        database.close()
        logger.info("Database connection closed")
