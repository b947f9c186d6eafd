"""Application settings service.

Settings are string key/value pairs kept in a store (memory or the
``app_settings`` table) and cached in-process by ``AppSettingsService``.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol

from peewee import PeeweeException
from pydantic import BaseModel

from .config import SettingsStoreConfig
from .consts import DEFAULT_APP_SETTINGS, DEFAULT_SETTING_TYPES
from .db import UTC, AppSetting, create_tables, database_proxy, init_db
from .enums import SettingsBackend
from .errors import SettingsException

logger = logging.getLogger(__name__)

SettingListener = Callable[[str, str], None]


class SettingRecord(BaseModel):
    key: str
    value: str
    type: str = "string"
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AppSettings(BaseModel):
    """Typed view over the raw settings, with defaults for unset keys."""

    app_name: str = DEFAULT_APP_SETTINGS["app_name"]
    company_name: str = DEFAULT_APP_SETTINGS["company_name"]
    logo_icon: str = DEFAULT_APP_SETTINGS["logo_icon"]
    email_notifications_enabled: bool = False
    push_notifications_enabled: bool = False
    terms_of_service: str = ""
    privacy_policy: str = ""

    @classmethod
    def from_values(cls, values: Mapping[str, str]) -> "AppSettings":
        return cls(
            app_name=values.get("app_name") or DEFAULT_APP_SETTINGS["app_name"],
            company_name=values.get("company_name") or DEFAULT_APP_SETTINGS["company_name"],
            logo_icon=values.get("logo_icon") or DEFAULT_APP_SETTINGS["logo_icon"],
            email_notifications_enabled=values.get("email_notifications_enabled") == "true",
            push_notifications_enabled=values.get("push_notifications_enabled") == "true",
            terms_of_service=values.get("terms_of_service") or "",
            privacy_policy=values.get("privacy_policy") or "",
        )


class SettingsStore(Protocol):
    def load(self) -> Dict[str, str]: ...

    def update(self, key: str, value: str) -> bool: ...

    def upsert(self, values: Mapping[str, str]) -> None: ...

    def records(self) -> List[SettingRecord]: ...


def _setting_type(key: str) -> str:
    return DEFAULT_SETTING_TYPES.get(key, "string")


class MemorySettingsStore:
    """Process-local store, seeded with the default settings."""

    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        seed = DEFAULT_APP_SETTINGS if initial is None else initial
        now = datetime.now()
        self._records: Dict[str, SettingRecord] = {
            key: SettingRecord(key=key, value=value, type=_setting_type(key), created_at=now, updated_at=now)
            for key, value in seed.items()
        }
        self._lock = threading.Lock()

    def load(self) -> Dict[str, str]:
        with self._lock:
            return {key: record.value for key, record in self._records.items()}

    def update(self, key: str, value: str) -> bool:
        with self._lock:
            record = self._records.get(key)
            if record is None:
                return False
            record.value = value
            record.updated_at = datetime.now()
            return True

    def upsert(self, values: Mapping[str, str]) -> None:
        now = datetime.now()
        with self._lock:
            for key, value in values.items():
                record = self._records.get(key)
                if record is None:
                    self._records[key] = SettingRecord(
                        key=key, value=value, type=_setting_type(key), created_at=now, updated_at=now
                    )
                else:
                    record.value = value
                    record.updated_at = now

    def records(self) -> List[SettingRecord]:
        with self._lock:
            return [record.model_copy() for _key, record in sorted(self._records.items())]


class DBSettingsStore:
    """Store backed by the ``app_settings`` table. ``init_db`` must run first."""

    def load(self) -> Dict[str, str]:
        try:
            return {row.setting_key: row.setting_value for row in AppSetting.select()}
        except PeeweeException as e:
            raise SettingsException(f"Failed to load app settings: {e}") from e

    def update(self, key: str, value: str) -> bool:
        try:
            updated = (
                AppSetting.update(setting_value=value, updated_at=datetime.now(UTC))
                .where(AppSetting.setting_key == key)
                .execute()
            )
        except PeeweeException as e:
            raise SettingsException(f"Failed to update setting {key}: {e}") from e
        return updated > 0

    def upsert(self, values: Mapping[str, str]) -> None:
        now = datetime.now(UTC)
        rows = [
            {
                "setting_key": key,
                "setting_value": value,
                "setting_type": _setting_type(key),
                "updated_at": now,
            }
            for key, value in values.items()
        ]
        if not rows:
            return

        try:
            with database_proxy.atomic():
                (
                    AppSetting.insert_many(rows)
                    .on_conflict(
                        conflict_target=[AppSetting.setting_key],
                        preserve=[AppSetting.setting_value, AppSetting.updated_at],
                    )
                    .execute()
                )
        except PeeweeException as e:
            raise SettingsException(f"Failed to update settings: {e}") from e

    def records(self) -> List[SettingRecord]:
        try:
            return [
                SettingRecord(
                    key=row.setting_key,
                    value=row.setting_value,
                    type=row.setting_type,
                    description=row.description,
                    created_at=row.created_at,
                    updated_at=row.updated_at,
                )
                for row in AppSetting.select().order_by(AppSetting.setting_key)
            ]
        except PeeweeException as e:
            raise SettingsException(f"Failed to read app settings: {e}") from e


class AppSettingsService:
    """Cached access to application settings with change notification."""

    def __init__(self, store: SettingsStore):
        self.store = store
        self._cache: Dict[str, str] = {}
        self._initialized = False
        self._listeners: List[SettingListener] = []
        self._lock = threading.RLock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """Load the store into the cache once. A failed load is retried on next access."""
        with self._lock:
            if self._initialized:
                return

            try:
                values = self.store.load()
            except SettingsException as e:
                logger.error(f"Error loading app settings: {e}")
                return

            self._cache.update(values)
            self._initialized = True
            logger.debug(f"App settings initialized: {sorted(self._cache)}")

    def get_setting(self, key: str) -> Optional[str]:
        self.initialize()
        return self._cache.get(key) or None

    def get_all_settings(self) -> AppSettings:
        self.initialize()
        return AppSettings.from_values(self._cache)

    def update_setting(self, key: str, value: Any) -> bool:
        value = self._to_text(value)
        try:
            updated = self.store.update(key, value)
        except SettingsException as e:
            logger.error(f"Error updating setting {key}: {e}")
            return False

        if not updated:
            logger.warning(f"Setting not found: {key}")
            return False

        with self._lock:
            self._cache[key] = value
        self._notify(key, value)
        return True

    def update_settings(self, settings: Mapping[str, Any]) -> bool:
        values = {key: self._to_text(value) for key, value in settings.items()}
        try:
            self.store.upsert(values)
        except SettingsException as e:
            logger.error(f"Error updating settings: {e}")
            return False

        with self._lock:
            self._cache.update(values)
        for key, value in values.items():
            self._notify(key, value)
        return True

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
            self._initialized = False

    def get_settings_from_store(self) -> List[SettingRecord]:
        """Read every setting straight from the store, bypassing the cache."""
        try:
            return self.store.records()
        except SettingsException as e:
            logger.error(f"Error fetching settings from store: {e}")
            return []

    def subscribe(self, listener: SettingListener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, key: str, value: str) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(key, value)
            except Exception as e:
                logger.warning(f"Settings listener failed for {key}: {e}")

    @staticmethod
    def _to_text(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)


def create_settings_service(config: SettingsStoreConfig) -> AppSettingsService:
    """Build the settings service for the configured backend.

    The ``db`` backend opens the SQLite pool; callers close it with ``close_db``.
    """
    if config.backend == SettingsBackend.DB:
        init_db(config.db_path)
        create_tables()
        return AppSettingsService(DBSettingsStore())
    return AppSettingsService(MemorySettingsStore())
