"""
Settings manager implementation for the screensaver orchestrator.

Uses QSettings for persistent storage, one QSettings file per storage area:
``local`` holds device-only keys (selected preset, password lock, multi
monitor preference) and ``sync`` holds the custom preset catalog, which other
pages edit. Values are stored as JSON text so booleans, lists and nested
preset maps round-trip with their types intact on every QSettings backend.
"""
from typing import Any, Callable, Dict, Iterable, List, Mapping
import json
import threading
from PySide6.QtCore import QSettings, QObject, Signal
from core.host import StorageArea, StorageChange, StorageKeys
from core.logging.logger import get_logger, is_verbose_logging

logger = get_logger(__name__)

_DEFAULTS: Dict[str, Dict[str, Any]] = {
    StorageArea.LOCAL: {
        StorageKeys.MULTI_MONITOR: False,
        StorageKeys.PASSWORD_PROTECTION: False,
    },
    StorageArea.SYNC: {
        StorageKeys.CUSTOM_PRESETS: [],
    },
}


class SettingsManager(QObject):
    """
    Centralized settings management for the screensaver.

    Thread-safe with change notifications. Every write emits
    ``settings_changed(area, diff)`` where ``diff`` maps each key whose value
    actually changed to a StorageChange.
    """

    settings_changed = Signal(str, object)  # area, {key: StorageChange}

    def __init__(self, organization: str = "Gradia",
                 application: str = "Screensaver"):
        """
        Initialize the settings manager.

        Args:
            organization: Organization name for QSettings
            application: Application name for QSettings; the sync area
                uses ``<application>_Sync``
        """
        super().__init__()

        self._organization = organization
        self._application = application
        self._areas: Dict[str, QSettings] = {
            StorageArea.LOCAL: QSettings(organization, application),
            StorageArea.SYNC: QSettings(organization, f"{application}_Sync"),
        }
        self._lock = threading.RLock()
        self._change_handlers: Dict[str, List[Callable[[Any, Any], None]]] = {}

        self._set_defaults()

        logger.info("SettingsManager initialized")

    def _settings_for(self, area: str) -> QSettings:
        try:
            return self._areas[area]
        except KeyError:
            raise ValueError(f"Unknown storage area: {area!r}") from None

    def _set_defaults(self) -> None:
        """Set default values if not already present. Emits nothing."""
        with self._lock:
            for area, defaults in _DEFAULTS.items():
                settings = self._settings_for(area)
                for key, value in defaults.items():
                    if not settings.contains(key):
                        settings.setValue(key, json.dumps(value))

    @staticmethod
    def _decode(key: str, raw: Any) -> Any:
        if not isinstance(raw, str):
            return raw
        try:
            return json.loads(raw)
        except ValueError:
            # Written by something other than this manager; keep the raw text.
            logger.debug("Non-JSON value for %s, returning raw text", key)
            return raw

    def get(self, key: str, default: Any = None, area: str = StorageArea.LOCAL) -> Any:
        """
        Get a setting value.

        Args:
            key: Setting key
            default: Default value if key not found
            area: Storage area

        Returns:
            Setting value or default
        """
        with self._lock:
            settings = self._settings_for(area)
            if not settings.contains(key):
                return default
            return self._decode(key, settings.value(key))

    def get_many(self, area: str, keys: Iterable[str]) -> Dict[str, Any]:
        """Return stored values for ``keys``; missing keys are omitted."""
        result: Dict[str, Any] = {}
        with self._lock:
            settings = self._settings_for(area)
            for key in keys:
                if settings.contains(key):
                    result[key] = self._decode(key, settings.value(key))
        return result

    @staticmethod
    def to_bool(value: Any, default: bool = False) -> bool:
        """Normalize a stored setting value to bool.

        Accepts common string forms ("true", "1", "yes", "on") as True and
        ("false", "0", "no", "off") as False. Falls back to bool(value) or
        the provided default when the value cannot be interpreted.
        """
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            v = value.strip().lower()
            if v in ("true", "1", "yes", "on"):
                return True
            if v in ("false", "0", "no", "off"):
                return False
            return default
        if value is None:
            return default
        return bool(value)

    def get_bool(self, key: str, default: bool = False, area: str = StorageArea.LOCAL) -> bool:
        """Convenience wrapper around get() that normalizes to bool."""
        raw = self.get(key, default, area)
        return self.to_bool(raw, default)

    def set(self, key: str, value: Any, area: str = StorageArea.LOCAL) -> None:
        """Set a single setting value."""
        self.set_many(area, {key: value})

    def set_many(self, area: str, values: Mapping[str, Any]) -> Dict[str, StorageChange]:
        """
        Write several values at once and notify listeners once.

        Returns:
            The diff of keys whose value changed (empty when nothing did)
        """
        diff: Dict[str, StorageChange] = {}
        with self._lock:
            settings = self._settings_for(area)
            for key, value in values.items():
                old_value = self._decode(key, settings.value(key)) if settings.contains(key) else None
                settings.setValue(key, json.dumps(value))
                if old_value != value:
                    diff[key] = StorageChange(old_value, value)

        if not diff:
            return diff

        if is_verbose_logging():
            logger.debug("Settings changed in %s: %r", area, diff)
        else:
            logger.debug("Settings changed in %s: %s", area, ", ".join(diff))

        self.settings_changed.emit(area, diff)

        for key, change in diff.items():
            for handler in list(self._change_handlers.get(key, [])):
                try:
                    handler(change.new_value, change.old_value)
                except Exception as e:
                    logger.error(f"Error in change handler for {key}: {e}")
        return diff

    def on_changed(self, key: str, handler: Callable[[Any, Any], None]) -> None:
        """
        Register a handler for when a specific setting changes.

        Args:
            key: Setting key to watch (any area)
            handler: Callback function(new_value, old_value)
        """
        with self._lock:
            self._change_handlers.setdefault(key, []).append(handler)

        logger.debug(f"Registered change handler for {key}")

    def contains(self, key: str, area: str = StorageArea.LOCAL) -> bool:
        with self._lock:
            return self._settings_for(area).contains(key)

    def remove(self, key: str, area: str = StorageArea.LOCAL) -> None:
        with self._lock:
            self._settings_for(area).remove(key)

    def clear(self) -> None:
        """Remove every stored key in every area (defaults are not restored)."""
        with self._lock:
            for settings in self._areas.values():
                settings.clear()
        logger.debug("Settings cleared")

    def save(self) -> None:
        """Force save settings to persistent storage."""
        with self._lock:
            for settings in self._areas.values():
                settings.sync()
        logger.debug("Settings saved")

    def get_application_name(self) -> str:
        return self._application

    def get_organization_name(self) -> str:
        return self._organization
