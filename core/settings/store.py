"""Async PersistentStore facade over SettingsManager."""
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Mapping

from core.host import PersistentStore, StorageChange
from core.settings.settings_manager import SettingsManager
from core.utils.decorators import log_errors
from core.logging.logger import get_logger

logger = get_logger(__name__)


class SettingsStore(PersistentStore):
    """Exposes a SettingsManager through the orchestrator's store interface.

    QSettings access is synchronous, so the coroutines complete without
    suspending; callers still treat every call as a suspension point.
    """

    def __init__(self, manager: SettingsManager) -> None:
        self._manager = manager

    @property
    def manager(self) -> SettingsManager:
        return self._manager

    async def get(self, area: str, keys: Iterable[str]) -> Dict[str, Any]:
        return self._manager.get_many(area, list(keys))

    @log_errors(logger, "Failed to write settings")
    async def set(self, area: str, values: Mapping[str, Any]) -> None:
        self._manager.set_many(area, values)

    def on_changed(self, callback: Callable[[str, Dict[str, StorageChange]], None]) -> None:
        self._manager.settings_changed.connect(callback)
