"""
Settings and About pages opened from the action menu.

Both are small non-modal message boxes; they stay open while the tray
keeps working and are raised again when requested twice.
"""
from typing import Dict, Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QMessageBox, QWidget

from core.host import PageHost, StorageArea, StorageKeys
from core.logging.logger import get_log_dir, get_logger
from core.presets import parse_custom_presets
from core.settings.settings_manager import SettingsManager
from versioning import APP_COMPANY, APP_DESCRIPTION, APP_NAME, APP_VERSION

logger = get_logger(__name__)

PAGE_SETTINGS = "settings"
PAGE_ABOUT = "about"


class QtPageHost(PageHost):
    """PageHost showing Qt message boxes."""

    def __init__(self, settings: SettingsManager, parent: Optional[QWidget] = None):
        self._settings = settings
        self._parent = parent
        self._open: Dict[str, QMessageBox] = {}

    def page(self, name: str) -> Optional[QMessageBox]:
        return self._open.get(name)

    async def open_page(self, name: str) -> None:
        existing = self._open.get(name)
        if existing is not None and existing.isVisible():
            existing.raise_()
            existing.activateWindow()
            return

        if name == PAGE_ABOUT:
            box = self._build(f"About {APP_NAME}", self._about_text())
        elif name == PAGE_SETTINGS:
            box = self._build(f"{APP_NAME} Settings", self._settings_text())
        else:
            logger.warning(f"Unknown page requested: {name}")
            return

        box.finished.connect(lambda _result, page=name: self._open.pop(page, None))
        self._open[name] = box
        box.show()
        logger.info(f"Opened {name} page")

    def _build(self, title: str, text: str) -> QMessageBox:
        box = QMessageBox(self._parent)
        box.setWindowTitle(title)
        box.setText(text)
        box.setIcon(QMessageBox.Icon.Information)
        box.setStandardButtons(QMessageBox.StandardButton.Close)
        box.setWindowModality(Qt.WindowModality.NonModal)
        box.setAttribute(Qt.WidgetAttribute.WA_DeleteOnClose)
        return box

    @staticmethod
    def _about_text() -> str:
        return f"{APP_NAME} v{APP_VERSION}\n\n{APP_DESCRIPTION}\n\n{APP_COMPANY}"

    def _settings_text(self) -> str:
        s = self._settings
        customs = parse_custom_presets(
            s.get(StorageKeys.CUSTOM_PRESETS, [], area=StorageArea.SYNC)
        )
        protected = (
            s.get_bool(StorageKeys.PASSWORD_PROTECTION, False)
            and bool(s.get(StorageKeys.PASSWORD_HASH))
        )
        lines = [
            f"Default preset: {s.get(StorageKeys.DEFAULT_PRESET) or '(none)'}",
            f"Selected preset: {s.get(StorageKeys.SELECTED_PRESET) or '(none)'}",
            f"Custom presets: {len(customs)}",
            f"Multi-monitor: {'on' if s.get_bool(StorageKeys.MULTI_MONITOR) else 'off'}",
            f"Password lock: {'on' if protected else 'off'}",
            "",
            f"Logs: {get_log_dir()}",
        ]
        return "\n".join(lines)
