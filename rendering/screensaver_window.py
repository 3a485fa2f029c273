"""
Screensaver surface window.

One borderless top-level widget per display. The window paints the active
preset and follows ``selectedGradient`` changes so "Change Running Preset"
takes effect without reopening it. Escape (or a double click) closes an unlocked
window; a locked window asks for the password first and, on a match, asks
the background to end the session.
"""
from typing import Any, Dict, Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QColor, QFont, QKeyEvent, QMouseEvent, QPainter, QCloseEvent, QPaintEvent
from PySide6.QtWidgets import QInputDialog, QLineEdit, QWidget

from core.events.event_types import MessageType
from core.events.runtime_hub import RuntimeMessageHub
from core.host import StorageArea, StorageChange, StorageKeys, WindowId
from core.logging.logger import get_logger
from core.logging.tags import TAG_LOCK
from core.password import verify_password
from core.presets import BUILTIN_PRESETS, PresetCatalog, RANDOM_PRESETS, parse_custom_presets
from core.settings.settings_manager import SettingsManager

logger = get_logger(__name__)


class ScreensaverWindow(QWidget):
    """
    Frameless, always-on-top screensaver surface.

    Signals:
        closed: Emitted with the window id once the window has closed
    """

    closed = Signal(int)

    def __init__(
        self,
        window_id: WindowId,
        settings: SettingsManager,
        hub: RuntimeMessageHub,
        surface_url: str = "",
        parent: Optional[QWidget] = None,
    ):
        super().__init__(parent)

        self._window_id = window_id
        self._settings = settings
        self._hub = hub
        self._surface_url = surface_url
        self._closed_emitted = False
        self._session_locked: Optional[bool] = None

        self.setWindowFlags(
            Qt.WindowType.FramelessWindowHint |
            Qt.WindowType.WindowStaysOnTopHint |
            Qt.WindowType.Tool
        )
        self.setAttribute(Qt.WidgetAttribute.WA_DeleteOnClose)
        self.setAutoFillBackground(False)
        self.setCursor(Qt.CursorShape.BlankCursor)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

        self._preset_name = self._resolve_preset_name()
        self._settings.settings_changed.connect(self._on_settings_changed)
        self._broadcast_sub = self._hub.on_broadcast(self._on_broadcast)

        logger.debug(f"ScreensaverWindow {window_id} created ({self._preset_name})")

    @property
    def window_id(self) -> WindowId:
        return self._window_id

    @property
    def surface_url(self) -> str:
        return self._surface_url

    @property
    def preset_name(self) -> str:
        return self._preset_name

    # ------------------------------------------------------------------
    # Preset resolution
    # ------------------------------------------------------------------

    def _resolve_preset_name(self) -> str:
        """Selected preset, else the default preset, else the first built-in."""
        preset_id = (
            self._settings.get(StorageKeys.SELECTED_PRESET)
            or self._settings.get(StorageKeys.DEFAULT_PRESET)
            or BUILTIN_PRESETS[0].id
        )
        customs = parse_custom_presets(
            self._settings.get(StorageKeys.CUSTOM_PRESETS, [], area=StorageArea.SYNC)
        )
        for preset in (*BUILTIN_PRESETS, *customs, *RANDOM_PRESETS):
            if preset.id == preset_id:
                return preset.name
        logger.debug(f"Unknown preset {preset_id!r}, showing its id")
        return str(preset_id)

    def _on_settings_changed(self, area: str, diff: Dict[str, StorageChange]) -> None:
        relevant = (
            (area == StorageArea.LOCAL and (
                StorageKeys.SELECTED_PRESET in diff or StorageKeys.DEFAULT_PRESET in diff
            ))
            or PresetCatalog.is_catalog_change(area, diff)
        )
        if not relevant:
            return
        name = self._resolve_preset_name()
        if name != self._preset_name:
            logger.info(f"Window {self._window_id} switching preset to {name}")
            self._preset_name = name
            self.update()

    # ------------------------------------------------------------------
    # Exit / unlock
    # ------------------------------------------------------------------

    def _on_broadcast(self, message: Any) -> None:
        if not isinstance(message, dict):
            return
        if message.get("type") != MessageType.SCREENSAVER_STARTED:
            return
        if self._window_id in (message.get("windowIds") or []):
            self._session_locked = bool(message.get("locked"))
            logger.debug(f"Window {self._window_id} joined session (locked={self._session_locked})")

    @property
    def session_locked(self) -> Optional[bool]:
        """Lock flag of the session this window belongs to, None until announced."""
        return self._session_locked

    def _stored_hash(self) -> Optional[str]:
        stored = self._settings.get(StorageKeys.PASSWORD_HASH)
        return stored if isinstance(stored, str) and stored else None

    def _lock_hash(self) -> Optional[str]:
        """Stored password hash when this window must prompt, else None.

        A session announced as locked keeps prompting even if protection is
        switched off afterwards; an unannounced window follows the stored flag.
        """
        if self._session_locked is False:
            return None
        if self._session_locked is None and not self._settings.get_bool(
            StorageKeys.PASSWORD_PROTECTION, False
        ):
            return None
        return self._stored_hash()

    def _send_unlock(self) -> None:
        self._hub.send_message({"type": MessageType.UNLOCK_SCREENSAVER}, source=self)

    def _prompt_password(self) -> Optional[str]:
        text, ok = QInputDialog.getText(
            self,
            "Unlock screensaver",
            "Enter the password to exit fullscreen.",
            QLineEdit.EchoMode.Password,
        )
        return text if ok else None

    def request_exit(self) -> bool:
        """Close the window, prompting for the password when locked.

        Returns:
            True if the window is closing
        """
        stored_hash = self._lock_hash()
        if stored_hash is None:
            if self._session_locked:
                # Locked session without a password to check: end it, or the
                # orchestrator would keep reopening this window.
                logger.warning(f"{TAG_LOCK} Locked session has no stored password, unlocking")
                self._send_unlock()
            self.close()
            return True

        password = self._prompt_password()
        if password is None:
            return False
        if not verify_password(password.strip(), stored_hash):
            logger.warning(f"{TAG_LOCK} Incorrect password on window {self._window_id}")
            return False

        logger.info(f"{TAG_LOCK} Password accepted, unlocking")
        self._send_unlock()
        self.close()
        return True

    # ------------------------------------------------------------------
    # Qt events
    # ------------------------------------------------------------------

    def paintEvent(self, event: QPaintEvent) -> None:
        painter = QPainter(self)
        try:
            painter.fillRect(self.rect(), QColor(0, 0, 0))
            font = QFont(self.font())
            font.setPointSize(max(12, self.height() // 40))
            painter.setFont(font)
            painter.setPen(QColor(255, 255, 255, 90))
            painter.drawText(
                self.rect().adjusted(0, 0, -32, -32),
                Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignBottom,
                self._preset_name,
            )
        finally:
            painter.end()

    def keyPressEvent(self, event: QKeyEvent) -> None:
        if event.key() == Qt.Key.Key_Escape:
            self.request_exit()
            event.accept()
            return
        super().keyPressEvent(event)

    def mouseDoubleClickEvent(self, event: QMouseEvent) -> None:
        self.request_exit()
        event.accept()

    def closeEvent(self, event: QCloseEvent) -> None:
        try:
            self._settings.settings_changed.disconnect(self._on_settings_changed)
        except (RuntimeError, TypeError):
            logger.debug("Settings signal already disconnected", exc_info=True)
        if self._broadcast_sub is not None:
            self._hub.unsubscribe(self._broadcast_sub)
            self._broadcast_sub = None
        super().closeEvent(event)
        if event.isAccepted() and not self._closed_emitted:
            self._closed_emitted = True
            self.closed.emit(self._window_id)
