"""
Qt window host.

Creates ScreensaverWindow instances for the orchestrator, hands out integer
window ids and reports every window that closes, whether the orchestrator
closed it or the user did.
"""
from typing import Callable, Dict, List, Optional

from core.events.runtime_hub import RuntimeMessageHub
from core.host import (
    DisplayBounds,
    WindowCloseError,
    WindowCreateError,
    WindowHost,
    WindowId,
    WindowRequest,
)
from core.logging.logger import get_logger
from core.logging.tags import TAG_WINDOW
from core.settings.settings_manager import SettingsManager
from rendering.screensaver_window import ScreensaverWindow
from utils.monitors import get_display_layout, get_primary_screen, rect_from_bounds

logger = get_logger(__name__)

WindowFactory = Callable[[WindowId, str], ScreensaverWindow]


class QtWindowHost(WindowHost):
    """WindowHost backed by top-level Qt widgets."""

    def __init__(
        self,
        settings: SettingsManager,
        hub: RuntimeMessageHub,
        window_factory: Optional[WindowFactory] = None,
    ):
        self._settings = settings
        self._hub = hub
        self._factory = window_factory or self._default_factory
        self._windows: Dict[WindowId, ScreensaverWindow] = {}
        self._next_id: WindowId = 1
        self._removed_callbacks: List[Callable[[WindowId], None]] = []

    def _default_factory(self, window_id: WindowId, url: str) -> ScreensaverWindow:
        return ScreensaverWindow(window_id, self._settings, self._hub, surface_url=url)

    @property
    def open_window_ids(self) -> List[WindowId]:
        return list(self._windows)

    def window(self, window_id: WindowId) -> Optional[ScreensaverWindow]:
        return self._windows.get(window_id)

    async def create(self, request: WindowRequest) -> WindowId:
        screen = get_primary_screen()
        if screen is None:
            raise WindowCreateError("No display available")

        window_id = self._next_id
        self._next_id += 1
        try:
            window = self._factory(window_id, request.url)
        except Exception as e:
            raise WindowCreateError(f"Could not build window {window_id}: {e}") from e

        window.closed.connect(self._on_window_closed)
        self._windows[window_id] = window

        if request.bounds is not None:
            window.setGeometry(rect_from_bounds(request.bounds))
            window.show()
        elif request.fullscreen:
            window.setGeometry(screen.geometry())
            window.showFullScreen()
        else:
            window.show()
        window.raise_()
        window.activateWindow()

        logger.debug(f"{TAG_WINDOW} Window {window_id} shown at {window.geometry()}")
        return window_id

    async def remove(self, window_id: WindowId) -> None:
        window = self._windows.get(window_id)
        if window is None:
            raise WindowCloseError(f"No open window with id {window_id}")
        window.close()

    async def get_displays(self) -> Optional[List[DisplayBounds]]:
        return get_display_layout()

    def on_removed(self, callback: Callable[[WindowId], None]) -> None:
        self._removed_callbacks.append(callback)

    def _on_window_closed(self, window_id: int) -> None:
        if self._windows.pop(window_id, None) is None:
            return
        logger.debug(f"{TAG_WINDOW} Window {window_id} closed")
        for callback in list(self._removed_callbacks):
            try:
                callback(window_id)
            except Exception as e:
                logger.error(f"Window-removed callback failed for {window_id}: {e}", exc_info=True)

    def close_all(self) -> None:
        """Close every open window (application shutdown)."""
        for window in list(self._windows.values()):
            window.close()
