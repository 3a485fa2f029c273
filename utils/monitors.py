"""
Monitor detection utilities for the screensaver.

Provides the multi-monitor layout used to place one screensaver window per
display.
"""
from typing import List, Optional
from PySide6.QtCore import QRect
from PySide6.QtGui import QGuiApplication, QScreen
from core.host import DisplayBounds
from core.logging.logger import get_logger

logger = get_logger(__name__)


def get_all_screens() -> List[QScreen]:
    """
    Get all connected screens.

    Returns:
        List of QScreen objects (empty without a Qt GUI application)
    """
    if QGuiApplication.instance() is None:
        return []
    screens = QGuiApplication.screens()
    logger.debug(f"Found {len(screens)} screen(s)")
    for i, screen in enumerate(screens):
        logger.debug(f"  Screen {i}: {screen.name()} - {screen.geometry()}")
    return screens


def get_primary_screen() -> Optional[QScreen]:
    """
    Get the primary screen.

    Returns:
        Primary QScreen object, or None when no display is available
    """
    if QGuiApplication.instance() is None:
        return None
    return QGuiApplication.primaryScreen()


def bounds_from_rect(rect: QRect) -> DisplayBounds:
    return DisplayBounds(rect.x(), rect.y(), rect.width(), rect.height())


def rect_from_bounds(bounds: DisplayBounds) -> QRect:
    return QRect(bounds.left, bounds.top, bounds.width, bounds.height)


def get_display_layout() -> Optional[List[DisplayBounds]]:
    """
    Get the geometry of every screen in Qt's screen order.

    Returns:
        List of DisplayBounds, or None when screens cannot be enumerated
    """
    if QGuiApplication.instance() is None:
        logger.debug("No QGuiApplication, display layout unavailable")
        return None
    return [bounds_from_rect(screen.geometry()) for screen in get_all_screens()]

