"""
Shared pytest fixtures for screensaver tests.
"""
import os
import sys
import uuid

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtWidgets import QApplication  # noqa: E402


@pytest.fixture(scope='session')
def qt_app():
    """Create QApplication instance for tests."""
    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv)
    app.setQuitOnLastWindowClosed(False)
    yield app
    # Don't quit - causes issues with pytest


@pytest.fixture
def settings_manager(qt_app):
    """Create SettingsManager instance for testing."""
    from core.settings import SettingsManager
    manager = SettingsManager(
        organization="Test",
        application=f"ScreensaverTest_{uuid.uuid4().hex[:8]}",
    )
    yield manager
    # Clear test settings
    manager.clear()


@pytest.fixture
def event_system():
    """Create EventSystem instance for testing."""
    from core.events import EventSystem
    return EventSystem()


@pytest.fixture
def hub(event_system):
    """RuntimeMessageHub on a fresh EventSystem."""
    from core.events import RuntimeMessageHub
    return RuntimeMessageHub(event_system)
