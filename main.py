"""
Gradia - Main Entry Point

Runs the background orchestrator in the system tray: the tray menu starts
screensaver sessions, picks presets and opens the settings/about pages.
"""
import sys
from pathlib import Path

from PySide6 import QtAsyncio
from PySide6.QtCore import Qt
from PySide6.QtGui import QIcon
from PySide6.QtWidgets import QApplication

from core.events.event_types import MessageType
from core.events.runtime_hub import RuntimeMessageHub
from core.logging.logger import setup_logging, get_logger
from core.settings.settings_manager import SettingsManager
from core.settings.store import SettingsStore
from engine.orchestrator import BackgroundOrchestrator
from rendering.window_host import QtWindowHost
from ui.pages import QtPageHost
from ui.system_tray import ScreensaverTrayIcon, TrayMenuHost
from versioning import APP_EXE_NAME, APP_NAME, APP_ORGANIZATION, APP_VERSION

logger = get_logger(__name__)


def create_application(argv) -> QApplication:
    """Create the Qt application; it keeps running with no window open."""
    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )
    app = QApplication(argv)
    app.setApplicationName(APP_EXE_NAME)
    app.setOrganizationName(APP_ORGANIZATION)
    app.setApplicationVersion(APP_VERSION)
    app.setQuitOnLastWindowClosed(False)

    icon_path = Path(__file__).with_name("gradia.ico")
    if icon_path.exists():
        app.setWindowIcon(QIcon(str(icon_path)))

    logger.info("Qt Application created: %s", app.applicationName())
    return app


def build_orchestrator(app: QApplication, settings: SettingsManager,
                       hub: RuntimeMessageHub) -> BackgroundOrchestrator:
    """Wire the Qt hosts to a new orchestrator."""
    store = SettingsStore(settings)
    windows = QtWindowHost(settings, hub)
    tray = ScreensaverTrayIcon(app, app.windowIcon())
    menu = TrayMenuHost(tray)
    pages = QtPageHost(settings)

    app.aboutToQuit.connect(windows.close_all)

    return BackgroundOrchestrator(
        windows=windows,
        menu=menu,
        store=store,
        messages=hub,
        commands=menu,
        pages=pages,
    )


async def run_background(orchestrator: BackgroundOrchestrator, hub: RuntimeMessageHub,
                         start_now: bool) -> None:
    orchestrator.start()
    if start_now:
        logger.info("--start given, starting the screensaver")
        hub.send_message({"type": MessageType.START_SCREENSAVER}, source="main")


def main():
    """Main entry point for the screensaver application."""
    debug_mode = '--debug' in sys.argv or '-d' in sys.argv
    verbose_mode = '--verbose' in sys.argv
    start_now = '--start' in sys.argv
    setup_logging(debug=debug_mode, verbose=verbose_mode)

    logger.info("=" * 60)
    logger.info("%s %s Starting", APP_NAME, APP_VERSION)
    logger.info("=" * 60)

    app = create_application(sys.argv)
    settings = SettingsManager(organization=APP_ORGANIZATION)
    hub = RuntimeMessageHub()

    exit_code = 0
    try:
        orchestrator = build_orchestrator(app, settings, hub)
        QtAsyncio.run(
            run_background(orchestrator, hub, start_now),
            keep_running=True,
            handle_sigint=True,
        )
        settings.save()
    except Exception as e:
        logger.exception(f"Fatal error in main: {e}")
        exit_code = 1

    logger.info("=" * 60)
    logger.info(f"{APP_NAME} Exiting (code={exit_code})")
    logger.info("=" * 60)

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
