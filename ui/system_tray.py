"""System tray integration for Gradia.

The tray icon's context menu is the action menu. Its contents are owned
by the background orchestrator, which rebuilds the whole tree through
``TrayMenuHost`` whenever presets, the default preset or the session
change. Left-clicking the icon starts the screensaver.
"""
from __future__ import annotations

from typing import Callable, Dict, List, Optional

from PySide6.QtCore import Signal
from PySide6.QtGui import QIcon, QAction
from PySide6.QtWidgets import QApplication, QMenu, QSystemTrayIcon

from core.host import CommandHost, MenuCreateError, MenuHost, MenuNode, MenuNodeKind
from core.logging.logger import get_logger
from engine.dispatcher import START_COMMAND
from versioning import APP_NAME


logger = get_logger(__name__)


class ScreensaverTrayIcon(QSystemTrayIcon):
    """System tray icon whose context menu is built node by node.

    Signals:
        node_clicked: id of the menu node the user picked
        command_requested: named command (tray activation)
    """

    node_clicked = Signal(str)
    command_requested = Signal(str)

    def __init__(self, app: QApplication, icon: Optional[QIcon] = None) -> None:
        super().__init__(parent=app)

        tray_icon = icon or app.windowIcon()
        if not tray_icon.isNull():
            self.setIcon(tray_icon)

        self.setToolTip(APP_NAME)

        self._root = QMenu()
        self._menus: Dict[str, QMenu] = {}
        self._actions: Dict[str, QAction] = {}
        self.setContextMenu(self._root)

        self.activated.connect(self._on_activated)

        # Without a tray the instance stays inert; menu building still works.
        if QSystemTrayIcon.isSystemTrayAvailable():
            self.show()
        else:
            logger.info("System tray not available; skipping tray icon")

    @property
    def root_menu(self) -> QMenu:
        return self._root

    def _on_activated(self, reason: QSystemTrayIcon.ActivationReason) -> None:
        if reason in (
            QSystemTrayIcon.ActivationReason.Trigger,
            QSystemTrayIcon.ActivationReason.DoubleClick,
        ):
            logger.debug("Tray icon activated, requesting %s", START_COMMAND)
            self.command_requested.emit(START_COMMAND)

    def clear_nodes(self) -> None:
        """Remove every node from the context menu."""
        self._root.clear()
        for submenu in self._menus.values():
            submenu.deleteLater()
        self._menus.clear()
        self._actions.clear()

    def add_node(self, node: MenuNode) -> QAction:
        """Append ``node`` to its parent menu (the root when it has none)."""
        if node.id in self._actions:
            raise MenuCreateError(f"Duplicate menu node id: {node.id}")
        if node.parent_id is None:
            parent = self._root
        else:
            parent = self._menus.get(node.parent_id)
            if parent is None:
                raise MenuCreateError(f"Unknown parent {node.parent_id!r} for node {node.id}")

        if node.kind is MenuNodeKind.SEPARATOR:
            action = parent.addSeparator()
        elif node.kind is MenuNodeKind.SUBMENU:
            submenu = parent.addMenu(node.title)
            self._menus[node.id] = submenu
            action = submenu.menuAction()
        else:
            action = QAction(node.title, parent)
            if node.checked is not None:
                action.setCheckable(True)
                action.setChecked(node.checked)
            action.triggered.connect(
                lambda _checked=False, node_id=node.id: self.node_clicked.emit(node_id)
            )
            parent.addAction(action)

        self._actions[node.id] = action
        return action

    def action(self, node_id: str) -> Optional[QAction]:
        return self._actions.get(node_id)

    def titles(self, parent_id: Optional[str] = None) -> List[str]:
        """Visible titles of one menu level, separators as ``"-"``."""
        menu = self._root if parent_id is None else self._menus[parent_id]
        return ["-" if a.isSeparator() else a.text() for a in menu.actions()]


class TrayMenuHost(MenuHost, CommandHost):
    """MenuHost/CommandHost adapter over a ScreensaverTrayIcon."""

    def __init__(self, tray: ScreensaverTrayIcon) -> None:
        self._tray = tray

    @property
    def tray(self) -> ScreensaverTrayIcon:
        return self._tray

    async def remove_all(self) -> None:
        self._tray.clear_nodes()

    async def create(self, node: MenuNode) -> None:
        self._tray.add_node(node)

    def on_clicked(self, callback: Callable[[str], None]) -> None:
        self._tray.node_clicked.connect(callback)

    def on_command(self, callback: Callable[[str], None]) -> None:
        self._tray.command_requested.connect(callback)
