"""
Background orchestrator.

Owns the session state and wires the host collaborators to the dispatcher.
Host callbacks are synchronous; each inbound event becomes its own task on
the running event loop so a handler can await host calls without blocking
the callback that delivered the event. A failing handler is logged and
never stops later events from being handled.
"""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Dict, Optional, Set

from core.host import (
    CommandHost,
    MenuHost,
    MessageHub,
    PageHost,
    PersistentStore,
    StorageChange,
    WindowHost,
    WindowId,
)
from core.logging.logger import get_logger
from core.presets import PresetCatalog
from core.utils.decorators import suppress_exceptions
from engine.dispatcher import CommandDispatcher
from engine.menu_sync import ActionMenuSynchronizer
from engine.session_state import SessionState
from engine.window_controller import DEFAULT_SURFACE_URL, WindowLifecycleController

logger = get_logger(__name__)


@suppress_exceptions(logger, "Event handler failed")
async def _isolated(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


class BackgroundOrchestrator:
    """
    Long-lived coordinator of screensaver sessions and the action menu.

    Call ``start()`` from inside the running event loop once; it registers
    all host listeners and schedules the initial menu build.
    """

    def __init__(
        self,
        windows: WindowHost,
        menu: MenuHost,
        store: PersistentStore,
        messages: MessageHub,
        commands: Optional[CommandHost] = None,
        pages: Optional[PageHost] = None,
        catalog: Optional[PresetCatalog] = None,
        surface_url: str = DEFAULT_SURFACE_URL,
    ) -> None:
        self._windows = windows
        self._menu_host = menu
        self._store = store
        self._messages = messages
        self._commands = commands

        self.state = SessionState()
        self.catalog = catalog or PresetCatalog(store)
        self.controller = WindowLifecycleController(windows, self.state, surface_url)
        self.menu = ActionMenuSynchronizer(menu, self.catalog, store, self.state)
        self.dispatcher = CommandDispatcher(
            self.state, self.controller, self.menu, store, messages, pages
        )

        self._tasks: Set[asyncio.Task] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._started = False

        logger.info("BackgroundOrchestrator created")

    def start(self) -> None:
        """Register host listeners and build the initial menu."""
        if self._started:
            logger.debug("Orchestrator already started")
            return
        self._started = True
        self._loop = asyncio.get_running_loop()

        self._messages.on_message(self._on_message)
        self._windows.on_removed(self._on_window_removed)
        self._menu_host.on_clicked(self._on_menu_clicked)
        self._store.on_changed(self._on_storage_changed)
        if self._commands is not None:
            self._commands.on_command(self._on_command)

        self.spawn(self.menu.sync(), "initial menu build")
        logger.info("BackgroundOrchestrator started")

    # ------------------------------------------------------------------
    # Task management
    # ------------------------------------------------------------------

    def spawn(self, awaitable: Awaitable[Any], description: str = "") -> asyncio.Task:
        """Run ``awaitable`` as an isolated task on the orchestrator loop."""
        logger.debug("Scheduling handler: %s", description or awaitable)
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(_isolated(awaitable))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait until every scheduled handler, including ones they schedule, has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def shutdown(self) -> None:
        """Close any open session windows and wait for in-flight handlers."""
        await self.drain()
        if self.state.is_active():
            logger.info("Shutting down with an active session, closing windows")
            await self.controller.stop_all()
        logger.info("BackgroundOrchestrator stopped")

    # ------------------------------------------------------------------
    # Host callbacks
    # ------------------------------------------------------------------

    def _on_message(self, message: Any) -> None:
        self.spawn(self.dispatcher.on_message(message), "runtime message")

    def _on_command(self, command: str) -> None:
        self.spawn(self.dispatcher.on_command(command), f"command {command}")

    def _on_menu_clicked(self, node_id: str) -> None:
        self.spawn(self.dispatcher.on_menu_clicked(node_id), f"menu click {node_id}")

    def _on_window_removed(self, window_id: WindowId) -> None:
        self.spawn(self.dispatcher.on_window_removed(window_id), f"window {window_id} removed")

    def _on_storage_changed(self, area: str, diff: Dict[str, StorageChange]) -> None:
        self.spawn(self.dispatcher.on_storage_changed(area, diff), f"{area} store change")
