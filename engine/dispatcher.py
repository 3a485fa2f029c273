"""
Command dispatcher.

Single entry point for every inbound event. Each event is decoded into
exactly one orchestration action:

    runtime message SCREENSAVER_STARTED  -> adopt the reported session
    runtime message START_SCREENSAVER    -> start a session
    runtime message UNLOCK_SCREENSAVER   -> close every window, end the session
    command "start-screensaver"          -> start with the stored preference
    menu click                           -> see MenuActionKind
    window closed                        -> close reconciliation
    store change                         -> menu rebuild when menu inputs changed

Runtime messages come from pages and are untrusted: anything that does not
decode is dropped with a debug log.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from core.events.event_types import MessageType
from core.host import (
    MessageDeliveryError,
    MessageHub,
    PageHost,
    PersistentStore,
    StorageArea,
    StorageChange,
    StorageKeys,
    WindowCreateError,
    WindowId,
)
from core.logging.logger import get_logger
from core.logging.tags import TAG_LOCK, TAG_SESSION
from core.presets import PresetCatalog
from core.settings.settings_manager import SettingsManager
from engine.menu_sync import ActionMenuSynchronizer, MenuAction, MenuActionKind
from engine.session_state import SessionPhase, SessionState
from engine.window_controller import CloseOutcome, WindowLifecycleController

logger = get_logger(__name__)

START_COMMAND = "start-screensaver"


# ----------------------------------------------------------------------
# Decoded runtime messages
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class SessionStartedNotice:
    window_ids: Tuple[WindowId, ...]
    locked: bool
    multi_monitor: bool


@dataclass(frozen=True)
class StartSessionRequest:
    multi_monitor: Optional[bool] = None
    locked: Optional[bool] = None


@dataclass(frozen=True)
class UnlockRequest:
    pass


RuntimeMessage = Union[SessionStartedNotice, StartSessionRequest, UnlockRequest]


def _is_window_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _optional_bool(payload: Mapping[str, Any], key: str) -> Tuple[bool, Optional[bool]]:
    """Return (valid, value) for an optional boolean field."""
    value = payload.get(key)
    if value is None or isinstance(value, bool):
        return True, value
    return False, None


def decode_message(raw: Any) -> Optional[RuntimeMessage]:
    """Decode an inbound runtime message, or return None when malformed/unknown."""
    if not isinstance(raw, Mapping):
        return None
    message_type = raw.get("type")
    if not isinstance(message_type, str):
        return None

    if message_type == MessageType.UNLOCK_SCREENSAVER:
        return UnlockRequest()

    if message_type == MessageType.START_SCREENSAVER:
        ok_multi, multi = _optional_bool(raw, "multiMonitor")
        ok_locked, locked = _optional_bool(raw, "locked")
        if not (ok_multi and ok_locked):
            return None
        return StartSessionRequest(multi_monitor=multi, locked=locked)

    if message_type == MessageType.SCREENSAVER_STARTED:
        ids = raw.get("windowIds")
        if ids is None and "windowId" in raw:
            ids = [raw.get("windowId")]
        if not isinstance(ids, (list, tuple)) or not ids:
            return None
        if not all(_is_window_id(w) for w in ids):
            return None
        ok_multi, multi = _optional_bool(raw, "multiMonitor")
        ok_locked, locked = _optional_bool(raw, "locked")
        if not (ok_multi and ok_locked):
            return None
        window_ids = tuple(dict.fromkeys(ids))
        is_multi = multi if multi is not None else len(window_ids) > 1
        return SessionStartedNotice(window_ids, bool(locked), is_multi)

    return None


class CommandDispatcher:
    """Maps inbound events to orchestration actions."""

    def __init__(
        self,
        state: SessionState,
        controller: WindowLifecycleController,
        synchronizer: ActionMenuSynchronizer,
        store: PersistentStore,
        messages: MessageHub,
        pages: Optional[PageHost] = None,
    ) -> None:
        self._state = state
        self._controller = controller
        self._menu = synchronizer
        self._store = store
        self._messages = messages
        self._pages = pages

    # ------------------------------------------------------------------
    # Inbound events
    # ------------------------------------------------------------------

    async def on_message(self, raw: Any) -> None:
        message = decode_message(raw)
        if message is None:
            logger.debug("Ignoring malformed or unknown runtime message: %r", raw)
            return

        if isinstance(message, SessionStartedNotice):
            await self.adopt_session(message)
        elif isinstance(message, StartSessionRequest):
            await self.start_session(message.multi_monitor, message.locked)
        elif isinstance(message, UnlockRequest):
            await self.unlock()

    async def on_command(self, command: str) -> None:
        if command == START_COMMAND:
            await self.start_session()
        else:
            logger.debug("Ignoring unknown command: %s", command)

    async def on_menu_clicked(self, node_id: str) -> None:
        action = self._menu.action_for(node_id)
        if action is None:
            logger.debug("Click on unknown menu node: %s", node_id)
            return
        await self.run_menu_action(action)

    async def on_window_removed(self, window_id: WindowId) -> CloseOutcome:
        outcome = await self._controller.handle_window_removed(window_id)
        if outcome.changed_session:
            await self._menu.sync()
        return outcome

    async def on_storage_changed(self, area: str, diff: Dict[str, StorageChange]) -> None:
        if PresetCatalog.is_catalog_change(area, diff):
            logger.debug("Preset catalog changed, rebuilding menu")
            await self._menu.sync()
        elif area == StorageArea.LOCAL and StorageKeys.DEFAULT_PRESET in diff:
            logger.debug("Default preset changed, rebuilding menu")
            await self._menu.sync()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def run_menu_action(self, action: MenuAction) -> None:
        kind = action.kind
        if kind is MenuActionKind.START:
            await self.start_session()
        elif kind is MenuActionKind.SETTINGS or kind is MenuActionKind.ABOUT:
            if self._pages is not None:
                await self._pages.open_page(kind.value)
        elif kind is MenuActionKind.QUICK_START:
            await self._persist(StorageKeys.SELECTED_PRESET, action.preset_id)
            await self.start_session()
        elif kind is MenuActionKind.SET_DEFAULT:
            await self._persist(StorageKeys.DEFAULT_PRESET, action.preset_id)
            await self._menu.sync()
        elif kind is MenuActionKind.CHANGE_RUNNING:
            if not self._state.is_active():
                logger.debug("Change-running click with no active session, ignored")
                return
            # The open surface watches the store and swaps its own preset.
            await self._persist(StorageKeys.SELECTED_PRESET, action.preset_id)

    async def _persist(self, key: str, value: Any) -> None:
        await self._store.set(StorageArea.LOCAL, {key: value})

    async def _resolve_start_flags(
        self, multi_monitor: Optional[bool], locked: Optional[bool]
    ) -> Tuple[bool, bool]:
        stored = await self._store.get(
            StorageArea.LOCAL,
            [
                StorageKeys.MULTI_MONITOR,
                StorageKeys.PASSWORD_PROTECTION,
                StorageKeys.PASSWORD_HASH,
            ],
        )
        if multi_monitor is None:
            multi_monitor = SettingsManager.to_bool(stored.get(StorageKeys.MULTI_MONITOR), False)
        password_hash = stored.get(StorageKeys.PASSWORD_HASH)
        has_password = isinstance(password_hash, str) and bool(password_hash)
        if locked is None:
            locked = SettingsManager.to_bool(stored.get(StorageKeys.PASSWORD_PROTECTION), False)
        elif locked and not has_password:
            logger.warning("%s Lock requested without a stored password, starting unlocked", TAG_LOCK)
        # A session without a password to check could never be unlocked.
        return bool(multi_monitor), bool(locked) and has_password

    async def start_session(
        self,
        multi_monitor: Optional[bool] = None,
        locked: Optional[bool] = None,
    ) -> bool:
        """Start a screensaver session. Returns True when one was started."""
        if self._state.is_busy():
            logger.info(
                "%s Start ignored, a session is already %s",
                TAG_SESSION, self._state.phase.name.lower(),
            )
            return False

        self._state.mark_starting()
        generation = self._state.generation
        try:
            multi_monitor, locked = await self._resolve_start_flags(multi_monitor, locked)
            window_ids, multi = await self._controller.start_session(multi_monitor)
        except WindowCreateError as e:
            logger.error("%s Screensaver did not start: %s", TAG_SESSION, e)
            if self._state.generation == generation:
                self._state.abort_starting()
            return False
        except Exception:
            if self._state.generation == generation:
                self._state.abort_starting()
            raise

        if self._state.generation != generation or self._state.phase is not SessionPhase.STARTING:
            # Unlocked, stopped or replaced while the windows were opening.
            logger.info(
                "%s Session changed during start, closing %s", TAG_SESSION, list(window_ids)
            )
            await self._controller.close_windows(window_ids)
            return False

        if multi:
            self._state.begin_multi(window_ids, locked)
        else:
            self._state.begin_single(window_ids[0], locked)

        await self._broadcast_started(window_ids, locked, multi)
        await self._menu.sync()
        return True

    async def _broadcast_started(
        self, window_ids: Tuple[WindowId, ...], locked: bool, multi: bool
    ) -> None:
        message = {
            "type": MessageType.SCREENSAVER_STARTED,
            "windowIds": list(window_ids),
            "locked": locked,
            "multiMonitor": multi,
        }
        try:
            await self._messages.broadcast(message)
        except MessageDeliveryError as e:
            logger.debug("Session-started notice not delivered: %s", e)

    async def adopt_session(self, notice: SessionStartedNotice) -> None:
        """Take over a session a page reports it has opened.

        Adopting bumps the generation, so a start still creating windows
        closes them instead of overwriting this session.
        """
        if self._state.phase is SessionPhase.STARTING:
            logger.info("%s Adopting reported session over an in-flight start", TAG_SESSION)
        if notice.multi_monitor:
            self._state.begin_multi(notice.window_ids, notice.locked)
        else:
            self._state.begin_single(notice.window_ids[0], notice.locked)
        await self._menu.sync()

    async def unlock(self) -> None:
        """Close every session window and return to idle."""
        logger.info("%s Unlock requested", TAG_SESSION)
        await self._controller.stop_all()
        await self._menu.sync()
