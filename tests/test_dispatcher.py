"""
Tests for message decoding and the command dispatcher.
"""
import asyncio

import pytest

from core.host import DisplayBounds, StorageArea, StorageChange, StorageKeys
from core.presets import PresetCatalog
from engine.dispatcher import (
    CommandDispatcher,
    SessionStartedNotice,
    StartSessionRequest,
    UnlockRequest,
    decode_message,
)
from engine.menu_sync import ActionMenuSynchronizer, MenuAction, MenuActionKind
from engine.session_state import SessionPhase, SessionState
from engine.window_controller import CloseOutcome, WindowLifecycleController
from fakes import FakeMenuHost, FakeMessageHub, FakePageHost, FakeStore, FakeWindowHost

LEFT = DisplayBounds(0, 0, 1920, 1080)
RIGHT = DisplayBounds(1920, 0, 1920, 1080)
HASHED = {StorageKeys.PASSWORD_HASH: "abc123"}


class TestDecodeMessage:
    def test_unlock(self):
        assert decode_message({"type": "UNLOCK_SCREENSAVER"}) == UnlockRequest()

    def test_start_with_and_without_flags(self):
        assert decode_message({"type": "START_SCREENSAVER"}) == StartSessionRequest()
        assert decode_message(
            {"type": "START_SCREENSAVER", "multiMonitor": True, "locked": False}
        ) == StartSessionRequest(multi_monitor=True, locked=False)

    def test_started_with_id_list(self):
        notice = decode_message(
            {"type": "SCREENSAVER_STARTED", "windowIds": [3, 4, 3], "locked": True}
        )
        assert notice == SessionStartedNotice((3, 4), True, True)

    def test_started_with_single_id(self):
        notice = decode_message({"type": "SCREENSAVER_STARTED", "windowId": 9})
        assert notice == SessionStartedNotice((9,), False, False)

    @pytest.mark.parametrize("raw", [
        None,
        "START_SCREENSAVER",
        [],
        {},
        {"type": 3},
        {"type": "SOMETHING_ELSE"},
        {"type": "START_SCREENSAVER", "locked": "yes"},
        {"type": "SCREENSAVER_STARTED"},
        {"type": "SCREENSAVER_STARTED", "windowIds": []},
        {"type": "SCREENSAVER_STARTED", "windowIds": ["1"]},
        {"type": "SCREENSAVER_STARTED", "windowIds": [True]},
        {"type": "SCREENSAVER_STARTED", "windowIds": [1], "multiMonitor": 1},
    ])
    def test_malformed_messages_are_rejected(self, raw):
        assert decode_message(raw) is None


class Harness:
    """Dispatcher wired to recording fakes."""

    def __init__(self, displays=None, local=None, sync=None, listeners=1):
        self.windows = FakeWindowHost(displays=displays)
        self.menu_host = FakeMenuHost()
        self.store = FakeStore(local=local, sync=sync)
        self.messages = FakeMessageHub(listeners=listeners)
        self.pages = FakePageHost()
        self.state = SessionState()
        self.controller = WindowLifecycleController(self.windows, self.state)
        self.menu = ActionMenuSynchronizer(
            self.menu_host, PresetCatalog(self.store), self.store, self.state
        )
        self.dispatcher = CommandDispatcher(
            self.state, self.controller, self.menu, self.store, self.messages, self.pages
        )


class TestStartSession:
    async def test_multi_monitor_start_broadcasts_one_notice(self):
        h = Harness(displays=[LEFT, RIGHT], local=HASHED)

        started = await h.dispatcher.start_session(multi_monitor=True, locked=True)

        assert started is True
        assert len(h.state.monitor_window_ids) == 2
        assert h.state.locked is True
        assert h.messages.broadcasts == [{
            "type": "SCREENSAVER_STARTED",
            "windowIds": list(h.state.monitor_window_ids),
            "locked": True,
            "multiMonitor": True,
        }]
        assert "change_running" in h.menu_host.ids()

    async def test_stored_preferences_resolve_flags(self):
        h = Harness(displays=[LEFT, RIGHT], local={
            StorageKeys.MULTI_MONITOR: True,
            StorageKeys.PASSWORD_PROTECTION: True,
            StorageKeys.PASSWORD_HASH: "abc123",
        })

        await h.dispatcher.start_session()

        assert h.state.is_multi()
        assert h.state.locked is True

    async def test_protection_without_hash_is_not_locked(self):
        h = Harness(local={
            StorageKeys.PASSWORD_PROTECTION: True,
            StorageKeys.PASSWORD_HASH: "",
        })

        await h.dispatcher.start_session()

        assert h.state.primary_window_id is not None
        assert h.state.locked is False

    async def test_start_ignored_while_active(self):
        h = Harness(local=HASHED)
        await h.dispatcher.start_session(locked=True)
        created = len(h.windows.created)

        started = await h.dispatcher.start_session()

        assert started is False
        assert len(h.windows.created) == created
        assert h.state.locked is True

    async def test_creation_failure_returns_to_idle(self):
        h = Harness()
        h.windows.fail_all = True

        started = await h.dispatcher.start_session()

        assert started is False
        assert h.state.phase is SessionPhase.IDLE
        assert not h.state.is_active()
        assert h.messages.broadcasts == []

    async def test_undelivered_notice_is_not_an_error(self):
        h = Harness(listeners=0)

        assert await h.dispatcher.start_session() is True
        assert h.state.is_active()
        assert h.menu.rebuild_count == 1


class TestLockRequiresPassword:
    async def test_explicit_lock_without_hash_starts_unlocked(self):
        h = Harness()

        await h.dispatcher.start_session(locked=True)

        assert h.state.locked is False
        assert h.messages.broadcasts[0]["locked"] is False

    async def test_anchor_close_without_hash_ends_session(self):
        h = Harness()
        await h.dispatcher.on_message({"type": "START_SCREENSAVER", "locked": True})
        anchor = h.state.primary_window_id

        h.windows.user_closes(anchor)
        outcome = await h.dispatcher.on_window_removed(anchor)

        assert outcome is CloseOutcome.SINGLE_CLEARED
        assert len(h.windows.created) == 1
        assert not h.state.is_active()


class TestStartRaces:
    async def test_unlock_during_start_closes_late_windows(self):
        h = Harness()
        h.windows.create_gate = asyncio.Event()

        first = asyncio.ensure_future(h.dispatcher.start_session())
        await asyncio.sleep(0)
        assert h.state.phase is SessionPhase.STARTING
        # Unlock while the first start is still creating its window
        await h.dispatcher.unlock()
        second = asyncio.ensure_future(h.dispatcher.start_session())
        await asyncio.sleep(0)
        h.windows.create_gate.set()

        assert await first is False
        assert await second is True
        assert set(h.windows.open) == set(h.state.tracked_window_ids())
        assert len(h.windows.open) == 1
        assert len(h.messages.broadcasts) == 1

    async def test_unlock_during_start_leaves_nothing_open(self):
        h = Harness()
        h.windows.create_gate = asyncio.Event()

        start = asyncio.ensure_future(h.dispatcher.start_session())
        await asyncio.sleep(0)
        await h.dispatcher.unlock()
        h.windows.create_gate.set()

        assert await start is False
        assert h.windows.open == {}
        assert h.state.phase is SessionPhase.IDLE
        assert not h.state.is_active()
        assert h.messages.broadcasts == []

    async def test_adopted_session_wins_over_inflight_start(self):
        h = Harness()
        h.windows.create_gate = asyncio.Event()

        start = asyncio.ensure_future(h.dispatcher.start_session())
        await asyncio.sleep(0)
        await h.dispatcher.on_message({"type": "SCREENSAVER_STARTED", "windowIds": [11]})
        h.windows.create_gate.set()

        assert await start is False
        assert h.state.primary_window_id == 11
        assert h.windows.open == {}
        assert h.windows.removed == [101]


class TestMessages:
    async def test_start_message(self):
        h = Harness(displays=[LEFT, RIGHT])
        await h.dispatcher.on_message(
            {"type": "START_SCREENSAVER", "multiMonitor": True, "locked": False}
        )
        assert len(h.state.monitor_window_ids) == 2

    async def test_unlock_closes_all_windows(self):
        h = Harness(displays=[LEFT, RIGHT], local=HASHED)
        await h.dispatcher.start_session(multi_monitor=True, locked=True)
        ids = h.state.monitor_window_ids

        await h.dispatcher.on_message({"type": "UNLOCK_SCREENSAVER"})

        assert sorted(h.windows.removed) == sorted(ids)
        assert not h.state.is_active()
        assert "change_running" not in h.menu_host.ids()

    async def test_session_started_is_adopted(self):
        h = Harness()
        await h.dispatcher.on_message(
            {"type": "SCREENSAVER_STARTED", "windowIds": [11, 12], "locked": True,
             "multiMonitor": True}
        )
        assert h.state.monitor_window_ids == (11, 12)
        assert h.state.locked is True
        assert h.menu.rebuild_count == 1

    async def test_malformed_message_changes_nothing(self):
        h = Harness()
        await h.dispatcher.on_message({"type": "START_SCREENSAVER", "locked": "please"})
        assert h.windows.created == []
        assert h.menu.rebuild_count == 0

    async def test_start_command(self):
        h = Harness()
        await h.dispatcher.on_command("start-screensaver")
        assert h.state.primary_window_id is not None

    async def test_unknown_command_is_ignored(self):
        h = Harness()
        await h.dispatcher.on_command("toggle-something")
        assert h.windows.created == []


class TestMenuActions:
    async def test_quick_start_persists_then_starts(self):
        h = Harness()
        await h.menu.sync()

        await h.dispatcher.on_menu_clicked("quick_start:mint")

        assert h.store.writes[0] == (StorageArea.LOCAL, {StorageKeys.SELECTED_PRESET: "mint"})
        assert h.state.is_active()

    async def test_set_default_persists_and_rebuilds(self):
        h = Harness(local={StorageKeys.DEFAULT_PRESET: "halo"})
        await h.menu.sync()

        await h.dispatcher.on_menu_clicked("set_default:aurora")

        assert h.store.areas[StorageArea.LOCAL][StorageKeys.DEFAULT_PRESET] == "aurora"
        assert h.menu_host.node("set_default:aurora").checked is True
        assert h.menu_host.node("set_default:halo").checked is False

    async def test_change_running_only_persists_selection(self):
        h = Harness()
        await h.dispatcher.start_session()
        created = len(h.windows.created)

        await h.dispatcher.on_menu_clicked("change_running:sunset")

        assert h.store.areas[StorageArea.LOCAL][StorageKeys.SELECTED_PRESET] == "sunset"
        assert len(h.windows.created) == created
        assert h.windows.removed == []

    async def test_change_running_without_session_is_ignored(self):
        h = Harness()
        await h.dispatcher.run_menu_action(MenuAction(MenuActionKind.CHANGE_RUNNING, "mint"))
        assert h.store.writes == []

    async def test_settings_and_about_open_pages(self):
        h = Harness()
        await h.menu.sync()

        await h.dispatcher.on_menu_clicked("settings")
        await h.dispatcher.on_menu_clicked("about")

        assert h.pages.opened == ["settings", "about"]

    async def test_unknown_click_is_ignored(self):
        h = Harness()
        await h.dispatcher.on_menu_clicked("quick_start:halo")
        assert h.windows.created == []


class TestReactions:
    async def test_window_removed_rebuilds_when_session_changes(self):
        h = Harness()
        await h.dispatcher.start_session(locked=False)
        rebuilds = h.menu.rebuild_count

        await h.dispatcher.on_window_removed(h.state.primary_window_id)

        assert not h.state.is_active()
        assert h.menu.rebuild_count == rebuilds + 1

    async def test_untracked_window_removed_does_not_rebuild(self):
        h = Harness()
        await h.dispatcher.on_window_removed(1234)
        assert h.menu.rebuild_count == 0

    async def test_catalog_change_rebuilds(self):
        h = Harness()
        await h.dispatcher.on_storage_changed(
            StorageArea.SYNC, {StorageKeys.CUSTOM_PRESETS: StorageChange([], [])}
        )
        assert h.menu.rebuild_count == 1

    async def test_default_change_rebuilds(self):
        h = Harness()
        await h.dispatcher.on_storage_changed(
            StorageArea.LOCAL, {StorageKeys.DEFAULT_PRESET: StorageChange(None, "mint")}
        )
        assert h.menu.rebuild_count == 1

    async def test_unrelated_change_does_not_rebuild(self):
        h = Harness()
        await h.dispatcher.on_storage_changed(
            StorageArea.LOCAL, {StorageKeys.SELECTED_PRESET: StorageChange(None, "mint")}
        )
        assert h.menu.rebuild_count == 0
