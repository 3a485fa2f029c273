"""
Qt window host and screensaver window tests (offscreen platform).
"""
import pytest
from PySide6.QtCore import Qt

from core.host import DisplayBounds, StorageArea, StorageKeys, WindowCloseError, WindowRequest
from core.password import hash_password
from rendering.screensaver_window import ScreensaverWindow
from rendering.window_host import QtWindowHost
from utils.monitors import bounds_from_rect, get_display_layout, rect_from_bounds

pytestmark = pytest.mark.qt

URL = "gradia://screensaver"


@pytest.fixture
def window_host(qt_app, settings_manager, hub):
    host = QtWindowHost(settings_manager, hub)
    yield host
    host.close_all()


class TestMonitors:
    def test_layout_lists_screens(self, qt_app):
        layout = get_display_layout()
        assert layout is not None
        assert len(layout) >= 1
        assert all(b.width > 0 and b.height > 0 for b in layout)

    def test_rect_round_trip(self):
        bounds = DisplayBounds(-1280, 0, 1280, 1024)
        assert bounds_from_rect(rect_from_bounds(bounds)) == bounds


class TestQtWindowHost:
    async def test_create_assigns_increasing_ids(self, window_host):
        first = await window_host.create(WindowRequest(URL, fullscreen=True))
        second = await window_host.create(WindowRequest(URL, fullscreen=True))

        assert second > first
        assert window_host.open_window_ids == [first, second]
        assert window_host.window(first).surface_url == URL

    async def test_bounded_window_uses_display_geometry(self, window_host):
        bounds = DisplayBounds(10, 20, 640, 480)

        window_id = await window_host.create(WindowRequest(URL, bounds=bounds))

        geometry = window_host.window(window_id).geometry()
        assert (geometry.width(), geometry.height()) == (640, 480)

    async def test_remove_closes_and_reports(self, window_host):
        removed = []
        window_host.on_removed(removed.append)
        window_id = await window_host.create(WindowRequest(URL, fullscreen=True))

        await window_host.remove(window_id)

        assert removed == [window_id]
        assert window_host.open_window_ids == []

    async def test_remove_unknown_window_raises(self, window_host):
        with pytest.raises(WindowCloseError):
            await window_host.remove(404)

    async def test_user_close_is_reported_once(self, window_host):
        removed = []
        window_host.on_removed(removed.append)
        window_id = await window_host.create(WindowRequest(URL, fullscreen=True))

        window_host.window(window_id).close()

        assert removed == [window_id]

    async def test_displays_come_from_qt(self, window_host):
        displays = await window_host.get_displays()
        assert displays == get_display_layout()


class TestScreensaverWindow:
    @pytest.fixture
    def window(self, qtbot, settings_manager, hub):
        w = ScreensaverWindow(1, settings_manager, hub, surface_url=URL)
        w.setAttribute(Qt.WidgetAttribute.WA_DeleteOnClose, False)
        qtbot.addWidget(w)
        w.show()
        return w

    def test_shows_selected_then_default_preset(self, qtbot, settings_manager, hub):
        settings_manager.set(StorageKeys.DEFAULT_PRESET, "mint")
        w = ScreensaverWindow(2, settings_manager, hub)
        qtbot.addWidget(w)
        assert w.preset_name == "Mint"

        settings_manager.set(StorageKeys.SELECTED_PRESET, "nightly-rose")

        assert w.preset_name == "Nightly Rose"

    def test_custom_preset_name(self, qtbot, settings_manager, hub):
        settings_manager.set(
            StorageKeys.CUSTOM_PRESETS, [{"id": "custom-7", "name": "Lagoon"}], area=StorageArea.SYNC
        )
        settings_manager.set(StorageKeys.SELECTED_PRESET, "custom-7")
        w = ScreensaverWindow(3, settings_manager, hub)
        qtbot.addWidget(w)
        assert w.preset_name == "Lagoon"

    def test_escape_closes_unlocked_window(self, qtbot, window):
        with qtbot.waitSignal(window.closed, timeout=1000) as blocker:
            qtbot.keyClick(window, Qt.Key.Key_Escape)
        assert blocker.args == [1]

    def test_locked_window_needs_password(self, qtbot, window, settings_manager, hub, monkeypatch):
        settings_manager.set_many(StorageArea.LOCAL, {
            StorageKeys.PASSWORD_PROTECTION: True,
            StorageKeys.PASSWORD_HASH: hash_password("letmein"),
        })
        inbox = []
        hub.on_message(inbox.append)

        monkeypatch.setattr(window, "_prompt_password", lambda: "wrong")
        assert window.request_exit() is False
        assert window.isVisible()
        assert inbox == []

        monkeypatch.setattr(window, "_prompt_password", lambda: " letmein ")
        with qtbot.waitSignal(window.closed, timeout=1000):
            assert window.request_exit() is True
        assert inbox == [{"type": "UNLOCK_SCREENSAVER"}]

    def test_cancelled_prompt_keeps_window(self, window, settings_manager, monkeypatch):
        settings_manager.set_many(StorageArea.LOCAL, {
            StorageKeys.PASSWORD_PROTECTION: True,
            StorageKeys.PASSWORD_HASH: hash_password("letmein"),
        })
        monkeypatch.setattr(window, "_prompt_password", lambda: None)

        assert window.request_exit() is False
        assert window.isVisible()

    async def test_unlocked_session_notice_skips_prompt(self, qtbot, window, settings_manager, hub):
        settings_manager.set_many(StorageArea.LOCAL, {
            StorageKeys.PASSWORD_PROTECTION: True,
            StorageKeys.PASSWORD_HASH: hash_password("letmein"),
        })

        await hub.broadcast({"type": "SCREENSAVER_STARTED", "windowIds": [1], "locked": False})

        assert window.session_locked is False
        with qtbot.waitSignal(window.closed, timeout=1000):
            assert window.request_exit() is True

    async def test_locked_session_without_password_unlocks_on_exit(self, qtbot, window, hub):
        inbox = []
        hub.on_message(inbox.append)
        await hub.broadcast({"type": "SCREENSAVER_STARTED", "windowIds": [1], "locked": True})

        with qtbot.waitSignal(window.closed, timeout=1000):
            assert window.request_exit() is True
        assert inbox == [{"type": "UNLOCK_SCREENSAVER"}]

    async def test_locked_session_prompts_after_protection_turned_off(
        self, window, settings_manager, hub, monkeypatch
    ):
        settings_manager.set(StorageKeys.PASSWORD_HASH, hash_password("letmein"))
        await hub.broadcast({"type": "SCREENSAVER_STARTED", "windowIds": [1], "locked": True})
        settings_manager.set(StorageKeys.PASSWORD_PROTECTION, False)
        prompts = []
        monkeypatch.setattr(window, "_prompt_password", lambda: prompts.append(1))

        assert window.request_exit() is False
        assert prompts == [1]
        assert window.isVisible()
