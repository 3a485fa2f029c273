"""
Action menu synchronizer.

Builds the tray/action menu from the preset catalog, the persisted default
preset and the session state, and pushes it to the MenuHost as a full
rebuild: every pass removes all nodes and recreates the tree. Overlapping
rebuilds are not serialized; each one reads its inputs when it runs and
the last to finish wins.

Menu layout:

    Start Screensaver
    ---
    Settings
    About
    ---
    Quick Start            > presets (starts a session with the preset)
    ---
    Set Default Preset     > presets, the current default checked
    ---                      (only while a session is active)
    Change Running Preset  > presets (swaps the running session's preset)

Each preset submenu lists built-ins, a divider and the custom presets
(divider omitted without customs), a divider, then the two random entries.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from core.host import (
    MenuHost,
    MenuNode,
    MenuNodeKind,
    PersistentStore,
    StorageArea,
    StorageKeys,
)
from core.logging.logger import get_logger, is_verbose_logging
from core.logging.tags import TAG_MENU
from core.presets import PresetCatalog, PresetDescriptor, PresetListing
from engine.session_state import SessionState

logger = get_logger(__name__)


class MenuActionKind(Enum):
    START = "start"
    SETTINGS = "settings"
    ABOUT = "about"
    QUICK_START = "quick_start"
    SET_DEFAULT = "set_default"
    CHANGE_RUNNING = "change_running"


PRESET_GROUPS = (
    MenuActionKind.QUICK_START,
    MenuActionKind.SET_DEFAULT,
    MenuActionKind.CHANGE_RUNNING,
)

_GROUP_TITLES = {
    MenuActionKind.QUICK_START: "Quick Start",
    MenuActionKind.SET_DEFAULT: "Set Default Preset",
    MenuActionKind.CHANGE_RUNNING: "Change Running Preset",
}


@dataclass(frozen=True)
class MenuAction:
    """What a clicked menu node means: an action kind plus, for preset groups, the preset."""
    kind: MenuActionKind
    preset_id: Optional[str] = None


@dataclass
class MenuLayout:
    """Ordered nodes of one menu tree plus the click registry for its action nodes."""
    nodes: List[MenuNode] = field(default_factory=list)
    actions: Dict[str, MenuAction] = field(default_factory=dict)

    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def children_of(self, parent_id: Optional[str]) -> List[MenuNode]:
        return [node for node in self.nodes if node.parent_id == parent_id]


class _LayoutBuilder:
    def __init__(self) -> None:
        self.layout = MenuLayout()
        self._separators = 0

    def action(
        self,
        node_id: str,
        title: str,
        action: MenuAction,
        parent_id: Optional[str] = None,
        checked: Optional[bool] = None,
    ) -> None:
        self.layout.nodes.append(
            MenuNode(node_id, title, MenuNodeKind.ACTION, parent_id, checked)
        )
        self.layout.actions[node_id] = action

    def separator(self, parent_id: Optional[str] = None) -> None:
        self._separators += 1
        self.layout.nodes.append(
            MenuNode(f"separator-{self._separators}", "", MenuNodeKind.SEPARATOR, parent_id)
        )

    def submenu(self, node_id: str, title: str) -> None:
        self.layout.nodes.append(MenuNode(node_id, title, MenuNodeKind.SUBMENU))


def _preset_group(
    builder: _LayoutBuilder,
    kind: MenuActionKind,
    listing: PresetListing,
    default_id: Optional[str] = None,
) -> None:
    group_id = kind.value
    builder.submenu(group_id, _GROUP_TITLES[kind])

    def add(preset: PresetDescriptor) -> None:
        checked = (preset.id == default_id) if kind is MenuActionKind.SET_DEFAULT else None
        builder.action(
            f"{group_id}:{preset.id}",
            preset.name,
            MenuAction(kind, preset.id),
            parent_id=group_id,
            checked=checked,
        )

    for preset in listing.builtins:
        add(preset)
    if listing.customs:
        builder.separator(group_id)
        for preset in listing.customs:
            add(preset)
    builder.separator(group_id)
    for preset in listing.randoms:
        add(preset)


def build_menu(
    listing: PresetListing,
    default_id: Optional[str],
    session_active: bool,
) -> MenuLayout:
    """Build the full menu tree for the given inputs. Pure and deterministic."""
    builder = _LayoutBuilder()

    builder.action("start", "Start Screensaver", MenuAction(MenuActionKind.START))
    builder.separator()
    builder.action("settings", "Settings", MenuAction(MenuActionKind.SETTINGS))
    builder.action("about", "About", MenuAction(MenuActionKind.ABOUT))
    builder.separator()
    _preset_group(builder, MenuActionKind.QUICK_START, listing)
    builder.separator()
    _preset_group(builder, MenuActionKind.SET_DEFAULT, listing, default_id)
    if session_active:
        builder.separator()
        _preset_group(builder, MenuActionKind.CHANGE_RUNNING, listing)

    return builder.layout


class ActionMenuSynchronizer:
    """Keeps the host menu in sync with presets and session state."""

    def __init__(
        self,
        host: MenuHost,
        catalog: PresetCatalog,
        store: PersistentStore,
        state: SessionState,
    ) -> None:
        self._host = host
        self._catalog = catalog
        self._store = store
        self._state = state
        self._layout = MenuLayout()
        self._rebuilds = 0

    @property
    def layout(self) -> MenuLayout:
        """Layout of the most recently completed rebuild."""
        return self._layout

    @property
    def rebuild_count(self) -> int:
        return self._rebuilds

    def action_for(self, node_id: str) -> Optional[MenuAction]:
        return self._layout.actions.get(node_id)

    async def _read_default(self) -> Optional[str]:
        stored = await self._store.get(StorageArea.LOCAL, [StorageKeys.DEFAULT_PRESET])
        value = stored.get(StorageKeys.DEFAULT_PRESET)
        return value if isinstance(value, str) and value else None

    async def sync(self) -> MenuLayout:
        """Rebuild the whole menu from current inputs.

        A node the host refuses is logged and skipped; the rest of the
        tree is still created.
        """
        listing = await self._catalog.list_presets()
        default_id = await self._read_default()
        layout = build_menu(listing, default_id, self._state.is_active())

        await self._host.remove_all()
        failures = await self._create_nodes(layout.nodes)

        self._layout = layout
        self._rebuilds += 1
        logger.debug(
            "%s Menu rebuilt: %d nodes (%d failed, active=%s, default=%s)",
            TAG_MENU, len(layout.nodes), failures, self._state.is_active(), default_id,
        )
        if is_verbose_logging():
            logger.debug("%s Menu nodes: %s", TAG_MENU, layout.node_ids())
        return layout

    async def _create_nodes(self, nodes: Sequence[MenuNode]) -> int:
        failures = 0
        for node in nodes:
            try:
                await self._host.create(node)
            except Exception as e:
                failures += 1
                logger.error("%s Failed to create menu node %s: %s", TAG_MENU, node.id, e)
        return failures
