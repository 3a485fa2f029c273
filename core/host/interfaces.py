"""
Host collaborator interfaces for the background orchestrator.

The orchestrator never talks to Qt (or any other toolkit) directly. It is
handed objects implementing these interfaces; the Qt application wires the
adapters in ``rendering/`` and ``ui/``, tests wire recording fakes.

All ``async`` methods are suspension points: other event handlers may run
while one of them is in flight.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

WindowId = int


class StorageArea:
    """Persistent store partitions."""
    LOCAL = "local"  # device-only, orchestrator-owned keys
    SYNC = "sync"    # preset catalog, read-only for the orchestrator


class StorageKeys:
    """Keys the orchestrator reads or writes."""
    SELECTED_PRESET = "selectedGradient"
    DEFAULT_PRESET = "defaultGradient"
    PASSWORD_HASH = "screensaverPasswordHash"
    PASSWORD_PROTECTION = "screensaverPasswordProtectionEnabled"
    MULTI_MONITOR = "multiMonitorEnabled"
    CUSTOM_PRESETS = "customGradientPresets"


@dataclass(frozen=True)
class DisplayBounds:
    """Position and size of one display, in virtual desktop coordinates."""
    left: int
    top: int
    width: int
    height: int


@dataclass(frozen=True)
class WindowRequest:
    """Creation request for one screensaver window."""
    url: str
    bounds: Optional[DisplayBounds] = None
    fullscreen: bool = False


@dataclass(frozen=True)
class StorageChange:
    """Old/new value pair for one changed store key."""
    old_value: Any = None
    new_value: Any = None


class MenuNodeKind(Enum):
    ACTION = "action"
    SEPARATOR = "separator"
    SUBMENU = "submenu"


@dataclass(frozen=True)
class MenuNode:
    """One node of the action menu tree."""
    id: str
    title: str = ""
    kind: MenuNodeKind = MenuNodeKind.ACTION
    parent_id: Optional[str] = None
    checked: Optional[bool] = None


class WindowHost(ABC):
    """Creates, closes and reports the closing of top-level windows."""

    @abstractmethod
    async def create(self, request: WindowRequest) -> WindowId:
        """Create a window and return its host-assigned id."""

    @abstractmethod
    async def remove(self, window_id: WindowId) -> None:
        """Close a window. Raises WindowCloseError when it no longer exists."""

    @abstractmethod
    async def get_displays(self) -> Optional[List[DisplayBounds]]:
        """Return the display layout, or None when enumeration is unavailable."""

    @abstractmethod
    def on_removed(self, callback: Callable[[WindowId], None]) -> None:
        """Register a callback fired whenever any window has closed."""


class MenuHost(ABC):
    """Hierarchical action menu (tray menu, context menu...)."""

    @abstractmethod
    async def remove_all(self) -> None:
        ...

    @abstractmethod
    async def create(self, node: MenuNode) -> None:
        """Create one node. Raises MenuCreateError when refused."""

    @abstractmethod
    def on_clicked(self, callback: Callable[[str], None]) -> None:
        ...


class CommandHost(ABC):
    """Source of named commands bound to user hot-keys."""

    @abstractmethod
    def on_command(self, callback: Callable[[str], None]) -> None:
        ...


class MessageHub(ABC):
    """Process-internal message passing between pages and the orchestrator."""

    @abstractmethod
    async def broadcast(self, message: Mapping[str, Any]) -> None:
        """Send to every page. Raises MessageDeliveryError with no listener."""

    @abstractmethod
    def on_message(self, callback: Callable[[Any], None]) -> None:
        """Register for inbound messages. Payloads are untrusted."""


class PersistentStore(ABC):
    """Key-value store shared with other pages, with change notifications."""

    @abstractmethod
    async def get(self, area: str, keys: Iterable[str]) -> Dict[str, Any]:
        """Return the stored values for ``keys``; missing keys are omitted."""

    @abstractmethod
    async def set(self, area: str, values: Mapping[str, Any]) -> None:
        ...

    @abstractmethod
    def on_changed(self, callback: Callable[[str, Dict[str, StorageChange]], None]) -> None:
        ...


class PageHost(ABC):
    """Opens presentational pages (settings, about)."""

    @abstractmethod
    async def open_page(self, name: str) -> None:
        ...
