"""
Preset catalog for Gradia.

Exposes the ordered list of gradient presets the menus enumerate:
built-ins first, then the user's custom presets (stored in the ``sync``
area under ``customGradientPresets`` by the preset editor), then the two
synthetic random choices. The full preset model (shader props, canvas
settings) belongs to the rendering surface and the editor; the catalog
only reads ``id`` and ``name`` from each stored entry.

## Adding New Built-in Presets

Append a PresetDescriptor to BUILTIN_PRESETS. Order here is the order shown
in every preset submenu.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from core.host import PersistentStore, StorageArea, StorageChange, StorageKeys
from core.logging.logger import get_logger

logger = get_logger(__name__)

CUSTOM_PREFIX = "custom-"
RANDOM_PRESET_ID = "random-preset"
RANDOM_FULL_ID = "random-full"


@dataclass(frozen=True)
class PresetDescriptor:
    """Identity of one preset as shown in menus."""
    id: str
    name: str

    @property
    def is_custom(self) -> bool:
        return is_custom_preset(self.id)


BUILTIN_PRESETS: Tuple[PresetDescriptor, ...] = (
    PresetDescriptor("halo", "Halo"),
    PresetDescriptor("pensive", "Pensive"),
    PresetDescriptor("mint", "Mint"),
    PresetDescriptor("interstella", "Interstella"),
    PresetDescriptor("nightly-rose", "Nightly Rose"),
    PresetDescriptor("sunset", "Sunset"),
    PresetDescriptor("aurora", "Aurora"),
)

# Random (Preset) picks one of the existing presets, Random (Full) generates
# a fresh random gradient. Both are resolved by the rendering surface.
RANDOM_PRESETS: Tuple[PresetDescriptor, ...] = (
    PresetDescriptor(RANDOM_PRESET_ID, "Random (Preset)"),
    PresetDescriptor(RANDOM_FULL_ID, "Random (Full)"),
)


def is_custom_preset(preset_id: str) -> bool:
    """Check if a preset ID is a custom preset."""
    return preset_id.startswith(CUSTOM_PREFIX)


def parse_custom_presets(raw: Any) -> List[PresetDescriptor]:
    """Extract descriptors from the stored custom preset list.

    Entries without a non-empty string ``id`` and ``name`` are skipped;
    anything that is not a list yields no presets. Duplicate ids keep the
    first occurrence.
    """
    if not isinstance(raw, list):
        if raw is not None:
            logger.debug("Ignoring custom presets of type %s", type(raw).__name__)
        return []

    presets: List[PresetDescriptor] = []
    seen = set()
    for entry in raw:
        if not isinstance(entry, Mapping):
            continue
        preset_id = entry.get("id")
        name = entry.get("name")
        if not isinstance(preset_id, str) or not preset_id:
            continue
        if not isinstance(name, str) or not name:
            continue
        if preset_id in seen:
            continue
        seen.add(preset_id)
        presets.append(PresetDescriptor(preset_id, name))
    return presets


@dataclass(frozen=True)
class PresetListing:
    """One consistent read of the catalog, grouped for menu rendering."""
    builtins: Tuple[PresetDescriptor, ...]
    customs: Tuple[PresetDescriptor, ...]
    randoms: Tuple[PresetDescriptor, ...] = RANDOM_PRESETS

    def all(self) -> List[PresetDescriptor]:
        return [*self.builtins, *self.customs, *self.randoms]

    def find(self, preset_id: str) -> Optional[PresetDescriptor]:
        for preset in self.all():
            if preset.id == preset_id:
                return preset
        return None


class PresetCatalog:
    """Reads the preset catalog from the persistent store.

    Every call re-reads the store; the catalog keeps no cache because other
    pages edit custom presets at any time.
    """

    def __init__(
        self,
        store: PersistentStore,
        builtins: Iterable[PresetDescriptor] = BUILTIN_PRESETS,
    ) -> None:
        self._store = store
        self._builtins = tuple(builtins)

    async def list_presets(self) -> PresetListing:
        """Return built-in, custom and random presets in menu order."""
        stored = await self._store.get(StorageArea.SYNC, [StorageKeys.CUSTOM_PRESETS])
        customs = parse_custom_presets(stored.get(StorageKeys.CUSTOM_PRESETS))
        # Built-in ids win over a custom entry that reuses one.
        builtin_ids = {p.id for p in self._builtins}
        customs = [p for p in customs if p.id not in builtin_ids]
        return PresetListing(self._builtins, tuple(customs))

    @staticmethod
    def is_catalog_change(area: str, diff: Dict[str, StorageChange]) -> bool:
        """True when a store change notification touches the custom presets."""
        return area == StorageArea.SYNC and StorageKeys.CUSTOM_PRESETS in diff
