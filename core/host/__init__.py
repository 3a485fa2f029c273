"""Host collaborator interfaces and boundary errors."""

from .errors import (
    HostError,
    MenuCreateError,
    MessageDeliveryError,
    WindowCloseError,
    WindowCreateError,
)
from .interfaces import (
    CommandHost,
    DisplayBounds,
    MenuHost,
    MenuNode,
    MenuNodeKind,
    MessageHub,
    PageHost,
    PersistentStore,
    StorageArea,
    StorageChange,
    StorageKeys,
    WindowHost,
    WindowId,
    WindowRequest,
)

__all__ = [
    'HostError', 'MenuCreateError', 'MessageDeliveryError', 'WindowCloseError',
    'WindowCreateError', 'CommandHost', 'DisplayBounds', 'MenuHost', 'MenuNode',
    'MenuNodeKind', 'MessageHub', 'PageHost', 'PersistentStore', 'StorageArea',
    'StorageChange', 'StorageKeys', 'WindowHost', 'WindowId', 'WindowRequest',
]
