"""
Error types raised at the host boundary.

None of these are fatal to the background process. Callers decide whether
an error is logged (window/menu creation) or swallowed (close failures,
undelivered broadcasts).
"""


class HostError(Exception):
    """Base class for failures reported by a host collaborator."""


class WindowCreateError(HostError):
    """The host refused or failed to create a screensaver window."""


class WindowCloseError(HostError):
    """The host could not close a window (usually already closed)."""


class MenuCreateError(HostError):
    """The host refused to create a specific menu node."""


class MessageDeliveryError(HostError):
    """A broadcast runtime message reached no listener."""
