"""Standard logging tags for consistent log filtering.

Usage:
    from core.logging.tags import TAG_SESSION
    logger.info("%s Session started", TAG_SESSION)
"""

TAG_SESSION = "[SESSION]"
"""Session state transitions (start, adopt, reset)."""

TAG_WINDOW = "[WINDOW]"
"""Window creation, closing and close reconciliation."""

TAG_LOCK = "[LOCK]"
"""Password lock enforcement (anchor reopen)."""

TAG_MENU = "[MENU]"
"""Action menu rebuilds."""

TAG_FALLBACK = "[FALLBACK]"
"""Any degraded path (single window instead of per-display windows...)."""
