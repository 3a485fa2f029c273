"""
Session state for the background orchestrator.

One SessionState instance is owned by the orchestrator and handed by
reference to the window controller and the dispatcher. It is never
persisted: a restarted process always starts idle.

Phases:
    IDLE -> STARTING -> ACTIVE -> IDLE
    STARTING -> IDLE when window creation fails

``locked`` is orthogonal to the phase and applies to the whole session
(every monitor window in multi-monitor mode).
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterable, Optional, Tuple

from core.host import WindowId
from core.logging.logger import get_logger
from core.logging.tags import TAG_SESSION

logger = get_logger(__name__)


class SessionPhase(Enum):
    IDLE = auto()
    STARTING = auto()
    ACTIVE = auto()


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable copy of the session fields, for logging and tests."""
    phase: SessionPhase
    locked: bool
    primary_window_id: Optional[WindowId]
    monitor_window_ids: Tuple[WindowId, ...]
    generation: int

    @property
    def is_multi(self) -> bool:
        return bool(self.monitor_window_ids)


class SessionState:
    """Authoritative record of the running screensaver session.

    All mutation happens on the orchestrator's event loop; handlers are never
    interleaved between two statements, so no lock is needed. Each begin/reset
    bumps ``generation`` so a handler that awaited can tell whether the session
    it started from is still the current one.
    """

    def __init__(self) -> None:
        self.locked: bool = False
        self.primary_window_id: Optional[WindowId] = None
        self.monitor_window_ids: Tuple[WindowId, ...] = ()
        self.phase: SessionPhase = SessionPhase.IDLE
        self.generation: int = 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_active(self) -> bool:
        return self.primary_window_id is not None or bool(self.monitor_window_ids)

    def is_multi(self) -> bool:
        return bool(self.monitor_window_ids)

    def is_busy(self) -> bool:
        """True while a session is starting or running."""
        return self.phase is SessionPhase.STARTING or self.is_active()

    def is_tracked(self, window_id: WindowId) -> bool:
        return window_id == self.primary_window_id or window_id in self.monitor_window_ids

    def tracked_window_ids(self) -> Tuple[WindowId, ...]:
        if self.monitor_window_ids:
            return self.monitor_window_ids
        if self.primary_window_id is not None:
            return (self.primary_window_id,)
        return ()

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            phase=self.phase,
            locked=self.locked,
            primary_window_id=self.primary_window_id,
            monitor_window_ids=self.monitor_window_ids,
            generation=self.generation,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def mark_starting(self) -> None:
        """Enter STARTING. Only valid from IDLE."""
        if self.phase is not SessionPhase.IDLE:
            raise RuntimeError(f"Cannot start a session from {self.phase.name}")
        self.phase = SessionPhase.STARTING
        logger.debug("%s Session starting", TAG_SESSION)

    def abort_starting(self) -> None:
        """Return to IDLE after a failed start, unless a session was adopted meanwhile."""
        if self.phase is SessionPhase.STARTING:
            self.phase = SessionPhase.IDLE
            logger.debug("%s Session start aborted", TAG_SESSION)

    def begin_single(self, window_id: WindowId, locked: bool = False) -> None:
        self.primary_window_id = window_id
        self.monitor_window_ids = ()
        self.locked = bool(locked)
        self.phase = SessionPhase.ACTIVE
        self.generation += 1
        logger.info(
            "%s Single-display session active (window=%s, locked=%s)",
            TAG_SESSION, window_id, self.locked,
        )

    def begin_multi(self, window_ids: Iterable[WindowId], locked: bool = False) -> None:
        # Ordered de-duplication
        ids = tuple(dict.fromkeys(window_ids))
        if not ids:
            raise ValueError("begin_multi requires at least one window id")
        self.monitor_window_ids = ids
        self.primary_window_id = None
        self.locked = bool(locked)
        self.phase = SessionPhase.ACTIVE
        self.generation += 1
        logger.info(
            "%s Multi-display session active (windows=%s, locked=%s)",
            TAG_SESSION, list(ids), self.locked,
        )

    def supersede(self) -> None:
        """Invalidate work started under the current generation.

        Used by explicit teardown so an in-flight lock reopen that began
        before it sees its result as stale, even when the session was
        already idle.
        """
        self.generation += 1

    def reset(self) -> None:
        """Clear all fields. No-op when already idle."""
        if (
            self.phase is SessionPhase.IDLE
            and not self.is_active()
            and not self.locked
        ):
            return
        self.locked = False
        self.primary_window_id = None
        self.monitor_window_ids = ()
        self.phase = SessionPhase.IDLE
        self.generation += 1
        logger.info("%s Session reset to idle", TAG_SESSION)
