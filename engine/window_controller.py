"""
Window lifecycle controller.

Opens the screensaver window(s), tears them down, and reconciles the host's
"window closed" notifications against the session state:

- a multi-monitor member closed: every sibling closes and the session ends
- the locked single-display anchor closed: a replacement anchor opens
- the unlocked anchor closed: the session ends
- an untracked window closed: nothing happens

The session is always cleared *before* any window is closed from here, so
the close notifications our own removals trigger find nothing tracked and
fall into the last case.
"""
from __future__ import annotations

import asyncio
from enum import Enum
from typing import Optional, Sequence, Tuple

from core.host import (
    DisplayBounds,
    WindowCloseError,
    WindowCreateError,
    WindowHost,
    WindowId,
    WindowRequest,
)
from core.logging.logger import get_logger
from core.logging.tags import TAG_FALLBACK, TAG_LOCK, TAG_WINDOW
from engine.session_state import SessionPhase, SessionState

logger = get_logger(__name__)

DEFAULT_SURFACE_URL = "gradia://screensaver"


class CloseOutcome(Enum):
    """Classification result of one window-closed notification."""
    UNTRACKED = "untracked"
    MULTI_TEARDOWN = "multi_teardown"
    SINGLE_CLEARED = "single_cleared"
    LOCK_REOPENED = "lock_reopened"
    LOCK_REOPEN_FAILED = "lock_reopen_failed"
    LOCK_REOPEN_STALE = "lock_reopen_stale"

    @property
    def changed_session(self) -> bool:
        return self is not CloseOutcome.UNTRACKED


class WindowLifecycleController:
    """Creates and tears down screensaver windows for one SessionState."""

    def __init__(
        self,
        host: WindowHost,
        state: SessionState,
        surface_url: str = DEFAULT_SURFACE_URL,
    ) -> None:
        self._host = host
        self._state = state
        self._surface_url = surface_url

    @property
    def state(self) -> SessionState:
        return self._state

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def _create(self, request: WindowRequest) -> WindowId:
        try:
            return await self._host.create(request)
        except WindowCreateError:
            raise
        except Exception as e:
            raise WindowCreateError(str(e) or type(e).__name__) from e

    async def start_single(self) -> WindowId:
        """Open one full-screen window. Raises WindowCreateError.

        Does not touch the session; the caller adopts the id on success.
        """
        window_id = await self._create(
            WindowRequest(url=self._surface_url, fullscreen=True)
        )
        logger.info("%s Full-screen window created: %s", TAG_WINDOW, window_id)
        return window_id

    async def start_multi(self, layout: Sequence[DisplayBounds]) -> Tuple[WindowId, ...]:
        """Open one borderless window per display, concurrently.

        Individual failures are dropped. Returns the ids that were created,
        in display order. Raises WindowCreateError when none were.
        """
        if not layout:
            raise WindowCreateError("No displays to open windows on")

        requests = [
            WindowRequest(url=self._surface_url, bounds=bounds, fullscreen=False)
            for bounds in layout
        ]
        results = await asyncio.gather(
            *(self._create(request) for request in requests),
            return_exceptions=True,
        )

        window_ids = []
        for bounds, result in zip(layout, results):
            if isinstance(result, BaseException):
                logger.error(
                    "%s Failed to create window for display %s: %s",
                    TAG_WINDOW, bounds, result,
                )
                continue
            window_ids.append(result)

        if not window_ids:
            raise WindowCreateError(f"All {len(layout)} display windows failed to open")

        if len(window_ids) < len(layout):
            logger.warning(
                "%s Partial multi-monitor start: %d of %d windows created",
                TAG_WINDOW, len(window_ids), len(layout),
            )
        else:
            logger.info("%s Created %d display windows", TAG_WINDOW, len(window_ids))
        return tuple(window_ids)

    async def start_session(self, multi_monitor: bool) -> Tuple[Tuple[WindowId, ...], bool]:
        """Open windows for a new session.

        Returns:
            (window ids, multi) where ``multi`` tells whether the ids form a
            multi-monitor group. Falls back to a single window when display
            enumeration is unavailable.
        """
        if multi_monitor:
            layout = None
            try:
                layout = await self._host.get_displays()
            except Exception as e:
                logger.debug("Display enumeration failed: %s", e, exc_info=True)
            if layout is None:
                logger.warning(
                    "%s Display enumeration unavailable, opening a single window",
                    TAG_FALLBACK,
                )
            else:
                return await self.start_multi(layout), True

        return (await self.start_single(),), False

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    async def _close_quietly(self, window_id: WindowId) -> None:
        try:
            await self._host.remove(window_id)
        except WindowCloseError as e:
            logger.debug("%s Window %s already closed: %s", TAG_WINDOW, window_id, e)
        except Exception as e:
            logger.debug("%s Closing window %s failed: %s", TAG_WINDOW, window_id, e, exc_info=True)

    async def close_windows(self, window_ids: Sequence[WindowId]) -> None:
        if window_ids:
            await asyncio.gather(*(self._close_quietly(w) for w in window_ids))

    async def stop_all(self, skip: Optional[WindowId] = None) -> None:
        """Close every tracked window except ``skip`` and clear the session.

        The session is reset before the first close is issued.
        """
        targets = [w for w in self._state.tracked_window_ids() if w != skip]
        self._state.reset()
        self._state.supersede()
        if targets:
            logger.info("%s Closing %d window(s)", TAG_WINDOW, len(targets))
        await self.close_windows(targets)

    async def reopen_locked_window(self) -> WindowId:
        """Recreate the full-screen anchor of a locked session."""
        window_id = await self.start_single()
        logger.info("%s Replacement anchor window opened: %s", TAG_LOCK, window_id)
        return window_id

    # ------------------------------------------------------------------
    # Close reconciliation
    # ------------------------------------------------------------------

    def classify_closed_window(self, window_id: WindowId) -> CloseOutcome:
        """Classify a closed window against the current session (no mutation)."""
        state = self._state
        if window_id in state.monitor_window_ids:
            return CloseOutcome.MULTI_TEARDOWN
        if window_id == state.primary_window_id:
            return CloseOutcome.LOCK_REOPENED if state.locked else CloseOutcome.SINGLE_CLEARED
        return CloseOutcome.UNTRACKED

    async def handle_window_removed(self, window_id: WindowId) -> CloseOutcome:
        """React to the host reporting ``window_id`` closed."""
        outcome = self.classify_closed_window(window_id)

        if outcome is CloseOutcome.UNTRACKED:
            logger.debug("%s Untracked window %s closed", TAG_WINDOW, window_id)
            return outcome

        if outcome is CloseOutcome.MULTI_TEARDOWN:
            logger.info(
                "%s Monitor window %s closed, tearing down the group", TAG_WINDOW, window_id
            )
            await self.stop_all(skip=window_id)
            return outcome

        if outcome is CloseOutcome.SINGLE_CLEARED:
            logger.info("%s Anchor window %s closed", TAG_WINDOW, window_id)
            self._state.reset()
            return outcome

        # Locked anchor closed without an unlock.
        logger.warning(
            "%s Locked anchor window %s closed without unlock, reopening", TAG_LOCK, window_id
        )
        self._state.reset()
        generation = self._state.generation
        try:
            replacement = await self.reopen_locked_window()
        except WindowCreateError as e:
            logger.error("%s Could not reopen locked window: %s", TAG_LOCK, e)
            return CloseOutcome.LOCK_REOPEN_FAILED

        if self._state.generation != generation or self._state.phase is not SessionPhase.IDLE:
            # Unlocked, or another session started, while we were reopening.
            logger.info(
                "%s Session changed while reopening, closing stale window %s",
                TAG_LOCK, replacement,
            )
            await self._close_quietly(replacement)
            return CloseOutcome.LOCK_REOPEN_STALE

        self._state.begin_single(replacement, locked=True)
        return outcome
