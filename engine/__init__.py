"""Engine module: session orchestration for the screensaver windows and menu."""

from .dispatcher import CommandDispatcher
from .menu_sync import ActionMenuSynchronizer, MenuAction, MenuActionKind, build_menu
from .orchestrator import BackgroundOrchestrator
from .session_state import SessionPhase, SessionState
from .window_controller import CloseOutcome, WindowLifecycleController

__all__ = [
    'ActionMenuSynchronizer', 'BackgroundOrchestrator', 'CloseOutcome', 'CommandDispatcher',
    'MenuAction', 'MenuActionKind', 'SessionPhase', 'SessionState', 'WindowLifecycleController',
    'build_menu',
]
