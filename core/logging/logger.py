"""
Centralized logging configuration for the screensaver orchestrator.

Uses rotating file handler with logs stored in logs/ directory.
Includes colored console output for debug mode.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path


_VERBOSE: bool = False
# Base directory for logs. Initialised to the project root and updated by
# setup_logging() for frozen builds so get_log_dir() always points at the
# effective runtime location.
_BASE_DIR: Path = Path(__file__).parent.parent.parent

_LOG_FORMAT = '%(asctime)s - %(name)-30s - %(levelname)-8s - %(message)s'


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors to console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',       # Cyan
        'INFO': '\033[32m',        # Green
        'WARNING': '\033[33m',     # Yellow
        'ERROR': '\033[31m',       # Red
        'CRITICAL': '\033[35m',    # Magenta
    }
    FALLBACK_COLOR = '\033[38;5;208m'
    LOCK_COLOR = '\033[38;5;135m'   # Purple for lock enforcement
    RESET = '\033[0m'
    BOLD = '\033[1m'

    def format(self, record):
        original_levelname = record.levelname
        original_msg = record.msg

        msg_text = str(record.msg)
        if '[FALLBACK]' in msg_text:
            color = self.FALLBACK_COLOR
        elif '[LOCK]' in msg_text:
            color = self.LOCK_COLOR
        else:
            color = self.COLORS.get(record.levelname)

        if color is None:
            return super().format(record)

        record.levelname = f"{self.BOLD}{color}{record.levelname}{self.RESET}"
        try:
            message = super().format(record)
        finally:
            record.levelname = original_levelname
            record.msg = original_msg
        return f"{color}{message}{self.RESET}"


class SuppressingStreamHandler(logging.StreamHandler):
    """Stream handler that suppresses consecutive duplicate sources.

    Repeated DEBUG/INFO lines from the same logger/level are collapsed into a
    single summary line like "[N Suppressed: CHECK LOG]" while file logs
    remain unaffected.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._last_name: str | None = None
        self._last_level: int | None = None
        self._suppress_count: int = 0
        self._last_record: logging.LogRecord | None = None

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._emit_with_suppression(record)
        except Exception:
            self.handleError(record)

    def _emit_with_suppression(self, record: logging.LogRecord) -> None:
        if record.levelno >= logging.WARNING:
            self._flush_summary()
            self._emit_record(record)
            self._last_name = None
            self._last_level = None
            return

        name = record.name
        level = record.levelno
        if name == self._last_name and level == self._last_level:
            self._suppress_count += 1
            self._last_record = record
            return

        self._flush_summary()
        self._emit_record(record)
        self._last_name = name
        self._last_level = level
        self._suppress_count = 0
        self._last_record = record

    def _emit_record(self, record: logging.LogRecord) -> None:
        """Emit a single record with a Unicode-safe fallback for the console."""
        try:
            msg = self.format(record)
            stream = self.stream
            if stream is None:
                return
            text = msg + self.terminator
            try:
                stream.write(text)
            except UnicodeEncodeError:
                encoding = getattr(stream, "encoding", None) or "ascii"
                stream.write(text.encode(encoding, errors="replace").decode(encoding, errors="replace"))
            self.flush()
        except Exception:
            self.handleError(record)

    def _flush_summary(self) -> None:
        if self._suppress_count <= 0 or self._last_record is None:
            self._suppress_count = 0
            self._last_record = None
            return

        last = self._last_record
        summary = logging.LogRecord(
            last.name,
            last.levelno,
            last.pathname,
            last.lineno,
            f"[{self._suppress_count} Suppressed: CHECK LOG]",
            args=None,
            exc_info=None,
        )
        summary.created = last.created
        summary.msecs = last.msecs
        self._emit_record(summary)

        self._suppress_count = 0
        self._last_record = None

    def close(self) -> None:
        try:
            self._flush_summary()
        finally:
            super().close()


def get_log_dir() -> Path:
    """Return the directory used for log files.

    setup_logging() should be called once at startup so that _BASE_DIR is
    updated for frozen builds.
    """
    return _BASE_DIR / "logs"


def setup_logging(debug: bool = False, verbose: bool = False) -> None:
    """
    Configure application logging with file rotation.

    Args:
        debug: If True, set log level to DEBUG and enable console output.
        verbose: Enables high-volume debug logs (raw store values, full
            menu trees). Verbose mode also implies debug-level logging.
    """
    global _VERBOSE, _BASE_DIR

    debug_enabled = debug or verbose

    # Frozen builds keep logs/ next to the executable.
    if getattr(sys, "frozen", False):
        exe_path = Path(getattr(sys, "executable", "") or "")
        if exe_path.exists():
            _BASE_DIR = exe_path.parent

    log_dir = get_log_dir()
    log_dir.mkdir(exist_ok=True)
    log_file = log_dir / "gradia.log"

    level = logging.DEBUG if debug_enabled else logging.INFO

    # File handler with rotation (1MB max, keep 5 backups)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=1 * 1024 * 1024,
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    file_handler.setLevel(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(file_handler)

    if debug_enabled:
        console_handler = SuppressingStreamHandler(sys.stdout)
        if sys.stdout.isatty():
            console_handler.setFormatter(ColoredFormatter(_LOG_FORMAT, datefmt='%H:%M:%S'))
        else:
            console_handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt='%H:%M:%S'))
        console_handler.setLevel(level)
        root_logger.addHandler(console_handler)

    # asyncio chatter only shows up when verbose logging is requested.
    logging.getLogger("asyncio").setLevel(logging.DEBUG if verbose else logging.INFO)

    _VERBOSE = bool(verbose)

    root_logger.info("=" * 60)
    root_logger.info(
        "Gradia logging initialized (debug=%s, verbose=%s)",
        debug_enabled,
        _VERBOSE,
    )
    root_logger.info("=" * 60)


_SHORT_NAME_OVERRIDES = {
    "engine.window_controller": "engine.windows",
    "engine.menu_sync": "engine.menu",
    "core.settings.settings_manager": "SettingsManager",
    "rendering.window_host": "rendering.host",
}


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with optional short-name overrides for noisy modules."""
    actual = _SHORT_NAME_OVERRIDES.get(name, name)
    return logging.getLogger(actual)


def is_verbose_logging() -> bool:
    """Return True when verbose debug logging is enabled globally."""
    return _VERBOSE
