"""
Logging for FeedScribe

Two sinks, one import:
- logs/debug_flow.txt: every message, timestamped, rewritten each run
- logs/feedscribe.log: the 'FeedScribe' logger (info and above, or
  everything in DEBUG_MODE, when it is also echoed to stdout)

    from feedscribe.logging_config import debug_log, info, warning, error, Timer

Request callbacks log from executor threads, so the debug file is written
under a lock. Messages carry a [MODULE] tag: [BATCH], [OLLAMA], [CLI], ...
"""

import logging
import sys
import threading
import time
from datetime import datetime

from feedscribe.config import DEBUG_MODE, LOG_DATE_FORMAT, LOG_FILE, LOG_FORMAT, LOGS_DIR


class _DebugFileLogger:
    """
    Singleton writer for logs/debug_flow.txt.

    Writes regardless of DEBUG_MODE. If the file cannot be opened (read-only
    home directory), writes become no-ops.
    """

    _instance = None
    _log_file = None
    _write_lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._open()
        return cls._instance

    @classmethod
    def _open(cls):
        try:
            cls._log_file = open(LOGS_DIR / "debug_flow.txt", 'w', encoding='utf-8')
        except OSError:
            cls._log_file = None
            return
        cls._log_file.write(f"=== FeedScribe debug log, started {datetime.now().isoformat()} ===\n")
        cls._log_file.write(f"DEBUG_MODE: {DEBUG_MODE}\n\n")
        cls._log_file.flush()

    def write(self, message: str):
        with self._write_lock:
            if self._log_file:
                timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
                self._log_file.write(f"[{timestamp}] [{threading.current_thread().name}] {message}\n")
                self._log_file.flush()

    def close(self):
        """Close the file; later writes are dropped."""
        with self._write_lock:
            if self._log_file:
                self._log_file.write(f"\n=== ended {datetime.now().isoformat()} ===\n")
                self._log_file.close()
                self._log_file = None


_debug_file_logger = _DebugFileLogger()


def _setup_standard_logging() -> logging.Logger:
    """Attach the file handler (and the stdout handler in DEBUG_MODE) once."""
    logger = logging.getLogger('FeedScribe')
    logger.setLevel(logging.DEBUG if DEBUG_MODE else logging.INFO)

    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    try:
        file_handler = logging.FileHandler(LOG_FILE, encoding='utf-8')
    except OSError:
        file_handler = None  # Log directory not writable
    if file_handler:
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if DEBUG_MODE:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


_logger = _setup_standard_logging()


class Timer:
    """
    Times a block and logs "Starting <name>..." / "<name> took <n> ms".

    Usage:
        with Timer("Batch dispatch (3 entries)"):
            ...

    Attributes:
        operation_name: Label used in the log lines.
        duration_ms: Elapsed time, set on exit.
    """

    def __init__(self, operation_name: str, auto_log: bool = True):
        self.operation_name = operation_name
        self.auto_log = auto_log
        self.start_time: float | None = None
        self.duration_ms: float | None = None

    def __enter__(self):
        if self.auto_log:
            debug_log(f"Starting {self.operation_name}...")
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = time.time() - self.start_time
        self.duration_ms = elapsed * 1000
        if self.auto_log:
            debug_timing(self.operation_name, elapsed)
        return False


def debug_log(message: str):
    """
    Write to debug_flow.txt; echo to stdout in DEBUG_MODE.

    Example:
        debug_log("[BATCH] Dispatched 5 requests, 0 skipped")
    """
    _debug_file_logger.write(message)

    if DEBUG_MODE:
        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        formatted = f"[{timestamp}] {message}"
        try:
            print(formatted, flush=True)
        except UnicodeEncodeError:
            # Console encoding cannot represent the message (Windows cp1252)
            sys.stdout.buffer.write((formatted + "\n").encode('utf-8', errors='replace'))
            sys.stdout.buffer.flush()


def info(message: str):
    _debug_file_logger.write(f"[INFO] {message}")
    _logger.info(message)


def warning(message: str):
    _debug_file_logger.write(f"[WARNING] {message}")
    _logger.warning(message)


def error(message: str, exc_info: bool = False):
    """
    Log an error.

    Args:
        message: The error message.
        exc_info: Attach the current traceback (DEBUG_MODE only).
    """
    _debug_file_logger.write(f"[ERROR] {message}")
    _logger.error(message, exc_info=exc_info and DEBUG_MODE)


def debug_timing(operation: str, elapsed_seconds: float):
    """Log "<operation> took <n> ms|s|m" to the debug log."""
    if elapsed_seconds < 1:
        time_str = f"{elapsed_seconds * 1000:.0f} ms"
    elif elapsed_seconds < 60:
        time_str = f"{elapsed_seconds:.2f}s"
    else:
        time_str = f"{elapsed_seconds / 60:.1f}m"
    debug_log(f"{operation} took {time_str}")


def close_debug_log():
    """Close debug_flow.txt. Called once at CLI exit."""
    _debug_file_logger.close()


__all__ = [
    'debug_log',
    'debug_timing',
    'info',
    'warning',
    'error',
    'close_debug_log',
    'Timer',
    'DEBUG_MODE',
]
