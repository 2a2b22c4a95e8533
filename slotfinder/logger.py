"""
Screen and run-log output for Slotfinder.
Every line goes to the rich console and, when a run log is open, to disk.
"""
import json
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, TextIO

from rich.console import Console
from rich.text import Text

_SCREEN_STYLES: tuple[tuple[str, str], ...] = (
    (r"^\[INFO\]", "cyan"),
    (r"^\[WARNING\]", "yellow"),
    (r"^\[ERROR\]", "red"),
    (r"\b(?:MAYBE_)?NOT_EXIST(?:_WITH_REQUEST)?\b", "green"),
    (r"\bEXIST_BUT_MISSING_SLOT\b", "yellow"),
    (r"\bEXIST\b", "red"),
    (r"\bNOT_(?:ALLOWED|CHECKED)\b", "grey50"),
)
_MAX_PAYLOAD_CHARS = 5000


def _clock(moment: Optional[datetime] = None, millis: bool = False) -> str:
    moment = moment or datetime.now()
    if millis:
        return moment.strftime("%H:%M:%S.%f")[:-3]
    return moment.strftime("%H:%M:%S")


def _open_run_log(path: Path) -> TextIO:
    path.parent.mkdir(parents=True, exist_ok=True)
    return open(path, "w", buffering=1, encoding="utf-8")


class SlotfinderLogger:
    """Mirror of everything a check run prints."""

    def __init__(self, log_file: Optional[Path] = None, debug: bool = False):
        self.log_file = log_file
        self.debug_mode = debug
        self._started = datetime.now()
        self._console = Console(highlight=False)
        self._handle: Optional[TextIO] = _open_run_log(log_file) if log_file else None
        self._status_active = False
        self._paced_trackers: set[str] = set()

        from slotfinder.__version__ import __version__

        self.log(f"({_clock(self._started)}  Started Slotfinder {__version__})")

    def _screen_text(self, line: str) -> Text:
        text = Text(line)
        for pattern, style in _SCREEN_STYLES:
            text.highlight_regex(pattern, style)
        return text

    def _clear_status(self) -> None:
        if self._status_active:
            print("\r\033[K", end="", flush=True)
            self._status_active = False

    def _write_file(self, line: str) -> None:
        if self._handle is None:
            return
        self._handle.write(f"{line}\n")
        self._handle.flush()
        os.fsync(self._handle.fileno())

    def status(self, msg: str):
        """Inline progress line, overwritten by the next status or log line"""
        print(f"\r{msg}\033[K", end="", flush=True)
        self._status_active = True

    def log(self, msg: str, prefix: str = ""):
        line = f"{prefix}{msg}"
        self._clear_status()
        self._console.print(self._screen_text(line))
        sys.stdout.flush()
        self._write_file(line)

    def info(self, msg: str):
        self.log(msg)

    def warning(self, msg: str):
        self.log(msg, "[WARNING] ")

    def error(self, msg: str):
        self.log(msg, "[ERROR] ")

    def debug(self, msg: str):
        if self.debug_mode:
            self.log(msg, f"[{_clock(millis=True)}] [DEBUG] ")

    def outcome(self, index: int, total: int, outcome: str, label: str):
        """One reconciled group, as ``[Task i/n] OUTCOME: label``."""
        self.log(f"[Task {index}/{total}] {outcome}: {label}")

    def api_wait(self, tracker: str, seconds: float):
        """Note pacing the first time a tracker makes us wait."""
        name = tracker.upper()
        if name not in self._paced_trackers:
            self._paced_trackers.add(name)
            self.log(f"API rate limiting active for {name}; request pacing is enabled.", "[INFO] ")

    def api_wait_debug(self, tracker: str, seconds: float):
        self.debug(f"Rate limiting detail: waiting {seconds:.3f}s before next {tracker} API call")

    def api_retry(self, tracker: str, attempt: int, max_attempts: int, delay: int):
        self.warning(f"{tracker} request failed, retry {attempt}/{max_attempts} in {delay}s")

    def api_failed(self, tracker: str, max_attempts: int):
        self.error(f"{tracker} gave no answer after {max_attempts} attempts")

    def api_request(self, method: str, url: str, params: dict):
        if not self.debug_mode:
            return
        prefix = f"[{_clock(millis=True)}] "
        self.log(f"API Request: {method} {url}", prefix)
        if params:
            self.log(f"  Params: {json.dumps(params, indent=2)}", prefix)

    def api_response(self, status: int, data: Any, elapsed_ms: float):
        if not self.debug_mode:
            return
        prefix = f"[{_clock(millis=True)}] "
        self.log(f"API Response ({elapsed_ms:.0f}ms): Status {status}", prefix)
        if not data:
            return
        body = data if isinstance(data, str) else json.dumps(data, indent=2)
        if len(body) > _MAX_PAYLOAD_CHARS:
            body = f"{body[:_MAX_PAYLOAD_CHARS]}\n  ... (truncated)"
        self.log(f"  Data: {body}", prefix)

    def close(self):
        """Write the elapsed-time footer and release the run log."""
        if self._handle is None:
            return
        ended = datetime.now()
        elapsed = (ended - self._started).total_seconds()
        self.log(f"({_clock(ended)}  Ended session, elapsed {elapsed:.1f}s)")
        self._handle.close()
        self._handle = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


_logger: Optional[SlotfinderLogger] = None


def set_logger(logger: SlotfinderLogger):
    global _logger
    _logger = logger


def get_logger() -> SlotfinderLogger:
    """Current run logger; a screen-only one is created on first use."""
    global _logger
    if _logger is None:
        _logger = SlotfinderLogger()
    return _logger


def log(msg: str):
    get_logger().log(msg)


def info(msg: str):
    get_logger().info(msg)


def warning(msg: str):
    get_logger().warning(msg)


def error(msg: str):
    get_logger().error(msg)


def debug(msg: str):
    get_logger().debug(msg)
