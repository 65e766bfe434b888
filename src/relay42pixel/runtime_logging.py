"""Structured JSONL diagnostics for pixel requests.

Records are only written at or above the configured level (``warning`` by
default, so the debug records the dispatcher emits are normally dropped).
The sink file and its directory are resolved on the first record that passes
the filter. Writes are synchronous appends made from inside the dispatcher's
coroutine; enable ``debug`` for troubleshooting, not in latency-sensitive
event loops.
"""

from __future__ import annotations

import json
import os
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

from relay42pixel.paths import state_root

LogLevel = Literal["off", "error", "warning", "info", "debug"]

_SEVERITY: dict[str, int] = {
    "debug": 10,
    "info": 20,
    "warning": 30,
    "error": 40,
    "off": 100,
}
_ALIASES = {"warn": "warning", "none": "off", "disabled": "off", "0": "off"}

_runtime_logger: "RuntimeLogger | None" = None


def parse_level(value: str | None, default: LogLevel = "warning") -> LogLevel:
    if not value:
        return default
    normalized = value.strip().lower()
    normalized = _ALIASES.get(normalized, normalized)
    if normalized not in _SEVERITY:
        return default
    return normalized  # type: ignore[return-value]


def default_log_file() -> Path:
    return state_root() / "logs" / "relay42pixel.jsonl"


@dataclass(slots=True)
class RuntimeLogger:
    level: LogLevel = "warning"
    log_file: Path | None = None
    sink_failed: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def enabled(self, level: str) -> bool:
        if self.sink_failed or self.level == "off":
            return False
        return _SEVERITY.get(level, _SEVERITY["debug"]) >= _SEVERITY[self.level]

    def sink_path(self) -> Path:
        if self.log_file is None:
            self.log_file = default_log_file()
        return self.log_file

    def log(self, level: str, event: str, **fields: Any) -> None:
        if not self.enabled(level):
            return
        record = {
            "ts": datetime.now(UTC).isoformat(),
            "level": level,
            "event": event,
            "pid": os.getpid(),
            **fields,
        }
        line = json.dumps(record, sort_keys=True, default=str)
        with self._lock:
            try:
                path = self.sink_path()
                path.parent.mkdir(parents=True, exist_ok=True)
                with path.open("a", encoding="utf-8") as handle:
                    handle.write(line + "\n")
            except OSError:
                # An unwritable sink turns diagnostics off; tracking calls carry on.
                self.sink_failed = True

    def debug(self, event: str, **fields: Any) -> None:
        self.log("debug", event, **fields)

    def info(self, event: str, **fields: Any) -> None:
        self.log("info", event, **fields)


def configure_runtime_logging(
    *,
    level: str | None = None,
    log_file: str | Path | None = None,
) -> RuntimeLogger:
    """Install the process logger from arguments, then RELAY42_LOG_LEVEL / RELAY42_LOG_FILE."""

    global _runtime_logger

    effective_level = parse_level(level or os.getenv("RELAY42_LOG_LEVEL"), default="warning")
    raw_file = log_file or os.getenv("RELAY42_LOG_FILE")
    effective_file = Path(raw_file).expanduser().resolve() if raw_file else None

    _runtime_logger = RuntimeLogger(level=effective_level, log_file=effective_file)
    _runtime_logger.info("logging.configured", configured_level=effective_level)
    return _runtime_logger


def get_runtime_logger() -> RuntimeLogger:
    global _runtime_logger
    if _runtime_logger is None:
        _runtime_logger = configure_runtime_logging()
    return _runtime_logger
