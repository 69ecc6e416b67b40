from datetime import datetime, UTC
from typing import Dict, Any, Optional, TextIO
import os
import sys

STATUS_EMOJI = {
    "INFO": "ℹ️",
    "WARN": "⚠️",
    "ERROR": "❌",
    "DEBUG": "🔍",
    "OK": "✅",
}

# ERROR=0 .. DEBUG=3; a message prints when its level <= log_level
LOG_LEVELS = {
    "ERROR": 0,
    "WARN": 1,
    "WARNING": 1,
    "INFO": 2,
    "OK": 2,
    "DEBUG": 3,
}


class LogUtil:
    """
    Stamped stderr logger for the insights service.

    LOG_LEVEL (or INSIGHTS_DEBUG) is read from the environment at
    construction, then replaced once by configure_from_config() after the
    service config resolves. Write failures are dropped.

    Levels, most to least severe: ERROR, WARN, INFO/OK, DEBUG.
    """

    def __init__(self, service_name: str, stream: Optional[TextIO] = None):
        self.service_name = service_name
        self._stream = stream

        env_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.log_level = LOG_LEVELS.get(env_level, LOG_LEVELS["INFO"])

        # INSIGHTS_DEBUG=true forces debug output regardless of LOG_LEVEL
        if os.getenv("INSIGHTS_DEBUG", "false").lower() == "true":
            self.log_level = LOG_LEVELS["DEBUG"]

        self.debug_enabled = self.log_level >= LOG_LEVELS["DEBUG"]
        self._configured = False

    # -------------------------------------------------
    # Configuration phase
    # -------------------------------------------------

    def configure_from_config(self, config: Dict[str, Any]) -> None:
        if self._configured:
            return

        try:
            cfg_level = str(config.get("LOG_LEVEL", "")).upper()
            if cfg_level and cfg_level in LOG_LEVELS:
                self.log_level = LOG_LEVELS[cfg_level]

            if str(config.get("INSIGHTS_DEBUG", "false")).lower() == "true":
                self.log_level = LOG_LEVELS["DEBUG"]

            self.debug_enabled = self.log_level >= LOG_LEVELS["DEBUG"]
            self._configured = True

            self.info(
                f"[LOG CONFIGURED] level={self.level_name}",
                emoji="🧪" if self.debug_enabled else "🔊",
            )
        except Exception:
            pass

    @property
    def level_name(self) -> str:
        for name, value in LOG_LEVELS.items():
            if value == self.log_level and name not in ("WARNING", "OK"):
                return name
        return "INFO"

    # -------------------------------------------------
    # Internal formatting
    # -------------------------------------------------

    def _stamp(self, level: str, message: str, emoji: str):
        now = datetime.now(UTC).isoformat(timespec="seconds")
        symbol = emoji or STATUS_EMOJI.get(level, "")
        return f"[{now}][{self.service_name}][{level}]{symbol} {message}"

    def _emit(self, level: str, message: str, emoji: str = ""):
        try:
            msg_level = LOG_LEVELS.get(level, LOG_LEVELS["INFO"])
            if msg_level > self.log_level:
                return
            # stdout is reserved for CLI output
            stream = self._stream or sys.stderr
            print(self._stamp(level, message, emoji), file=stream)
        except Exception:
            pass

    # -------------------------------------------------
    # Public API
    # -------------------------------------------------

    def info(self, message: str, emoji: str = STATUS_EMOJI["INFO"]):
        self._emit("INFO", message, emoji)

    def warn(self, message: str, emoji: str = STATUS_EMOJI["WARN"]):
        self._emit("WARN", message, emoji)

    def warning(self, message: str, emoji: str = STATUS_EMOJI["WARN"]):
        # Alias for compatibility with standard logging APIs
        self.warn(message, emoji)

    def error(self, message: str, emoji: str = STATUS_EMOJI["ERROR"]):
        self._emit("ERROR", message, emoji)

    def debug(self, message: str, emoji: str = STATUS_EMOJI["DEBUG"]):
        self._emit("DEBUG", message, emoji)

    def ok(self, message: str, emoji: str = STATUS_EMOJI["OK"]):
        self._emit("OK", message, emoji)
