"""Diagnostics model and the observability scope errors are emitted to."""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Severity(Enum):
    """Severity of a diagnostic produced by swift-api-digester"""
    ERROR = "error"
    FATAL = "fatal"
    WARNING = "warning"
    NOTE = "note"
    REMARK = "remark"
    IGNORED = "ignored"

    @classmethod
    def parse(cls, text: str) -> "Severity":
        """Map a compiler-style severity word to a Severity.

        ``fatal error`` is what the compiler prints for fatal diagnostics.
        """
        normalized = text.strip().lower()
        if normalized == "fatal error":
            return cls.FATAL
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unknown diagnostic severity: {text!r}") from None


@dataclass(frozen=True)
class SourceLocation:
    """File (and line, when known) a diagnostic points at."""
    filename: str
    line: Optional[int] = None

    def __str__(self) -> str:
        if self.line is None:
            return self.filename
        return f"{self.filename}:{self.line}"


@dataclass(frozen=True)
class Diagnostic:
    """Single diagnostic message."""
    severity: Severity
    text: str
    location: Optional[SourceLocation] = None


class ObservabilityScope:
    """Sink for errors, warnings and informational messages.

    Remembers whether any error was emitted so the driver can decide the
    exit status. Safe to use from comparison worker threads.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("api_scanner")
        self._lock = threading.Lock()
        self._errors_reported = False

    @property
    def errors_reported(self) -> bool:
        with self._lock:
            return self._errors_reported

    def emit_error(self, message: str, location: Optional[SourceLocation] = None,
                   underlying_error: Optional[BaseException] = None) -> None:
        with self._lock:
            self._errors_reported = True
        self.logger.error("%s", self._format(message, location, underlying_error))

    def emit_warning(self, message: str, location: Optional[SourceLocation] = None,
                     underlying_error: Optional[BaseException] = None) -> None:
        self.logger.warning("%s", self._format(message, location, underlying_error))

    def emit_info(self, message: str, location: Optional[SourceLocation] = None) -> None:
        self.logger.info("%s", self._format(message, location, None))

    @staticmethod
    def _format(message: str, location: Optional[SourceLocation],
                underlying_error: Optional[BaseException]) -> str:
        text = message
        if underlying_error is not None:
            text = f"{text}: {underlying_error}"
        if location is not None:
            text = f"{location}: {text}"
        return text
