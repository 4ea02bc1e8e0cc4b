"""Per-class diagnostics.

Non-fatal problems are recorded, tagged with a warning category, instead of
being raised. Fatal classification errors are recorded with ERROR severity.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from matchkit.core.enums import Severity
from matchkit.core.exceptions import MatchkitError, MatchkitWarning

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    Severity.INFO: logging.DEBUG,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class Diagnostic:
    """One reported problem, with identifying context."""

    severity: Severity
    category: type[MatchkitWarning] | type[MatchkitError]
    class_name: str
    message: str
    field_name: str | None = None

    def __str__(self) -> str:
        where = self.class_name
        if self.field_name is not None:
            where = f"{self.class_name}.{self.field_name}"
        return f"[{self.severity.value}] {where}: {self.message}"


class DiagnosticLog:
    """Collects the diagnostics of one class, in report order."""

    def __init__(self, class_name: str) -> None:
        self.class_name = class_name
        self._entries: list[Diagnostic] = []

    def report(
        self,
        severity: Severity,
        category: type[MatchkitWarning] | type[MatchkitError],
        message: str,
        field_name: str | None = None,
    ) -> Diagnostic:
        diagnostic = Diagnostic(severity, category, self.class_name, message, field_name)
        self._entries.append(diagnostic)
        logger.log(_LOG_LEVELS[severity], str(diagnostic))
        return diagnostic

    def notice(
        self, category: type[MatchkitWarning], message: str, field_name: str | None = None
    ) -> Diagnostic:
        return self.report(Severity.INFO, category, message, field_name)

    def warn(
        self, category: type[MatchkitWarning], message: str, field_name: str | None = None
    ) -> Diagnostic:
        return self.report(Severity.WARNING, category, message, field_name)

    def error(self, error: MatchkitError, field_name: str | None = None) -> Diagnostic:
        return self.report(Severity.ERROR, type(error), str(error), field_name)

    @property
    def entries(self) -> tuple[Diagnostic, ...]:
        return tuple(self._entries)

    @property
    def has_errors(self) -> bool:
        return any(entry.severity is Severity.ERROR for entry in self._entries)

    def of_category(self, category: type) -> list[Diagnostic]:
        return [entry for entry in self._entries if issubclass(entry.category, category)]

    def __len__(self) -> int:
        return len(self._entries)
