# typedtree/core/diagnostics.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
import logging
from enum import Enum, auto
from typing import List, Optional

from typedtree.core.errors import TypedTreeError

logger = logging.getLogger(__name__)


class Severity(Enum):
    """
    Severity of a posted diagnostic.

    ERROR is expected to abort the current operation, WARNING records the
    diagnostic and lets the operation continue.
    """

    WARNING = "warn"
    ERROR = "error"


class DiagnosticPolicy(Enum):
    """
    How a Mailbox reacts to posted diagnostics.
    """

    RAISE = auto()  # errors raise, warnings are logged
    STRICT = auto()  # errors and warnings raise
    LOG = auto()  # everything is logged, nothing raises
    SILENT = auto()  # diagnostics are only recorded


class Mailbox:
    """
    Severity-leveled diagnostics sink. Each call site picks the severity,
    the mailbox's policy decides whether the diagnostic raises or is recorded.

    Example:
        mailbox = Mailbox("orders", policy=DiagnosticPolicy.LOG)
        mailbox.post(Severity.ERROR, TypeMismatchError("bad value"))
        assert mailbox.last_diagnostic is not None
    """

    def __init__(self, name: str, policy: DiagnosticPolicy = DiagnosticPolicy.RAISE, history_size: int = 50) -> None:
        """
        :param name: Name used for the mailbox logger.
        :param policy: Reaction to posted diagnostics.
        :param history_size: Maximum number of diagnostics kept in history.
        """
        self.name = name
        self.policy = policy
        self._history_size = history_size
        self._history: List[TypedTreeError] = []
        self._logger = logging.getLogger(f"{__name__}.{name}")

    @property
    def last_diagnostic(self) -> Optional[TypedTreeError]:
        """The most recently posted diagnostic, if any."""
        return self._history[-1] if self._history else None

    @property
    def history(self) -> List[TypedTreeError]:
        """A copy of the recorded diagnostics, oldest first."""
        return list(self._history)

    def clear(self) -> None:
        self._history.clear()

    def post(self, severity: Severity, error: TypedTreeError) -> None:
        """
        Record a diagnostic and raise it if the policy says so.

        :param severity: Severity chosen by the call site.
        :param error: The diagnostic to post.
        :raises TypedTreeError: When the policy treats the severity as fatal.
        """
        self._record(error)
        if self._should_raise(severity):
            self._logger.debug("raising %s: %s", type(error).__name__, error)
            raise error
        if self.policy is DiagnosticPolicy.SILENT:
            return
        if severity is Severity.ERROR:
            self._logger.error("%s", error)
        else:
            self._logger.warning("%s", error)

    def error(self, error: TypedTreeError) -> None:
        self.post(Severity.ERROR, error)

    def warn(self, error: TypedTreeError) -> None:
        self.post(Severity.WARNING, error)

    def fatal(self, error: TypedTreeError) -> None:
        """
        Record, log and raise regardless of policy. Used for definition errors.
        """
        self._record(error)
        self._logger.error("%s", error)
        raise error

    def _should_raise(self, severity: Severity) -> bool:
        if self.policy is DiagnosticPolicy.STRICT:
            return True
        if self.policy is DiagnosticPolicy.RAISE:
            return severity is Severity.ERROR
        return False

    def _record(self, error: TypedTreeError) -> None:
        self._history.append(error)
        if len(self._history) > self._history_size:
            del self._history[0]
