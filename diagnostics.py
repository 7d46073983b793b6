import threading
from dataclasses import dataclass

from ast_node import SourceLocation


@dataclass(frozen=True)
class Diagnostic:
    rule_identifier: str
    message: str
    location: SourceLocation

    @property
    def file(self):
        return self.location.file

    @property
    def line(self):
        return self.location.line

    def as_dict(self):
        return {
            "rule": self.rule_identifier,
            "message": self.message,
            "file": self.location.file,
            "line": self.location.line,
        }

    def __str__(self):
        return f"{self.location} - {self.message}"


class DiagnosticSink:
    """
    Append-only collection of diagnostics in emission order.

    Safe to share between worker threads; no deduplication is done.
    """

    def __init__(self):
        self._items = []
        self._lock = threading.Lock()

    def record(self, rule_identifier, message, location):
        diagnostic = Diagnostic(rule_identifier, message, location)
        with self._lock:
            self._items.append(diagnostic)
        return diagnostic

    def extend(self, diagnostics):
        diagnostics = list(diagnostics)
        with self._lock:
            self._items.extend(diagnostics)

    def all(self):
        with self._lock:
            return tuple(self._items)

    def __len__(self):
        with self._lock:
            return len(self._items)
