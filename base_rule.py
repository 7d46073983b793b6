from diagnostics import Diagnostic
from errors import PhaseViolationError
from file_classifier import matches_any


PREPARE = "prepare"
REVIEW = "review"
PHASES = (PREPARE, REVIEW)


class BaseRule:
    """
    One check for one convention.

    Subclasses declare ``interesting_nodes`` (NodeKinds they want to see)
    and ``interesting_files`` (file categories they apply to; empty means
    every file), and implement ``prepare_<kind>`` / ``review_<kind>``
    methods for the kinds they care about. A missing handler is a no-op.

    An instance covers exactly one traversal of one file.
    """

    interesting_nodes = frozenset()
    interesting_files = frozenset()

    def __init__(self, options=None):
        self.options = dict(options or {})
        self.errors = []
        self.phase = None
        self._handlers = {
            phase: {
                kind: getattr(self, f"{phase}_{kind.value}")
                for kind in self.interesting_nodes
                if callable(getattr(self, f"{phase}_{kind.value}", None))
            }
            for phase in PHASES
        }

    @classmethod
    def identifier(cls):
        return cls.__name__

    @classmethod
    def url(cls):
        return None

    def applicable_files(self):
        categories = frozenset(self.interesting_files)
        return lambda path: matches_any(path, categories)

    def handler_for(self, phase, kind):
        return self._handlers[phase].get(kind)

    def begin(self, phase):
        self.phase = phase

    def add_error(self, message, node):
        if self.phase != REVIEW:
            raise PhaseViolationError(
                f"{self.identifier()} emitted '{message}' during the {self.phase} phase"
            )
        self.errors.append(Diagnostic(self.identifier(), message, node.location))
