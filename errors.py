class CheckError(Exception):
    """Base class for errors raised by the check engine."""


class StructuralAccessError(CheckError):
    """
    A role accessor was called on a node kind that never defines that role.
    This is a bug in the calling rule, not in the analysed source.
    """

    def __init__(self, kind, role):
        super().__init__(f"node kind '{kind.value}' has no '{role}' role")
        self.kind = kind
        self.role = role


class PhaseViolationError(CheckError):
    """A rule tried to emit a diagnostic outside the review phase."""


class ConfigError(CheckError):
    pass
