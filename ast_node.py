import enum
from dataclasses import dataclass, field
from types import MappingProxyType

from errors import StructuralAccessError


class NodeKind(enum.Enum):
    """
    Structural categories of Ruby syntax-tree elements.

    Values follow the s-expression names used by Ruby parsers so that
    handler names read like ``prepare_lasgn`` or ``review_call``.
    """

    PROGRAM = "program"
    CALL = "call"
    LOCAL_ASSIGN = "lasgn"
    INSTANCE_ASSIGN = "iasgn"
    CLASS_VAR_ASSIGN = "cvdecl"
    GLOBAL_ASSIGN = "gasgn"
    CONST_ASSIGN = "cdecl"
    ATTR_ASSIGN = "attrasgn"
    MULTIPLE_ASSIGN = "masgn"
    OP_ASSIGN = "op_asgn"
    LOCAL_VAR = "lvar"
    INSTANCE_VAR = "ivar"
    CLASS_VAR = "cvar"
    GLOBAL_VAR = "gvar"
    CONST = "const"
    COLON2 = "colon2"
    SELF = "self"
    NIL = "nil"
    TRUE = "true"
    FALSE = "false"
    LITERAL = "lit"
    SYMBOL = "sym"
    STRING = "str"
    ARGLIST = "arglist"
    HASH = "hash"
    PAIR = "pair"
    ARRAY = "array"
    BLOCK = "iter"
    BLOCK_PARAMS = "args"
    BODY = "block"
    CLASS = "class"
    MODULE = "module"
    DEFN = "defn"
    DEFS = "defs"
    IF = "if"
    UNLESS = "unless"
    WHILE = "while"
    UNTIL = "until"
    CASE = "case"
    RETURN = "return"
    UNKNOWN = "unknown"


# Roles each kind may populate. Asking a node for a role outside its
# kind's schema is a contract violation.
ROLE_SCHEMA = {
    NodeKind.CALL: frozenset({"subject", "message", "arguments", "block"}),
    NodeKind.LOCAL_ASSIGN: frozenset({"left_value", "right_value"}),
    NodeKind.INSTANCE_ASSIGN: frozenset({"left_value", "right_value"}),
    NodeKind.CLASS_VAR_ASSIGN: frozenset({"left_value", "right_value"}),
    NodeKind.GLOBAL_ASSIGN: frozenset({"left_value", "right_value"}),
    NodeKind.CONST_ASSIGN: frozenset({"left_value", "right_value"}),
    NodeKind.ATTR_ASSIGN: frozenset({"left_value", "right_value"}),
    NodeKind.MULTIPLE_ASSIGN: frozenset({"left_value", "right_value"}),
    NodeKind.OP_ASSIGN: frozenset({"left_value", "right_value", "operator"}),
    NodeKind.CLASS: frozenset({"name", "superclass", "body"}),
    NodeKind.MODULE: frozenset({"name", "body"}),
    NodeKind.DEFN: frozenset({"name", "parameters", "body"}),
    NodeKind.DEFS: frozenset({"subject", "name", "parameters", "body"}),
    NodeKind.IF: frozenset({"condition", "consequence", "alternative"}),
    NodeKind.UNLESS: frozenset({"condition", "consequence", "alternative"}),
    NodeKind.WHILE: frozenset({"condition", "body"}),
    NodeKind.UNTIL: frozenset({"condition", "body"}),
    NodeKind.PAIR: frozenset({"key", "value"}),
    NodeKind.COLON2: frozenset({"scope", "name"}),
}


@dataclass(frozen=True)
class SourceLocation:
    file: str
    line: int

    def __str__(self):
        return f"{self.file}:{self.line}"


@dataclass(frozen=True, eq=False)
class Node:
    """
    Immutable syntax-tree element.

    ``roles`` maps a structural role name to either a child Node (which is
    also present in ``children``) or a plain string such as a call's
    message. ``children`` holds every child in source order.
    """

    kind: NodeKind
    location: SourceLocation
    text: str = ""
    roles: "MappingProxyType" = field(default_factory=lambda: MappingProxyType({}))
    children: tuple = ()

    def __post_init__(self):
        if not isinstance(self.roles, MappingProxyType):
            object.__setattr__(self, "roles", MappingProxyType(dict(self.roles)))
        if not isinstance(self.children, tuple):
            object.__setattr__(self, "children", tuple(self.children))

    @property
    def line(self):
        return self.location.line

    def role(self, name):
        if name not in ROLE_SCHEMA.get(self.kind, ()):
            raise StructuralAccessError(self.kind, name)
        return self.roles.get(name)

    def message(self):
        return self.role("message")

    def subject(self):
        return self.role("subject")

    def left_value(self):
        return self.role("left_value")

    def right_value(self):
        return self.role("right_value")

    def arguments(self):
        return self.role("arguments")

    def __str__(self):
        return self.text

    def __repr__(self):
        return f"Node({self.kind.value}, line={self.line}, text={self.text!r})"
