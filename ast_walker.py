import logging

from ast_node import Node, NodeKind, SourceLocation


logger = logging.getLogger(__name__)

SKIPPED_TYPES = {"comment", "heredoc_end", "uninterpreted"}

KIND_BY_TYPE = {
    "program": NodeKind.PROGRAM,
    "call": NodeKind.CALL,
    "operator_assignment": NodeKind.OP_ASSIGN,
    "identifier": NodeKind.LOCAL_VAR,
    "instance_variable": NodeKind.INSTANCE_VAR,
    "class_variable": NodeKind.CLASS_VAR,
    "global_variable": NodeKind.GLOBAL_VAR,
    "constant": NodeKind.CONST,
    "scope_resolution": NodeKind.COLON2,
    "self": NodeKind.SELF,
    "nil": NodeKind.NIL,
    "true": NodeKind.TRUE,
    "false": NodeKind.FALSE,
    "integer": NodeKind.LITERAL,
    "float": NodeKind.LITERAL,
    "rational": NodeKind.LITERAL,
    "complex": NodeKind.LITERAL,
    "simple_symbol": NodeKind.SYMBOL,
    "hash_key_symbol": NodeKind.SYMBOL,
    "delimited_symbol": NodeKind.SYMBOL,
    "string": NodeKind.STRING,
    "argument_list": NodeKind.ARGLIST,
    "hash": NodeKind.HASH,
    "pair": NodeKind.PAIR,
    "array": NodeKind.ARRAY,
    "block": NodeKind.BLOCK,
    "do_block": NodeKind.BLOCK,
    "block_parameters": NodeKind.BLOCK_PARAMS,
    "method_parameters": NodeKind.BLOCK_PARAMS,
    "body_statement": NodeKind.BODY,
    "block_body": NodeKind.BODY,
    "class": NodeKind.CLASS,
    "module": NodeKind.MODULE,
    "method": NodeKind.DEFN,
    "singleton_method": NodeKind.DEFS,
    "if": NodeKind.IF,
    "if_modifier": NodeKind.IF,
    "unless": NodeKind.UNLESS,
    "unless_modifier": NodeKind.UNLESS,
    "while": NodeKind.WHILE,
    "while_modifier": NodeKind.WHILE,
    "until": NodeKind.UNTIL,
    "until_modifier": NodeKind.UNTIL,
    "case": NodeKind.CASE,
    "return": NodeKind.RETURN,
}

# Assignment kind is decided by what sits on the left-hand side.
ASSIGN_KIND_BY_LEFT_TYPE = {
    "identifier": NodeKind.LOCAL_ASSIGN,
    "instance_variable": NodeKind.INSTANCE_ASSIGN,
    "class_variable": NodeKind.CLASS_VAR_ASSIGN,
    "global_variable": NodeKind.GLOBAL_ASSIGN,
    "constant": NodeKind.CONST_ASSIGN,
    "scope_resolution": NodeKind.CONST_ASSIGN,
    "call": NodeKind.ATTR_ASSIGN,
    "element_reference": NodeKind.ATTR_ASSIGN,
    "left_assignment_list": NodeKind.MULTIPLE_ASSIGN,
}

# tree-sitter field name -> role name, per kind.
FIELD_ROLES = {
    NodeKind.CALL: {"receiver": "subject", "arguments": "arguments", "block": "block"},
    NodeKind.OP_ASSIGN: {"left": "left_value", "right": "right_value"},
    NodeKind.CLASS: {"name": "name", "superclass": "superclass", "body": "body"},
    NodeKind.MODULE: {"name": "name", "body": "body"},
    NodeKind.DEFN: {"name": "name", "parameters": "parameters", "body": "body"},
    NodeKind.DEFS: {"object": "subject", "name": "name", "parameters": "parameters", "body": "body"},
    NodeKind.IF: {"condition": "condition", "consequence": "consequence", "alternative": "alternative"},
    NodeKind.UNLESS: {"condition": "condition", "consequence": "consequence", "alternative": "alternative"},
    NodeKind.WHILE: {"condition": "condition", "body": "body"},
    NodeKind.UNTIL: {"condition": "condition", "body": "body"},
    NodeKind.PAIR: {"key": "key", "value": "value"},
    NodeKind.COLON2: {"scope": "scope", "name": "name"},
}
ASSIGN_FIELD_ROLES = {"left": "left_value", "right": "right_value"}

# Nodes whose identifier children bind local names.
BINDING_CONTAINER_TYPES = {
    "left_assignment_list",
    "destructured_left_assignment",
    "rest_assignment",
    "method_parameters",
    "block_parameters",
    "lambda_parameters",
    "exception_variable",
}
NAMED_PARAMETER_TYPES = {
    "optional_parameter",
    "keyword_parameter",
    "splat_parameter",
    "hash_splat_parameter",
    "block_parameter",
}
STATEMENT_CONTAINER_TYPES = {
    "program",
    "body_statement",
    "block_body",
    "then",
    "else",
    "do",
    "begin",
    "ensure",
    "parenthesized_statements",
}


def _text(ts_node):
    if ts_node.text is None:
        return ""
    return ts_node.text.decode("utf-8", errors="replace")


def node_kind(ts_node):
    """Maps a tree-sitter node to a NodeKind; unmapped types become UNKNOWN."""
    if ts_node.type == "assignment":
        left = ts_node.child_by_field_name("left")
        if left is None:
            return NodeKind.UNKNOWN
        return ASSIGN_KIND_BY_LEFT_TYPE.get(left.type, NodeKind.UNKNOWN)
    return KIND_BY_TYPE.get(ts_node.type, NodeKind.UNKNOWN)


def _field_roles(kind, ts_node):
    if ts_node.type == "assignment":
        return ASSIGN_FIELD_ROLES
    return FIELD_ROLES.get(kind, {})


def _call_message(ts_node):
    method = ts_node.child_by_field_name("method")
    if method is None:
        # receiver.() is sugar for receiver.call()
        return "call"
    return _text(method)


def _operator(ts_node):
    for child in ts_node.children:
        if not child.is_named and _text(child).endswith("="):
            return _text(child)
    return None


def local_names(ts_root):
    """
    Names bound as locals anywhere in the file: assignment targets,
    destructuring targets, parameters and rescue variables.
    """
    names = set()
    stack = [ts_root]
    while stack:
        ts_node = stack.pop()
        stack.extend(ts_node.named_children)

        if ts_node.type in ("assignment", "operator_assignment"):
            left = ts_node.child_by_field_name("left")
            if left is not None and left.type == "identifier":
                names.add(_text(left))
        elif ts_node.type in BINDING_CONTAINER_TYPES:
            names.update(_text(c) for c in ts_node.named_children if c.type == "identifier")
        elif ts_node.type in NAMED_PARAMETER_TYPES:
            name = ts_node.child_by_field_name("name")
            if name is not None:
                names.add(_text(name))
        elif ts_node.type == "for":
            pattern = ts_node.child_by_field_name("pattern")
            if pattern is not None and pattern.type == "identifier":
                names.add(_text(pattern))
    return names


class _Frame:
    """A node whose children are still being converted."""

    def __init__(self, ts_node, kind, slot, statement_call=False):
        self.ts_node = ts_node
        self.kind = kind
        self.slot = slot
        self.roles = {}
        self.children = []
        self.role_by_child_id = {}
        self.pending = []

        if statement_call:
            self.roles["message"] = _text(ts_node)
            return

        skip_ids = set()
        if kind is NodeKind.CALL:
            self.roles["message"] = _call_message(ts_node)
            method = ts_node.child_by_field_name("method")
            if method is not None:
                skip_ids.add(method.id)
        elif kind is NodeKind.OP_ASSIGN:
            self.roles["operator"] = _operator(ts_node)

        for field_name, role in _field_roles(kind, ts_node).items():
            child = ts_node.child_by_field_name(field_name)
            if child is not None:
                self.role_by_child_id[child.id] = role

        # Reversed so pop() yields children in source order.
        self.pending = [c for c in reversed(ts_node.named_children) if c.id not in skip_ids]

    def add(self, ts_child, child):
        self.children.append(child)
        role = self.role_by_child_id.get(ts_child.id)
        if role is not None:
            self.roles[role] = child

    def build(self, filename):
        return Node(
            kind=self.kind,
            location=SourceLocation(filename, self.ts_node.start_point[0] + 1),
            text=_text(self.ts_node),
            roles=self.roles,
            children=tuple(self.children),
        )


def _enter(ts_node, parent_type, nodes, locals_, debug):
    if ts_node.type in SKIPPED_TYPES:
        return None

    kind = node_kind(ts_node)
    # A bare identifier statement that is never bound as a local is a
    # method call without receiver or arguments, e.g. `create`.
    statement_call = (
        kind is NodeKind.LOCAL_VAR
        and parent_type in STATEMENT_CONTAINER_TYPES
        and _text(ts_node) not in locals_
    )
    if statement_call:
        kind = NodeKind.CALL
    if debug:
        logger.debug("VISITING: %s -> %s", ts_node.type, kind.value)

    # Reserve the slot now so the flat list stays in pre-order even though
    # the parent can only be built after its children.
    slot = len(nodes)
    nodes.append(None)
    return _Frame(ts_node, kind, slot, statement_call=statement_call)


def walk_ast(ts_node, nodes, *, filename, debug=False, locals_=None):
    """
    Converts a tree-sitter node into an immutable Node tree and collects
    every converted node into ``nodes`` in depth-first pre-order.

    Uses an explicit stack, so nesting depth is not bounded by the
    interpreter's recursion limit.

    Returns the converted Node, or None for nodes that are dropped
    (comments and other non-code trivia).
    """
    if locals_ is None:
        locals_ = local_names(ts_node)

    root = _enter(ts_node, None, nodes, locals_, debug)
    if root is None:
        return None

    stack = [root]
    while True:
        frame = stack[-1]
        if frame.pending:
            ts_child = frame.pending.pop()
            child_frame = _enter(ts_child, frame.ts_node.type, nodes, locals_, debug)
            if child_frame is not None:
                stack.append(child_frame)
            continue

        stack.pop()
        node = frame.build(filename)
        nodes[frame.slot] = node
        if not stack:
            return node
        stack[-1].add(frame.ts_node, node)


def build_tree(tree, filename, debug=False):
    """Converts a parsed tree-sitter tree; returns (root, pre-order nodes)."""
    nodes = []
    root = walk_ast(tree.root_node, nodes, filename=filename, debug=debug)
    return root, nodes


def iter_nodes(root):
    """Depth-first pre-order over an existing Node tree, in source order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))
