import os

import tree_sitter_ruby as tsruby
from tree_sitter import Language, Parser


RUBY_LANGUAGE = Language(tsruby.language())


class ParseRubyError(RuntimeError):
    pass


def _read_failure_hint(filename, exc):
    base = os.path.basename(filename)
    return f"Could not read '{base}': {exc}"


def parse_ruby_source(source):
    if isinstance(source, str):
        source = source.encode("utf-8")
    return Parser(RUBY_LANGUAGE).parse(source)


def parse_ruby_file(filename):
    if not os.path.exists(filename):
        raise ParseRubyError(f"Input file does not exist: {filename}")
    if not os.path.isfile(filename):
        raise ParseRubyError(f"Input path is not a file: {filename}")

    try:
        with open(filename, "rb") as fh:
            content = fh.read()
    except OSError as exc:
        raise ParseRubyError(_read_failure_hint(filename, exc)) from exc

    return parse_ruby_source(content)


def syntax_error_lines(tree):
    """
    Lines (1-based) of ERROR and MISSING nodes in a tree-sitter tree.
    Empty when the source parsed cleanly.
    """
    if not tree.root_node.has_error:
        return []

    lines = []
    stack = [tree.root_node]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            lines.append(node.start_point[0] + 1)
            continue
        if node.has_error:
            stack.extend(node.children)
    return sorted(set(lines))
