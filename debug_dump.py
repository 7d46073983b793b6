import sys

from ast_node import Node
from ast_walker import build_tree
from ruby_parser import parse_ruby_file


def _depths(root):
    stack = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        yield node, depth
        stack.extend((child, depth + 1) for child in reversed(node.children))


def _roles(node):
    parts = []
    for name, value in node.roles.items():
        if isinstance(value, Node):
            value = f"<{value.kind.value}>{value.text}"
        parts.append(f"{name}={value}")
    return " ".join(parts)


def dump_lines(root, line_start=None, line_end=None):
    out = []
    for node, depth in _depths(root):
        if line_start is not None and node.line < line_start:
            continue
        if line_end is not None and node.line > line_end:
            continue
        roles = _roles(node)
        out.append(
            f"{'  ' * depth}{node.kind.value} line={node.line}"
            + (f" {roles}" if roles else "")
        )
    return out


def main():
    if len(sys.argv) < 2:
        print("Usage: python3 debug_dump.py <file> [line_start] [line_end]")
        sys.exit(1)

    filename = sys.argv[1]
    line_start = int(sys.argv[2]) if len(sys.argv) > 2 else None
    line_end = int(sys.argv[3]) if len(sys.argv) > 3 else None

    root, _nodes = build_tree(parse_ruby_file(filename), filename)
    for line in dump_lines(root, line_start, line_end):
        print(line)


if __name__ == "__main__":
    main()
