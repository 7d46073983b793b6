import unittest

from ast_node import Node, NodeKind, SourceLocation
from ast_walker import build_tree, iter_nodes
from debug_dump import dump_lines
from errors import StructuralAccessError
from ruby_parser import parse_ruby_source, syntax_error_lines


FILENAME = "db/migrate/20110101000000_create_roles.rb"


def tree_for(code):
    return build_tree(parse_ruby_source(code), FILENAME)


def first(nodes, kind):
    return next(n for n in nodes if n.kind is kind)


class AstWalkerTest(unittest.TestCase):
    def test_local_assignment_roles(self):
        _root, nodes = tree_for("role = Role.new(name: name)\n")
        assign = first(nodes, NodeKind.LOCAL_ASSIGN)

        self.assertEqual(str(assign.left_value()), "role")
        self.assertIs(assign.left_value().kind, NodeKind.LOCAL_VAR)
        right = assign.right_value()
        self.assertIs(right.kind, NodeKind.CALL)
        self.assertEqual(right.message(), "new")
        self.assertEqual(str(right.subject()), "Role")
        self.assertIs(right.subject().kind, NodeKind.CONST)
        self.assertIs(right.arguments().kind, NodeKind.ARGLIST)

    def test_instance_assignment_kind(self):
        _root, nodes = tree_for("@role = Role.new\n")
        assign = first(nodes, NodeKind.INSTANCE_ASSIGN)

        self.assertEqual(str(assign.left_value()), "@role")

    def test_other_assignment_kinds(self):
        _root, nodes = tree_for("$g = 1\nX = 2\nself.name = 3\na, b = 1, 2\nc ||= 4\n")
        kinds = [n.kind for n in nodes]

        self.assertIn(NodeKind.GLOBAL_ASSIGN, kinds)
        self.assertIn(NodeKind.CONST_ASSIGN, kinds)
        self.assertIn(NodeKind.ATTR_ASSIGN, kinds)
        self.assertIn(NodeKind.MULTIPLE_ASSIGN, kinds)
        self.assertEqual(first(nodes, NodeKind.OP_ASSIGN).role("operator"), "||=")
        self.assertNotIn(NodeKind.LOCAL_ASSIGN, kinds)

    def test_bang_message_and_receiverless_call(self):
        _root, nodes = tree_for('User.create!(name: "a")\nsave!(validate: false)\n')
        calls = [n for n in nodes if n.kind is NodeKind.CALL]

        self.assertEqual([c.message() for c in calls], ["create!", "save!"])
        self.assertIsNone(calls[1].subject())

    def test_method_name_is_not_a_child(self):
        _root, nodes = tree_for("role.save\n")
        save = first(nodes, NodeKind.CALL)

        self.assertEqual([str(c) for c in save.children], ["role"])

    def test_bare_identifier_statement_is_a_call(self):
        _root, nodes = tree_for("create\nfoo = 1\nfoo\ndef up(bar)\n  bar\nend\n")
        statements = [
            n
            for n in nodes
            if n.kind in (NodeKind.CALL, NodeKind.LOCAL_VAR) and str(n) in ("create", "foo", "bar")
        ]

        create = statements[0]
        self.assertIs(create.kind, NodeKind.CALL)
        self.assertEqual(create.message(), "create")
        self.assertIsNone(create.subject())
        self.assertEqual(
            {n.kind for n in statements[1:]},
            {NodeKind.LOCAL_VAR},
        )

    def test_deep_nesting_is_converted(self):
        terms = " + ".join(["'a'"] * 3000)
        root, nodes = tree_for(f"x = {terms}\n")

        self.assertIs(nodes[0], root)
        self.assertEqual(len(nodes), len(list(iter_nodes(root))))
        self.assertIs(first(nodes, NodeKind.LOCAL_ASSIGN).left_value().kind, NodeKind.LOCAL_VAR)

    def test_lines_are_one_based(self):
        _root, nodes = tree_for("\n\nUser.create\n")

        self.assertEqual(first(nodes, NodeKind.CALL).location, SourceLocation(FILENAME, 3))

    def test_flat_list_is_pre_order(self):
        root, nodes = tree_for("a = Foo.new\nb.save\n# comment\nc.create\n")

        self.assertIs(nodes[0], root)
        self.assertEqual(nodes, list(iter_nodes(root)))
        self.assertEqual(
            [n.message() for n in nodes if n.kind is NodeKind.CALL],
            ["new", "save", "create"],
        )

    def test_unmapped_types_become_unknown(self):
        _root, nodes = tree_for('x = "a#{b}"\nbegin\n  y\nrescue\nend\n')

        self.assertIn(NodeKind.UNKNOWN, {n.kind for n in nodes})

    def test_debug_dump_lines(self):
        root, _nodes = tree_for("role = Role.new\nUser.create\n")
        lines = dump_lines(root)

        self.assertEqual(lines[0], "program line=1")
        self.assertIn("  lasgn line=1 left_value=<lvar>role right_value=<call>Role.new", lines)
        self.assertEqual(dump_lines(root, 2, 2), ["  call line=2 message=create subject=<const>User", "    const line=2"])

    def test_syntax_errors_are_located(self):
        self.assertEqual(syntax_error_lines(parse_ruby_source("a = 1\n")), [])
        self.assertTrue(syntax_error_lines(parse_ruby_source("def broken(\n  1 +\n")))


class NodeTest(unittest.TestCase):
    def test_role_outside_schema_raises(self):
        node = Node(NodeKind.LOCAL_VAR, SourceLocation(FILENAME, 1), text="x")

        with self.assertRaises(StructuralAccessError):
            node.message()
        with self.assertRaises(StructuralAccessError):
            node.right_value()

    def test_unpopulated_role_is_none(self):
        node = Node(NodeKind.CALL, SourceLocation(FILENAME, 1), text="save", roles={"message": "save"})

        self.assertIsNone(node.subject())
        self.assertEqual(node.message(), "save")

    def test_nodes_are_immutable(self):
        node = Node(NodeKind.CALL, SourceLocation(FILENAME, 1), roles={"message": "new"}, children=[])

        with self.assertRaises(AttributeError):
            node.kind = NodeKind.LOCAL_VAR
        with self.assertRaises(TypeError):
            node.roles["message"] = "create"
        self.assertEqual(node.children, ())


if __name__ == "__main__":
    unittest.main()
