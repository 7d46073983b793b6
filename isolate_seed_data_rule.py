from ast_node import NodeKind
from base_rule import BaseRule
from file_classifier import MIGRATION


class IsolateSeedDataCheck(BaseRule):
    """
    Make sure not to insert data in migrations; move it to the seed file.

    Prepare:
        for local and instance assignments (plain or ``||=``) whose right
        value is a call with message ``new``, remember the left value as a
        new variable.

    Review:
        a call with message ``create`` or ``create!`` should be isolated
        to db seed. A call with message ``save`` or ``save!`` should be
        too, when its subject is one of the new variables.
    """

    MESSAGE = "isolate seed data"
    CREATE_MESSAGES = frozenset({"create", "create!"})
    SAVE_MESSAGES = frozenset({"save", "save!"})
    OR_ASSIGN_TARGETS = frozenset({NodeKind.LOCAL_VAR, NodeKind.INSTANCE_VAR})

    interesting_nodes = frozenset(
        {NodeKind.CALL, NodeKind.LOCAL_ASSIGN, NodeKind.INSTANCE_ASSIGN, NodeKind.OP_ASSIGN}
    )
    interesting_files = frozenset({MIGRATION})

    def __init__(self, options=None):
        super().__init__(options)
        self.new_variables = set()

    @classmethod
    def url(cls):
        return "http://rails-bestpractices.com/posts/20-isolating-seed-data"

    def prepare_lasgn(self, node):
        self._remember_new_variable(node)

    def prepare_iasgn(self, node):
        self._remember_new_variable(node)

    def prepare_op_asgn(self, node):
        # role ||= Role.new binds role the same way role = Role.new does
        if node.role("operator") != "||=":
            return
        left_value = node.left_value()
        if left_value is not None and left_value.kind in self.OR_ASSIGN_TARGETS:
            self._remember_new_variable(node)

    def review_call(self, node):
        message = node.message()
        if message in self.CREATE_MESSAGES:
            self.add_error(self.MESSAGE, node)
        elif message in self.SAVE_MESSAGES and self._new_record(node):
            self.add_error(self.MESSAGE, node)

    def _remember_new_variable(self, node):
        # role = Role.new(name: name)  ->  new_variables == {"role"}
        right_value = node.right_value()
        if right_value is None or right_value.kind is not NodeKind.CALL:
            return
        if right_value.message() == "new":
            self.new_variables.add(str(node.left_value()))

    def _new_record(self, node):
        subject = node.subject()
        return subject is not None and str(subject) in self.new_variables
