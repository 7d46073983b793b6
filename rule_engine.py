import logging
import time

from ast_walker import iter_nodes
from base_rule import PHASES
from diagnostics import DiagnosticSink


logger = logging.getLogger(__name__)


class RuleEngine:
    """
    Runs a collection of checks over one file's Node tree in two passes:
    a prepare pass for bookkeeping, then a review pass that may report.

    ``rule_factories`` are callables returning a fresh rule; every file
    gets its own instances so no state leaks between files.
    """

    def __init__(self, rule_factories, sink=None):
        self.rule_factories = list(rule_factories)
        self.sink = sink if sink is not None else DiagnosticSink()

    def rules_for(self, filename):
        rules = []
        for factory in self.rule_factories:
            rule = factory()
            if rule.applicable_files()(filename):
                rules.append(rule)
            else:
                logger.debug("%s skipped for %s", rule.identifier(), filename)
        return rules

    def run(self, root, filename):
        """
        Checks one file and returns the diagnostics it produced, in
        emission order. They are also recorded in ``self.sink``.
        """
        rules = self.rules_for(filename)
        if not rules:
            return []

        # Pre-order once; both passes walk the same sequence.
        nodes = list(iter_nodes(root))

        diagnostics = []
        for phase in PHASES:
            start = time.perf_counter()
            for rule in rules:
                rule.begin(phase)
            for node in nodes:
                for rule in rules:
                    if node.kind not in rule.interesting_nodes:
                        continue
                    handler = rule.handler_for(phase, node.kind)
                    if handler is None:
                        continue
                    emitted = len(rule.errors)
                    handler(node)
                    diagnostics.extend(rule.errors[emitted:])
            logger.debug(
                "%s pass over %s: %d nodes, %.3f ms",
                phase,
                filename,
                len(nodes),
                (time.perf_counter() - start) * 1000.0,
            )

        self.sink.extend(diagnostics)
        return diagnostics
