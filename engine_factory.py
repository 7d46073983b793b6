import functools

from errors import ConfigError
from isolate_seed_data_rule import IsolateSeedDataCheck
from rule_engine import RuleEngine


LIBRARY = {
    IsolateSeedDataCheck.identifier(): IsolateSeedDataCheck,
}

ALL_CHECKS = frozenset(LIBRARY)


def selected_checks(enabled_checks, config):
    if config is not None:
        unknown = sorted(name for name in config if name not in LIBRARY)
        if unknown:
            raise ConfigError(
                "Unknown check(s) in config: " + ", ".join(unknown)
                + ". Valid checks: " + ", ".join(sorted(ALL_CHECKS)) + "."
            )
        names = list(config)
    else:
        names = sorted(ALL_CHECKS)

    if enabled_checks:
        wanted = set(enabled_checks)
        names = [name for name in names if name in wanted]
    return names


def build_engine(enabled_checks=None, config=None, sink=None):
    """
    Builds a RuleEngine over fresh-per-file instances of the selected
    checks. ``config`` is the mapping returned by check_config.load_config.
    """
    factories = []
    for name in selected_checks(enabled_checks, config):
        options = (config or {}).get(name) or {}
        factories.append(functools.partial(LIBRARY[name], options))
    return RuleEngine(factories, sink=sink)
