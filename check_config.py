import os

import yaml

from errors import ConfigError


DEFAULT_CONFIG_PATH = os.path.join("config", "rails_best_practices.yml")


def parse_config(text, source="<config>"):
    """
    Parses a rails_best_practices-style YAML document: a mapping of check
    name to an options mapping (or nothing). Returns {name: options}.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {source}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{source} must contain a mapping of check names to options.")

    checks = {}
    for name, options in data.items():
        if options is None:
            options = {}
        if not isinstance(options, dict):
            raise ConfigError(f"Options for {name} in {source} must be a mapping.")
        checks[str(name)] = options
    return checks


def load_config(path=None):
    """
    Loads check configuration from ``path``, or from the default location
    when it exists. Returns None when there is nothing to load.
    """
    if path is None:
        if not os.path.isfile(DEFAULT_CONFIG_PATH):
            return None
        path = DEFAULT_CONFIG_PATH

    try:
        with open(path, encoding="utf-8") as fh:
            text = fh.read()
    except OSError as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}") from exc

    return parse_config(text, source=path)
