import os
import re


MIGRATION = "migration"
MODEL = "model"
MAILER = "mailer"
CONTROLLER = "controller"
HELPER = "helper"
VIEW = "view"
SCHEMA = "schema"
ROUTES = "routes"
SEED = "seed"

CATEGORY_PATTERNS = (
    (MIGRATION, re.compile(r"(^|/)db/migrate/.*\.rb$")),
    (MODEL, re.compile(r"(^|/)models/.*\.rb$")),
    (MAILER, re.compile(r"(^|/)(models|mailers)/.*mailer\.rb$")),
    (CONTROLLER, re.compile(r"(^|/)controllers/.*\.rb$")),
    (HELPER, re.compile(r"(^|/)helpers/.*\.rb$")),
    (VIEW, re.compile(r"(^|/)views/.*\.(erb|haml|slim|builder|rxml)$")),
    (SCHEMA, re.compile(r"(^|/)db/schema\.rb$")),
    (ROUTES, re.compile(r"(^|/)config/routes.*\.rb$")),
    (SEED, re.compile(r"(^|/)db/seeds\.rb$")),
)

ALL_CATEGORIES = frozenset(name for name, _ in CATEGORY_PATTERNS)

IGNORED_DIRS = {"vendor", "spec", "test", "tmp", "node_modules", ".git"}


def _normalize(path):
    return str(path).replace("\\", "/")


def classify(path):
    """Logical Rails categories for a file path, e.g. {"migration"}."""
    normalized = _normalize(path)
    return frozenset(name for name, pattern in CATEGORY_PATTERNS if pattern.search(normalized))


def matches_any(path, categories):
    """
    True when ``path`` falls in one of ``categories``.
    An empty or None category set means "every file".
    """
    if not categories:
        return True
    return bool(classify(path) & frozenset(categories))


def discover_files(paths):
    """
    Expands directories into the Ruby files below them, skipping vendored
    and test trees. Plain file arguments are kept as given. Order is
    stable: arguments first-to-last, directory contents sorted.
    """
    found = []
    for path in paths:
        if not os.path.isdir(path):
            found.append(path)
            continue
        for dirpath, dirnames, filenames in os.walk(path):
            dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRS)
            for filename in sorted(filenames):
                if filename.endswith(".rb"):
                    found.append(os.path.join(dirpath, filename))
    return found
