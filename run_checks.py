import json
import logging
import sys
import time
from concurrent.futures import ThreadPoolExecutor

from ast_walker import build_tree
from check_config import load_config
from engine_factory import ALL_CHECKS, LIBRARY, build_engine, selected_checks
from errors import CheckError
from file_classifier import discover_files
from ruby_parser import ParseRubyError, parse_ruby_file, syntax_error_lines


logger = logging.getLogger(__name__)

EXIT_CLEAN = 0
EXIT_DIAGNOSTICS = 1
EXIT_USAGE = 2


def _round_ms(value):
    return round(max(0.0, float(value)), 3)


def _timing_ms(parse_ms, review_ms):
    return {
        "parse": _round_ms(parse_ms),
        "review": _round_ms(review_ms),
        "total": _round_ms(parse_ms + review_ms),
    }


def _rule_item(diagnostic):
    check = LIBRARY.get(diagnostic.rule_identifier)
    return {
        "severity": "warning",
        "source": "rule",
        "rule": diagnostic.rule_identifier,
        "line": diagnostic.line,
        "message": diagnostic.message,
        "url": check.url() if check is not None else None,
    }


def _syntax_items(lines):
    items = [
        {
            "severity": "error",
            "source": "parser",
            "rule": None,
            "line": line,
            "message": "syntax error",
            "url": None,
        }
        for line in lines
    ]
    items.append(
        {
            "severity": "warning",
            "source": "runtime",
            "rule": None,
            "line": lines[0] if lines else None,
            "message": (
                "Checks were skipped because syntax errors were found. "
                "Fix them first, then run the checks again."
            ),
            "url": None,
        }
    )
    return items


def _summary(items):
    out = {"error": 0, "warning": 0}
    by_rule = {}
    for item in items:
        sev = item.get("severity", "warning")
        out[sev] = out.get(sev, 0) + 1
        rule = item.get("rule")
        if rule:
            by_rule[rule] = by_rule.get(rule, 0) + 1
    out["total"] = out["error"] + out["warning"]
    out["by_rule"] = by_rule
    return out


def check_file(engine, filename, debug=False):
    """Parses and checks one file; returns its result record."""
    parse_start = time.perf_counter()
    try:
        tree = parse_ruby_file(filename)
    except ParseRubyError as exc:
        parse_ms = (time.perf_counter() - parse_start) * 1000.0
        logger.debug("parse failed for %s: %s", filename, exc)
        message = f"Failed to parse {filename}: {exc}"
        items = [
            {
                "severity": "error",
                "source": "runtime",
                "rule": None,
                "line": None,
                "message": message,
                "url": None,
            }
        ]
        return {
            "file": filename,
            "ok": False,
            "error": message,
            "items": items,
            "diagnostics": [],
            "summary": _summary(items),
            "timing_ms": _timing_ms(parse_ms, 0.0),
        }

    root, _nodes = build_tree(tree, filename, debug=debug)
    parse_ms = (time.perf_counter() - parse_start) * 1000.0

    error_lines = syntax_error_lines(tree)
    diagnostics = []
    review_ms = 0.0
    if error_lines:
        items = _syntax_items(error_lines)
    else:
        review_start = time.perf_counter()
        diagnostics = engine.run(root, filename)
        review_ms = (time.perf_counter() - review_start) * 1000.0
        items = [_rule_item(d) for d in diagnostics]

    return {
        "file": filename,
        "ok": True,
        "error": None,
        "items": items,
        "diagnostics": diagnostics,
        "summary": _summary(items),
        "timing_ms": _timing_ms(parse_ms, review_ms),
    }


def check_files(engine, files, jobs=1, debug=False):
    """
    Checks every file, in parallel when ``jobs`` > 1. Results come back in
    the order the files were given.
    """
    if jobs <= 1 or len(files) <= 1:
        return [check_file(engine, f, debug=debug) for f in files]
    with ThreadPoolExecutor(max_workers=jobs) as pool:
        return list(pool.map(lambda f: check_file(engine, f, debug=debug), files))


def _usage_error(message, json_mode):
    if json_mode:
        print(json.dumps({"ok": False, "error": message}))
    else:
        print(message, file=sys.stderr)
    return EXIT_USAGE


def _pop_option(args, flag):
    """Removes ``flag VALUE`` from args; returns (args, value) or raises."""
    idx = args.index(flag)
    if idx + 1 >= len(args):
        raise ValueError(f"Missing value after {flag}.")
    return args[:idx] + args[idx + 2 :], args[idx + 1]


def _print_text(results, total_ms):
    count = 0
    for result in results:
        if not result["ok"]:
            print(result["error"])
            continue
        for item in result["items"]:
            line = item.get("line")
            location = f"{result['file']}:{line}" if isinstance(line, int) else result["file"]
            print(f"{location} - {item['message']}")
            if item.get("source") == "rule":
                count += 1

    if count:
        print(f"\nFound {count} warning{'s' if count != 1 else ''}.")
    else:
        print("No warning found. Cool!")
    print(f"[timing] total: {total_ms} ms.")


def main(argv=None):
    args = list(sys.argv[1:] if argv is None else argv)
    json_mode = True
    if "--text" in args:
        json_mode = False
        args = [a for a in args if a != "--text"]

    debug = False
    if "--debug" in args:
        debug = True
        args = [a for a in args if a != "--debug"]
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )

    enabled_checks = None
    config_path = None
    jobs = 1
    try:
        if "--checks" in args:
            args, raw_checks = _pop_option(args, "--checks")
            enabled_checks = [c.strip() for c in raw_checks.split(",") if c.strip()]
            unknown = sorted({c for c in enabled_checks if c not in ALL_CHECKS})
            if unknown:
                return _usage_error(
                    "Unknown check(s): "
                    + ", ".join(unknown)
                    + ". Valid checks: "
                    + ", ".join(sorted(ALL_CHECKS))
                    + ".",
                    json_mode,
                )
        if "--config" in args:
            args, config_path = _pop_option(args, "--config")
        if "--jobs" in args:
            args, raw_jobs = _pop_option(args, "--jobs")
            jobs = int(raw_jobs)
            if jobs < 1:
                raise ValueError("--jobs must be a positive integer.")
    except ValueError as exc:
        return _usage_error(str(exc), json_mode)

    if not args:
        return _usage_error("No files provided.", json_mode)

    try:
        config = load_config(config_path)
        engine = build_engine(enabled_checks, config)
    except CheckError as exc:
        return _usage_error(str(exc), json_mode)

    selected = sorted(selected_checks(enabled_checks, config))
    files = discover_files(args)
    logger.debug("checking %d file(s) with %s", len(files), ", ".join(selected))

    overall_start = time.perf_counter()
    results = check_files(engine, files, jobs=jobs, debug=debug)
    total_ms = _round_ms((time.perf_counter() - overall_start) * 1000.0)

    all_items = [item for result in results for item in result["items"]]
    diagnostic_count = sum(len(result["diagnostics"]) for result in results)

    if json_mode:
        for result in results:
            result.pop("diagnostics")
        print(
            json.dumps(
                {
                    "ok": True,
                    "results": results,
                    "summary": _summary(all_items),
                    "timing_ms": {"total": total_ms},
                    "checks": selected,
                }
            )
        )
    else:
        _print_text(results, total_ms)

    return EXIT_DIAGNOSTICS if diagnostic_count else EXIT_CLEAN


if __name__ == "__main__":
    sys.exit(main())
