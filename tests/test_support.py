import os
import tempfile
import threading
import unittest

from ast_node import SourceLocation
from check_config import load_config, parse_config
from diagnostics import DiagnosticSink
from engine_factory import build_engine, selected_checks
from errors import ConfigError
from file_classifier import classify, discover_files, matches_any


class FileClassifierTest(unittest.TestCase):
    def test_rails_categories(self):
        self.assertEqual(classify("db/migrate/20110101000000_create_roles.rb"), {"migration"})
        self.assertEqual(classify("/srv/app/db/migrate/001_init.rb"), {"migration"})
        self.assertEqual(classify("app/models/user.rb"), {"model"})
        self.assertEqual(classify("app/mailers/user_mailer.rb"), {"mailer"})
        self.assertEqual(classify("app/controllers/users_controller.rb"), {"controller"})
        self.assertEqual(classify("app/views/users/index.html.erb"), {"view"})
        self.assertEqual(classify("db/schema.rb"), {"schema"})
        self.assertEqual(classify("config/routes.rb"), {"routes"})
        self.assertEqual(classify("db/seeds.rb"), {"seed"})
        self.assertEqual(classify("lib/tasks/setup.rb"), frozenset())

    def test_windows_separators(self):
        self.assertEqual(classify("db\\migrate\\001_init.rb"), {"migration"})

    def test_empty_categories_match_everything(self):
        self.assertTrue(matches_any("lib/anything.rb", ()))
        self.assertFalse(matches_any("lib/anything.rb", {"migration"}))

    def test_discover_files_skips_vendored_trees(self):
        with tempfile.TemporaryDirectory() as td:
            for rel in (
                "db/migrate/002_b.rb",
                "db/migrate/001_a.rb",
                "vendor/gems/x.rb",
                "spec/models/user_spec.rb",
                "README.md",
            ):
                path = os.path.join(td, rel)
                os.makedirs(os.path.dirname(path), exist_ok=True)
                with open(path, "w", encoding="utf-8") as fh:
                    fh.write("")

            found = [os.path.relpath(p, td) for p in discover_files([td])]

        self.assertEqual(
            found,
            [os.path.join("db", "migrate", "001_a.rb"), os.path.join("db", "migrate", "002_b.rb")],
        )


class CheckConfigTest(unittest.TestCase):
    def test_parse_mapping(self):
        config = parse_config("IsolateSeedDataCheck: { }\nOtherCheck:\n")

        self.assertEqual(config, {"IsolateSeedDataCheck": {}, "OtherCheck": {}})

    def test_empty_document(self):
        self.assertEqual(parse_config(""), {})

    def test_rejects_bad_shapes(self):
        with self.assertRaises(ConfigError):
            parse_config("- IsolateSeedDataCheck\n")
        with self.assertRaises(ConfigError):
            parse_config("IsolateSeedDataCheck: 3\n")
        with self.assertRaises(ConfigError):
            parse_config("IsolateSeedDataCheck: [unclosed\n")

    def test_load_config_from_file(self):
        with tempfile.TemporaryDirectory() as td:
            path = os.path.join(td, "rails_best_practices.yml")
            with open(path, "w", encoding="utf-8") as fh:
                fh.write("IsolateSeedDataCheck: {}\n")

            self.assertEqual(load_config(path), {"IsolateSeedDataCheck": {}})

        with self.assertRaises(ConfigError):
            load_config(os.path.join(td, "missing.yml"))


class EngineFactoryTest(unittest.TestCase):
    def test_all_checks_by_default(self):
        self.assertEqual(selected_checks(None, None), ["IsolateSeedDataCheck"])
        self.assertEqual(len(build_engine().rule_factories), 1)

    def test_config_controls_selection(self):
        self.assertEqual(selected_checks(None, {}), [])
        self.assertEqual(build_engine(config={}).rule_factories, [])

    def test_unknown_config_check(self):
        with self.assertRaises(ConfigError):
            build_engine(config={"NoSuchCheck": {}})

    def test_options_reach_the_rule(self):
        engine = build_engine(config={"IsolateSeedDataCheck": {"level": "strict"}})

        self.assertEqual(engine.rule_factories[0]().options, {"level": "strict"})


class DiagnosticSinkTest(unittest.TestCase):
    def test_keeps_duplicates_in_order(self):
        sink = DiagnosticSink()
        where = SourceLocation("db/migrate/001_a.rb", 3)
        sink.record("IsolateSeedDataCheck", "isolate seed data", where)
        sink.record("IsolateSeedDataCheck", "isolate seed data", where)
        sink.record("OtherCheck", "something else", SourceLocation("db/migrate/001_a.rb", 1))

        items = sink.all()
        self.assertEqual(len(items), 3)
        self.assertEqual(items[0], items[1])
        self.assertEqual([d.line for d in items], [3, 3, 1])
        self.assertEqual(str(items[0]), "db/migrate/001_a.rb:3 - isolate seed data")

    def test_concurrent_records(self):
        sink = DiagnosticSink()

        def worker(n):
            for i in range(200):
                sink.record(f"Check{n}", "msg", SourceLocation("f.rb", i + 1))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(len(sink), 800)


if __name__ == "__main__":
    unittest.main()
