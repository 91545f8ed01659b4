import csv
import json
import logging
import tempfile
import unittest
from pathlib import Path

from content_renamer.config import AppConfig
from content_renamer.logging_utils import PACKAGE_LOGGER
from content_renamer.main import choose_base_path, default_log_dir, main, process_directory, process_file
from content_renamer.models import NamingRule, NamingRules
from content_renamer.storage import LocalStorage

from storage_fakes import MemoryStorage


def make_config(base: Path, **overrides) -> AppConfig:
    config = AppConfig(
        base_path=str(base),
        file_extensions=[".txt"],
        tesseract_data_path=str(base / "tessdata"),
        tesseract_language="spa",
        max_parallelism=1,
        naming_rules=NamingRules(
            rules=[
                NamingRule(
                    name="Municipalidad de Quilmes",
                    keywords=["municipalidad", "quilmes"],
                    service_name="muni_quilmes",
                ),
                NamingRule(name="Colegio", keywords=["colegio"], service_name="high_school", payment_method="efectivo"),
            ],
            default_service_name="servicio",
            default_payment_method="santander",
        ),
    )
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


class TestProcessDirectory(unittest.TestCase):
    def test_renames_and_organizes(self):
        with tempfile.TemporaryDirectory() as td:
            base = Path(td)
            (base / "scan1.txt").write_text("Municipalidad de Quilmes\n5 de marzo de 2024", encoding="utf-8")
            (base / "sub").mkdir()
            (base / "sub" / "scan2.txt").write_text("Colegio San Jose cuota 01/02/2024", encoding="utf-8")
            (base / "muni_quilmes_2023-01-10_santander.txt").write_text("old", encoding="utf-8")
            (base / "ignored.csv").write_text("a,b", encoding="utf-8")

            operations = process_directory(make_config(base, max_parallelism=2))

            self.assertEqual(len(operations), 3)
            self.assertTrue((base / "2024" / "03_marzo" / "muni_quilmes_2024-03-05_santander.txt").exists())
            self.assertTrue((base / "2024" / "02_febrero" / "high_school_2024-02-01_efectivo.txt").exists())
            self.assertTrue((base / "2023" / "01_enero" / "muni_quilmes_2023-01-10_santander.txt").exists())
            self.assertTrue((base / "ignored.csv").exists())
            statuses = sorted(op.status for op in operations)
            self.assertEqual(statuses, ["already_named", "renamed", "renamed"])

    def test_without_subdirectories(self):
        with tempfile.TemporaryDirectory() as td:
            base = Path(td)
            (base / "sub").mkdir()
            (base / "sub" / "scan.txt").write_text("Colegio 01/02/2024", encoding="utf-8")
            operations = process_directory(make_config(base, include_subdirectories=False))
            self.assertEqual(operations, [])
            self.assertTrue((base / "sub" / "scan.txt").exists())

    def test_dry_run_touches_nothing(self):
        with tempfile.TemporaryDirectory() as td:
            base = Path(td)
            source = base / "scan.txt"
            source.write_text("factura 01/02/2024", encoding="utf-8")

            operations = process_directory(make_config(base), dry_run=True)

            self.assertEqual(len(operations), 1)
            self.assertEqual(
                operations[0].destination,
                str(base / "2024" / "02_febrero" / "servicio_2024-02-01_santander.txt"),
            )
            self.assertTrue(source.exists())
            self.assertFalse((base / "2024").exists())

    def test_same_target_name_is_deduplicated(self):
        with tempfile.TemporaryDirectory() as td:
            base = Path(td)
            (base / "a.txt").write_text("Colegio 01/02/2024", encoding="utf-8")
            (base / "b.txt").write_text("Colegio 01/02/2024", encoding="utf-8")

            process_directory(make_config(base))

            names = sorted(p.name for p in (base / "2024" / "02_febrero").iterdir())
            self.assertEqual(names, ["high_school_2024-02-01_efectivo.txt", "high_school_2024-02-01_efectivo_2.txt"])

    def test_force_reprocesses_already_named(self):
        with tempfile.TemporaryDirectory() as td:
            base = Path(td)
            source = base / "servicio_2023-01-10_santander.txt"
            source.write_text("Colegio 01/02/2024", encoding="utf-8")
            operation = process_file(source, make_config(base, force_reprocess_already_named=True))
            self.assertEqual(operation.status, "renamed")
            self.assertEqual(operation.rule, "Colegio")

    def test_empty_file_has_no_content(self):
        with tempfile.TemporaryDirectory() as td:
            base = Path(td)
            source = base / "blank.txt"
            source.write_text("   ", encoding="utf-8")
            operation = process_file(source, make_config(base))
            self.assertEqual(operation.status, "no_content")
            self.assertTrue(source.exists())

    def test_missing_base_path_processes_nothing(self):
        config = make_config(Path("/definitely/not/a/real/dir"))
        self.assertEqual(process_directory(config), [])


class TestChooseBasePath(unittest.TestCase):
    def test_requested_directory_wins_and_is_remembered(self):
        with tempfile.TemporaryDirectory() as td:
            config = AppConfig(base_path="/configured", last_used_path=td)
            self.assertEqual(choose_base_path(config, td), (td, True))

    def test_falls_back_to_last_used_then_base_path(self):
        with tempfile.TemporaryDirectory() as td:
            config = AppConfig(base_path="/configured", last_used_path=td)
            self.assertEqual(choose_base_path(config, "/missing/dir"), (td, False))
            self.assertEqual(choose_base_path(config, None), (td, False))

            config.last_used_path = "/missing/too"
            self.assertEqual(choose_base_path(config, None), ("/configured", False))


class TestDefaultLogDir(unittest.TestCase):
    def test_beside_configuration_file(self):
        storage = MemoryStorage()
        storage.add_file("/mock/app/appsettings.json", "{}")
        self.assertEqual(default_log_dir(storage), Path("/mock/app/logs"))

    def test_working_directory_without_configuration(self):
        self.assertEqual(default_log_dir(MemoryStorage()), Path.cwd() / "logs")


class TestMain(unittest.TestCase):
    def tearDown(self):
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        for handler in list(package_logger.handlers):
            handler.close()
            package_logger.removeHandler(handler)
        package_logger.propagate = True

    def _project(self, root: Path) -> Path:
        app_dir = root / "app"
        app_dir.mkdir()
        (root / "docs").mkdir()
        document = {
            "Logging": {"LogLevel": {"Default": "Information"}},
            "AppConfig": {
                "BasePath": str(root / "docs"),
                "FileExtensions": [".txt"],
                "TesseractDataPath": "tessdata",
                "TesseractLanguage": "spa",
                "MaxDegreeOfParallelism": 1,
                "NamingRules": {"DefaultServiceName": "servicio", "DefaultPaymentMethod": "santander"},
            },
        }
        (app_dir / "appsettings.json").write_text(json.dumps(document, indent=2), encoding="utf-8")
        return app_dir

    def test_run_persists_requested_path_and_writes_report(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            app_dir = self._project(root)
            scans = root / "scans"
            scans.mkdir()
            (scans / "a.txt").write_text("factura 01/02/2024", encoding="utf-8")
            report = root / "report.csv"

            code = main([str(scans), "--log-dir", str(root / "logs"), "--report", str(report)], LocalStorage(app_dir))

            self.assertEqual(code, 0)
            saved = json.loads((app_dir / "appsettings.json").read_text(encoding="utf-8"))
            self.assertEqual(saved["AppConfig"]["LastUsedPath"], str(scans))
            self.assertEqual(saved["Logging"], {"LogLevel": {"Default": "Information"}})
            self.assertTrue((scans / "2024" / "02_febrero" / "servicio_2024-02-01_santander.txt").exists())
            with report.open(encoding="utf-8") as f:
                rows = list(csv.DictReader(f))
            self.assertEqual([r["status"] for r in rows], ["renamed"])
            self.assertTrue((root / "logs" / "content_renamer.log").exists())

    def test_default_path_is_not_persisted(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            app_dir = self._project(root)
            before = (app_dir / "appsettings.json").read_text(encoding="utf-8")

            code = main(["--log-dir", str(root / "logs")], LocalStorage(app_dir))

            self.assertEqual(code, 0)
            self.assertEqual((app_dir / "appsettings.json").read_text(encoding="utf-8"), before)

    def test_logs_default_to_config_directory(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            app_dir = self._project(root)

            code = main([], LocalStorage(app_dir))

            self.assertEqual(code, 0)
            self.assertTrue((app_dir / "logs" / "content_renamer.log").exists())

    def test_undecodable_configuration_exits_with_error(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            app_dir = root / "app"
            app_dir.mkdir()
            (app_dir / "appsettings.json").write_bytes(b'{"AppConfig": {"BasePath": "\xff\xfe"}}')
            code = main(["--log-dir", str(root / "logs")], LocalStorage(app_dir))
            self.assertEqual(code, 2)

    def test_missing_configuration_exits_with_error(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            (root / "app").mkdir()
            code = main(["--log-dir", str(root / "logs")], LocalStorage(root / "app"))
            self.assertEqual(code, 2)


if __name__ == "__main__":
    unittest.main()
