import os
import sys
import tempfile
import textwrap
import unittest
from pathlib import Path
from unittest.mock import patch

from app_config import (
    AppConfigurationError,
    load_app_config,
    resolve_config_path,
)


def _write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


class AppConfigLoadingTests(unittest.TestCase):
    def test_load_app_config_reads_all_sections(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            config_path = root / "config.toml"
            _write_text(
                config_path,
                textwrap.dedent(
                    """
                    [cycle]
                    debug_mode = true
                    start_on_launch = false
                    allow_break_dismissal = true

                    [ui_server]
                    enabled = false
                    host = "0.0.0.0"
                    port = 9000
                    index_file = "web/index.html"

                    [logging]
                    level = "debug"
                    """
                ).strip(),
            )

            app_config = load_app_config(str(config_path))

            self.assertEqual(str(config_path), app_config.source_file)
            self.assertTrue(app_config.cycle.debug_mode)
            self.assertFalse(app_config.cycle.start_on_launch)
            self.assertTrue(app_config.cycle.allow_break_dismissal)
            self.assertFalse(app_config.ui_server.enabled)
            self.assertEqual("0.0.0.0", app_config.ui_server.host)
            self.assertEqual(9000, app_config.ui_server.port)
            self.assertEqual(
                str((root / "web/index.html").resolve()),
                app_config.ui_server.index_file,
            )
            self.assertEqual("DEBUG", app_config.logging.level)

    def test_load_app_config_applies_defaults_for_empty_file(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            _write_text(config_path, "")

            app_config = load_app_config(str(config_path))

            self.assertFalse(app_config.cycle.debug_mode)
            self.assertTrue(app_config.cycle.start_on_launch)
            self.assertFalse(app_config.cycle.allow_break_dismissal)
            self.assertTrue(app_config.ui_server.enabled)
            self.assertEqual(8765, app_config.ui_server.port)
            self.assertEqual("", app_config.ui_server.index_file)
            self.assertEqual("INFO", app_config.logging.level)

    def test_load_app_config_rejects_non_boolean_debug_mode(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            _write_text(config_path, "[cycle]\ndebug_mode = 3\n")

            with self.assertRaises(AppConfigurationError) as context:
                load_app_config(str(config_path))

            self.assertIn("cycle.debug_mode", str(context.exception))

    def test_load_app_config_rejects_unknown_log_level(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            _write_text(config_path, '[logging]\nlevel = "LOUD"\n')

            with self.assertRaises(AppConfigurationError) as context:
                load_app_config(str(config_path))

            self.assertIn("logging.level", str(context.exception))

    def test_load_app_config_rejects_boolean_port(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            _write_text(config_path, "[ui_server]\nport = true\n")

            with self.assertRaises(AppConfigurationError):
                load_app_config(str(config_path))

    def test_load_app_config_rejects_non_table_section(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            _write_text(config_path, 'cycle = "fast"\n')

            with self.assertRaises(AppConfigurationError):
                load_app_config(str(config_path))

    def test_load_app_config_reports_invalid_toml(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            _write_text(config_path, "[cycle\n")

            with self.assertRaises(AppConfigurationError) as context:
                load_app_config(str(config_path))

            self.assertIn("Failed to parse config TOML", str(context.exception))

    def test_load_app_config_reports_missing_file(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            with self.assertRaises(AppConfigurationError):
                load_app_config(str(Path(temp_dir) / "absent.toml"))

    def test_resolve_config_path_prefers_environment_variable(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            env_config = Path(temp_dir) / "custom.toml"
            _write_text(env_config, "")

            with patch.dict(os.environ, {"APP_CONFIG_FILE": str(env_config)}, clear=True):
                resolved = resolve_config_path()

            self.assertEqual(env_config, resolved)

    def test_resolve_config_path_uses_bundle_fallback_in_frozen_mode(self) -> None:
        with tempfile.TemporaryDirectory() as cwd_dir, tempfile.TemporaryDirectory() as bundle_dir:
            cwd = Path(cwd_dir)
            bundled_config = Path(bundle_dir) / "config.toml"
            _write_text(bundled_config, "[cycle]\ndebug_mode = true\n")

            with patch.dict(os.environ, {}, clear=True):
                with patch("app_config.Path.cwd", return_value=cwd):
                    with patch.object(sys, "_MEIPASS", bundle_dir, create=True):
                        resolved = resolve_config_path()

            self.assertEqual(bundled_config, resolved)


if __name__ == "__main__":
    unittest.main()
