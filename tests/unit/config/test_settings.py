"""Tests for preprocessor settings resolution.

Book-table values override user-level JSON defaults; malformed values and
unusable repository paths fall back without raising.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from mdbook_git import config


class SettingsResolutionTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        self.config_path = self.root / "user" / "config.json"
        patcher = mock.patch("mdbook_git.config.CONFIG_PATH", self.config_path)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(self._tmp.cleanup)

    def test_defaults_without_table(self) -> None:
        settings = config.settings_from_mapping(self.root, None)
        self.assertEqual(settings, config.PreprocessorSettings())

    def test_repository_path_is_relative_to_book_root(self) -> None:
        (self.root / "code").mkdir()
        settings = config.settings_from_mapping(self.root / "book" / "..", {"path": "code"})
        self.assertEqual(settings.repository, self.root / "code")

    def test_missing_repository_directory_is_dropped(self) -> None:
        with self.assertLogs("mdbook_git.config", level="WARNING"):
            settings = config.settings_from_mapping(self.root, {"path": "nowhere"})
        self.assertIsNone(settings.repository)

    def test_table_overrides_user_defaults(self) -> None:
        self.config_path.parent.mkdir(parents=True)
        self.config_path.write_text('{"context_lines": 8, "workers": 3}\n', encoding="utf-8")

        from_user = config.settings_from_mapping(self.root, {})
        from_table = config.settings_from_mapping(self.root, {"context-lines": 1, "workers": 2})

        self.assertEqual((from_user.context_lines, from_user.max_workers), (8, 3))
        self.assertEqual((from_table.context_lines, from_table.max_workers), (1, 2))

    def test_invalid_values_fall_back_to_defaults(self) -> None:
        for value in (True, -1, "5", 2.5, None):
            with self.subTest(value=value):
                settings = config.settings_from_mapping(self.root, {"context-lines": value, "workers": 0})
                self.assertEqual(settings.context_lines, 3)
                self.assertEqual(settings.max_workers, 1)

    def test_zero_context_lines_is_allowed(self) -> None:
        self.assertEqual(config.settings_from_mapping(self.root, {"context-lines": 0}).context_lines, 0)

    def test_malformed_user_config_is_ignored(self) -> None:
        self.config_path.parent.mkdir(parents=True)
        self.config_path.write_text("{not json", encoding="utf-8")
        with self.assertLogs("mdbook_git.config", level="WARNING"):
            self.assertEqual(config.load_config(), {})

    def test_non_object_user_config_is_ignored(self) -> None:
        self.config_path.parent.mkdir(parents=True)
        self.config_path.write_text("[1, 2]\n", encoding="utf-8")
        self.assertEqual(config.load_config(), {})

    def test_missing_user_config_is_empty(self) -> None:
        self.assertEqual(config.load_config(), {})


if __name__ == "__main__":
    unittest.main()
