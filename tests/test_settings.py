from __future__ import annotations

import contextlib
import io
import json
import sys
import tempfile
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from crypto_word.settings import BotSettings, load_settings


class SettingsTests(unittest.TestCase):
    def test_defaults(self):
        settings = BotSettings.from_mapping({})
        self.assertEqual(settings.game_config_path, "game_config.json")
        self.assertTrue(settings.replaces_active(is_private=True))
        self.assertFalse(settings.replaces_active(is_private=False))

    def test_overrides_and_bad_values(self):
        settings = BotSettings.from_mapping({
            "leaderboard_size": "4",
            "market_config_path": " shop.json ",
            "max_chunk_length": 5,
            "chunk_delay": "soon",
            "wifi_host": "10.0.0.5",
            "use_wifi": 1,
            "replace_policy": {"private": "REFUSE", "shared": "whatever"},
        })
        self.assertEqual(settings.leaderboard_size, 4)
        self.assertEqual(settings.market_config_path, "shop.json")
        self.assertEqual(settings.max_chunk_length, 40)
        self.assertEqual(settings.chunk_delay, 2.0)
        self.assertEqual(settings.wifi_host, "10.0.0.5")
        self.assertTrue(settings.use_wifi)
        self.assertFalse(settings.replaces_active(is_private=True))
        self.assertFalse(settings.replaces_active(is_private=False))

    def test_load_settings_missing_file_uses_defaults(self):
        with tempfile.TemporaryDirectory() as tmp:
            buf = io.StringIO()
            with contextlib.redirect_stdout(buf):
                settings = load_settings(str(Path(tmp) / "nope.json"))
        self.assertEqual(settings, BotSettings())
        self.assertIn("not found", buf.getvalue())

    def test_load_settings_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text(json.dumps({"leaderboard_size": 3, "debug": True}), encoding="utf-8")
            settings = load_settings(str(path))
        self.assertEqual(settings.leaderboard_size, 3)
        self.assertTrue(settings.debug)


if __name__ == "__main__":
    unittest.main()
