from __future__ import annotations

import json
import shutil
import sys
import tempfile
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from crypto_word.games.engine import ConfigError
from crypto_word.games.market import (
    DEFAULT_THEME,
    MarketCatalog,
    MarketItem,
    default_catalog,
    load_market_catalog,
    parse_catalog,
    render_template,
)
from crypto_word_scores import REVEAL_LETTER


class MarketCatalogTests(unittest.TestCase):
    def setUp(self) -> None:
        self.logs = []
        self.tmpdir = tempfile.mkdtemp(prefix="crypto_market_test_")
        self.addCleanup(shutil.rmtree, self.tmpdir, ignore_errors=True)

    def _log(self, message, *args, **kwargs):
        self.logs.append(message)

    def test_parse_catalog(self):
        catalog = parse_catalog(
            {
                "themes": [
                    {"id": "Default", "price": 0, "name": "Classic", "template": "{name}"},
                    {"id": "relay", "price": 40, "name": "Relay", "template": "R {name}"},
                    {"id": "relay", "price": 1, "name": "Duplicate"},
                    {"id": "bad", "price": -5},
                    {"price": 10},
                    "junk",
                ],
                "powerups": [
                    {"id": "reveal_letter", "price": "cheap", "name": "Reveal"},
                    {"id": "freeze_time", "price": 10},
                ],
            },
            clean_log=self._log,
        )
        self.assertEqual([item.id for item in catalog.themes], ["default", "relay", "bad"])
        self.assertEqual(catalog.theme("RELAY").name, "Relay")
        self.assertEqual(catalog.theme("bad").price, 0)
        self.assertEqual(catalog.theme("bad").name, "bad")
        self.assertEqual([item.id for item in catalog.themes_for_sale()], ["relay"])
        self.assertEqual([item.id for item in catalog.powerups], [REVEAL_LETTER])
        self.assertEqual(catalog.powerup(REVEAL_LETTER).price, 0)
        self.assertTrue(any("freeze_time" in line for line in self.logs))
        self.assertTrue(any("'bad' has no template" in line for line in self.logs))

    def test_parse_catalog_rejects_bad_shapes(self):
        with self.assertRaises(ConfigError):
            parse_catalog(["themes"])
        with self.assertRaises(ConfigError):
            parse_catalog({"themes": {"id": "relay"}})
        empty = parse_catalog({})
        self.assertEqual(empty, MarketCatalog())

    def test_profile_theme_fallbacks(self):
        catalog = MarketCatalog(
            themes=(
                MarketItem(id=DEFAULT_THEME, price=0, name="Classic", template="plain {name}"),
                MarketItem(id="relay", price=40, name="Relay", template="relay {name}"),
            )
        )
        self.assertEqual(catalog.profile_theme("relay").id, "relay")
        self.assertEqual(catalog.profile_theme("gone").id, DEFAULT_THEME)
        self.assertEqual(catalog.profile_theme(None).id, DEFAULT_THEME)
        bare = MarketCatalog().profile_theme("relay")
        self.assertEqual(bare.id, DEFAULT_THEME)
        self.assertIn("{name}", bare.template)

    def test_render_template(self):
        self.assertEqual(render_template("{name}: {score}", name="ABCD", score=12), "ABCD: 12")
        self.assertEqual(render_template("{name} {unknown} {", name="X"), "X {unknown} {")

    def test_default_catalog_sells_reveal_letter(self):
        catalog = default_catalog()
        self.assertEqual(catalog.powerup(REVEAL_LETTER).price, 25)
        self.assertEqual(catalog.themes_for_sale(), [])

    def test_load_market_catalog_errors(self):
        with self.assertRaises(ConfigError):
            load_market_catalog(str(Path(self.tmpdir) / "missing.json"))
        broken = Path(self.tmpdir) / "broken.json"
        broken.write_text("{nope", encoding="utf-8")
        with self.assertRaises(ConfigError):
            load_market_catalog(str(broken))

    def test_load_market_catalog_file(self):
        path = Path(self.tmpdir) / "market.json"
        path.write_text(json.dumps({"themes": [{"id": "relay", "price": 3, "template": "{name}"}]}), encoding="utf-8")
        catalog = load_market_catalog(str(path))
        self.assertEqual(catalog.theme("relay").price, 3)
        self.assertEqual(catalog.powerups, ())

    def test_bundled_market_config_loads(self):
        catalog = load_market_catalog(str(PROJECT_ROOT / "market_config.json"), clean_log=self._log)
        self.assertIsNotNone(catalog.theme(DEFAULT_THEME))
        self.assertIsNotNone(catalog.powerup(REVEAL_LETTER))
        self.assertTrue(catalog.themes_for_sale())
        self.assertEqual(self.logs, [])


if __name__ == "__main__":
    unittest.main()
