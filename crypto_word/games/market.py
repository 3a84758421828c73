"""Points market: profile themes and power-ups bought with puzzle points.

Catalog file format (``market_config.json``)::

    {
      "themes": [
        {"id": "default", "price": 0, "name": "Classic",
         "description": "Plain profile card.",
         "template": "👤 {name}\\n🏅 {score} pts"}
      ],
      "powerups": [
        {"id": "reveal_letter", "price": 25, "name": "Reveal Letter",
         "description": "Uncover one random hidden letter."}
      ]
    }

Theme templates fill ``{name}``, ``{score}`` and ``{rank}``. Themes priced at
0 are free and are not listed for sale; ``default`` is the fallback profile.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Tuple

from crypto_word_scores import REVEAL_LETTER

from .engine import ConfigError

DEFAULT_THEME = "default"
KNOWN_POWERUPS = {REVEAL_LETTER}

DEFAULT_TEMPLATE = "👤 {name}\n🏅 {score} pts"

LogFn = Callable[..., None]


@dataclass(frozen=True)
class MarketItem:
    id: str
    price: int
    name: str
    description: str = ""
    template: str = ""

    @property
    def for_sale(self) -> bool:
        return self.price > 0


def render_template(template: str, **values: Any) -> str:
    # plain replacement so stray braces in a template never raise
    text = template
    for key, value in values.items():
        text = text.replace("{" + key + "}", str(value))
    return text


@dataclass(frozen=True)
class MarketCatalog:
    themes: Tuple[MarketItem, ...] = ()
    powerups: Tuple[MarketItem, ...] = ()

    def theme(self, theme_id: Optional[str]) -> Optional[MarketItem]:
        key = (theme_id or "").strip().lower()
        for item in self.themes:
            if item.id == key:
                return item
        return None

    def powerup(self, powerup_id: Optional[str]) -> Optional[MarketItem]:
        key = (powerup_id or "").strip().lower()
        for item in self.powerups:
            if item.id == key:
                return item
        return None

    def themes_for_sale(self) -> List[MarketItem]:
        return [item for item in self.themes if item.for_sale]

    def profile_theme(self, theme_id: Optional[str]) -> MarketItem:
        """The player's theme, else ``default``, else a built-in card."""
        return (
            self.theme(theme_id)
            or self.theme(DEFAULT_THEME)
            or MarketItem(id=DEFAULT_THEME, price=0, name="Classic", template=DEFAULT_TEMPLATE)
        )


def default_catalog() -> MarketCatalog:
    return MarketCatalog(
        themes=(MarketItem(id=DEFAULT_THEME, price=0, name="Classic", template=DEFAULT_TEMPLATE),),
        powerups=(
            MarketItem(
                id=REVEAL_LETTER,
                price=25,
                name="Reveal Letter",
                description="Uncover one random hidden letter.",
            ),
        ),
    )


def _parse_items(raw: Any, kind: str) -> List[MarketItem]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError(f"'{kind}' must be a JSON list")
    items: List[MarketItem] = []
    seen = set()
    for entry in raw:
        if not isinstance(entry, Mapping):
            continue
        item_id = str(entry.get("id") or "").strip().lower()
        if not item_id or item_id in seen:
            continue
        price = entry.get("price", 0)
        if isinstance(price, bool) or not isinstance(price, int):
            price = 0
        seen.add(item_id)
        items.append(
            MarketItem(
                id=item_id,
                price=max(0, price),
                name=str(entry.get("name") or item_id),
                description=str(entry.get("description") or ""),
                template=str(entry.get("template") or ""),
            )
        )
    return items


def parse_catalog(raw: Mapping[str, Any], clean_log: Optional[LogFn] = None) -> MarketCatalog:
    if not isinstance(raw, Mapping):
        raise ConfigError("market config must be a JSON object")
    themes = _parse_items(raw.get("themes"), "themes")
    powerups: List[MarketItem] = []
    for item in _parse_items(raw.get("powerups"), "powerups"):
        if item.id not in KNOWN_POWERUPS:
            if clean_log:
                clean_log(f"Market power-up '{item.id}' has no effect; skipped", "⚠️")
            continue
        powerups.append(item)
    for item in themes:
        if not item.template and clean_log:
            clean_log(f"Market theme '{item.id}' has no template", "⚠️")
    return MarketCatalog(themes=tuple(themes), powerups=tuple(powerups))


def load_market_catalog(path: str, clean_log: Optional[LogFn] = None) -> MarketCatalog:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            raw = json.load(fh)
    except OSError as exc:
        raise ConfigError(f"could not read market config file {path}: {exc}") from exc
    except ValueError as exc:
        raise ConfigError(f"could not parse market config file {path}: {exc}") from exc
    return parse_catalog(raw, clean_log=clean_log)


__all__ = [
    "MarketItem",
    "MarketCatalog",
    "default_catalog",
    "parse_catalog",
    "load_market_catalog",
    "render_template",
    "DEFAULT_THEME",
    "REVEAL_LETTER",
]
