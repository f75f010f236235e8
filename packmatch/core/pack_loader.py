"""Read-only access to downloaded packs on disk.

Packs live at ``<PACKS_DIR>/<normalized-city>.json``. Storage, download and
refresh belong elsewhere; this module only reads and validates.
"""

import json
import re
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from packmatch.core.config import get_settings
from packmatch.core.errors import PackInvalidError, PackNotFoundError
from packmatch.core.logging import get_logger
from packmatch.core.schemas_pack import Pack

logger = get_logger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_UNSAFE_RE = re.compile(r"[^\w-]")


def normalize_city_name(city: str) -> str:
    """
    Normalize a city name into a pack slug.

    "Paris, France" → "paris", "New York" → "new-york".
    """
    name = city.strip().lower().split(",")[0].strip()
    name = _WHITESPACE_RE.sub("-", name)
    return _UNSAFE_RE.sub("", name)


def parse_pack(raw: Any, city: str = "") -> Pack:
    """
    Validate raw pack JSON.

    Malformed cards and micro-situations are skipped; a missing tier1 or city
    is fatal.

    Raises:
        PackInvalidError: If the payload cannot form a Pack
    """
    if not isinstance(raw, dict):
        raise PackInvalidError(city or "?", f"expected an object, got {type(raw).__name__}")
    try:
        return Pack.model_validate(raw)
    except ValidationError as e:
        raise PackInvalidError(city or str(raw.get("city", "?")), str(e)) from e


class PackStore:
    """Packs stored as JSON files in one directory."""

    def __init__(self, packs_dir: str | Path | None = None):
        self.packs_dir = Path(packs_dir or get_settings().PACKS_DIR)

    def path_for(self, city: str) -> Path:
        return self.packs_dir / f"{normalize_city_name(city)}.json"

    def has_pack(self, city: str) -> bool:
        return bool(normalize_city_name(city)) and self.path_for(city).is_file()

    def available_cities(self) -> list[str]:
        if not self.packs_dir.is_dir():
            return []
        return sorted(p.stem for p in self.packs_dir.glob("*.json"))

    def load(self, city: str) -> Pack:
        """
        Load and validate the pack for ``city``.

        Raises:
            PackNotFoundError: No pack file for the city
            PackInvalidError: File exists but isn't a valid pack
        """
        slug = normalize_city_name(city)
        if not slug:
            raise PackNotFoundError(city)

        path = self.path_for(city)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise PackNotFoundError(city) from e
        except json.JSONDecodeError as e:
            raise PackInvalidError(slug, f"invalid JSON: {e}") from e

        pack = parse_pack(raw, slug)
        logger.info(f"Loaded pack {slug} ({pack.micro_situation_count()} micro-situations)")
        return pack


def load_pack(city: str, packs_dir: str | Path | None = None) -> Pack:
    """Load one pack from ``packs_dir`` (defaults to PACKS_DIR)."""
    return PackStore(packs_dir).load(city)
