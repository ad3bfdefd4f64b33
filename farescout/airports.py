"""Free-text location input to IATA code resolution."""

from __future__ import annotations

import json
import logging
import re
from functools import lru_cache
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

IATA_RE = re.compile(r"^[A-Za-z]{3}$")
KNOWN_CODE_RE = re.compile(r"^[A-Z]{3}$")


def normalize_alias(text: str) -> str:
    return text.strip().lower()


class AliasTable:
    """Ordered, read-only mapping of normalized alias -> IATA code.

    Insertion order is kept: it decides which alias wins a substring match
    and which alias names a code in :meth:`AirportResolver.describe`.
    """

    __slots__ = ("_entries", "_index", "_codes")

    def __init__(self, pairs: Iterable[Tuple[str, str]]) -> None:
        index: dict[str, str] = {}
        for alias, code in pairs:
            key = normalize_alias(alias)
            if key:
                index[key] = code.strip().upper()
        self._index: Mapping[str, str] = MappingProxyType(index)
        self._entries: Tuple[Tuple[str, str], ...] = tuple(index.items())
        self._codes = frozenset(index.values())

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str]) -> "AliasTable":
        return cls(mapping.items())

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def __contains__(self, alias: object) -> bool:
        return isinstance(alias, str) and normalize_alias(alias) in self._index

    def get(self, alias: str) -> Optional[str]:
        return self._index.get(normalize_alias(alias))

    @property
    def codes(self) -> frozenset:
        return self._codes


def load_alias_table(path: Union[str, Path, None] = None) -> AliasTable:
    """Load an alias table from a JSON object file.

    Without *path* the table bundled with the package is used.
    """
    if path is None:
        source = resources.files("farescout") / "data" / "airports.json"
        raw = source.read_text(encoding="utf-8")
        origin = "bundled airports.json"
    else:
        with open(path, "r", encoding="utf-8") as fh:
            raw = fh.read()
        origin = str(path)

    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"Alias table {origin} must be a JSON object")
    table = AliasTable.from_mapping(data)
    logger.info("Loaded %d airport aliases from %s", len(table), origin)
    return table


@lru_cache()
def default_alias_table() -> AliasTable:
    """Return the bundled alias table, loaded once per process."""
    return load_alias_table()


def _title_words(name: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in name.split(" "))


class AirportResolver:
    """Maps city names, airport names, aliases and codes to IATA codes.

    Resolution never fails: unknown input comes back upper-cased and the
    provider decides whether the code exists.
    """

    def __init__(self, table: Optional[AliasTable] = None) -> None:
        self.table = table if table is not None else default_alias_table()

    def resolve(self, text):
        if not text or not isinstance(text, str):
            return text

        stripped = text.strip()
        if IATA_RE.match(stripped):
            return stripped.upper()

        normalized = normalize_alias(stripped)
        code = self.table.get(normalized)
        if code:
            return code

        # Loose containment match, first alias in table order wins. Short
        # inputs can hit unrelated aliases ("in" -> first alias containing it).
        if normalized:
            for alias, code in self.table:
                if alias in normalized or normalized in alias:
                    return code

        return text.upper()

    def describe(self, code: str) -> str:
        for alias, alias_code in self.table:
            if alias_code == code:
                return _title_words(alias)
        return code

    def is_known_code(self, code: str) -> bool:
        return bool(
            isinstance(code, str) and KNOWN_CODE_RE.match(code) and code in self.table.codes
        )

    def suggest(self, query: str, limit: int = 8) -> List[Tuple[str, str]]:
        """Autocomplete suggestions as ``(code, display name)`` pairs."""
        query = normalize_alias(query or "")
        if len(query) < 2:
            return []
        limit = max(1, min(int(limit), 12))

        results: List[Tuple[str, str]] = []
        seen = set()
        for alias, code in self.table:
            if code in seen:
                continue
            if query in alias or query == code.lower():
                seen.add(code)
                results.append((code, self.describe(code)))
                if len(results) >= limit:
                    break
        return results


__all__ = [
    "AliasTable",
    "AirportResolver",
    "load_alias_table",
    "default_alias_table",
    "normalize_alias",
]
