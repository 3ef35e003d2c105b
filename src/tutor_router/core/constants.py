"""
Physical constant lookup table.

The table is loaded once from packaged YAML and never mutated. The physics
responder consults it before calling a model so that well-known constants are
answered deterministically.
"""

from functools import lru_cache
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

import yaml

from ..models.schemas import ConstantEntry

DEFAULT_MATCH_THRESHOLD = 0.3


class ConstantTable:
    """
    Read-only mapping from constant name to ConstantEntry.

    Example:
        table = default_constants()
        entry = table.match("What is the speed of light?")
        print(ConstantTable.format_entry(entry))
    """

    def __init__(self, entries: Iterable[ConstantEntry]):
        rows: dict[str, ConstantEntry] = {}
        for entry in entries:
            if entry.key in rows:
                raise ValueError(f"Duplicate constant key: {entry.key!r}")
            rows[entry.key] = entry
        self._entries: Mapping[str, ConstantEntry] = MappingProxyType(rows)

    @classmethod
    def from_yaml(cls, path: Path) -> "ConstantTable":
        with path.open(encoding="utf-8") as f:
            return cls.from_data(yaml.safe_load(f))

    @classmethod
    def from_data(cls, data: Mapping | None) -> "ConstantTable":
        """Build from the parsed YAML document ({"constants": [...]})."""
        rows = (data or {}).get("constants", [])
        return cls(ConstantEntry.model_validate(row) for row in rows)

    def __getitem__(self, key: str) -> ConstantEntry:
        return self._entries[key]

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[ConstantEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> list[str]:
        return list(self._entries)

    @staticmethod
    def score(query: str, key: str) -> float:
        """
        Fuzzy score of `key` against `query`.

        Zero unless one string contains the other (case-insensitive); otherwise
        len(query) / len(key). Longer queries therefore favour shorter keys.
        """
        query_lower = query.lower()
        key_lower = key.lower()
        if key_lower in query_lower or query_lower in key_lower:
            return len(query_lower) / len(key_lower)
        return 0.0

    def match(
        self, query: str, threshold: float = DEFAULT_MATCH_THRESHOLD
    ) -> ConstantEntry | None:
        """Best-scoring entry whose score exceeds `threshold`, or None."""
        best: ConstantEntry | None = None
        best_score = 0.0

        for key, entry in self._entries.items():
            score = self.score(query, key)
            if score > best_score and score > threshold:
                best_score = score
                best = entry

        return best

    @staticmethod
    def format_entry(entry: ConstantEntry) -> str:
        """Markdown block with symbol, value and description."""
        title = entry.key[:1].upper() + entry.key[1:]
        value = f"{entry.value} {entry.unit}".rstrip()
        return (
            f"**{title}**\n"
            f"- Symbol: `{entry.symbol}`\n"
            f"- Value: `{value}`\n"
            f"- Description: {entry.description}"
        )

    def lookup(self, query: str, threshold: float = DEFAULT_MATCH_THRESHOLD) -> str | None:
        """Formatted answer for `query`, or None when nothing matches."""
        entry = self.match(query, threshold)
        return self.format_entry(entry) if entry else None


@lru_cache(maxsize=1)
def default_constants() -> ConstantTable:
    """The packaged constant table, loaded once per process."""
    source = resources.files("tutor_router.data").joinpath("physics_constants.yaml")
    return ConstantTable.from_data(yaml.safe_load(source.read_text(encoding="utf-8")))
