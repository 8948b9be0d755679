"""Word-variation expansion.

A synonym table groups tokens that mean the same thing in a title
("season" / "s" / "sz", "two" / "2" / "ii", "2nd season" / "season 2").
Tables are static data, so each expander memoizes its lookups for the
lifetime of the process. Catalogs pick the table they need by name.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import lru_cache

import structlog

from .normalizer import normalize_title

logger = structlog.get_logger("animap.matching.variations")

_DIGITS = re.compile(r"\d+")
_WHITESPACE = re.compile(r"\s+")
_ROMAN_TOKENS = frozenset({"ii", "iii", "iv", "v", "vi"})


@dataclass(frozen=True)
class SynonymTable:
    """A named pair of synonym groups.

    Attributes:
        name: Registry key ("english", "french")
        lexical: Single-token equivalents keyed by canonical token
        sequels: Sequel-phrase equivalents keyed by canonical phrase
    """

    name: str
    lexical: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    sequels: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def groups(self) -> list[tuple[str, tuple[str, ...]]]:
        return list(self.lexical.items()) + list(self.sequels.items())

    def extend(self, name: str, other: SynonymTable) -> SynonymTable:
        """Return a new table with ``other``'s groups merged into this one's."""
        lexical = {key: tuple(values) for key, values in self.lexical.items()}
        for key, values in other.lexical.items():
            lexical[key] = tuple(dict.fromkeys(lexical.get(key, ()) + tuple(values)))
        sequels = {key: tuple(values) for key, values in self.sequels.items()}
        for key, values in other.sequels.items():
            sequels[key] = tuple(dict.fromkeys(sequels.get(key, ()) + tuple(values)))
        return SynonymTable(name=name, lexical=lexical, sequels=sequels)


ENGLISH_SYNONYMS = SynonymTable(
    name="english",
    lexical={
        "season": ("s", "sz"),
        "two": ("2", "ii", "second", "2nd"),
        "three": ("3", "iii", "third", "3rd"),
        "four": ("4", "iv", "fourth", "4th"),
        "five": ("5", "v", "fifth", "5th"),
        "six": ("6", "vi", "sixth", "6th"),
        "first": ("1", "1st", "one"),
        "part": ("pt", "p"),
        "episode": ("ep", "eps"),
        "chapter": ("ch", "chapters"),
        "movie": ("film", "gekijouban"),
        "and": ("x",),
    },
    sequels={
        "2nd season": ("second season", "s2", "season 2", "season two", "ii"),
        "3rd season": ("third season", "s3", "season 3", "season three", "iii"),
        "4th season": ("fourth season", "s4", "season 4", "season four", "iv"),
        "5th season": ("fifth season", "s5", "season 5", "season five"),
        "part 2": ("part two", "p2", "pt 2", "cour 2", "2nd cour", "second cour"),
        "part 3": ("part three", "p3", "pt 3", "cour 3", "3rd cour", "third cour"),
        "final season": ("last season", "finale", "final", "end"),
    },
)

_FRENCH_ONLY = SynonymTable(
    name="french-only",
    lexical={
        "saison": ("season", "s", "sz"),
        "film": ("movie", "films"),
        "two": ("deux", "2e", "2eme", "2ème", "deuxième"),
        "three": ("trois", "3e", "3eme", "3ème", "troisième"),
        "four": ("quatre", "4e", "4eme", "4ème"),
        "part": ("partie",),
        "episode": ("épisode",),
        "and": ("et",),
    },
    sequels={
        "2nd season": ("2ème saison", "deuxième saison", "saison 2", "saison deux"),
        "3rd season": ("3ème saison", "troisième saison", "saison 3", "saison trois"),
        "4th season": ("4ème saison", "saison 4"),
        "part 2": ("partie 2", "partie deux"),
        "part 3": ("partie 3",),
        "final season": ("saison finale", "dernière saison"),
    },
)

FRENCH_SYNONYMS = ENGLISH_SYNONYMS.extend("french", _FRENCH_ONLY)

SYNONYM_TABLES: dict[str, SynonymTable] = {
    ENGLISH_SYNONYMS.name: ENGLISH_SYNONYMS,
    FRENCH_SYNONYMS.name: FRENCH_SYNONYMS,
}


def _is_phrase_variant(value: str) -> bool:
    return " " in value or any(ch.isdigit() for ch in value) or value in _ROMAN_TOKENS


class WordVariationExpander:
    """Expands words and sequel phrases using one synonym table."""

    def __init__(self, table: SynonymTable) -> None:
        self.table = table
        self._memo: dict[str, frozenset[str]] = {}
        self._phrase_patterns = self._build_phrase_patterns()

    def _build_phrase_patterns(self) -> list[tuple[re.Pattern[str], str]]:
        canonical: dict[str, str] = {}
        for key, values in self.table.sequels.items():
            for value in values:
                phrase = normalize_title(value)
                if phrase and _is_phrase_variant(phrase) and phrase not in canonical:
                    canonical[phrase] = normalize_title(key)

        # Longest first so "season two" is rewritten before "two" could be.
        ordered = sorted(canonical.items(), key=lambda item: len(item[0]), reverse=True)
        return [
            (re.compile(r"(?<!\w)" + re.escape(phrase) + r"(?!\w)"), key) for phrase, key in ordered
        ]

    def variations_of(self, word: str) -> frozenset[str]:
        """Return every token considered equivalent to ``word``.

        Includes the word itself, its normalized form, a numerals-stripped
        form and the full synonym group of any table entry it belongs to.
        """
        memo_key = word.lower()
        cached = self._memo.get(memo_key)
        if cached is not None:
            return cached

        normalized = normalize_title(word)
        variations = {value for value in (word, normalized) if value}

        without_numbers = _WHITESPACE.sub(" ", _DIGITS.sub("", normalized)).strip()
        if without_numbers and without_numbers != normalized:
            variations.add(without_numbers)

        for key, values in self.table.groups():
            if normalized == key:
                variations.update(values)
            elif normalized in values:
                variations.add(key)
                variations.update(values)

        result = frozenset(variations)
        self._memo[memo_key] = result
        return result

    def canonicalize_phrases(self, text: str) -> str:
        """Rewrite known sequel phrases in a normalized title to their canonical key.

        ``"overlord season 2"`` and ``"overlord ii"`` both become
        ``"overlord 2nd season"`` so that word-level scoring lines them up.
        """
        if not text:
            return text
        for pattern, key in self._phrase_patterns:
            text = pattern.sub(key, text)
        return _WHITESPACE.sub(" ", text).strip()

    def cache_size(self) -> int:
        return len(self._memo)


@lru_cache(maxsize=None)
def get_expander(table_name: str = "english") -> WordVariationExpander:
    """Get the shared expander for a registered synonym table.

    Args:
        table_name: Key in SYNONYM_TABLES

    Returns:
        Memoizing WordVariationExpander for that table

    Raises:
        KeyError: If no table is registered under ``table_name``
    """
    table = SYNONYM_TABLES[table_name]
    logger.debug("Creating word variation expander", table=table_name)
    return WordVariationExpander(table)
