"""Title normalization and feature extraction.

Everything in here is pure: titles go in, canonical strings or extracted
numbers come out. The scorer, the selector and the season resolver all
compare titles through these helpers so that a title is always reduced the
same way regardless of which catalog it came from.
"""

from __future__ import annotations

import re

from rapidfuzz import fuzz
from rapidfuzz.distance import Levenshtein

_APOSTROPHES = re.compile(r"['’‘`]")
_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")
_BARE_YEAR = re.compile(r"\b(?:19|20)\d{2}\b")
_PAREN_YEAR = re.compile(r"\((\d{4})\)")

_SYMBOL_FOLDS = (
    ("&", " and "),
    ("½", " 1/2"),
    ("⅓", " 1/3"),
    ("¼", " 1/4"),
    ("×", "x"),
    ("✕", "x"),
    ("☆", " "),
    ("★", " "),
    ("♪", " "),
    ("_", " "),
)

_NUMBER_WORDS = {
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
    "first": 1,
    "second": 2,
    "third": 3,
    "fourth": 4,
    "fifth": 5,
    "sixth": 6,
}

_ROMAN_NUMERALS = {
    "i": 1,
    "ii": 2,
    "iii": 3,
    "iv": 4,
    "v": 5,
    "vi": 6,
    "vii": 7,
    "viii": 8,
    "ix": 9,
    "x": 10,
}

_NUMBER_TOKEN = r"(\d+|[ivx]+|" + "|".join(_NUMBER_WORDS) + r")"

# First match wins per field, independently for season and part.
SEASON_PATTERNS = (
    re.compile(r"\b(\d+)(?:st|nd|rd|th)\s+season\b"),
    re.compile(r"\b(\d+)\s*(?:e|eme|ème)\s+saison\b"),
    re.compile(r"\bseason\s*" + _NUMBER_TOKEN + r"\b"),
    re.compile(r"\bsaison\s*" + _NUMBER_TOKEN + r"\b"),
    re.compile(r"\bs(\d+)\b"),
    re.compile(r"\b(first|second|third|fourth|fifth|sixth)\s+season\b"),
)

PART_PATTERNS = (
    re.compile(r"\bpart(?:ie)?\s*" + _NUMBER_TOKEN + r"\b"),
    re.compile(r"\b(\d+)(?:st|nd|rd|th)\s+(?:part|cour)\b"),
    re.compile(r"\bp(?:t)?\.?\s*(\d+)\b"),
    re.compile(r"\bcour\s*" + _NUMBER_TOKEN + r"\b"),
)

_SLUG_PATTERNS = (
    re.compile(r"saison[-_ ]?(\d+)(?:[-_ ](\d{1,2}))?(?!\d)"),
    re.compile(r"season[-_ ]?(\d+)(?:[-_ ](?:part[-_ ]?)?(\d{1,2}))?(?!\d)"),
    re.compile(r"^s(\d+)(?:[-_ ]?p(?:art)?[-_ ]?(\d+))?$"),
)

# Matched against the original casing so ordinary words are not read as numerals.
_SEQUEL_CUE = re.compile(r"\b(II|III|IV|V|VI|2|3|4|5|6)\b")

_SEQUEL_INDICATORS = re.compile(
    r"\b(after story|second season|2nd season|season \d+|part \d+|final season)\b",
    re.IGNORECASE,
)

_OVA_SUFFIXES = re.compile(
    r"\s*[:\-]?\s*\b(ovas?|oavs?|specials?|recap|picture drama|bonus)\s*$",
    re.IGNORECASE,
)

_NON_LATIN = re.compile(
    "[\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff\uac00-\ud7af"
    "\u0400-\u04ff\u0600-\u06ff\u0590-\u05ff\u0e00-\u0e7f]"
)

_DURATION = re.compile(
    r"^\s*(?:(\d+)\s*(?:h|hr|hrs|hour|hours)\.?)?\s*(?:(\d+)\s*(?:m|min|mins|minutes?)?\.?)?"
    r"(?:\s*per\s*ep\.?)?\s*$",
    re.IGNORECASE,
)

_FORMAT_ALIASES = {
    "TV": "TV",
    "TV_SERIES": "TV",
    "SERIES": "TV",
    "TV_SHORT": "TV_SHORT",
    "MOVIE": "MOVIE",
    "FILM": "MOVIE",
    "OVA": "OVA",
    "OAV": "OVA",
    "ONA": "ONA",
    "SPECIAL": "SPECIAL",
    "SPECIALS": "SPECIAL",
    "TV_SPECIAL": "SPECIAL",
    "MUSIC": "MUSIC",
}


def normalize_title(text: str | None, remove_year: bool = False) -> str:
    """Reduce a title to its canonical comparison form.

    Lower-cases, folds ``&`` and typographic symbols to ASCII, drops
    apostrophes and all other punctuation, and collapses whitespace.
    The result is stable under a second application.

    Args:
        text: Raw title (None is treated as empty)
        remove_year: Also strip bare years in the 1900-2099 range

    Returns:
        Normalized title (may be empty)
    """
    if not text:
        return ""

    value = text.lower()
    for symbol, replacement in _SYMBOL_FOLDS:
        value = value.replace(symbol, replacement)
    value = _APOSTROPHES.sub("", value)
    value = _PUNCTUATION.sub("", value)
    if remove_year:
        value = _BARE_YEAR.sub(" ", value)
    return _WHITESPACE.sub(" ", value).strip()


def title_words(text: str | None) -> list[str]:
    """Split a title into normalized, year-free words."""
    return normalize_title(text, remove_year=True).split()


def edit_distance(a: str, b: str) -> int:
    return Levenshtein.distance(a, b)


def string_similarity(a: str, b: str) -> float:
    """Whole-string similarity in [0, 1] (normalized Indel ratio)."""
    if not a or not b:
        return 0.0
    return fuzz.ratio(a, b) / 100.0


def normalize_format(value: str | None) -> str | None:
    """Map catalog format labels onto a single vocabulary (TV, MOVIE, OVA, ...)."""
    if value is None:
        return None
    key = re.sub(r"[\s\-]+", "_", str(value).strip()).upper()
    if not key:
        return None
    return _FORMAT_ALIASES.get(key, key)


def _to_int(token: str) -> int | None:
    token = token.lower()
    if token.isdigit():
        return int(token)
    if token in _NUMBER_WORDS:
        return _NUMBER_WORDS[token]
    return _ROMAN_NUMERALS.get(token)


def _first_match(patterns: tuple[re.Pattern[str], ...], text: str) -> int | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            value = _to_int(match.group(1))
            if value is not None:
                return value
    return None


def extract_season_info(title: str | None) -> tuple[int | None, int | None]:
    """Extract ``(season_number, part_number)`` from a title.

    Args:
        title: Any title, slug or label

    Returns:
        Tuple of (season, part), each None when not found
    """
    if not title:
        return None, None
    text = _WHITESPACE.sub(" ", title.lower().replace("-", " ").replace("_", " "))
    return _first_match(SEASON_PATTERNS, text), _first_match(PART_PATTERNS, text)


def extract_season_number(title: str | None) -> int | None:
    return extract_season_info(title)[0]


def parse_season_slug(identifier: str | None) -> tuple[int | None, int | None]:
    """Parse season/part numbers from a catalog slug such as ``saison2-1``.

    Falls back to the free-text patterns when the slug has no known shape.
    """
    if not identifier:
        return None, None
    slug = identifier.lower().strip().rstrip("/").rsplit("/", 1)[-1]
    for pattern in _SLUG_PATTERNS:
        match = pattern.search(slug)
        if match:
            part = match.group(2)
            return int(match.group(1)), int(part) if part else None
    return extract_season_info(slug)


def sequel_cue(title: str | None) -> int | None:
    """Return the season implied by a bare sequel token ("II", "3") in a title."""
    if not title:
        return None
    match = _SEQUEL_CUE.search(title)
    if not match:
        return None
    return _to_int(match.group(1))


def extract_years(*titles: str | None) -> set[int]:
    """Collect four-digit years from titles, parenthesised or bare."""
    years: set[int] = set()
    for title in titles:
        if not title:
            continue
        for match in _PAREN_YEAR.finditer(title):
            year = int(match.group(1))
            if 1900 <= year <= 2099:
                years.add(year)
        for match in _BARE_YEAR.finditer(title):
            years.add(int(match.group(0)))
    return years


def parse_duration(value: int | float | str | None) -> int | None:
    """Parse an episode duration into whole minutes.

    Accepts plain numbers and strings such as ``"24m"``, ``"24 min per ep"``
    or ``"1 hr 45 min"``. Returns None when nothing usable is present.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value) if value > 0 else None

    match = _DURATION.match(value)
    if not match or not any(match.groups()):
        return None
    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    total = hours * 60 + minutes
    return total or None


def is_non_latin(title: str) -> bool:
    """True for titles written in CJK, Hangul, Cyrillic, Arabic, Hebrew or Thai."""
    return bool(_NON_LATIN.search(title))


def has_sequel_indicators(title: str | None) -> bool:
    return bool(title and _SEQUEL_INDICATORS.search(title))


def strip_ova_suffixes(title: str) -> str:
    """Drop trailing OVA/Special/recap markers from a title."""
    stripped = title
    while True:
        reduced = _OVA_SUFFIXES.sub("", stripped).strip()
        if reduced == stripped:
            break
        stripped = reduced
    return stripped or title


_BASE_TITLE_STEPS = (
    re.compile(r"\s*\([^)]*\)"),
    re.compile(r"\s+(?:II|III|IV|V|VI|VII|VIII|IX|X)$"),
    re.compile(r"\s*[:\-]?\s*\b\d+(?:st|nd|rd|th)\s+season\b.*$", re.IGNORECASE),
    re.compile(r"\s*[:\-]?\s*\bseason\s*\d+\b.*$", re.IGNORECASE),
    re.compile(r"\s*[:\-]?\s*\bsaison\s*\d+\b.*$", re.IGNORECASE),
    re.compile(r"\s*[:\-]?\s*\b(?:part|partie|cour)\s*\d+\b.*$", re.IGNORECASE),
    re.compile(r"\s*[:\-]?\s*\b(?:final season|the final)\b.*$", re.IGNORECASE),
)

_COLON_SUBTITLE = re.compile(r"^([^:]+):\s*.+$")
_DASH_SUBTITLE = re.compile(r"^(.+?)\s+[-–]\s+[A-Z].*$")


def extract_base_title(title: str) -> str:
    """Strip season, part, OVA and subtitle markers to get the franchise title.

    ``"Mushoku Tensei: Jobless Reincarnation Season 2 Part 2"`` becomes
    ``"Mushoku Tensei"``; titles without such markers are returned unchanged.
    """
    base = title.strip()
    for step in _BASE_TITLE_STEPS:
        base = step.sub("", base).strip()
    base = strip_ova_suffixes(base)

    colon = _COLON_SUBTITLE.match(base)
    if colon and len(colon.group(1).split()) >= 2:
        base = colon.group(1).strip()

    dash = _DASH_SUBTITLE.match(base)
    if dash and len(dash.group(1).split()) >= 2:
        base = dash.group(1).strip()

    base = base.rstrip(" :-–")
    return base or title.strip()
