"""Title variants to query a catalog with.

Catalog search boxes are picky: one finds "Re:Zero" only as "ReZero",
another only knows the franchise title without the season suffix. These
helpers turn a source identity into the ordered query strings the selector
tries.
"""

from __future__ import annotations

import re

from .config import MatchingConfig
from .models import SourceIdentity
from .normalizer import (
    extract_base_title,
    has_sequel_indicators,
    is_non_latin,
    normalize_title,
    strip_ova_suffixes,
)

_INNER_COLON = re.compile(r"(\w):(\w)")
_SEPARATORS = re.compile(r"\s*(?:[:/×]|\s-\s|\s–\s)\s*")
_SLUG_JUNK = re.compile(r"[^a-z0-9]+")
_WHITESPACE = re.compile(r"\s+")


def _key(title: str) -> str:
    return _WHITESPACE.sub(" ", title.casefold()).strip()


def _dedupe(titles: list[str], seen: set[str] | None = None) -> list[str]:
    seen = set() if seen is None else seen
    unique = []
    for title in titles:
        title = _WHITESPACE.sub(" ", title).strip()
        key = _key(title)
        if not key or key in seen:
            continue
        seen.add(key)
        unique.append(title)
    return unique


def simplify_title(title: str) -> str:
    """Replace separators (colons, slashes, spaced dashes, ×) with spaces."""
    simplified = _SEPARATORS.sub(" ", title.replace("×", " x "))
    return _WHITESPACE.sub(" ", simplified).strip()


def build_title_variants(source: SourceIdentity) -> list[str]:
    """Ordered, de-duplicated query strings for the main search pass.

    Source titles come first in their given order, then their simplified
    forms. Titles in non-Latin scripts are skipped since catalogs are
    searched with romanized text. OVA/Special and sequel sources also get
    their titles with OVA markers stripped.
    """
    titles = [title for title in source.titles if not is_non_latin(title)]
    if not titles:
        titles = list(source.titles)

    variants = list(titles)
    variants.extend(simplify_title(title) for title in titles)

    if source.format in ("OVA", "SPECIAL") or any(has_sequel_indicators(t) for t in titles):
        variants.extend(strip_ova_suffixes(title) for title in titles)

    return _dedupe(variants)


def build_compact_variants(
    titles: list[str],
    tried: list[str],
    config: MatchingConfig,
) -> list[str]:
    """Derived variants for when the main pass found nothing.

    Produces colon-joined words ("Re:Zero" -> "ReZero"), the fragment before
    a colon or dash, and a fully compacted form with separators removed.
    Variants already tried or shorter than the configured minimum are left
    out.
    """
    derived: list[str] = []
    for title in titles:
        if is_non_latin(title):
            continue
        joined = _INNER_COLON.sub(r"\1\2", title)
        if joined != title:
            derived.append(joined)

        for separator in (":", " - ", " – "):
            if separator in title:
                derived.append(title.split(separator, 1)[0])

        compact = re.sub(r"(?<=\w)[:/\-](?=\w)", "", title)
        if compact != title:
            derived.append(compact)

    seen = {_key(title) for title in tried}
    return [
        variant
        for variant in _dedupe(derived, seen)
        if len(variant) >= config.compact_variant_min_length
    ]


def alternative_base_title(source: SourceIdentity, config: MatchingConfig) -> str | None:
    """Franchise title to retry with, or None when it adds nothing new."""
    for title in source.titles:
        if is_non_latin(title):
            continue
        base = extract_base_title(title)
        if normalize_title(base) == normalize_title(title):
            continue
        if len(base) > config.alternative_min_length:
            return base
    return None


def slugify(title: str) -> str:
    """Lower-case, ASCII, dash-separated identifier form of a title."""
    value = title.lower().replace("&", " and ").replace("×", " x ")
    value = re.sub(r"['’]", "", value)
    return _SLUG_JUNK.sub("-", value).strip("-")


def build_slug_variations(source: SourceIdentity) -> list[str]:
    """Identifier guesses for a direct catalog lookup.

    For "Fate/Zero" this yields ``fate-zero``, ``fatezero`` and ``fate``,
    followed by the same shapes for the base title and the other titles.
    """
    slugs: list[str] = []
    for title in source.titles:
        if is_non_latin(title):
            continue
        for variant in (title, extract_base_title(title)):
            slug = slugify(variant)
            if not slug:
                continue
            slugs.append(slug)
            slugs.append(slug.replace("-", ""))
            head = slugify(re.split(r"[:/]|\s-\s", variant, maxsplit=1)[0])
            if head:
                slugs.append(head)

    return list(dict.fromkeys(slug for slug in slugs if len(slug) >= 3))
