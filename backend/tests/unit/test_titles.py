"""Tests for query variant generation."""

from __future__ import annotations

from animap.core.matching.config import DEFAULT_CONFIG
from animap.core.matching.models import SourceIdentity
from animap.core.matching.titles import (
    alternative_base_title,
    build_compact_variants,
    build_slug_variations,
    build_title_variants,
    simplify_title,
    slugify,
)


def test_simplify_title() -> None:
    assert simplify_title("Re:Zero kara Hajimeru Isekai Seikatsu") == (
        "Re Zero kara Hajimeru Isekai Seikatsu"
    )
    assert simplify_title("Fate/Zero") == "Fate Zero"
    assert simplify_title("Kimetsu no Yaiba - Mugen Train") == "Kimetsu no Yaiba Mugen Train"
    assert simplify_title("Hunter×Hunter") == "Hunter x Hunter"


def test_title_variants_keep_order_and_skip_non_latin() -> None:
    """Source titles come first, then simplified forms; native script is skipped."""
    source = SourceIdentity(
        titles=[
            "Re:Zero kara Hajimeru Isekai Seikatsu",
            "Re:ZERO -Starting Life in Another World-",
            "Re：ゼロから始める異世界生活",
        ]
    )

    variants = build_title_variants(source)

    assert variants[:2] == source.titles[:2]
    assert "Re Zero kara Hajimeru Isekai Seikatsu" in variants
    assert not any("ゼロ" in variant for variant in variants)


def test_title_variants_are_deduplicated_case_insensitively() -> None:
    source = SourceIdentity(titles=["Frieren", "FRIEREN"])
    assert build_title_variants(source) == ["Frieren"]


def test_title_variants_for_ova_strip_suffix() -> None:
    source = SourceIdentity(titles=["Kaguya-sama OVA"], format="OVA")
    variants = build_title_variants(source)
    assert variants[0] == "Kaguya-sama OVA"
    assert "Kaguya-sama" in variants


def test_title_variants_only_non_latin_titles() -> None:
    """A source known only by its native title is still searched."""
    source = SourceIdentity(titles=["進撃の巨人"])
    assert build_title_variants(source) == ["進撃の巨人"]


def test_compact_variants() -> None:
    """Test colon-joined words, the fragment before a separator and compacted forms."""
    assert build_compact_variants(["Re:Zero Starting Life"], [], DEFAULT_CONFIG) == [
        "ReZero Starting Life"
    ]
    assert build_compact_variants(["Fate/Zero"], [], DEFAULT_CONFIG) == ["FateZero"]
    assert build_compact_variants(["Kimetsu no Yaiba - Mugen Train"], [], DEFAULT_CONFIG) == [
        "Kimetsu no Yaiba"
    ]


def test_compact_variants_skip_tried() -> None:
    assert build_compact_variants(["Fate/Zero"], ["fatezero"], DEFAULT_CONFIG) == []


def test_alternative_base_title() -> None:
    source = SourceIdentity(titles=["Mushoku Tensei: Jobless Reincarnation Season 2 Part 2"])
    assert alternative_base_title(source, DEFAULT_CONFIG) == "Mushoku Tensei"

    assert alternative_base_title(SourceIdentity(titles=["Frieren"]), DEFAULT_CONFIG) is None


def test_slugify() -> None:
    assert slugify("Fate/Zero") == "fate-zero"
    assert slugify("JoJo's Bizarre Adventure") == "jojos-bizarre-adventure"
    assert slugify("Hunter × Hunter") == "hunter-x-hunter"
    assert slugify("Love & War") == "love-and-war"


def test_slug_variations() -> None:
    """Test identifier guesses for a direct lookup."""
    assert build_slug_variations(SourceIdentity(titles=["Fate/Zero"])) == [
        "fate-zero",
        "fatezero",
        "fate",
    ]


def test_slug_variations_include_base_title() -> None:
    slugs = build_slug_variations(SourceIdentity(titles=["Overlord II"]))
    assert slugs[:2] == ["overlord-ii", "overlordii"]
    assert "overlord" in slugs
