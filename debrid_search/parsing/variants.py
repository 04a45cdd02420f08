# debrid_search/parsing/variants.py

"""Detects edition variants ("Director's Cut", "OVA", ...) of a searched title."""

from __future__ import annotations

import re
from collections.abc import Iterable

from .episodes import parse_absolute_episode, parse_episode_from_title, parse_season_from_title
from .patterns import (
    ALL_EXTENSIONS,
    CLEANUP_PATTERNS,
    TECHNICAL_TERM_PATTERNS,
    is_meaningful_variant,
    is_technical_term,
)
from .release_groups import is_known_release_group
from .roman import roman_to_number

SIMILARITY_THRESHOLD = 0.85


def normalize_title(title: str) -> str:
    if not title:
        return ""
    title = re.sub(r"[\W_]+", " ", title.lower())
    return re.sub(r"\s+", " ", title).strip()


def word_similarity(first: str, second: str) -> float:
    """Share of common words relative to the longer of the two titles."""
    words1 = first.lower().split()
    words2 = second.lower().split()
    if not words1 or not words2:
        return 0.0
    common = [word for word in words1 if word in words2]
    return len(common) / max(len(words1), len(words2))


def _contains_episode_pattern(text: str) -> bool:
    lowered = text.lower().strip()
    if re.fullmatch(r"\d{1,3}", lowered):
        return True
    if re.fullmatch(r"[ivx]{1,5}", lowered):
        value = roman_to_number(lowered.upper())
        if value is not None and 1 <= value <= 10:
            return True
    return (
        parse_season_from_title(lowered) is not None
        or parse_episode_from_title(lowered) is not None
        or parse_absolute_episode(lowered) is not None
    )


def _cleanup_text(text: str) -> str:
    if is_meaningful_variant(text.lower().strip()):
        words = [
            word
            for word in text.split()
            if not is_technical_term(word) and not is_known_release_group(word)
        ]
        cleaned = " ".join(words)
    else:
        cleaned = text
        for pattern in TECHNICAL_TERM_PATTERNS:
            cleaned = pattern.sub("", cleaned)
        for ext in ALL_EXTENSIONS:
            cleaned = re.sub(rf"\b{ext}\b", "", cleaned, flags=re.IGNORECASE)
        for key in (
            "quality",
            "source",
            "unwanted",
            "bracket_content",
            "empty_brackets",
            "empty_parentheses",
            "group_tags",
        ):
            cleaned = CLEANUP_PATTERNS[key].sub("", cleaned)
        cleaned = CLEANUP_PATTERNS["dots_underscores"].sub(" ", cleaned)
        cleaned = CLEANUP_PATTERNS["multiple_spaces"].sub(" ", cleaned)
        cleaned = CLEANUP_PATTERNS["trailing_dash"].sub("", cleaned)

    cleaned = re.sub(r"\b\d{3,4}x\d{3,4}\b", "", cleaned)
    cleaned = re.sub(r"\b\d{1,2}\b", "", cleaned)
    cleaned = re.sub(r"\b(rip|dl)\b", "", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"\b(bd|web|hd|tv|dvd)\b", "", cleaned, flags=re.IGNORECASE)
    return re.sub(r"\s+", " ", cleaned).strip()


def cleanup_variant_name(variant: str) -> str:
    """Reduces the leftover part of a title to its human-readable edition name."""
    meaningful: list[str] = []
    for word in variant.split():
        if re.fullmatch(r"s\d+", word, re.IGNORECASE) or re.fullmatch(r"\d{4}", word):
            break
        if re.fullmatch(r"\d{1,2}x\d{1,2}", word, re.IGNORECASE):
            break
        if is_technical_term(word) or is_known_release_group(word):
            continue
        meaningful.append(word)

    if meaningful:
        cleaned = _cleanup_text(" ".join(meaningful))
        cleaned = re.sub(r"\b(s\d+|season\s*\d+)\b", "", cleaned, flags=re.IGNORECASE)
        cleaned = re.sub(r"\b\d{4}\b", "", cleaned)
        cleaned = re.sub(r"\b\d{1,2}x\d{1,2}\b", "", cleaned, flags=re.IGNORECASE)
        return re.sub(r"\s+", " ", cleaned).strip()

    if _contains_episode_pattern(variant):
        return ""
    return _cleanup_text(variant)


def detect_variant(
    extracted_title: str,
    search_title: str,
    alternative_titles: Iterable[str] = (),
    episode_title: str | None = None,
) -> str | None:
    """Returns the variant name when ``extracted_title`` is an edition of the search title."""
    if not extracted_title or not search_title:
        return None

    alternatives = [
        normalized
        for normalized in (normalize_title(title) for title in alternative_titles)
        if normalized
    ]
    extracted = normalize_title(extracted_title)
    all_titles = [normalize_title(search_title), *alternatives]

    if extracted in all_titles:
        return None

    without_episode = re.sub(r"\s+\d{1,3}$", "", extracted).strip()
    for title in all_titles:
        if without_episode == title:
            return None
        if word_similarity(without_episode, title) > SIMILARITY_THRESHOLD:
            return None

    for base in sorted(all_titles, key=len, reverse=True):
        if not base or base not in extracted:
            continue
        remainder = extracted.replace(base, "", 1).strip()
        remainder = re.sub(r"^[-:\s]+", "", remainder)
        remainder = re.sub(r"[-:\s]+$", "", remainder)
        if len(remainder) <= 2:
            continue

        normalized_remainder = normalize_title(remainder)
        if any(
            alt in normalized_remainder or normalized_remainder in alt
            for alt in alternatives
        ):
            return None
        if episode_title:
            normalized_episode = normalize_title(episode_title)
            if (
                normalized_remainder in normalized_episode
                or normalized_episode in normalized_remainder
            ):
                return None

        variant = cleanup_variant_name(remainder).strip()
        if len(variant) > 1:
            return " ".join(word[:1].upper() + word[1:] for word in variant.split(" "))
    return None
