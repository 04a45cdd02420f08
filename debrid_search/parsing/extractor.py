# debrid_search/parsing/extractor.py

"""
Turns a raw file or container name into structured attributes.

Every function here is pure and never raises on malformed input: unknown
fields stay ``None`` (or empty), so results can be cached by name.
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass, field, replace

from ..config import logger
from ..models import MovieInfo, SeriesInfo
from .episodes import (
    extract_episode_title,
    parse_absolute_episode,
    parse_episode_from_title,
    parse_season_from_title,
)
from .patterns import (
    CODEC_PATTERNS,
    QUALITY_PATTERNS,
    SOURCE_PATTERNS,
    TECHNICAL_TAG_PATTERNS,
    VIDEO_EXTENSION_RE,
    build_technical_details,
    detect_audio,
    detect_codec,
    detect_languages,
    detect_source,
    extract_quality_info,
    get_quality_display,
    has_obvious_episode_indicators,
    strip_extension,
)
from .release_groups import extract_release_group
from .roman import parse_roman_season

_CLASSIC_EPISODE_RE = re.compile(
    r"(?i)\b(S(\d{1,2})E(\d{1,3})|(\d{1,2})x(\d{1,3}))\b"
)
_YEAR_RE = re.compile(r"\b(19\d{2}|20\d{2})\b")
_RESOLUTION_RE = re.compile(r"(?i)\b(\d{3,4}p|4K|UHD)\b")
_ANIME_DASH_RE = re.compile(r"\s-\s*\d{2,4}\b")
_EDITION_TAGS = ("🎞️ IMAX", "⏱️ Extended", "🎬 Director's Cut", "🔓 Uncut", "🔞 Unrated")


@dataclass(frozen=True)
class UnifiedParse:
    title: str | None = None
    season: int | None = None
    episode: int | None = None
    absolute_episode: int | None = None
    roman_season: int | None = None
    year: int | None = None
    resolution: str | None = None
    source: str | None = None
    codec: str | None = None
    audio: tuple[str, ...] = ()
    languages: tuple[str, ...] = ()


@dataclass(frozen=True)
class TextFeatures:
    """Everything the pipeline reads off a single name."""

    parse: UnifiedParse
    quality_display: str
    quality_score: int
    technical_details: str
    release_group: str | None
    episode_title: str | None
    variant_hints: tuple[str, ...] = field(default_factory=tuple)


def clean_filename(name: str) -> str:
    """Drops tracker prefixes such as 'www.site.org - ' and a leading '[group]'."""
    cleaned = re.sub(r"^www\.[a-zA-Z0-9]+\.[a-zA-Z]{2,}[ \-]+", "", name, flags=re.I)
    return re.sub(r"^\[[a-zA-Z0-9 ._]+\][ \-]*", "", cleaned)


def _first_position(table, text: str) -> int | None:
    positions = []
    for entry in table:
        match = entry.pattern.search(text)
        if match:
            positions.append(match.start())
    return min(positions) if positions else None


def extract_title(name: str) -> str | None:
    """Series or movie title: the text before the first episode, year or quality token."""
    cleaned = re.sub(r"[._]", " ", strip_extension(name))
    cleaned = re.sub(r"^[\[{][^\]}]+[\]}]\s*", "", cleaned)

    cut_points = [
        match.start()
        for match in (
            _CLASSIC_EPISODE_RE.search(cleaned),
            _YEAR_RE.search(cleaned),
            _RESOLUTION_RE.search(cleaned),
            _ANIME_DASH_RE.search(cleaned),
            re.search(r"(?i)\b(?:season|episode|ep)\s*\d+", cleaned),
        )
        if match
    ]
    for table in (QUALITY_PATTERNS, SOURCE_PATTERNS, CODEC_PATTERNS):
        position = _first_position(table, cleaned)
        if position is not None:
            cut_points.append(position)
    cut_points = [point for point in cut_points if point > 0]

    title = cleaned[: min(cut_points)] if cut_points else cleaned
    tags_to_remove = [r"\[.*?\]", r"\(.*?\)"]
    title = re.sub("|".join(tags_to_remove), "", title)
    title = title.rstrip(" _.-([").strip()
    title = re.sub(r"\s+", " ", title).strip()
    return title or None


def _extract_absolute(name: str, year: int | None, has_roman: bool) -> int | None:
    if has_roman:
        return None
    # A year without episode markers means a movie, not an absolute number
    if year and str(year) in name and not has_obvious_episode_indicators(name):
        return None
    return parse_absolute_episode(name)


@functools.lru_cache(maxsize=4096)
def parse_unified(name: str) -> UnifiedParse:
    """
    Parses season, episode, absolute episode and technical tags.

    Classic ``S01E02``/``1x02`` numbering wins outright. Otherwise an explicit
    episode pattern beats an absolute number, and an absolute number beats a
    bare season guess. Roman seasons ("Title II - 05") fill the gaps last.
    """
    if not name or not isinstance(name, str):
        return UnifiedParse()

    cleaned = clean_filename(name)
    year_match = _YEAR_RE.search(re.sub(r"[._]", " ", cleaned))
    year = int(year_match.group(1)) if year_match else None
    roman = parse_roman_season(cleaned)

    season: int | None = None
    episode: int | None = None
    absolute: int | None = None

    classic = _CLASSIC_EPISODE_RE.search(re.sub(r"[._]", " ", cleaned))
    if classic:
        season = int(classic.group(2) or classic.group(4))
        episode = int(classic.group(3) or classic.group(5))
    else:
        absolute = _extract_absolute(cleaned, year, roman is not None)
        episode_info = parse_episode_from_title(cleaned)
        if episode_info:
            season, episode = episode_info.season, episode_info.episode
        if absolute and episode != absolute:
            if episode_info:
                absolute = None
            else:
                episode = absolute
        if not absolute and season is None:
            season = parse_season_from_title(cleaned)

    if roman and not absolute:
        if not season or not episode or (season == 1 and roman.season > 1):
            logger.debug(
                f"[PARSER] Using roman season {roman.roman} for '{name}': "
                f"S{roman.season}E{roman.episode}"
            )
            season, episode = roman.season, roman.episode

    quality = extract_quality_info(cleaned)
    return UnifiedParse(
        title=extract_title(cleaned),
        season=season,
        episode=episode,
        absolute_episode=absolute,
        roman_season=roman.season if roman else None,
        year=year,
        resolution=quality.resolution,
        source=detect_source(cleaned),
        codec=detect_codec(cleaned),
        audio=tuple(detect_audio(cleaned)),
        languages=tuple(detect_languages(cleaned)),
    )


def parse_video_info(name: str) -> UnifiedParse:
    """Like parse_unified, but assumes season 1 for bare episode numbers."""
    parsed = parse_unified(name)
    if parsed.episode:
        if parsed.season is None:
            return replace(parsed, season=1)
        return parsed

    if not parsed.season:
        match = re.search(r"(?:^|[^\d])(\d{1,3})(?:[^\d]|$)", name or "")
        if match and 0 < int(match.group(1)) <= 999:
            return replace(parsed, season=1, episode=int(match.group(1)))
    return parsed


def _fallback_title(name: str) -> str:
    title = VIDEO_EXTENSION_RE.sub("", name)
    for pattern in (
        r"\b\d{4}\b.*$",
        r"\b[Ss]\d{1,2}[Ee]\d{1,3}.*$",
        r"(?i)\b(720p|1080p|2160p|4K).*$",
        r"\[.*?\]",
        r"\(.*?\)",
    ):
        title = re.sub(pattern, "", title)
    title = re.sub(r"[._-]", " ", title)
    return re.sub(r"\s+", " ", title).strip() or "Unknown"


def extract_series_info(
    video_name: str, container_name: str = "", *, with_release_group: bool = True
) -> SeriesInfo:
    """Episode-level metadata, falling back to the container for title and group."""
    if not video_name or not isinstance(video_name, str):
        return SeriesInfo()

    info = parse_video_info(video_name)
    container = parse_unified(container_name) if container_name else UnifiedParse()

    metadata = SeriesInfo(
        title=info.title or _fallback_title(video_name),
        season=info.season,
        episode=info.episode,
        absolute_episode=info.absolute_episode,
        episode_title=extract_episode_title(video_name),
        year=info.year,
        resolution=info.resolution or container.resolution,
        source=info.source or container.source,
        codec=info.codec or container.codec,
        audio=next(iter(info.audio or container.audio), None),
        release_group=extract_release_group(video_name) if with_release_group else None,
        languages=list(info.languages),
    )
    if metadata.season is not None and metadata.episode is not None:
        metadata.season_episode = f"S{metadata.season:02d}E{metadata.episode:02d}"

    if container_name and container_name != video_name:
        container_info = parse_video_info(container_name)
        if container_info.title and (
            metadata.title == "Unknown" or len(metadata.title) < 3
        ):
            metadata.title = container_info.title
        if with_release_group and not metadata.release_group:
            metadata.release_group = extract_release_group(container_name)
    return metadata


def extract_movie_info(name: str, *, with_release_group: bool = True) -> MovieInfo:
    if not name or not isinstance(name, str):
        return MovieInfo()

    parsed = parse_unified(name)
    return MovieInfo(
        title=parsed.title or _fallback_title(name),
        year=parsed.year,
        resolution=parsed.resolution,
        source=parsed.source,
        codec=parsed.codec,
        audio=parsed.audio[0] if parsed.audio else None,
        release_group=extract_release_group(name) if with_release_group else None,
        languages=list(parsed.languages),
    )


def extract_features(name: str) -> TextFeatures:
    """Single entry point bundling every attribute read off ``name``."""
    parsed = parse_unified(name or "")
    clean_name = strip_extension(name or "")
    return TextFeatures(
        parse=parsed,
        quality_display=get_quality_display(name or "", parsed.resolution),
        quality_score=extract_quality_info(name or "").score,
        technical_details=build_technical_details(clean_name),
        release_group=extract_release_group(name or ""),
        episode_title=extract_episode_title(name or ""),
        variant_hints=tuple(
            display
            for pattern, display in TECHNICAL_TAG_PATTERNS
            if display in _EDITION_TAGS and pattern.search(clean_name)
        ),
    )
