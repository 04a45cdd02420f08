# debrid_search/parsing/episodes.py

"""Season, episode and absolute-episode extraction from release names."""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..config import logger
from .patterns import VIDEO_EXTENSION_RE, VIDEO_EXTENSIONS
from .roman import parse_roman_season, roman_to_number


@dataclass(frozen=True)
class EpisodeMatch:
    season: int
    episode: int
    pattern: str


@dataclass(frozen=True)
class _SeasonPattern:
    name: str
    regex: re.Pattern[str]
    roman: bool = False


@dataclass(frozen=True)
class _EpisodePattern:
    name: str
    regex: re.Pattern[str]
    season_group: int | None
    episode_group: int
    default_season: int | None = None
    skip_resolution: bool = False


def _ci(regex: str) -> re.Pattern[str]:
    return re.compile(regex, re.IGNORECASE)


# Reliable patterns come first; strict mode uses only those four.
_RELIABLE_SEASON_PATTERNS = [
    _SeasonPattern("ordinal", _ci(r"\b(\d+)(?:st|nd|rd|th)[\s.-]*season")),
    _SeasonPattern("standard", _ci(r"s(?:eason[\s.-]*)?0*(\d{1,2})")),
    _SeasonPattern("season_word", _ci(r"Season\s*(\d+)")),
    _SeasonPattern("season_folder", _ci(r"[\\/](?:s(?:eason)?|saison)[\s.-]*(\d{1,2})[\\/]")),
]
_LOOSE_SEASON_PATTERNS = [
    _SeasonPattern("season_episode", _ci(r"S(\d+)E\d+")),
    _SeasonPattern("standalone", _ci(r"\b(?:S|Season)(\d{1,2})\b")),
    _SeasonPattern("french", _ci(r"(?:saison|s[ae][\s.-]*?)(\d{1,2})")),
    _SeasonPattern("german", _ci(r"staffel[\s.-]*(\d{1,2})")),
    _SeasonPattern("spanish", _ci(r"temporada[\s.-]*(\d{1,2})")),
    _SeasonPattern("italian", _ci(r"stagione[\s.-]*(\d{1,2})")),
    _SeasonPattern("japanese", _ci(r"(?:シーズン|シリーズ)[\s.-]*(\d{1,2})")),
    _SeasonPattern(
        "roman",
        _ci(r"(?:season|saison|serie|temporada|staffel)[\s.-]*([IVX]+)"),
        roman=True,
    ),
    _SeasonPattern("plain_number", _ci(r"[\s.-](\d{1,2})[ex]")),
    _SeasonPattern("zero_padded", _ci(r"[\s.-]0*(\d{1,2})[ex\s]")),
]

EPISODE_PATTERNS = [
    _EpisodePattern("season_episode", re.compile(r"[Ss](\d+)[Ee](\d+)"), 1, 2),
    _EpisodePattern(
        "written_season_episode", _ci(r"Season\s+(\d+)[\s\-]+Episode\s+(\d+)"), 1, 2
    ),
    _EpisodePattern(
        "number_x_number", re.compile(r"\b(\d{1,2})x(\d{1,3})\b"), 1, 2, skip_resolution=True
    ),
    _EpisodePattern("season_episode_dash", re.compile(r"[Ss](\d+)\s*-\s*(\d+)"), 1, 2),
    _EpisodePattern("episode_only", re.compile(r"[Ee](\d+)"), None, 1, default_season=1),
    _EpisodePattern(
        "anime_dash_number",
        re.compile(r"(.+?)\s*-\s*(\d{2,3})(?:\s*\([^)]*\))?"),
        None,
        2,
        default_season=1,
    ),
]

# Numbered duplicates that providers create on re-upload: "Show S01E01 (1).mkv"
AVOID_EPISODE_PATTERNS = [
    _ci(r"\(([1-3])\)\.(" + "|".join(VIDEO_EXTENSIONS) + r")$"),
]

_QUALITY_WORDS = r"multi|bluray|1080p|720p|x264|x265|web|dl|hdtv"

# (name, regex, episode group) in priority order
ABSOLUTE_EPISODE_PATTERNS = [
    ("four_digit", re.compile(r"\b(\d{4})\b.*\s"), 1),
    ("digits_between_dots", _ci(r"\.(\d{3,4})\..*(?:" + _QUALITY_WORDS + ")"), 1),
    ("dash_number", _ci(r"[-\s](\d{2,4})(?:\s+(?:" + _QUALITY_WORDS + r"|$))"), 1),
    ("episode_prefix_long", _ci(r"Episode\s*(\d{2,4})"), 1),
    ("title_number_dotted", _ci(r"(\w+(?:\.\w+)*?)\.(\d{3,4})(?:\.|$)"), 2),
    ("title_number_spaced", _ci(r"(\w+)\s+(\d{3,4})(?:\s|$)"), 2),
    ("episode_prefix", _ci(r"(?:ep|episode)\s*(\d{2,4})(?:\s|$)"), 1),
    ("title_number", _ci(r"(\w+)\s+(\d{2,4})(?:\s|$)"), 2),
    ("title_dash_number", _ci(r"(\w+)\s*-\s*(\d{2,4})(?:\s|$)"), 2),
    ("number_dash_title", _ci(r"^(\d{2,4})\s*-\s*(.+)"), 1),
    ("before_quality", _ci(r"^([^0-9]*?)(\d{2,4})(?:\s+(?:" + _QUALITY_WORDS + "))"), 2),
    ("absolute_only", re.compile(r"\b(\d{3,4})\s"), 1),
]

_EPISODE_TITLE_PATTERNS = [re.compile(r"''(.*?)''"), re.compile(r'"([^"]+)"')]


def normalize_text(text: str) -> str:
    if not text:
        return ""
    text = re.sub(r"\s+", " ", text)
    return re.sub(r"[\[\](){}]", " ", text).strip()


def _is_resolution(first: int, second: int) -> bool:
    return (
        (first >= 640 and second >= 480)
        or (first >= 320 and second >= 240)
        or (first, second) in {(1920, 1080), (1280, 720), (3840, 2160), (2560, 1440)}
    )


def parse_season_from_title(title: str, strict: bool = False) -> int | None:
    """Season number 0..20 from a title or folder name, or None."""
    if not title:
        return None

    roman_season = parse_roman_season(title)
    if roman_season:
        return roman_season.season

    normalized = normalize_text(title)
    patterns = _RELIABLE_SEASON_PATTERNS
    if not strict:
        patterns = patterns + _LOOSE_SEASON_PATTERNS

    for pattern in patterns:
        match = pattern.regex.search(normalized)
        if not match or not match.group(1):
            continue
        number = roman_to_number(match.group(1)) if pattern.roman else int(match.group(1))
        if number is not None and 0 <= number <= 20:
            return number
    return None


def parse_episode_from_title(name: str) -> EpisodeMatch | None:
    """Classic season/episode numbering, tried pattern by pattern."""
    if not name:
        return None

    normalized = normalize_text(name)
    for pattern in EPISODE_PATTERNS:
        match = pattern.regex.search(normalized)
        if not match:
            continue
        if pattern.skip_resolution and _is_resolution(
            int(match.group(1)), int(match.group(2))
        ):
            continue

        if pattern.season_group is not None:
            season = int(match.group(pattern.season_group))
        else:
            season = pattern.default_season
        episode_text = match.group(pattern.episode_group)
        if season is None or not episode_text:
            continue
        episode = int(episode_text)

        if 0 <= season <= 30 and 1 <= episode <= 999:
            return EpisodeMatch(season=season, episode=episode, pattern=pattern.name)
    return None


def parse_absolute_episode(name: str) -> int | None:
    """Sequential anime numbering such as 'One.Piece.1015.1080p' or 'Title - 030'."""
    if not name:
        return None

    clean = VIDEO_EXTENSION_RE.sub("", name)
    # "Show (2019) S01E02" carries a year, not an absolute number
    if re.search(r"\(\d{4}\).*?S\d+E\d+", clean, re.IGNORECASE):
        return None

    for pattern_name, regex, group in ABSOLUTE_EPISODE_PATTERNS:
        match = regex.search(clean)
        if not match:
            continue
        value = match.group(group)
        if value and re.fullmatch(r"\d{2,4}", value):
            episode = int(value)
            if 1 <= episode <= 9999:
                logger.debug(
                    f"[PARSER] Absolute episode {episode} via '{pattern_name}': {name}"
                )
                return episode
    return None


def extract_episode_title(name: str) -> str | None:
    """Quoted episode title, e.g. Show S01E02 "The Pilot"."""
    if not name:
        return None
    for pattern in _EPISODE_TITLE_PATTERNS:
        match = pattern.search(name)
        if match and match.group(1):
            title = normalize_text(match.group(1).strip())
            if len(title) > 2:
                return title
    return None


def should_avoid(name: str) -> bool:
    return any(pattern.search(name or "") for pattern in AVOID_EPISODE_PATTERNS)


def check_season_match(found: int | None, target: int | None) -> bool:
    if found is None or target is None:
        return False
    if not (0 <= found <= 30 and 0 <= target <= 30):
        return False
    return found == target


def matches_absolute_episode(name: str, absolute_episode: int | None) -> bool:
    """
    True when ``name`` carries ``absolute_episode`` as a bare number.

    Names with any season marker (classic, dashed, roman or worded) are never
    treated as absolute-numbered.
    """
    if not name or not absolute_episode:
        return False
    if parse_roman_season(name):
        return False
    if re.search(r"s(\d+)(?:e(\d+)|\s*-\s*(\d+))", name.lower()):
        return False
    if parse_season_from_title(name) is not None:
        return False

    number = str(absolute_episode)
    patterns = [
        re.compile(rf"\b0*{number}\b"),
        re.compile(rf"[-.]0*{number}[.\s-]"),
        re.compile(rf"(?:episode|ep)\s*0*{number}\b", re.IGNORECASE),
        re.compile(rf"\.0*{number}\."),
    ]
    return any(pattern.search(name) for pattern in patterns)
