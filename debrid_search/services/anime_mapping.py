# debrid_search/services/anime_mapping.py

from __future__ import annotations

from collections.abc import Iterable

from ..config import logger
from ..models import AlternativeTitle, AnimeMapping
from .metadata.jikan import AnimeSeason, JikanClient

MAX_TITLE_VARIATIONS = 8
OTHER_COUNTRIES = ("GB", "DE", "ES", "IT", "KR", "CN", "TW", "XX")


def select_title_variations(
    original_title: str, alternatives: Iterable[AlternativeTitle]
) -> list[str]:
    """
    Titles to try against Jikan, best first.

    Order: the original title, then JP, US, JP, US, FR, then the first title
    of each remaining country, then any JP/US titles left over alternately.
    """
    variations = [original_title]
    alternatives = list(alternatives or [])
    if not alternatives:
        return variations

    seen = {original_title.lower()}

    def by_country(code: str) -> list[str]:
        return [alt.title for alt in alternatives if alt.country == code]

    def add(title: str) -> None:
        if len(variations) >= MAX_TITLE_VARIATIONS:
            return
        if title.lower() not in seen and len(title) > 2:
            variations.append(title)
            seen.add(title.lower())

    jp, us, fr = by_country("JP"), by_country("US"), by_country("FR")
    priority = [jp[0:1], us[0:1], jp[1:2], us[1:2], fr[0:1]]
    for titles in priority:
        for title in titles:
            add(title)
    for code in OTHER_COUNTRIES:
        titles = by_country(code)
        if titles:
            add(titles[0])

    remaining_jp, remaining_us = jp[2:], us[2:]
    while len(variations) < MAX_TITLE_VARIATIONS and (remaining_jp or remaining_us):
        if remaining_jp:
            add(remaining_jp.pop(0))
        if remaining_us:
            add(remaining_us.pop(0))
    return variations


def map_anime_episode(
    seasons: list[AnimeSeason], target_season: int, target_episode: int
) -> AnimeMapping | None:
    """
    Translates a catalogue S/E into the season split used by anime releases.

    Catalogues often list a multi-cour show as one long season. When the
    requested episode fits in the requested season nothing is mapped;
    otherwise the episode is located in the cumulative episode ranges of
    the TV seasons (parts of one season are merged).
    """
    if not seasons or not target_episode:
        return None

    grouped: dict[int, list[AnimeSeason]] = {}
    for season in seasons:
        if season.type != "TV" or season.episodes <= 0 or season.season_number is None:
            continue
        grouped.setdefault(season.season_number, []).append(season)
    if not grouped:
        return None

    counts = {number: sum(s.episodes for s in parts) for number, parts in grouped.items()}
    if target_season in counts and target_episode <= counts[target_season]:
        logger.info(
            f"[ANIME] S{target_season}E{target_episode} exists in the requested season"
            f" ({counts[target_season]} episodes), no mapping needed"
        )
        return None

    cumulative = 0
    for number in sorted(counts):
        start, end = cumulative + 1, cumulative + counts[number]
        if start <= target_episode <= end:
            mapping = AnimeMapping(
                original_season=target_season,
                original_episode=target_episode,
                mapped_season=number,
                mapped_episode=target_episode - cumulative,
                absolute_episode=target_episode,
                anime_title=" + ".join(s.title for s in grouped[number]),
            )
            logger.info(
                f"[ANIME] Mapped S{target_season}E{target_episode}"
                f" -> S{mapping.mapped_season}E{mapping.mapped_episode}"
            )
            return mapping
        cumulative = end

    logger.debug(f"[ANIME] Episode {target_episode} beyond all {cumulative} known episodes")
    return None


async def find_anime_mapping(
    jikan: JikanClient,
    search_title: str,
    alternatives: Iterable[AlternativeTitle],
    season: int,
    episode: int,
) -> AnimeMapping | None:
    """Tries each title variation against Jikan until one yields seasons, then maps."""
    for title in select_title_variations(search_title, alternatives):
        logger.debug(f"[ANIME] Trying anime search with '{title}'")
        seasons = await jikan.get_anime_seasons(title)
        if seasons:
            logger.info(f"[ANIME] Found {len(seasons)} anime seasons using '{title}'")
            return map_anime_episode(seasons, season, episode)
    logger.info("[ANIME] No anime seasons found for any title variation")
    return None
