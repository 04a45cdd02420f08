# debrid_search/services/metadata_cache.py

from __future__ import annotations

import copy
import re
import time

from ..config import METADATA_CACHE_TTL_SECONDS, logger
from ..models import MOVIE, SERIES, ParsedMetadata
from ..parsing.episodes import parse_absolute_episode, parse_episode_from_title
from ..parsing.extractor import extract_movie_info, extract_series_info
from ..parsing.patterns import build_technical_details, strip_extension
from .cache import TTLCache

METADATA_PREFIX = "metadata_"
TECH_DETAILS_PREFIX = "tech_details_"
TECH_DETAILS_TTL_SECONDS = 24 * 60 * 60


def normalize_name(name: str) -> str:
    name = re.sub(r"[\[\]{}()|+*?^$\\]", "", name.lower())
    return re.sub(r"\s+", " ", name).strip()


def episode_agnostic_name(container_name: str) -> str:
    """Normalized container name with its episode number replaced by a placeholder."""
    agnostic = normalize_name(container_name)
    episode = parse_episode_from_title(container_name)
    absolute = parse_absolute_episode(container_name)

    if episode:
        s, e = episode.season, episode.episode
        replacements = [
            (rf"s{s:02d}e{e:02d}", "s00e00"),
            (rf"s{s}e{e}", "s00e00"),
            (rf"{s}x{e:02d}", "0x00"),
            (rf"{s}x{e}", "0x00"),
            (rf"season {s} episode {e}", "season 0 episode 0"),
            (rf"-\s*0*{e}\b", "- 00"),
        ]
    elif absolute:
        replacements = [
            (rf"\b0*{absolute}\b", "000"),
            (rf"episode {absolute}", "episode 000"),
            (rf"ep {absolute}", "ep 000"),
        ]
    else:
        replacements = [
            (r"s\d+e\d+", "s00e00"),
            (r"\d+x\d+", "0x00"),
            (r"episode?\s*\d+", "episode0"),
            (r"ep\s*\d+", "ep0"),
            (r"\[\d+\]", "[0]"),
            (r"part\s*\d+", "part0"),
        ]

    for pattern, placeholder in replacements:
        agnostic = re.sub(pattern, placeholder, agnostic, flags=re.IGNORECASE)
    return agnostic


class FuzzyMetadataCache:
    """
    Two-tier parse cache on top of a TTLCache.

    The exact tier is keyed by (container, video, type). The fuzzy tier is
    keyed by the container name with its episode number neutralized, so every
    episode of one release shares the title and technical parse. A fuzzy hit
    is deep-copied and only its episode fields are rewritten.
    """

    def __init__(
        self,
        cache: TTLCache,
        *,
        ttl: float = METADATA_CACHE_TTL_SECONDS,
        with_release_group: bool = True,
        clock=time.time,
    ) -> None:
        self.cache = cache
        self.ttl = ttl
        self.with_release_group = with_release_group
        self._clock = clock

    @staticmethod
    def exact_key(container_name: str, video_name: str, content_type: str) -> str:
        return f"{METADATA_PREFIX}{container_name}|{video_name}|{content_type}"

    @staticmethod
    def fuzzy_key(container_name: str, content_type: str) -> str:
        return f"{METADATA_PREFIX}fuzzy_{episode_agnostic_name(container_name)}|{content_type}"

    def get_or_parse(
        self, container_name: str, video_name: str, content_type: str = SERIES
    ) -> ParsedMetadata:
        container_name = container_name or ""
        video_name = video_name or ""

        exact_key = self.exact_key(container_name, video_name, content_type)
        cached = self.cache.get(exact_key)
        if cached is not TTLCache.MISS:
            logger.debug(f"[METADATA] Exact cache hit: {video_name[:30]}")
            return cached

        fuzzy_key = self.fuzzy_key(container_name, content_type)
        cached = self.cache.get(fuzzy_key)
        if cached is not TTLCache.MISS:
            logger.debug(f"[METADATA] Fuzzy cache hit: {video_name[:30]}")
            return self._adapt(cached, container_name, video_name, content_type)

        logger.debug(f"[METADATA] Cache miss, parsing: {video_name[:30]}")
        metadata = ParsedMetadata(
            series_info=(
                extract_series_info(
                    video_name or container_name,
                    container_name,
                    with_release_group=self.with_release_group,
                )
                if content_type == SERIES
                else None
            ),
            movie_info=(
                extract_movie_info(
                    video_name or container_name,
                    with_release_group=self.with_release_group,
                )
                if content_type == MOVIE
                else None
            ),
            technical_details=self.technical_details(video_name or container_name),
            parsed_at=self._clock(),
        )
        self.cache.set(exact_key, metadata, ttl=self.ttl, tag="metadata_exact")
        self.cache.set(fuzzy_key, metadata, ttl=self.ttl * 2, tag="metadata_fuzzy")
        return metadata

    def technical_details(self, name: str) -> str:
        """Technical tag line for ``name``, memoized for a day."""
        clean_name = strip_extension(name or "")
        key = f"{TECH_DETAILS_PREFIX}{clean_name}"
        cached = self.cache.get(key)
        if cached is not TTLCache.MISS:
            return cached
        details = build_technical_details(clean_name)
        self.cache.set(key, details, ttl=TECH_DETAILS_TTL_SECONDS, tag="technical_details")
        return details

    def _adapt(
        self,
        cached: ParsedMetadata,
        container_name: str,
        video_name: str,
        content_type: str,
    ) -> ParsedMetadata:
        adapted = copy.deepcopy(cached)
        adapted.cache_source = "fuzzy_adapted"
        series = adapted.series_info
        if content_type != SERIES or series is None:
            return adapted

        # Season packs carry no episode in the container name; use the file then.
        for source_name in (container_name, video_name):
            if not source_name:
                continue
            episode = parse_episode_from_title(source_name)
            if episode:
                series.season = episode.season
                series.episode = episode.episode
                series.absolute_episode = None
                series.episode_pattern = episode.pattern
                series.season_episode = f"S{episode.season:02d}E{episode.episode:02d}"
                current = extract_series_info(
                    video_name or container_name,
                    container_name,
                    with_release_group=False,
                )
                series.episode_title = current.episode_title
                return adapted
            absolute = parse_absolute_episode(source_name)
            if absolute:
                series.absolute_episode = absolute
                series.season = series.season or 1
                series.episode = None
                series.episode_title = None
                series.season_episode = "Unknown Episode"
                return adapted
        return adapted


def clear_performance_caches(cache: TTLCache) -> int:
    """Drops every parsed-metadata and technical-details entry."""
    entries = cache.get_by_pattern(f"^{METADATA_PREFIX}") + cache.get_by_pattern(
        f"^{TECH_DETAILS_PREFIX}"
    )
    for entry in entries:
        cache.delete(entry.key)
    logger.debug(f"[METADATA] Cleared {len(entries)} cached parse entries")
    return len(entries)
