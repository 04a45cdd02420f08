# debrid_search/services/metadata/cinemeta.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ...config import logger
from ...errors import MetadataSourceError
from ..cache import TTLCache
from .http import get_json, new_client

CINEMETA_URL = "https://v3-cinemeta.strem.io/meta/{type}/{imdb_id}.json"
CINEMETA_TTL_SECONDS = 60 * 60


@dataclass
class SeasonEpisodes:
    count: int = 0
    first_episode: int = 0
    last_episode: int = 0
    episodes: list[int] = field(default_factory=list)


class CinemetaClient:
    """Stremio's public catalogue metadata, cached for an hour."""

    def __init__(self, cache: TTLCache) -> None:
        self.cache = cache

    async def get_meta(self, content_type: str, imdb_id: str) -> dict[str, Any] | None:
        if not content_type or not imdb_id:
            raise MetadataSourceError(
                "Missing required parameters: type or imdb_id", source="cinemeta"
            )

        cache_key = f"cinemeta:{content_type}:{imdb_id}"
        cached = self.cache.get(cache_key)
        if cached is not TTLCache.MISS:
            logger.debug(f"[CINEMETA] Cache hit for {content_type}/{imdb_id}")
            return cached

        url = CINEMETA_URL.format(type=content_type, imdb_id=imdb_id)
        try:
            async with new_client() as client:
                body = await get_json(client, url, source="cinemeta")
        except MetadataSourceError as exc:
            logger.error(f"[CINEMETA] Error fetching {content_type}/{imdb_id}: {exc}")
            raise

        meta = body.get("meta") if isinstance(body, dict) else None
        if not meta:
            logger.warning(f"[CINEMETA] No metadata found for {content_type}/{imdb_id}")
            return None

        self.cache.set(cache_key, meta, ttl=CINEMETA_TTL_SECONDS, tag="cinemeta")
        logger.info(f"[CINEMETA] Fetched metadata for '{meta.get('name')}' ({content_type})")
        return meta

    async def get_season_episode_counts(
        self, imdb_id: str
    ) -> dict[int, SeasonEpisodes] | None:
        """Per-season episode counts, used to rebuild absolute numbering."""
        if not imdb_id:
            return None
        try:
            meta = await self.get_meta("series", imdb_id)
        except MetadataSourceError as exc:
            logger.warning(f"[CINEMETA] Failed to get season counts for {imdb_id}: {exc}")
            return None
        if not meta or not meta.get("videos"):
            logger.warning(f"[CINEMETA] No videos found for {imdb_id}")
            return None

        seasons: dict[int, SeasonEpisodes] = {}
        for video in meta["videos"]:
            season = video.get("season")
            episode = video.get("episode")
            if season is None or episode is None:
                continue
            entry = seasons.setdefault(season, SeasonEpisodes())
            entry.episodes.append(episode)
            entry.count += 1
        for entry in seasons.values():
            entry.first_episode = min(entry.episodes)
            entry.last_episode = max(entry.episodes)
        return seasons
