# debrid_search/services/metadata/trakt.py

from __future__ import annotations

from typing import Any

import httpx

from ...config import logger
from ...errors import MetadataSourceError
from ...models import EpisodeMapping
from ..cache import TTLCache
from .cinemeta import CinemetaClient, SeasonEpisodes
from .http import get_json, new_client

TRAKT_BASE_URL = "https://api.trakt.tv"
TRAKT_TTL_SECONDS = 24 * 60 * 60
TRAKT_FAILURE_TTL_SECONDS = 60 * 60
# A season whose first episode is this far past the request uses absolute numbering.
ABSOLUTE_NUMBERING_GAP = 10


def _to_mapping(season: int, episode: dict[str, Any], fallback: bool = False) -> EpisodeMapping:
    return EpisodeMapping(
        season=season,
        episode=episode.get("number"),
        absolute_episode=episode.get("number_abs"),
        title=episode.get("title"),
        fallback=fallback,
    )


def _show_trakt_id(results: Any) -> int | None:
    """Trakt id of the first show among search hits, skipping episodes and movies."""
    for hit in results if isinstance(results, list) else []:
        show = hit.get("show") if isinstance(hit, dict) else None
        ids = show.get("ids") if isinstance(show, dict) else None
        if isinstance(ids, dict) and ids.get("trakt"):
            return ids["trakt"]
    return None


def absolute_from_season_counts(
    seasons: dict[int, SeasonEpisodes], season: int, episode: int
) -> int:
    """Counts every episode of the earlier regular seasons, then adds ``episode``."""
    return sum(seasons[s].count for s in range(1, season) if s in seasons) + episode


class TraktClient:
    """Canonical season/episode/absolute numbering from Trakt."""

    def __init__(
        self, cache: TTLCache, api_key: str | None, cinemeta: CinemetaClient
    ) -> None:
        self.cache = cache
        self.api_key = api_key
        self.cinemeta = cinemeta

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "trakt-api-version": "2",
            "trakt-api-key": self.api_key or "",
        }

    async def get_episode_mapping(
        self, imdb_id: str, season: int, episode: int
    ) -> EpisodeMapping | None:
        if not self.enabled or not imdb_id:
            logger.debug("[TRAKT] No API key or IMDb id, skipping episode mapping")
            return None

        cache_key = f"trakt_episode_{imdb_id}_s{season}_e{episode}"
        cached = self.cache.get(cache_key)
        if cached is not TTLCache.MISS:
            logger.debug(f"[TRAKT] Cache hit for {imdb_id} S{season}E{episode}")
            return cached

        try:
            async with new_client() as client:
                mapping = await self._lookup(client, imdb_id, season, episode)
        except (MetadataSourceError, KeyError, TypeError, AttributeError) as exc:
            # also covers responses that do not have the documented shape
            logger.error(f"[TRAKT] Episode mapping failed for {imdb_id} S{season}E{episode}: {exc}")
            self.cache.set(cache_key, None, ttl=TRAKT_FAILURE_TTL_SECONDS, tag="trakt")
            return None

        if mapping:
            logger.info(
                f"[TRAKT] {imdb_id} S{season}E{episode} -> S{mapping.season}E{mapping.episode}"
                f" (absolute {mapping.absolute_episode})"
            )
        else:
            logger.warning(f"[TRAKT] No episode mapping found for {imdb_id} S{season}E{episode}")
        self.cache.set(cache_key, mapping, ttl=TRAKT_TTL_SECONDS, tag="trakt")
        return mapping

    async def _lookup(
        self, client: httpx.AsyncClient, imdb_id: str, season: int, episode: int
    ) -> EpisodeMapping | None:
        search = await get_json(
            client,
            f"{TRAKT_BASE_URL}/search/imdb/{imdb_id}",
            source="trakt",
            headers=self.headers,
        )
        if not search:
            logger.warning(f"[TRAKT] No Trakt results for IMDb id {imdb_id}")
            return None
        trakt_id = _show_trakt_id(search)
        if trakt_id is None:
            logger.warning(f"[TRAKT] No show among Trakt results for {imdb_id}")
            return None

        try:
            season_data = await get_json(
                client,
                f"{TRAKT_BASE_URL}/shows/{trakt_id}/seasons/{season}?extended=full",
                source="trakt",
                headers=self.headers,
            )
        except MetadataSourceError:
            logger.warning(f"[TRAKT] Season {season} not found, searching all seasons")
            return await self._search_all_seasons(
                client,
                trakt_id,
                lambda number, ep: ep.get("number_abs") == episode
                or (number == season and ep.get("number") == episode),
            )

        for entry in season_data:
            if entry.get("number") == episode:
                return _to_mapping(season, entry)

        mapping = None
        if self._uses_absolute_numbering(season_data, episode):
            mapping = await self._map_through_cinemeta(client, imdb_id, trakt_id, season, episode)

        if mapping is None and season_data:
            last = max(season_data, key=lambda ep: ep.get("number") or 0)
            if episode > (last.get("number") or 0):
                logger.info(f"[TRAKT] Episode {episode} exceeds season {season}, using last episode")
                mapping = _to_mapping(season, last, fallback=True)
        return mapping

    @staticmethod
    def _uses_absolute_numbering(season_data: list[dict[str, Any]], episode: int) -> bool:
        numbers = [ep.get("number") for ep in season_data if ep.get("number") is not None]
        return bool(numbers) and min(numbers) > episode + ABSOLUTE_NUMBERING_GAP

    async def _map_through_cinemeta(
        self,
        client: httpx.AsyncClient,
        imdb_id: str,
        trakt_id: int,
        season: int,
        episode: int,
    ) -> EpisodeMapping | None:
        seasons = await self.cinemeta.get_season_episode_counts(imdb_id)
        if not seasons or season not in seasons:
            logger.warning(f"[TRAKT] Cinemeta season map unavailable for season {season}")
            return None
        absolute = absolute_from_season_counts(seasons, season, episode)
        logger.info(f"[TRAKT] Cinemeta: S{season}E{episode} -> absolute {absolute}")
        try:
            return await self._search_all_seasons(
                client, trakt_id, lambda number, ep: ep.get("number_abs") == absolute
            )
        except MetadataSourceError as exc:
            logger.warning(f"[TRAKT] Absolute lookup failed: {exc}")
            return None

    async def _search_all_seasons(
        self, client: httpx.AsyncClient, trakt_id: int, predicate
    ) -> EpisodeMapping | None:
        seasons = await get_json(
            client,
            f"{TRAKT_BASE_URL}/shows/{trakt_id}/seasons?extended=episodes",
            source="trakt",
            headers=self.headers,
        )
        for season_info in seasons or []:
            number = season_info.get("number")
            for entry in season_info.get("episodes") or []:
                if predicate(number, entry):
                    return _to_mapping(number, entry)
        return None
