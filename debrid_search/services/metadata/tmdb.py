# debrid_search/services/metadata/tmdb.py

from __future__ import annotations

from ...config import logger
from ...errors import MetadataSourceError
from ...models import MOVIE, AlternativeTitle
from ..cache import TTLCache
from ..keywords import extract_keywords
from .http import get_json, new_client

TMDB_BASE_URL = "https://api.themoviedb.org/3"
TMDB_TTL_SECONDS = 24 * 60 * 60
TMDB_EMPTY_TTL_SECONDS = 30 * 60


class TMDbClient:
    """Alternative (regional) titles for a movie or show, looked up by IMDb id."""

    def __init__(self, cache: TTLCache, api_key: str | None) -> None:
        self.cache = cache
        self.api_key = api_key

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def get_alternative_titles(
        self, imdb_id: str, content_type: str
    ) -> list[AlternativeTitle]:
        if not self.enabled or not imdb_id:
            logger.debug("[TMDB] No API key or IMDb id, skipping alternative titles")
            return []

        cache_key = f"tmdb_alt_titles_{imdb_id}_{content_type}"
        cached = self.cache.get(cache_key)
        if cached is not TTLCache.MISS:
            logger.debug(f"[TMDB] Cache hit for alternative titles: {cache_key}")
            return cached

        try:
            async with new_client() as client:
                tmdb_id = await self._find_tmdb_id(client, imdb_id, content_type)
                if tmdb_id is None:
                    logger.warning(f"[TMDB] No TMDb id for {content_type} {imdb_id}")
                    self._cache_empty(cache_key)
                    return []

                kind = "movie" if content_type == MOVIE else "tv"
                data = await get_json(
                    client,
                    f"{TMDB_BASE_URL}/{kind}/{tmdb_id}/alternative_titles?api_key={self.api_key}",
                    source="tmdb",
                )
        except MetadataSourceError as exc:
            logger.error(f"[TMDB] Failed to fetch alternative titles for {imdb_id}: {exc}")
            self._cache_empty(cache_key)
            return []

        # Movies answer with "titles", shows with "results".
        entries = data.get("titles") or data.get("results") or []
        titles = []
        for entry in entries:
            title = (entry.get("title") or "").strip()
            if not title:
                continue
            normalized = extract_keywords(title)
            if not normalized:
                continue
            titles.append(
                AlternativeTitle(
                    title=title,
                    country=entry.get("iso_3166_1") or "XX",
                    normalized_title=normalized,
                )
            )

        logger.info(f"[TMDB] Found {len(titles)} alternative titles for {imdb_id}")
        self.cache.set(cache_key, titles, ttl=TMDB_TTL_SECONDS, tag="tmdb")
        return titles

    async def _find_tmdb_id(self, client, imdb_id: str, content_type: str) -> int | None:
        data = await get_json(
            client,
            f"{TMDB_BASE_URL}/find/{imdb_id}?api_key={self.api_key}&external_source=imdb_id",
            source="tmdb",
        )
        results = data.get("movie_results" if content_type == MOVIE else "tv_results") or []
        return results[0].get("id") if results else None

    def _cache_empty(self, cache_key: str) -> None:
        self.cache.set(cache_key, [], ttl=TMDB_EMPTY_TTL_SECONDS, tag="tmdb")
