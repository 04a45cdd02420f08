# debrid_search/services/metadata/jikan.py

from __future__ import annotations

import asyncio
import re
import time
from dataclasses import dataclass, replace
from typing import Any
from urllib.parse import quote

import httpx

from ...config import logger
from ...errors import MetadataSourceError
from ..cache import TTLCache
from .http import new_client

JIKAN_BASE_URL = "https://api.jikan.moe/v4"
JIKAN_TTL_SECONDS = 24 * 60 * 60
MIN_REQUEST_INTERVAL = 0.334
RATE_LIMIT_RETRY_DELAY = 0.6

_PART_CONTINUATION = re.compile(r"part 2|part ii|cour 2|cours 2|season part 2")
_FIRST_PART = re.compile(r"season \d+|part 1|part i|cour 1|cours 1")


@dataclass(frozen=True)
class AnimeSeason:
    mal_id: int
    title: str
    type: str
    aired_from: str | None
    episodes: int = 0
    year: int | None = None
    season_number: int | None = None


class JikanRateLimiter:
    """Keeps requests at least ``min_interval`` seconds apart (Jikan allows ~3/s)."""

    def __init__(self, min_interval: float = MIN_REQUEST_INTERVAL) -> None:
        self.min_interval = min_interval
        self._last_request = 0.0
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        async with self._lock:
            elapsed = time.monotonic() - self._last_request
            if elapsed < self.min_interval:
                await asyncio.sleep(self.min_interval - elapsed)
            self._last_request = time.monotonic()


def _aired_from(anime: dict[str, Any]) -> str | None:
    start = ((anime.get("aired") or {}).get("prop") or {}).get("from") or {}
    if not (start.get("year") and start.get("month") and start.get("day")):
        return None
    return f"{start['year']}-{start['month']:02d}-{start['day']:02d}"


def _is_part_continuation(current: AnimeSeason, previous: AnimeSeason) -> bool:
    current_title = current.title.lower()
    previous_title = previous.title.lower()
    if not _PART_CONTINUATION.search(current_title) or previous.type == "Special":
        return False
    base = _PART_CONTINUATION.sub("", current_title).strip()
    return (
        base == _FIRST_PART.sub("", previous_title).strip()
        or previous_title.split(" ")[0] in current_title
    )


def assign_season_numbers(entries: list[AnimeSeason]) -> list[AnimeSeason]:
    """
    Orders entries by air date and numbers them as seasons.

    Specials become season 0; a "Part 2" / "Cour 2" entry continues the
    season before it instead of opening a new one. Entries without an air
    date are dropped.
    """
    ordered = sorted((e for e in entries if e.aired_from), key=lambda e: e.aired_from)
    numbered: list[AnimeSeason] = []
    next_season = 1
    for index, entry in enumerate(ordered):
        if entry.type == "Special":
            numbered.append(replace(entry, season_number=0))
            continue
        if index > 0 and _is_part_continuation(entry, ordered[index - 1]):
            season_number = next_season - 1
            logger.debug(f"[JIKAN] '{entry.title}' continues season {season_number}")
        else:
            season_number = next_season
            next_season += 1
        numbered.append(replace(entry, season_number=season_number))
    return numbered


class JikanClient:
    """MyAnimeList season structure via the Jikan API, cached for a day."""

    def __init__(self, cache: TTLCache, rate_limiter: JikanRateLimiter | None = None) -> None:
        self.cache = cache
        self.rate_limiter = rate_limiter or JikanRateLimiter()

    async def _fetch(self, client: httpx.AsyncClient, url: str) -> Any:
        await self.rate_limiter.wait()
        headers = {"Accept": "application/json"}
        try:
            response = await client.get(url, headers=headers)
            if response.status_code == 429:
                logger.warning(f"[JIKAN] Rate limited, retrying in {RATE_LIMIT_RETRY_DELAY}s")
                await asyncio.sleep(RATE_LIMIT_RETRY_DELAY)
                response = await client.get(url, headers=headers)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise MetadataSourceError(
                f"jikan returned HTTP {exc.response.status_code}", source="jikan"
            ) from exc
        except httpx.HTTPError as exc:
            raise MetadataSourceError(f"jikan request failed: {exc}", source="jikan") from exc

    async def get_anime_seasons(self, title_query: str) -> list[AnimeSeason]:
        if not title_query or not isinstance(title_query, str):
            return []

        cache_key = f"jikan:anime_season:{title_query.lower().strip()}"
        cached = self.cache.get(cache_key)
        if cached is not TTLCache.MISS:
            logger.debug(f"[JIKAN] Cache hit for anime seasons: {title_query}")
            return cached

        query = title_query.lower()
        try:
            async with new_client() as client:
                search = await self._fetch(
                    client, f"{JIKAN_BASE_URL}/anime?q={quote(title_query)}&limit=10"
                )
                mal_ids: list[int] = []
                for entry in search.get("data") or []:
                    if entry.get("type") not in ("TV", "Special"):
                        continue
                    titles = entry.get("titles") or []
                    if not any(query in (t.get("title") or "").lower() for t in titles):
                        continue
                    if entry["mal_id"] not in mal_ids:
                        mal_ids.append(entry["mal_id"])

                entries = []
                for mal_id in mal_ids:
                    try:
                        detail = await self._fetch(client, f"{JIKAN_BASE_URL}/anime/{mal_id}")
                    except MetadataSourceError as exc:
                        logger.warning(f"[JIKAN] Details for MAL id {mal_id} failed: {exc}")
                        continue
                    anime = detail.get("data")
                    if not anime:
                        continue
                    entries.append(
                        AnimeSeason(
                            mal_id=mal_id,
                            title=anime.get("title") or "",
                            type=anime.get("type") or "",
                            aired_from=_aired_from(anime),
                            episodes=anime.get("episodes") or 0,
                            year=anime.get("year"),
                        )
                    )
        except MetadataSourceError as exc:
            logger.warning(f"[JIKAN] Anime season lookup failed for '{title_query}': {exc}")
            return []

        seasons = assign_season_numbers(entries)
        if seasons:
            logger.info(
                f"[JIKAN] Found {len(seasons)} anime seasons for '{title_query}': "
                + ", ".join(f"S{s.season_number:02d} ({s.episodes} eps) {s.title}" for s in seasons)
            )
        self.cache.set(cache_key, seasons, ttl=JIKAN_TTL_SECONDS, tag="jikan")
        return seasons
