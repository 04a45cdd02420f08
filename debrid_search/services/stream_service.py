# debrid_search/services/stream_service.py

from __future__ import annotations

import re
import time
from collections.abc import Mapping
from dataclasses import replace

from ..config import Settings, logger
from ..errors import ValidationError
from ..models import (
    MOVIE,
    SERIES,
    DebridAccount,
    KnownEpisode,
    SearchRequest,
    StreamRecord,
)
from .cache import TTLCache
from .filtering import dedupe_listings, dedupe_streams, filter_episode, filter_year
from .matcher import SearchCoordinator
from .metadata import CinemetaClient, JikanClient, TMDbClient, TraktClient
from .metadata_cache import FuzzyMetadataCache
from .orchestrator import resolve_details
from .providers import ProviderClient, ProviderProfile, load_provider_profiles
from .ranking import rank_streams
from .stream_builder import StreamBuilder


def _parse_movie_id(content_type: str, item_id: str) -> str:
    if content_type != MOVIE:
        raise ValidationError(f"Invalid content type: {content_type}", "type", "INVALID_TYPE")
    imdb_id = item_id[len("imdb:"):] if item_id.startswith("imdb:") else item_id
    if not imdb_id.startswith("tt"):
        raise ValidationError(f"Invalid movie ID format: {item_id}", "id", "INVALID_ID")
    return imdb_id


def _parse_episode_id(content_type: str, item_id: str) -> tuple[str, int, int]:
    """'tt0903747:1:2' -> ('tt0903747', 1, 2)"""
    if content_type != SERIES:
        raise ValidationError(f"Invalid content type: {content_type}", "type", "INVALID_TYPE")
    parts = item_id.split(":")
    if len(parts) != 3:
        raise ValidationError(f"Invalid series ID format: {item_id}", "id", "INVALID_ID")

    imdb_id, season_text, episode_text = parts
    if not imdb_id.startswith("tt"):
        raise ValidationError(f"Invalid IMDB ID: {imdb_id}", "imdbId", "INVALID_IMDB_ID")
    try:
        season = int(season_text)
    except ValueError:
        season = -1
    if season < 0:
        raise ValidationError(f"Invalid season: {season_text}", "season", "INVALID_SEASON")
    try:
        episode = int(episode_text)
    except ValueError:
        episode = -1
    if episode < 0:
        raise ValidationError(f"Invalid episode: {episode_text}", "episode", "INVALID_EPISODE")
    return imdb_id, season, episode


def _meta_year(meta: dict) -> int | None:
    # Cinemeta reports series years as ranges such as "2008–2013"
    match = re.match(r"\d{4}", str(meta.get("year") or ""))
    return int(match.group(0)) if match else None


class StreamService:
    """
    Public entry point: account listings in, ranked stream records out.

    Owns the process-wide cache and every client built on it, so a fresh
    service (or an injected cache) gives a cold, isolated pipeline.
    """

    def __init__(
        self,
        providers: Mapping[str, ProviderClient],
        settings: Settings | None = None,
        *,
        cache: TTLCache | None = None,
        profiles: Mapping[str, ProviderProfile] | None = None,
        cinemeta: CinemetaClient | None = None,
        tmdb: TMDbClient | None = None,
        trakt: TraktClient | None = None,
        jikan: JikanClient | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.cache = cache or TTLCache(
            max_size=self.settings.max_size, default_ttl=self.settings.default_ttl
        )
        self.providers = providers
        self.profiles = profiles if profiles is not None else load_provider_profiles()
        self.cinemeta = cinemeta or CinemetaClient(self.cache)
        self.coordinator = SearchCoordinator(
            providers,
            self.profiles,
            self.settings,
            tmdb=tmdb or TMDbClient(self.cache, self.settings.tmdb_api_key),
            trakt=trakt
            or TraktClient(self.cache, self.settings.trakt_api_key, self.cinemeta),
            jikan=jikan or JikanClient(self.cache),
        )
        self.metadata_cache = FuzzyMetadataCache(
            self.cache,
            ttl=self.settings.metadata_ttl,
            with_release_group=self.settings.show_release_group,
        )
        self.builder = StreamBuilder(self.metadata_cache, self.profiles, self.settings)

    async def search_movie(
        self, account: DebridAccount | None, content_type: str, item_id: str
    ) -> list[StreamRecord]:
        """Ranked streams for a movie id such as 'tt1375666'. Never raises."""
        started = time.monotonic()
        logger.info(f"[STREAM] Starting movie stream search for {item_id}")
        try:
            if not account or not content_type or not item_id:
                raise ValidationError("Missing required parameters", code="MISSING_PARAMS")
            imdb_id = _parse_movie_id(content_type, item_id)
            streams = await self._movie_streams(account, imdb_id)
        except ValidationError as exc:
            logger.warning(f"[STREAM] Rejected movie request {item_id}: {exc} ({exc.code})")
            return []
        except Exception as exc:  # noqa: BLE001
            logger.error(f"[STREAM] Movie search failed for {item_id}: {exc}", exc_info=True)
            return []

        logger.info(
            f"[STREAM] Movie search completed in {time.monotonic() - started:.2f}s."
            f" Found {len(streams)} streams for {item_id}"
        )
        return streams

    async def _movie_streams(self, account: DebridAccount, imdb_id: str) -> list[StreamRecord]:
        meta = await self.cinemeta.get_meta(MOVIE, imdb_id)
        if not meta or not meta.get("name"):
            logger.warning(f"[STREAM] No metadata found for {imdb_id}")
            return []

        provider = self.coordinator.provider_for(account.provider_name)
        outcome = await self.coordinator.coordinate_search(
            SearchRequest(
                api_key=account.api_key,
                provider_name=account.provider_name,
                canonical_title=meta["name"],
                content_type=MOVIE,
                imdb_id=imdb_id,
                match_threshold=self.settings.movie_threshold,
            )
        )
        candidates = dedupe_listings(outcome.results, MOVIE)
        if not candidates:
            logger.info(f"[STREAM] No streams found for movie {imdb_id}")
            return []

        containers = await resolve_details(
            [candidate.id for candidate in candidates],
            provider,
            account.api_key,
            limit=self.settings.concurrency_limit,
            use_bulk=self.coordinator.uses_bulk(account.provider_name, provider),
        )

        year = _meta_year(meta)
        streams: list[StreamRecord] = []
        for candidate in candidates:
            container = containers.get(str(candidate.id))
            if container is None or not container.playable_videos():
                logger.debug(f"[STREAM] No videos found in {candidate.id} ({candidate.name})")
                continue
            if not filter_year(container, year):
                logger.debug(
                    f"[FILTER] Year filter rejected {candidate.name[:50]}"
                    f" (release {container.info.year}, catalogue {year})"
                )
                continue
            streams.extend(
                self.builder.build_streams(
                    container, MOVIE, search_context=outcome.search_context
                )
            )
        return rank_streams(dedupe_streams(streams))

    async def search_episode(
        self, account: DebridAccount | None, content_type: str, item_id: str
    ) -> list[StreamRecord]:
        """Ranked streams for an episode id such as 'tt0903747:1:2'. Never raises."""
        started = time.monotonic()
        logger.info(f"[STREAM] Starting series stream search for {item_id}")
        try:
            if not account or not content_type or not item_id:
                raise ValidationError("Missing required parameters", code="MISSING_PARAMS")
            imdb_id, season, episode = _parse_episode_id(content_type, item_id)
            streams = await self._episode_streams(account, imdb_id, season, episode)
        except ValidationError as exc:
            logger.warning(f"[STREAM] Rejected series request {item_id}: {exc} ({exc.code})")
            return []
        except Exception as exc:  # noqa: BLE001
            logger.error(f"[STREAM] Series search failed for {item_id}: {exc}", exc_info=True)
            return []

        logger.info(
            f"[STREAM] Series search completed in {time.monotonic() - started:.2f}s."
            f" Found {len(streams)} streams for {item_id}"
        )
        return streams

    async def _episode_streams(
        self, account: DebridAccount, imdb_id: str, season: int, episode: int
    ) -> list[StreamRecord]:
        meta = await self.cinemeta.get_meta(SERIES, imdb_id)
        if not meta or not meta.get("name"):
            logger.warning(f"[STREAM] No metadata found for {imdb_id}")
            return []

        outcome = await self.coordinator.coordinate_search(
            SearchRequest(
                api_key=account.api_key,
                provider_name=account.provider_name,
                canonical_title=meta["name"],
                content_type=SERIES,
                imdb_id=imdb_id,
                season=season,
                episode=episode,
                match_threshold=self.settings.series_threshold,
            )
        )
        candidates = dedupe_listings(outcome.results, SERIES)
        if not candidates:
            logger.info(f"[STREAM] No streams found for {imdb_id} S{season}E{episode}")
            return []

        mapping = outcome.anime_mapping
        if mapping:
            target_season, target_episode = mapping.mapped_season, mapping.mapped_episode
            logger.info(
                f"[STREAM] Using anime mapping: S{season}E{episode}"
                f" -> S{target_season}E{target_episode}"
            )
        else:
            target_season, target_episode = season, episode
        known = KnownEpisode(target_season, target_episode, outcome.absolute_episode)

        streams: list[StreamRecord] = []
        for candidate in candidates:
            container = candidate.container
            if container is None or not filter_episode(container, target_season, target_episode):
                logger.debug(
                    f"[FILTER] No S{target_season}E{target_episode} files in {candidate.name[:50]}"
                )
                continue
            built = self.builder.build_streams(
                container,
                SERIES,
                known_episode=known,
                matched_term=candidate.matched_term,
                search_context=outcome.search_context,
            )
            if mapping:
                built = [
                    replace(stream, name=f"{stream.name}\n{mapping.annotation()}")
                    for stream in built
                    if stream.url
                ]
            streams.extend(built)
        return rank_streams(dedupe_streams(streams))

    async def resolve_playback_url(
        self,
        provider_name: str,
        api_key: str,
        item_id: str,
        encoded_url: str,
        client_ip: str | None = None,
    ) -> str:
        """
        Turns a stored link into a direct playback URL.

        How the provider is called depends on its profile's ``resolve``
        strategy. Failures are logged and re-raised.
        """
        logger.info(f"[PROVIDER] Resolving URL for {provider_name}: {encoded_url}")
        try:
            profile = self.profiles.get(provider_name)
            provider = self.providers.get(provider_name)
            if profile is None or provider is None:
                raise ValidationError(
                    f"Unsupported debrid provider: {provider_name}",
                    "provider",
                    "UNSUPPORTED_PROVIDER",
                )

            if profile.resolve == "unrestrict":
                url = await provider.unrestrict_url(api_key, encoded_url)
            elif profile.resolve == "unrestrict_with_ip":
                url = await provider.unrestrict_url(api_key, encoded_url, client_ip)
            elif profile.resolve == "unrestrict_item":
                url = await provider.unrestrict_url(api_key, item_id, encoded_url, client_ip)
            else:
                url = encoded_url
        except Exception as exc:
            logger.error(f"[PROVIDER] Failed to resolve URL for {provider_name}: {exc}")
            raise

        logger.info(f"[PROVIDER] Successfully resolved URL for {provider_name}")
        return url
