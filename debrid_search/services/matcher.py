# debrid_search/services/matcher.py

from __future__ import annotations

import asyncio
import re
from collections.abc import Mapping
from dataclasses import replace

from thefuzz import fuzz

from ..config import Settings, logger
from ..errors import AuthenticationError, ValidationError
from ..models import (
    MOVIE,
    SERIES,
    AlternativeTitle,
    AnimeMapping,
    Candidate,
    EpisodeMapping,
    RawListing,
    SearchContext,
    SearchOutcome,
    SearchRequest,
    TorrentContainer,
    Video,
    VideoInfo,
)
from ..parsing.episodes import check_season_match, matches_absolute_episode
from ..parsing.extractor import parse_unified
from ..parsing.patterns import is_video_file
from .anime_mapping import find_anime_mapping
from .keywords import extract_keywords, prefilter_by_keywords
from .metadata import JikanClient, TMDbClient, TraktClient
from .orchestrator import resolve_details
from .providers import ProviderClient, ProviderProfile, supports_bulk


def build_search_terms(
    search_key: str,
    alternatives: list[AlternativeTitle],
    extra_terms: tuple[str, ...] = (),
) -> list[str]:
    """
    Ordered, case-insensitively unique terms to match listing names against.

    Raw titles come first so exact names win the matched-term slot, then the
    keyword-normalized forms, then "&" -> "and" variants.
    """
    terms = [search_key, *extra_terms]
    terms.extend(alt.title for alt in alternatives)
    terms.append(extract_keywords(search_key))
    terms.extend(alt.normalized_title or alt.title for alt in alternatives)

    unique: dict[str, str] = {}
    for term in terms:
        if term and term.strip():
            unique.setdefault(term.lower(), term)

    if "&" in search_key:
        and_variant = re.sub(r"\s*&\s*", " and ", search_key)
        for variant in (and_variant, extract_keywords(and_variant)):
            unique.setdefault(variant.lower(), variant)
        logger.debug(f"[MATCHER] Added '&' -> 'and' variant: {and_variant}")
    return list(unique.values())


def episode_keywords(
    terms: list[str],
    content_type: str,
    season: int | None,
    episode: int | None,
    absolute_episode: int | None,
) -> list[str]:
    keywords = [term for term in terms if term]
    if content_type != SERIES or season is None or episode is None:
        return keywords
    keywords.append(f"S{season}E{episode}")
    if absolute_episode and absolute_episode != episode:
        keywords.extend([f"{absolute_episode:03d}", str(absolute_episode)])
    return keywords


def title_similarity(term_keywords: str, listing: RawListing) -> float:
    """Best token-set similarity (0..1) of a term against a listing's name and title."""
    name_keywords = extract_keywords(listing.name).lower()
    title_keywords = extract_keywords(listing.info.title if listing.info else "").lower()
    best = 0
    for candidate in (name_keywords, title_keywords):
        if candidate:
            best = max(best, fuzz.token_set_ratio(term_keywords, candidate))
    return best / 100


def match_titles(
    listings: list[RawListing], terms: list[str], threshold: float
) -> list[Candidate]:
    """
    Keeps listings whose similarity to some term reaches ``threshold``.

    Terms are tried in order and a listing is credited to the first term
    that matches it; listings are deduplicated by name.
    """
    matches: list[Candidate] = []
    seen_names: set[str] = set()
    for term in terms:
        term_keywords = extract_keywords(term).lower()
        if not term_keywords:
            continue
        found = 0
        for listing in listings:
            if listing.name in seen_names:
                continue
            if title_similarity(term_keywords, listing) >= threshold:
                seen_names.add(listing.name)
                matches.append(Candidate(listing=listing, matched_term=term))
                found += 1
        if found:
            logger.info(f"[MATCHER] Found {found} matches for term '{term}'")

    logger.info(
        f"[MATCHER] Title matching complete: {len(matches)} of {len(listings)} listings"
    )
    return matches


def _videos_for(container: TorrentContainer) -> list[Video]:
    videos = container.playable_videos()
    if not videos and is_video_file(container.container_name):
        # A bare video listing is its own single file
        return [
            Video(
                name=container.container_name,
                url=container.url,
                size=container.size,
                info=container.info,
            )
        ]
    return videos


def _with_parsed_numbering(video: Video, target_season: int) -> Video:
    info = replace(video.info) if video.info else VideoInfo()
    if info.season is None or info.episode is None:
        parsed = parse_unified(video.name)
        info.season = info.season if info.season is not None else parsed.season
        info.episode = info.episode if info.episode is not None else parsed.episode
        info.absolute_episode = info.absolute_episode or parsed.absolute_episode
        if info.season is None and target_season == 1 and info.episode:
            logger.debug(f"[MATCHER] Assuming season 1 for '{video.name}'")
            info.season = 1
    return replace(video, info=info)


def analyze_container(
    container: TorrentContainer,
    season: int,
    episode: int,
    absolute_episode: int | None = None,
) -> list[Video]:
    """
    The container's videos that carry the requested episode.

    A video matches on its classic season/episode, or, when an absolute
    number is known, on that number appearing bare in its name; the latter
    are flagged ``is_absolute_match``.
    """
    matching = []
    for video in _videos_for(container):
        if not video.name:
            continue
        video = _with_parsed_numbering(video, season)
        info = video.info
        if check_season_match(info.season, season) and info.episode == episode:
            matching.append(video)
        elif absolute_episode and matches_absolute_episode(video.name, absolute_episode):
            logger.debug(f"[MATCHER] Absolute episode {absolute_episode} match: {video.name}")
            matching.append(replace(video, is_absolute_match=True))
    return matching


def analyze_candidates(
    candidates: list[Candidate],
    containers: Mapping[str, TorrentContainer],
    season: int,
    episode: int,
    absolute_episode: int | None = None,
) -> list[Candidate]:
    """One candidate per container that holds at least one matching video."""
    results = []
    for candidate in candidates:
        container = containers.get(str(candidate.id))
        if container is None:
            continue
        videos = analyze_container(container, season, episode, absolute_episode)
        if videos:
            results.append(replace(candidate, container=replace(container, videos=videos)))
    return results


def apply_trakt_absolute(
    candidates: list[Candidate], mapping: EpisodeMapping | None
) -> list[Candidate]:
    """Marks videos named by Trakt's absolute number and gives them Trakt's S/E."""
    if not mapping or not mapping.absolute_episode:
        return candidates

    absolute = mapping.absolute_episode
    processed = []
    for candidate in candidates:
        container = candidate.container
        if container is None:
            processed.append(candidate)
            continue
        videos = []
        for video in container.videos:
            if matches_absolute_episode(video.name, absolute):
                info = replace(video.info) if video.info else VideoInfo()
                info.season, info.episode = mapping.season, mapping.episode
                info.absolute_episode = absolute
                video = replace(video, info=info, is_absolute_match=True, trakt_mapped=True)
            videos.append(video)
        processed.append(replace(candidate, container=replace(container, videos=videos)))
    return processed


class SearchCoordinator:
    """Finds the account listings that match one title (and episode)."""

    def __init__(
        self,
        providers: Mapping[str, ProviderClient],
        profiles: Mapping[str, ProviderProfile],
        settings: Settings,
        *,
        tmdb: TMDbClient,
        trakt: TraktClient,
        jikan: JikanClient,
    ) -> None:
        self.providers = providers
        self.profiles = profiles
        self.settings = settings
        self.tmdb = tmdb
        self.trakt = trakt
        self.jikan = jikan

    def provider_for(self, name: str) -> ProviderClient:
        provider = self.providers.get(name)
        if provider is None or name not in self.profiles:
            raise ValidationError(
                f"Unsupported provider: {name}", field="provider", code="UNSUPPORTED_PROVIDER"
            )
        return provider

    def uses_bulk(self, name: str, provider: ProviderClient) -> bool:
        profile = self.profiles.get(name)
        return bool(profile and profile.bulk_details and supports_bulk(provider))

    async def _prepare(
        self, request: SearchRequest
    ) -> tuple[EpisodeMapping | None, list[AlternativeTitle]]:
        async def no_mapping() -> None:
            return None

        wants_mapping = (
            self.settings.trakt_enabled
            and request.content_type == SERIES
            and bool(request.season)
            and bool(request.episode)
        )
        mapping_task = (
            self.trakt.get_episode_mapping(request.imdb_id, request.season, request.episode)
            if wants_mapping
            else no_mapping()
        )
        titles_task = self.tmdb.get_alternative_titles(request.imdb_id, request.content_type)
        mapping, alternatives = await asyncio.gather(
            mapping_task, titles_task, return_exceptions=True
        )
        # a failed enrichment source degrades to classic matching
        if isinstance(mapping, Exception):
            logger.warning(f"[MATCHER] Trakt mapping unavailable for {request.imdb_id}: {mapping}")
            mapping = None
        if isinstance(alternatives, Exception):
            logger.warning(
                f"[MATCHER] Alternative titles unavailable for {request.imdb_id}: {alternatives}"
            )
            alternatives = []
        if mapping and mapping.absolute_episode:
            logger.info(f"[MATCHER] Trakt absolute episode: {mapping.absolute_episode}")
        return mapping, alternatives or []

    async def coordinate_search(self, request: SearchRequest) -> SearchOutcome:
        """
        Matches the account's listings against the requested title.

        Movies (and series requests without an episode) stop after title
        matching. Episode requests fetch container details and keep only
        containers holding the episode; when none do, an anime season
        mapping is tried on the same containers. Provider authentication
        failures propagate.
        """
        provider = self.provider_for(request.provider_name)
        trakt_mapping, alternatives = await self._prepare(request)

        search_key = extract_keywords(request.canonical_title)
        context = SearchContext(
            search_title=search_key,
            alternative_titles={alt.title for alt in alternatives},
            imdb_id=request.imdb_id,
            content_type=request.content_type,
        )
        absolute_episode = trakt_mapping.absolute_episode if trakt_mapping else None
        empty = SearchOutcome(results=[], search_context=context, absolute_episode=absolute_episode)

        terms = build_search_terms(request.canonical_title, alternatives, request.extra_terms)
        logger.info(f"[MATCHER] Searching {request.provider_name} with {len(terms)} terms")

        try:
            listings = list(await provider.list_account_items(request.api_key) or [])
        except AuthenticationError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.warning(f"[MATCHER] Failed to list {request.provider_name} items: {exc}")
            return empty
        if not listings:
            logger.info("[MATCHER] Account has no items")
            return empty

        keywords = episode_keywords(
            terms, request.content_type, request.season, request.episode, absolute_episode
        )
        relevant = prefilter_by_keywords(listings, keywords)
        logger.info(f"[MATCHER] Keyword pre-filter kept {len(relevant)} of {len(listings)} items")
        if not relevant:
            return empty

        title_matches = match_titles(relevant, terms, request.match_threshold)
        if request.content_type == MOVIE or request.season is None or request.episode is None:
            return replace(empty, results=title_matches)
        if not title_matches:
            return empty

        containers = await resolve_details(
            [candidate.id for candidate in title_matches],
            provider,
            request.api_key,
            limit=self.settings.concurrency_limit,
            use_bulk=self.uses_bulk(request.provider_name, provider),
        )
        matches = analyze_candidates(
            title_matches, containers, request.season, request.episode, absolute_episode
        )
        logger.info(
            f"[MATCHER] {len(relevant)} items -> {len(title_matches)} title matches"
            f" -> {len(matches)} containers with S{request.season}E{request.episode}"
        )

        anime_mapping: AnimeMapping | None = None
        if not matches:
            if request.season == 0:
                logger.info("[MATCHER] Season 0 requested, skipping anime mapping")
                return empty
            anime_mapping, matches = await self._anime_fallback(
                request, alternatives, title_matches, containers
            )

        if self.settings.trakt_enabled:
            matches = apply_trakt_absolute(matches, trakt_mapping)

        return SearchOutcome(
            results=matches,
            search_context=context,
            anime_mapping=anime_mapping,
            absolute_episode=absolute_episode,
        )

    async def _anime_fallback(
        self,
        request: SearchRequest,
        alternatives: list[AlternativeTitle],
        title_matches: list[Candidate],
        containers: Mapping[str, TorrentContainer],
    ) -> tuple[AnimeMapping | None, list[Candidate]]:
        logger.info("[ANIME] No direct episode matches, trying anime season mapping")
        mapping = await find_anime_mapping(
            self.jikan, request.canonical_title, alternatives, request.season, request.episode
        )
        if mapping is None:
            return None, []

        matches = analyze_candidates(
            title_matches, containers, mapping.mapped_season, mapping.mapped_episode
        )
        if not matches:
            logger.info(
                f"[ANIME] No files for mapped S{mapping.mapped_season}E{mapping.mapped_episode}"
            )
            return None, []
        logger.info(f"[ANIME] Re-analysis found {len(matches)} containers")
        return mapping, matches
