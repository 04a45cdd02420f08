from unittest.mock import AsyncMock

import pytest

from debrid_search.config import Settings
from debrid_search.errors import AuthenticationError, ValidationError
from debrid_search.models import (
    MOVIE,
    SERIES,
    AlternativeTitle,
    Candidate,
    EpisodeMapping,
    SearchRequest,
    Video,
    VideoInfo,
)
from debrid_search.services.matcher import (
    SearchCoordinator,
    analyze_container,
    apply_trakt_absolute,
    build_search_terms,
    episode_keywords,
    match_titles,
)
from debrid_search.services.metadata import AnimeSeason, CinemetaClient, TMDbClient, TraktClient


class FakeJikan:
    def __init__(self, seasons_by_title=None):
        self.seasons_by_title = seasons_by_title or {}
        self.queries = []

    async def get_anime_seasons(self, title):
        self.queries.append(title)
        return self.seasons_by_title.get(title, [])


def _coordinator(provider, settings, profiles, cache, jikan=None):
    return SearchCoordinator(
        {"RealDebrid": provider},
        profiles,
        settings,
        tmdb=TMDbClient(cache, None),
        trakt=TraktClient(cache, None, CinemetaClient(cache)),
        jikan=jikan or FakeJikan(),
    )


def _request(title, content_type=SERIES, season=None, episode=None, provider="RealDebrid"):
    return SearchRequest(
        api_key="key",
        provider_name=provider,
        canonical_title=title,
        content_type=content_type,
        imdb_id="tt0000001",
        season=season,
        episode=episode,
    )


def test_build_search_terms_order_and_and_variant():
    alternatives = [AlternativeTitle("Rápidos y furiosos", "ES", "Rápidos y furiosos")]

    terms = build_search_terms("Fast & Furious", alternatives)

    assert terms == [
        "Fast & Furious",
        "Rápidos y furiosos",
        "Fast Furious",
        "Fast and Furious",
    ]


def test_build_search_terms_dedupes_case_insensitively():
    terms = build_search_terms("Dune", [AlternativeTitle("DUNE", "US")], ("dune", "Dune Part One"))

    assert terms == ["Dune", "Dune Part One"]


def test_episode_keywords():
    assert episode_keywords(["Show"], SERIES, 1, 13, 13) == ["Show", "S1E13"]
    assert episode_keywords(["Show"], SERIES, 2, 1, 25) == ["Show", "S2E1", "025", "25"]
    assert episode_keywords(["Movie"], MOVIE, None, None, None) == ["Movie"]


def test_match_titles_credits_first_term(listing_factory):
    listings = [
        listing_factory("1", "Breaking.Bad.S01.1080p"),
        listing_factory("2", "Better.Call.Saul.S01"),
    ]

    matches = match_titles(listings, ["Breaking Bad", "breaking bad"], 0.8)

    assert [(c.id, c.matched_term) for c in matches] == [("1", "Breaking Bad")]


def test_analyze_container_classic_match(container_factory, video_factory):
    first = video_factory("Show.S01E01.mkv")
    container = container_factory("t1", "Show.S01", [first, video_factory("Show.S01E02.mkv")])

    videos = analyze_container(container, 1, 2)

    assert [video.name for video in videos] == ["Show.S01E02.mkv"]
    assert (videos[0].info.season, videos[0].info.episode) == (1, 2)
    assert first.info is None


def test_analyze_container_absolute_match(container_factory, video_factory):
    container = container_factory(
        "t1",
        "One Piece",
        [video_factory("One Piece - 1015.mkv"), video_factory("One Piece - 1016.mkv")],
    )

    videos = analyze_container(container, 21, 123, absolute_episode=1015)

    assert [video.name for video in videos] == ["One Piece - 1015.mkv"]
    assert videos[0].is_absolute_match is True


def test_apply_trakt_absolute(container_factory, video_factory, listing_factory):
    container = container_factory("t1", "One Piece", [video_factory("One Piece - 1015.mkv")])
    candidate = Candidate(listing_factory("t1", "One Piece"), container=container)

    [processed] = apply_trakt_absolute([candidate], EpisodeMapping(21, 123, 1015))

    video = processed.container.videos[0]
    assert video.trakt_mapped is True
    assert video.is_absolute_match is True
    assert (video.info.season, video.info.episode, video.info.absolute_episode) == (21, 123, 1015)
    assert apply_trakt_absolute([candidate], None) == [candidate]


@pytest.mark.asyncio
async def test_movie_search_stops_after_title_matching(
    provider_factory, listing_factory, settings, profiles, cache
):
    provider = provider_factory["plain"](
        listings=[
            listing_factory("1", "Inception.2010.1080p.BluRay.x264-SPARKS.mkv"),
            listing_factory("2", "Interstellar.2014.2160p"),
        ]
    )

    outcome = await _coordinator(provider, settings, profiles, cache).coordinate_search(
        _request("Inception", MOVIE)
    )

    assert [(c.id, c.matched_term) for c in outcome.results] == [("1", "Inception")]
    assert outcome.search_context.search_title == "Inception"
    assert provider.detail_calls == []


@pytest.mark.asyncio
async def test_episode_search_keeps_matching_videos(
    provider_factory, listing_factory, container_factory, video_factory, settings, profiles, cache
):
    container = container_factory(
        "1",
        "Breaking.Bad.S01.1080p",
        [video_factory("Breaking.Bad.S01E01.mkv"), video_factory("Breaking.Bad.S01E02.mkv")],
    )
    provider = provider_factory["plain"](
        listings=[listing_factory("1", "Breaking.Bad.S01.1080p")], containers={"1": container}
    )

    outcome = await _coordinator(provider, settings, profiles, cache).coordinate_search(
        _request("Breaking Bad", season=1, episode=2)
    )

    [candidate] = outcome.results
    assert [video.name for video in candidate.container.videos] == ["Breaking.Bad.S01E02.mkv"]
    assert outcome.anime_mapping is None
    assert provider.detail_calls == ["1"]


@pytest.mark.asyncio
async def test_episode_search_falls_back_to_anime_mapping(
    provider_factory, listing_factory, container_factory, video_factory, settings, profiles, cache
):
    container = container_factory(
        "1", "Show.Season.2.1080p", [video_factory("Show S02E01.mkv"), video_factory("Show S02E02.mkv")]
    )
    provider = provider_factory["plain"](
        listings=[listing_factory("1", "Show.Season.2.1080p")], containers={"1": container}
    )
    jikan = FakeJikan(
        {
            "Show": [
                AnimeSeason(1, "Show", "TV", "2020-01-01", episodes=12, season_number=1),
                AnimeSeason(2, "Show Season 2", "TV", "2021-01-01", episodes=12, season_number=2),
            ]
        }
    )

    outcome = await _coordinator(provider, settings, profiles, cache, jikan).coordinate_search(
        _request("Show", season=1, episode=13)
    )

    assert (outcome.mapped_season, outcome.mapped_episode) == (2, 1)
    assert [video.name for video in outcome.results[0].container.videos] == ["Show S02E01.mkv"]


@pytest.mark.asyncio
async def test_season_zero_skips_anime_mapping(
    provider_factory, listing_factory, container_factory, video_factory, settings, profiles, cache
):
    container = container_factory("1", "Show.Specials", [video_factory("Show S00E02.mkv")])
    provider = provider_factory["plain"](
        listings=[listing_factory("1", "Show.Specials")], containers={"1": container}
    )
    jikan = FakeJikan()

    outcome = await _coordinator(provider, settings, profiles, cache, jikan).coordinate_search(
        _request("Show", season=0, episode=5)
    )

    assert outcome.results == []
    assert jikan.queries == []


@pytest.mark.asyncio
async def test_listing_failures(provider_factory, settings, profiles, cache):
    class BrokenProvider(provider_factory["plain"]):
        def __init__(self, error):
            super().__init__()
            self.error = error

        async def list_account_items(self, api_key):
            raise self.error

    broken = _coordinator(BrokenProvider(RuntimeError("timeout")), settings, profiles, cache)
    outcome = await broken.coordinate_search(_request("Show", season=1, episode=1))
    assert outcome.results == []

    rejected = _coordinator(
        BrokenProvider(AuthenticationError("bad key")), settings, profiles, cache
    )
    with pytest.raises(AuthenticationError):
        await rejected.coordinate_search(_request("Show", season=1, episode=1))


@pytest.mark.asyncio
async def test_unknown_provider_is_rejected(provider_factory, settings, profiles, cache):
    coordinator = _coordinator(provider_factory["plain"](), settings, profiles, cache)

    with pytest.raises(ValidationError) as excinfo:
        await coordinator.coordinate_search(_request("Show", provider="Nope"))
    assert excinfo.value.code == "UNSUPPORTED_PROVIDER"


def test_analyze_container_keeps_provider_episode_zero(container_factory):
    special = Video(
        name="Show.S00E03.Unaired.Pilot.mkv",
        url="https://host.example/special",
        size=1_000_000_000,
        info=VideoInfo(episode=0),
    )
    container = container_factory("t1", "Show.Specials", [special])

    [video] = analyze_container(container, 0, 0)

    assert (video.info.season, video.info.episode) == (0, 0)
    assert analyze_container(container, 0, 3) == []


@pytest.mark.asyncio
async def test_failed_enrichment_falls_back_to_classic_matching(
    provider_factory, listing_factory, container_factory, video_factory, profiles, cache
):
    settings = Settings(tmdb_api_key="tmdb", trakt_api_key="trakt")
    container = container_factory(
        "1", "Breaking.Bad.S01.1080p", [video_factory("Breaking.Bad.S01E02.mkv")]
    )
    provider = provider_factory["plain"](
        listings=[listing_factory("1", "Breaking.Bad.S01.1080p")], containers={"1": container}
    )
    tmdb = AsyncMock()
    tmdb.get_alternative_titles.side_effect = RuntimeError("tmdb exploded")
    trakt = AsyncMock()
    trakt.get_episode_mapping.side_effect = KeyError("show")
    coordinator = SearchCoordinator(
        {"RealDebrid": provider}, profiles, settings, tmdb=tmdb, trakt=trakt, jikan=FakeJikan()
    )

    outcome = await coordinator.coordinate_search(_request("Breaking Bad", season=1, episode=2))

    [candidate] = outcome.results
    assert [video.name for video in candidate.container.videos] == ["Breaking.Bad.S01E02.mkv"]
    assert outcome.absolute_episode is None
    trakt.get_episode_mapping.assert_awaited_once_with("tt0000001", 1, 2)
