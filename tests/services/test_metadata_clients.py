import httpx
import pytest

from debrid_search.models import EpisodeMapping
from debrid_search.services.metadata import (
    AnimeSeason,
    CinemetaClient,
    JikanClient,
    TMDbClient,
    TraktClient,
    assign_season_numbers,
)
from debrid_search.services.metadata.jikan import JikanRateLimiter


class DummyResponse:
    def __init__(self, json_data=None, status_code=200):
        self._json = json_data
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            request = httpx.Request("GET", "https://example.test")
            raise httpx.HTTPStatusError(
                "error", request=request, response=httpx.Response(self.status_code, request=request)
            )

    def json(self):
        return self._json


class DummyClient:
    def __init__(self, responses):
        self._responses = responses
        self.urls = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        pass

    async def get(self, url, *args, **kwargs):
        self.urls.append(url)
        return self._responses.pop(0)


@pytest.mark.asyncio
async def test_cinemeta_fetches_and_caches(mocker, cache):
    client = DummyClient([DummyResponse({"meta": {"name": "Inception", "year": "2010"}})])
    mocker.patch("httpx.AsyncClient", return_value=client)
    cinemeta = CinemetaClient(cache)

    first = await cinemeta.get_meta("movie", "tt1375666")
    second = await cinemeta.get_meta("movie", "tt1375666")

    assert first == {"name": "Inception", "year": "2010"}
    assert second == first
    assert client.urls == ["https://v3-cinemeta.strem.io/meta/movie/tt1375666.json"]


@pytest.mark.asyncio
async def test_cinemeta_season_counts(mocker, cache):
    videos = [
        {"season": 1, "episode": 1},
        {"season": 1, "episode": 2},
        {"season": 2, "episode": 1},
        {"season": None, "episode": 1},
    ]
    mocker.patch(
        "httpx.AsyncClient",
        return_value=DummyClient([DummyResponse({"meta": {"name": "Show", "videos": videos}})]),
    )

    seasons = await CinemetaClient(cache).get_season_episode_counts("tt0000001")

    assert seasons[1].count == 2
    assert seasons[1].last_episode == 2
    assert seasons[2].episodes == [1]


@pytest.mark.asyncio
async def test_tmdb_alternative_titles(mocker, cache):
    client = DummyClient(
        [
            DummyResponse({"movie_results": [{"id": 27205}]}),
            DummyResponse(
                {
                    "titles": [
                        {"title": "El origen", "iso_3166_1": "ES"},
                        {"title": "", "iso_3166_1": "US"},
                    ]
                }
            ),
        ]
    )
    mocker.patch("httpx.AsyncClient", return_value=client)

    titles = await TMDbClient(cache, "KEY").get_alternative_titles("tt1375666", "movie")

    assert [(t.title, t.country, t.normalized_title) for t in titles] == [
        ("El origen", "ES", "El origen")
    ]
    assert "movie/27205/alternative_titles" in client.urls[1]


@pytest.mark.asyncio
async def test_tmdb_without_key_makes_no_request(mocker, cache):
    patched = mocker.patch("httpx.AsyncClient")

    assert await TMDbClient(cache, None).get_alternative_titles("tt1", "movie") == []
    patched.assert_not_called()


@pytest.mark.asyncio
async def test_tmdb_http_error_yields_empty_list(mocker, cache):
    mocker.patch("httpx.AsyncClient", return_value=DummyClient([DummyResponse(status_code=500)]))
    tmdb = TMDbClient(cache, "KEY")

    assert await tmdb.get_alternative_titles("tt1", "series") == []
    assert cache.get("tmdb_alt_titles_tt1_series") == []


@pytest.mark.asyncio
async def test_trakt_direct_episode_mapping(mocker, cache):
    client = DummyClient(
        [
            DummyResponse([{"show": {"ids": {"trakt": 1}}}]),
            DummyResponse(
                [
                    {"number": 1, "number_abs": 1, "title": "Pilot"},
                    {"number": 2, "number_abs": 2, "title": "Second"},
                ]
            ),
        ]
    )
    mocker.patch("httpx.AsyncClient", return_value=client)
    trakt = TraktClient(cache, "KEY", CinemetaClient(cache))

    mapping = await trakt.get_episode_mapping("tt0000001", 1, 2)

    assert mapping == EpisodeMapping(season=1, episode=2, absolute_episode=2, title="Second")
    assert cache.get("trakt_episode_tt0000001_s1_e2") == mapping


@pytest.mark.asyncio
async def test_trakt_falls_back_to_last_episode(mocker, cache):
    client = DummyClient(
        [
            DummyResponse([{"show": {"ids": {"trakt": 1}}}]),
            DummyResponse([{"number": n, "number_abs": n} for n in (1, 2, 3)]),
        ]
    )
    mocker.patch("httpx.AsyncClient", return_value=client)

    mapping = await TraktClient(cache, "KEY", CinemetaClient(cache)).get_episode_mapping(
        "tt0000001", 1, 5
    )

    assert mapping.episode == 3
    assert mapping.fallback is True


@pytest.mark.asyncio
async def test_jikan_anime_seasons(mocker, cache):
    client = DummyClient(
        [
            DummyResponse(
                {
                    "data": [
                        {"mal_id": 52991, "type": "TV", "titles": [{"title": "Sousou no Frieren"}]},
                        {"mal_id": 1, "type": "Movie", "titles": [{"title": "Frieren Movie"}]},
                    ]
                }
            ),
            DummyResponse(
                {
                    "data": {
                        "title": "Sousou no Frieren",
                        "type": "TV",
                        "episodes": 28,
                        "year": 2023,
                        "aired": {"prop": {"from": {"year": 2023, "month": 9, "day": 29}}},
                    }
                }
            ),
        ]
    )
    mocker.patch("httpx.AsyncClient", return_value=client)
    jikan = JikanClient(cache, JikanRateLimiter(min_interval=0))

    seasons = await jikan.get_anime_seasons("Frieren")

    assert len(seasons) == 1
    assert seasons[0].season_number == 1
    assert seasons[0].episodes == 28
    assert seasons[0].aired_from == "2023-09-29"
    # empty and non-empty answers are both cached
    assert await jikan.get_anime_seasons("frieren") == seasons


def _season(title, aired, kind="TV", episodes=12):
    return AnimeSeason(mal_id=hash(title), title=title, type=kind, aired_from=aired, episodes=episodes)


def test_assign_season_numbers_merges_parts():
    seasons = assign_season_numbers(
        [
            _season("Show Season 2", "2021-01-01"),
            _season("Show", "2020-01-01"),
            _season("Show Part 2", "2020-07-01"),
            _season("Show Recap", "2020-12-01", kind="Special", episodes=1),
            _season("Show Undated", None),
        ]
    )

    assert [(s.title, s.season_number) for s in seasons] == [
        ("Show", 1),
        ("Show Part 2", 1),
        ("Show Recap", 0),
        ("Show Season 2", 2),
    ]

