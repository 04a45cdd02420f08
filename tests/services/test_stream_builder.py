import pytest

from debrid_search.config import Settings
from debrid_search.models import (
    MOVIE,
    SERIES,
    FileType,
    KnownEpisode,
    SearchContext,
    TorrentContainer,
)
from debrid_search.services.metadata_cache import FuzzyMetadataCache
from debrid_search.services.stream_builder import StreamBuilder, format_size


@pytest.fixture
def builder_for(cache, profiles):
    def build(**overrides):
        return StreamBuilder(FuzzyMetadataCache(cache), profiles, Settings(**overrides))

    return build


@pytest.mark.parametrize(
    "size, expected",
    [
        (512, "512 B"),
        (1536, "1.5 kB"),
        (1288490188, "1.2 GB"),
        (0, None),
        (None, None),
    ],
)
def test_format_size(size, expected):
    assert format_size(size) == expected


def test_movie_stream(builder_for, container_factory, video_factory):
    video = video_factory("Inception.2010.1080p.BluRay.x264-SPARKS.mkv", size=2 * 1024**3)
    container = container_factory("m1", "Inception.2010.1080p.BluRay.x264-SPARKS", [video])

    [stream] = builder_for().build_streams(container, MOVIE)

    assert stream.name == "[RD⚡] Intell DebridSearch\n⭐ 1080p"
    assert stream.title.split("\n") == [
        "📁 Inception.2010.1080p.BluRay.x264-SPARKS.mkv",
        "Inception (2010)",
        "⚙️ 📀 BluRay • 🎥 x264",
        "💾 2 GB • 👥 [SPARKS]",
    ]
    assert stream.binge_group == "RealDebrid|m1"
    assert stream.filename == video.name
    assert stream.to_dict()["behaviorHints"]["videoSize"] == 2 * 1024**3


def test_series_stream(builder_for, container_factory, video_factory):
    video = video_factory("Breaking.Bad.S01E02.1080p.BluRay.x264-DEMAND.mkv", size=1288490188)
    container = container_factory("s1", "Breaking.Bad.S01.1080p.BluRay.x264-DEMAND", [video])

    [stream] = builder_for(show_release_group=False).build_streams(
        container,
        SERIES,
        known_episode=KnownEpisode(1, 2),
        matched_term="Breaking Bad",
        search_context=SearchContext("Breaking Bad"),
    )

    assert stream.title.split("\n") == [
        "📁 Breaking.Bad.S01E02.1080p.BluRay.x264-DEMAND.mkv",
        "Breaking Bad",
        "⚙️ 📀 BluRay • 🎥 x264",
        "S01 - E02 • 💾 1.2 GB",
    ]


def test_one_stream_per_container_unless_multi_stream(
    builder_for, container_factory, video_factory
):
    container = container_factory(
        "s1",
        "Show.S01",
        [
            video_factory("Show.S01E01.mkv"),
            video_factory("Show.S01E02.mkv"),
            video_factory("Show.S01E03.mkv"),
        ],
    )
    container.videos[2].url = None

    assert len(builder_for().build_streams(container, SERIES)) == 1
    assert len(builder_for(multi_stream=True).build_streams(container, SERIES)) == 2


def test_direct_download_without_files(builder_for):
    container = TorrentContainer(
        id="d1",
        container_name="Movie.2019.720p.WEB.mkv",
        source="AllDebrid",
        file_type=FileType.DOWNLOAD,
        size=0,
        url="https://host.example/movie",
    )

    [stream] = builder_for().build_streams(container, MOVIE)

    assert stream.name == "[AD⚡] Intell DebridSearch\n✨ 720p"
    assert stream.title.split("\n")[-1] == "⬇️ Unknown"
    assert stream.video_size is None
    assert stream.url == "https://host.example/movie"


def test_commas_are_display_safe(builder_for, container_factory, video_factory):
    video = video_factory("Love, Death and Robots S01E01.mkv")
    container = container_factory("s1", "Love, Death and Robots S01", [video])

    [stream] = builder_for().build_streams(container, SERIES, matched_term="Love, Death")

    assert stream.title.split("\n")[:2] == [
        "📁 Love， Death and Robots S01E01.mkv",
        "Love， Death",
    ]
