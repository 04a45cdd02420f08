# debrid_search/models.py

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

MOVIE = "movie"
SERIES = "series"
CONTENT_TYPES = (MOVIE, SERIES)


class FileType(enum.Enum):
    TORRENT = "torrent"
    DOWNLOAD = "download"


@dataclass(frozen=True)
class DebridAccount:
    """The provider and API key a request is served from."""

    provider_name: str
    api_key: str


@dataclass(frozen=True)
class SearchRequest:
    """Everything one search needs. Immutable for the duration of the call."""

    api_key: str
    provider_name: str
    canonical_title: str
    content_type: str
    imdb_id: str
    season: int | None = None
    episode: int | None = None
    match_threshold: float = 0.3
    # Additional user-supplied search terms tried right after the title
    extra_terms: tuple[str, ...] = ()


@dataclass
class VideoInfo:
    """Attributes a provider (or the parser) attached to a file name."""

    title: str | None = None
    season: int | None = None
    episode: int | None = None
    absolute_episode: int | None = None
    resolution: str | None = None
    year: int | None = None


@dataclass
class RawListing:
    """One entry of a provider's account listing."""

    id: str
    name: str
    size: int = 0
    source: str = ""
    created_at: datetime | None = None
    info: VideoInfo | None = None


@dataclass
class Video:
    name: str
    url: str | None = None
    size: int = 0
    info: VideoInfo | None = None
    is_absolute_match: bool = False
    trakt_mapped: bool = False


@dataclass
class TorrentContainer:
    """A torrent or direct download held in the user's account."""

    id: str
    container_name: str
    source: str
    file_type: FileType = FileType.TORRENT
    videos: list[Video] = field(default_factory=list)
    info: VideoInfo | None = None
    size: int = 0
    url: str | None = None

    def playable_videos(self) -> list[Video]:
        """A download with no explicit files behaves as one implicit video."""
        if self.file_type is FileType.DOWNLOAD and not self.videos:
            return [
                Video(
                    name=self.container_name,
                    url=self.url,
                    size=self.size,
                    info=self.info,
                )
            ]
        return self.videos


@dataclass
class Candidate:
    """A listing that survived title matching, plus what is known about it so far."""

    listing: RawListing
    matched_term: str | None = None
    container: TorrentContainer | None = None

    @property
    def id(self) -> str:
        return self.listing.id

    @property
    def name(self) -> str:
        return self.listing.name

    @property
    def size(self) -> int:
        return self.listing.size


@dataclass(frozen=True)
class EpisodeMapping:
    """Canonical numbering for one episode as reported by Trakt."""

    season: int
    episode: int
    absolute_episode: int | None = None
    title: str | None = None
    fallback: bool = False


@dataclass(frozen=True)
class AnimeMapping:
    original_season: int
    original_episode: int
    mapped_season: int
    mapped_episode: int
    absolute_episode: int | None = None
    anime_title: str | None = None

    def annotation(self) -> str:
        return (
            f"🎌 Anime S{self.original_season}E{self.original_episode}"
            f"→S{self.mapped_season}E{self.mapped_episode}"
        )


@dataclass(frozen=True)
class AlternativeTitle:
    title: str
    country: str = "XX"
    normalized_title: str = ""


@dataclass
class SearchContext:
    search_title: str
    alternative_titles: set[str] = field(default_factory=set)
    imdb_id: str | None = None
    content_type: str | None = None


@dataclass
class SearchOutcome:
    """Result of coordinate_search: matched candidates plus numbering context."""

    results: list[Candidate]
    search_context: SearchContext
    anime_mapping: AnimeMapping | None = None
    absolute_episode: int | None = None

    @property
    def mapped_season(self) -> int | None:
        return self.anime_mapping.mapped_season if self.anime_mapping else None

    @property
    def mapped_episode(self) -> int | None:
        return self.anime_mapping.mapped_episode if self.anime_mapping else None


@dataclass(frozen=True)
class KnownEpisode:
    """Season/episode the caller already resolved for the request."""

    season: int
    episode: int
    absolute_episode: int | None = None


@dataclass
class SeriesInfo:
    title: str = "Unknown"
    season: int | None = None
    episode: int | None = None
    absolute_episode: int | None = None
    episode_title: str | None = None
    episode_pattern: str | None = None
    season_episode: str = "Unknown Episode"
    resolution: str | None = None
    source: str | None = None
    codec: str | None = None
    audio: str | None = None
    release_group: str | None = None
    languages: list[str] = field(default_factory=list)
    year: int | None = None


@dataclass
class MovieInfo:
    title: str = "Unknown"
    year: int | None = None
    resolution: str | None = None
    source: str | None = None
    codec: str | None = None
    audio: str | None = None
    release_group: str | None = None
    languages: list[str] = field(default_factory=list)


@dataclass
class ParsedMetadata:
    """Cached parse of one (container, video) pair."""

    series_info: SeriesInfo | None = None
    movie_info: MovieInfo | None = None
    technical_details: str = ""
    parsed_at: float = 0.0
    cache_source: str = "parsed"


@dataclass(frozen=True)
class StreamRecord:
    name: str
    title: str
    url: str | None
    binge_group: str
    filename: str
    video_size: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "url": self.url,
            "behaviorHints": {
                "bingeGroup": self.binge_group,
                "filename": self.filename,
                "videoSize": self.video_size,
            },
        }
