# debrid_search/services/stream_builder.py

from __future__ import annotations

import math
from collections.abc import Mapping

from ..config import Settings, logger
from ..models import (
    MOVIE,
    SERIES,
    FileType,
    KnownEpisode,
    SearchContext,
    StreamRecord,
    TorrentContainer,
    Video,
)
from ..parsing.extractor import extract_movie_info, extract_series_info
from ..parsing.patterns import get_quality_display, strip_extension
from ..parsing.release_groups import is_valid_release_group
from ..parsing.variants import detect_variant
from .metadata_cache import FuzzyMetadataCache
from .providers import ProviderProfile, provider_label

_SIZE_UNITS = ("B", "kB", "MB", "GB", "TB")


def format_size(size: int | None) -> str | None:
    """1288490188 -> '1.2 GB'. Falsy sizes have no display."""
    if not size:
        return None
    exponent = min(int(math.floor(math.log(size, 1024))), len(_SIZE_UNITS) - 1)
    value = round(size / math.pow(1024, exponent), 2)
    return f"{value:g} {_SIZE_UNITS[exponent]}"


def _display_safe(text: str) -> str:
    # Plain commas split lines in some players; the full-width form renders the same.
    return text.replace(",", "，")


class StreamBuilder:
    """Formats containers into addon-facing stream records."""

    def __init__(
        self,
        metadata_cache: FuzzyMetadataCache,
        profiles: Mapping[str, ProviderProfile],
        settings: Settings,
    ) -> None:
        self.metadata_cache = metadata_cache
        self.profiles = profiles
        self.settings = settings

    def build_streams(
        self,
        container: TorrentContainer,
        content_type: str,
        *,
        known_episode: KnownEpisode | None = None,
        matched_term: str | None = None,
        search_context: SearchContext | None = None,
    ) -> list[StreamRecord]:
        """
        One stream per container by default, using its first playable video.

        Series containers are expected to be episode-filtered already, so
        their first video is the preferred match. With ``multi_stream``
        enabled every playable video becomes a stream.
        """
        if container is None:
            return []

        videos = container.playable_videos()
        if not self.settings.multi_stream:
            videos = videos[:1]

        streams = []
        for video in videos:
            stream = self._build_stream(
                container, video, content_type, known_episode, matched_term, search_context
            )
            if stream:
                streams.append(stream)
        logger.debug(
            f"[STREAM] Built {len(streams)} stream(s) from {container.container_name[:50]}"
        )
        return streams

    def _build_stream(
        self,
        container: TorrentContainer,
        video: Video,
        content_type: str,
        known_episode: KnownEpisode | None,
        matched_term: str | None,
        search_context: SearchContext | None,
    ) -> StreamRecord | None:
        if not video.name or not video.url:
            return None

        resolution = (video.info.resolution if video.info else None) or (
            container.info.resolution if container.info else None
        )
        quality = get_quality_display(f"{container.container_name} {video.name}", resolution)
        icon = "⬇️" if container.file_type is FileType.DOWNLOAD else "💾"

        if content_type == SERIES:
            title = self._series_title(
                container, video, icon, known_episode, matched_term, search_context
            )
        else:
            title = self._movie_title(container, video, icon)

        return StreamRecord(
            name=f"{provider_label(self.profiles, container.source)}\n{quality}",
            title=title,
            url=video.url,
            binge_group=f"{container.source}|{container.id}",
            filename=video.name,
            video_size=video.size or None,
        )

    def _size_line(
        self, icon: str, size: int, release_group: str | None, season_episode: str | None
    ) -> str:
        size_text = format_size(size) or "Unknown"
        if season_episode:
            line = f"{season_episode[:3]} - {season_episode[3:]} • {icon} {size_text}"
        else:
            line = f"{icon} {size_text}"
        if (
            self.settings.show_release_group
            and release_group
            and release_group.strip()
            and is_valid_release_group(release_group)
        ):
            line += f" • 👥 [{release_group}]"
        return line

    def _series_title(
        self,
        container: TorrentContainer,
        video: Video,
        icon: str,
        known_episode: KnownEpisode | None,
        matched_term: str | None,
        search_context: SearchContext | None,
    ) -> str:
        metadata = self.metadata_cache.get_or_parse(container.container_name, video.name, SERIES)
        series_info = metadata.series_info or extract_series_info(
            video.name, container.container_name
        )

        if known_episode:
            season_episode = f"S{known_episode.season:02d}E{known_episode.episode:02d}"
        elif series_info.season is not None and series_info.episode is not None:
            season_episode = f"S{series_info.season:02d}E{series_info.episode:02d}"
        else:
            season_episode = None

        lines = [f"📁 {_display_safe(video.name or container.container_name)}"]
        display_title = matched_term if matched_term and matched_term.strip() else series_info.title
        lines.append(_display_safe(display_title))

        if self.settings.show_variants and search_context and search_context.search_title:
            variant = detect_variant(
                series_info.title,
                search_context.search_title,
                search_context.alternative_titles,
                series_info.episode_title,
            )
            if variant:
                lines.append(f"🔄 Variant: {variant}")

        if series_info.episode_title:
            lines.append(f'📺 "{_display_safe(series_info.episode_title)}"')
        if metadata.technical_details:
            lines.append(f"⚙️ {metadata.technical_details}")
        lines.append(
            self._size_line(icon, video.size, series_info.release_group, season_episode)
        )
        return "\n".join(lines)

    def _movie_title(self, container: TorrentContainer, video: Video, icon: str) -> str:
        metadata = self.metadata_cache.get_or_parse(container.container_name, video.name, MOVIE)
        movie_info = metadata.movie_info or extract_movie_info(
            strip_extension(video.name or container.container_name)
        )

        lines = [f"📁 {_display_safe(video.name or container.container_name)}"]
        lines.append(f"{movie_info.title} ({movie_info.year})" if movie_info.year else movie_info.title)
        if metadata.technical_details:
            lines.append(f"⚙️ {metadata.technical_details}")
        lines.append(self._size_line(icon, video.size, movie_info.release_group, None))
        return "\n".join(lines)
