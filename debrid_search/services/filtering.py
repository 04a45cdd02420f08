# debrid_search/services/filtering.py

from __future__ import annotations

import re
from collections.abc import Sequence

from ..config import logger
from ..models import MOVIE, StreamRecord, TorrentContainer, Video
from ..parsing.episodes import should_avoid

_STREAM_SIZE_RE = re.compile(r"(\d+\.?\d*\s*[KMGT]?B)\b", re.IGNORECASE)


def _has_usable_id(item) -> bool:
    return item.id is not None and str(item.id).strip() != ""


def dedupe_listings(items: Sequence, content_type: str = MOVIE) -> list:
    """
    Drops repeated account entries before any details are fetched.

    An entry is dropped when its id was already seen or when another entry
    with the same (name, size) pair came first. Works on RawListing and
    Candidate alike; the first occurrence always wins, so running it twice
    changes nothing.
    """
    seen_ids: set[str] = set()
    seen_files: set[str] = set()
    kept = []
    for item in items:
        file_key = f"{item.name or 'unknown'}|{item.size or 0}"
        if _has_usable_id(item) and str(item.id) in seen_ids:
            logger.debug(f"[FILTER] Skipping duplicate torrent id {item.id}")
            continue
        if file_key in seen_files:
            logger.debug(f"[FILTER] Skipping duplicate file: {(item.name or '')[:50]}")
            continue
        if _has_usable_id(item):
            seen_ids.add(str(item.id))
        seen_files.add(file_key)
        kept.append(item)

    if len(kept) != len(items):
        logger.info(
            f"[FILTER] Deduplicated {content_type} results {len(items)} -> {len(kept)}"
        )
    return kept


def _match_priority(video: Video) -> int:
    if not video.is_absolute_match and not video.trakt_mapped:
        return 0
    if video.trakt_mapped:
        return 1
    return 2


def filter_episode(container: TorrentContainer, season: int, episode: int) -> bool:
    """
    Narrows ``container.videos`` to files for the requested episode.

    Duplicate-suffixed files such as ``(1).mkv`` are rejected first. A file
    is kept when it was resolved through its absolute number or when its
    parsed season/episode equal the target. Survivors are ordered native
    classic matches, then Trakt-mapped absolute matches, then plain absolute
    matches. Returns False (and empties the list) when nothing survives.
    """
    if container is None:
        return False

    matches = []
    for video in container.videos or []:
        if should_avoid(video.name):
            logger.debug(f"[FILTER] Avoided numbered duplicate: {video.name}")
            continue
        if video.is_absolute_match:
            matches.append(video)
            continue
        info = video.info
        if info and info.season == season and info.episode == episode:
            matches.append(video)

    if not matches:
        logger.debug(f"[FILTER] No S{season}E{episode} match in {container.container_name}")
        container.videos = []
        return False

    # sorted() is stable, so equal priorities keep provider order
    container.videos = sorted(matches, key=_match_priority)
    return True


def filter_year(container: TorrentContainer, year: int | None) -> bool:
    """Allows a one-year drift between the release and the catalogue year."""
    if not year:
        return True
    container_year = container.info.year if container.info else None
    if not container_year:
        return True
    return abs(container_year - year) <= 1


def stream_dedupe_key(stream: StreamRecord) -> str:
    lines = stream.title.split("\n")
    size_match = _STREAM_SIZE_RE.search(lines[-1] if lines else "")
    size = size_match.group(1) if size_match else ""
    return f"{lines[0] if lines else ''}|{size}".lower()


def dedupe_streams(streams: Sequence[StreamRecord]) -> list[StreamRecord]:
    """Keeps the first stream per (file line, size) pair, case-insensitively."""
    seen: set[str] = set()
    kept = []
    for stream in streams:
        key = stream_dedupe_key(stream)
        if key in seen:
            logger.debug(f"[FILTER] Filtered duplicate stream: {key}")
            continue
        seen.add(key)
        kept.append(stream)

    if len(kept) != len(streams):
        logger.info(f"[FILTER] Stream deduplication {len(streams)} -> {len(kept)}")
    return kept
