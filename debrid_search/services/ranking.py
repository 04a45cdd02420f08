# debrid_search/services/ranking.py

from __future__ import annotations

import re
from collections.abc import Callable, Sequence

from ..config import logger
from ..models import StreamRecord
from ..parsing.patterns import extract_quality_info

UNSCORED = -1
_SIZE_RE = re.compile(r"(\d+\.?\d*)\s*([KMGT]?B)\b", re.IGNORECASE)
_UNIT_MULTIPLIERS = {
    "B": 1,
    "KB": 1024,
    "MB": 1024**2,
    "GB": 1024**3,
    "TB": 1024**4,
}


def quality_score(stream: StreamRecord) -> int:
    """Score of the quality line (second line of the name); -1 when unknown."""
    lines = stream.name.split("\n")
    quality_line = lines[1] if len(lines) > 1 else ""
    return extract_quality_info(quality_line).score or UNSCORED


def parse_size(stream: StreamRecord) -> float:
    """Bytes from the trailing size annotation of the title, 0 when absent."""
    size_line = stream.title.split("\n")[-1]
    match = _SIZE_RE.search(size_line)
    if not match:
        return 0.0
    return float(match.group(1)) * _UNIT_MULTIPLIERS[match.group(2).upper()]


def rank_streams(
    streams: Sequence[StreamRecord],
    *,
    scorer: Callable[[StreamRecord], int] = quality_score,
) -> list[StreamRecord]:
    """Highest quality first, then largest file; equal streams keep their order."""
    ranked = sorted(streams, key=lambda s: (-scorer(s), -parse_size(s)))
    logger.debug(f"[RANKER] Ranked {len(ranked)} streams")
    return ranked
