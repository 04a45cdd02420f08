from .episodes import (
    parse_absolute_episode,
    parse_episode_from_title,
    parse_season_from_title,
    should_avoid,
)
from .extractor import (
    extract_features,
    extract_movie_info,
    extract_series_info,
    parse_unified,
    parse_video_info,
)
from .patterns import extract_quality_info, get_quality_display
from .release_groups import extract_release_group, is_valid_release_group
from .variants import detect_variant

__all__ = [
    "parse_absolute_episode",
    "parse_episode_from_title",
    "parse_season_from_title",
    "should_avoid",
    "extract_features",
    "extract_movie_info",
    "extract_series_info",
    "parse_unified",
    "parse_video_info",
    "extract_quality_info",
    "get_quality_display",
    "extract_release_group",
    "is_valid_release_group",
    "detect_variant",
]
