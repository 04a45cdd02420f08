# debrid_search/config.py

import configparser
import logging
import os
import sys
from dataclasses import dataclass

# --- Constants ---
DEFAULT_CONCURRENCY_LIMIT = 6
MOVIE_MATCH_THRESHOLD = 0.4
SERIES_MATCH_THRESHOLD = 0.3
DEFAULT_CACHE_TTL_SECONDS = 3600
DEFAULT_CACHE_MAX_SIZE = 1000
METADATA_CACHE_TTL_SECONDS = 12 * 60 * 60

# Setup basic logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)
logging.getLogger("httpx").setLevel(logging.WARNING)


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the search pipeline."""

    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT
    movie_threshold: float = MOVIE_MATCH_THRESHOLD
    series_threshold: float = SERIES_MATCH_THRESHOLD
    tmdb_api_key: str | None = None
    trakt_api_key: str | None = None
    show_release_group: bool = True
    multi_stream: bool = False
    show_variants: bool = True
    default_ttl: int = DEFAULT_CACHE_TTL_SECONDS
    max_size: int = DEFAULT_CACHE_MAX_SIZE
    metadata_ttl: int = METADATA_CACHE_TTL_SECONDS

    @property
    def tmdb_enabled(self) -> bool:
        return bool(self.tmdb_api_key)

    @property
    def trakt_enabled(self) -> bool:
        # Absolute mapping needs both sources: TMDb for titles, Trakt for numbering.
        return bool(self.tmdb_api_key and self.trakt_api_key)


def get_configuration(config_path: str = "config.ini") -> Settings:
    """
    Reads search, metadata, display and cache settings from an INI file.

    Missing or malformed numeric values fall back to the defaults above so a
    partially filled file still yields a usable configuration.
    """
    if not os.path.exists(config_path):
        logger.critical(
            f"Configuration file '{config_path}' not found. Please create it."
        )
        sys.exit(1)

    config = configparser.ConfigParser()
    try:
        with open(config_path, encoding="utf-8") as f:
            config.read_file(f)
    except configparser.Error as e:
        logger.critical(f"Could not parse '{config_path}': {e}")
        sys.exit(1)

    concurrency_limit = _get_int(
        config, "search", "concurrency_limit", DEFAULT_CONCURRENCY_LIMIT
    )
    if concurrency_limit < 1:
        logger.warning(
            f"[CONFIG] concurrency_limit must be positive, using {DEFAULT_CONCURRENCY_LIMIT}."
        )
        concurrency_limit = DEFAULT_CONCURRENCY_LIMIT

    tmdb_api_key, trakt_api_key = _load_metadata_keys(config)

    settings = Settings(
        concurrency_limit=concurrency_limit,
        movie_threshold=_get_threshold(
            config, "movie_threshold", MOVIE_MATCH_THRESHOLD
        ),
        series_threshold=_get_threshold(
            config, "series_threshold", SERIES_MATCH_THRESHOLD
        ),
        tmdb_api_key=tmdb_api_key,
        trakt_api_key=trakt_api_key,
        show_release_group=_get_bool(config, "display", "show_release_group", True),
        multi_stream=_get_bool(config, "display", "multi_stream", False),
        show_variants=_get_bool(config, "display", "show_variants", True),
        default_ttl=_get_int(config, "cache", "default_ttl", DEFAULT_CACHE_TTL_SECONDS),
        max_size=_get_int(config, "cache", "max_size", DEFAULT_CACHE_MAX_SIZE),
        metadata_ttl=_get_int(
            config, "cache", "metadata_ttl", METADATA_CACHE_TTL_SECONDS
        ),
    )

    if settings.trakt_enabled:
        logger.info("[CONFIG] TMDb and Trakt keys found. Absolute episode mapping enabled.")
    elif settings.tmdb_enabled:
        logger.info("[CONFIG] TMDb key found. Alternative title search enabled.")
    else:
        logger.info("[CONFIG] No metadata API keys set. Using basic title matching.")

    return settings


def _load_metadata_keys(
    config: configparser.ConfigParser,
) -> tuple[str | None, str | None]:
    """Returns the TMDb and Trakt keys, treating blanks and placeholders as unset."""
    keys = []
    for option in ("tmdb_api_key", "trakt_api_key"):
        value = config.get("metadata", option, fallback="").strip()
        keys.append(value if value and value != "PLACE_KEY_HERE" else None)
    return keys[0], keys[1]


def _get_int(
    config: configparser.ConfigParser, section: str, option: str, default: int
) -> int:
    try:
        return config.getint(section, option, fallback=default)
    except ValueError:
        logger.warning(
            f"[CONFIG] Invalid integer for '{section}.{option}', using {default}."
        )
        return default


def _get_bool(
    config: configparser.ConfigParser, section: str, option: str, default: bool
) -> bool:
    try:
        return config.getboolean(section, option, fallback=default)
    except ValueError:
        logger.warning(
            f"[CONFIG] Invalid boolean for '{section}.{option}', using {default}."
        )
        return default


def _get_threshold(
    config: configparser.ConfigParser, option: str, default: float
) -> float:
    try:
        value = config.getfloat("search", option, fallback=default)
    except ValueError:
        logger.warning(f"[CONFIG] Invalid number for 'search.{option}', using {default}.")
        return default
    if not 0.0 <= value <= 1.0:
        logger.warning(f"[CONFIG] 'search.{option}' must be within 0..1, using {default}.")
        return default
    return value
