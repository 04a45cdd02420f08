# debrid_search/services/metadata/__init__.py

from .cinemeta import CinemetaClient, SeasonEpisodes
from .jikan import AnimeSeason, JikanClient, assign_season_numbers
from .tmdb import TMDbClient
from .trakt import TraktClient

__all__ = [
    "AnimeSeason",
    "CinemetaClient",
    "JikanClient",
    "SeasonEpisodes",
    "TMDbClient",
    "TraktClient",
    "assign_season_numbers",
]
