from .cinemeta import CinemetaClient
from .tmdb import HttpxTmdbClient

__all__ = ["CinemetaClient", "HttpxTmdbClient"]
