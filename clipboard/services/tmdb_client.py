import logging

import requests

from clipboard.errors import ConfigurationError, MovieApiError

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.themoviedb.org/3"
SEARCH_RESULT_LIMIT = 5
MOVIE_FIELDS = ("id", "title", "release_date", "poster_path", "overview", "vote_average")


def _movie_summary(movie):
    return {field: movie.get(field) for field in MOVIE_FIELDS}


class TmdbClient:
    """Movie search for the profile "top movie picks" field"""

    def __init__(self, api_key=None, api_base_url=None, timeout=10, session=None):
        self.api_key = api_key
        self.api_base_url = (api_base_url or DEFAULT_API_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, path, params):
        if not self.api_key:
            raise ConfigurationError("TMDB API key not configured")

        url = f"{self.api_base_url}{path}"
        try:
            response = self.session.get(
                url,
                params={"api_key": self.api_key, "language": "en-US", **params},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"TMDB request failed for {path}: {e}")
            raise MovieApiError(f"TMDB request failed: {e}") from e
        except ValueError as e:
            logger.error(f"Invalid JSON from TMDB for {path}: {e}")
            raise MovieApiError("TMDB returned invalid JSON") from e

    def search_movies(self, query, page=1):
        """First few matches for a title search plus the total match count"""
        if not query or not query.strip():
            return {"results": [], "total_results": 0}

        data = self._get(
            "/search/movie",
            {"query": query.strip(), "page": page, "include_adult": "false"},
        )
        results = [_movie_summary(m) for m in (data.get("results") or [])[:SEARCH_RESULT_LIMIT]]
        return {"results": results, "total_results": data.get("total_results", 0)}

    def get_movie(self, movie_id):
        return _movie_summary(self._get(f"/movie/{movie_id}", {}))
