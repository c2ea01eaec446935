import logging
from typing import Any, Dict, Optional
import httpx
from pydantic import ValidationError
from .errors import (
    UPSTREAM_FALLBACK_MESSAGE,
    MissingCredentialError,
    NetworkFailureError,
    RateLimitedError,
    UpstreamError,
)
from ..schemas.movies_schemas import MovieDetail, SearchPage
from ..utils.utils_movies_client import (
    classify_upstream_error,
    map_search_results,
    map_to_detail,
    parse_total,
)

logger = logging.getLogger(__name__)

OMDB_BASE_URL = 'https://www.omdbapi.com/'

# Raised by the mappers when a body parses as JSON but has the wrong shape.
MALFORMED_BODY_ERRORS = (ValidationError, AttributeError, TypeError, KeyError)


def _malformed(exc: Exception) -> UpstreamError:
    logger.warning("OMDb body did not match the expected shape: %s", exc)
    return UpstreamError(UPSTREAM_FALLBACK_MESSAGE)


class OMDbGateway:
    """
    Boundary to the OMDb API. Holds the credential and nothing else; every
    failure is raised as a GatewayError subclass and never retried here.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: Optional[str] = None,
        base_url: str = OMDB_BASE_URL
    ):
        self._client = client
        self._api_key = api_key.strip() if api_key and api_key.strip() else None
        self._base_url = base_url

    @property
    def has_credential(self) -> bool:
        return self._api_key is not None

    def with_api_key(self, api_key: Optional[str]) -> 'OMDbGateway':
        """Return a gateway sharing this HTTP client but using ``api_key``."""
        return OMDbGateway(self._client, api_key, self._base_url)

    async def search_by_title(self, query: str, page: int = 1) -> SearchPage:
        """
        Search movies by title.

        :param query: Title as typed; surrounding whitespace is ignored.
        :param page: 1-based result page.
        :return: SearchPage with the de-duplicated results and total count.
        """
        title = query.strip()
        if not title:
            return SearchPage(results=[], total_count=0)

        logger.debug("Searching OMDb for %r (page %d)", title, page)
        data = await self._request({
            's': title,
            'page': str(page),
            'type': 'movie',
        })
        try:
            return SearchPage(
                results=map_search_results(data.get('Search')),
                total_count=parse_total(data.get('totalResults')),
            )
        except MALFORMED_BODY_ERRORS as exc:
            raise _malformed(exc) from exc

    async def fetch_by_id(self, imdb_id: str) -> MovieDetail:
        """
        Fetch full details of one title.

        :param imdb_id: IMDb identifier, e.g. ``tt0372784``.
        :return: MovieDetail with "N/A" fields normalised to None.
        """
        if not imdb_id or not imdb_id.strip():
            raise ValueError("imdb_id must be a non-empty identifier")

        logger.debug("Fetching OMDb details for %s", imdb_id)
        data = await self._request({'i': imdb_id.strip(), 'plot': 'full'})
        try:
            return map_to_detail(data)
        except MALFORMED_BODY_ERRORS as exc:
            raise _malformed(exc) from exc

    async def _request(self, params: Dict[str, str]) -> Dict[str, Any]:
        if self._api_key is None:
            raise MissingCredentialError()

        try:
            resp = await self._client.get(
                self._base_url, params={'apikey': self._api_key, **params}
            )
        except httpx.HTTPError as exc:
            logger.warning("OMDb transport failure: %s", exc)
            raise NetworkFailureError() from exc

        if resp.status_code == 429:
            logger.warning("OMDb throttled the request (HTTP 429)")
            raise RateLimitedError()
        if resp.status_code >= 400:
            logger.warning("OMDb answered HTTP %d", resp.status_code)
            raise NetworkFailureError(
                f"HTTP error! status: {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            logger.warning("OMDb returned an undecodable body")
            raise NetworkFailureError() from exc
        if not isinstance(data, dict):
            raise NetworkFailureError()

        if data.get('Response') == 'False':
            error = classify_upstream_error(data.get('Error'))
            logger.warning(
                "OMDb rejected the request: %s (%s)", error.message, error.kind.value
            )
            raise error
        return data
