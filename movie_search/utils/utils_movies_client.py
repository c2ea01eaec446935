from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple
from ..clients.errors import (
    DAILY_LIMIT_MESSAGE,
    UPSTREAM_FALLBACK_MESSAGE,
    GatewayError,
    RateLimitedError,
    TooManyResultsError,
    UpstreamError,
)
from ..schemas.movies_schemas import MovieDetail, MovieSummary, Rating

NOT_AVAILABLE = 'N/A'


@dataclass(frozen=True)
class ErrorRule:
    pattern: str
    build: Callable[[str], GatewayError]

    def matches(self, message: str) -> bool:
        return self.pattern in message.lower()


# Checked in order, first match wins. Patterns are lower case.
UPSTREAM_ERROR_RULES: Tuple[ErrorRule, ...] = (
    ErrorRule(
        'request limit reached',
        lambda raw: RateLimitedError(DAILY_LIMIT_MESSAGE, scope='daily'),
    ),
    ErrorRule(
        'too many results',
        lambda raw: TooManyResultsError(),
    ),
)


def classify_upstream_error(
    raw_message: Optional[str],
    rules: Tuple[ErrorRule, ...] = UPSTREAM_ERROR_RULES
) -> GatewayError:
    """
    Turn the free-text ``Error`` field of a ``Response: "False"`` body into a
    gateway error.

    :param raw_message: Message exactly as OMDb sent it, possibly missing.
    :param rules: Ordered rule table to match against.
    :return: The error of the first matching rule, or an UpstreamError
        carrying the raw message verbatim.
    """
    if not raw_message:
        return UpstreamError(UPSTREAM_FALLBACK_MESSAGE)
    for rule in rules:
        if rule.matches(raw_message):
            return rule.build(raw_message)
    return UpstreamError(raw_message)


def available(value: Any) -> Optional[str]:
    """Return ``value`` unless it is the "N/A" sentinel or blank."""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text == NOT_AVAILABLE:
        return None
    return text


def split_list(value: Any) -> List[str]:
    text = available(value)
    if text is None:
        return []
    return [part.strip() for part in text.split(',') if part.strip()]


def parse_total(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def map_to_summary(item: Dict[str, Any]) -> MovieSummary:
    """
    Map one entry of the OMDb ``Search`` array to a MovieSummary.

    :param item: Dictionary with Title, Year, imdbID, Type and Poster keys.
    :return: MovieSummary object.
    """
    return MovieSummary(
        id=item.get('imdbID', ''),
        title=item.get('Title') or '',
        year=available(item.get('Year')),
        type=item.get('Type') or 'movie',
        poster_url=available(item.get('Poster')),
    )


def map_search_results(items: Optional[List[Dict[str, Any]]]) -> List[MovieSummary]:
    """
    Map the OMDb ``Search`` array, dropping repeated imdbIDs.

    :param items: Raw search entries, or None when the body had none.
    :return: Summaries in upstream order, first occurrence of each id kept.
    """
    seen = set()
    movies: List[MovieSummary] = []
    for item in items or []:
        movie = map_to_summary(item)
        if not movie.id or movie.id in seen:
            continue
        seen.add(movie.id)
        movies.append(movie)
    return movies


def map_to_detail(data: Dict[str, Any]) -> MovieDetail:
    """
    Map a full OMDb detail body to a MovieDetail, treating "N/A" as absent.

    :param data: Flat OMDb detail object.
    :return: MovieDetail object.
    """
    ratings = [
        Rating(source=r['Source'], value=r['Value'])
        for r in data.get('Ratings') or []
        if r.get('Source') and available(r.get('Value'))
    ]
    return MovieDetail(
        id=data.get('imdbID', ''),
        title=data.get('Title') or '',
        year=available(data.get('Year')),
        type=data.get('Type') or 'movie',
        poster_url=available(data.get('Poster')),
        rated=available(data.get('Rated')),
        runtime=available(data.get('Runtime')),
        genres=split_list(data.get('Genre')),
        director=available(data.get('Director')),
        actors=split_list(data.get('Actors')),
        country=available(data.get('Country')),
        plot=available(data.get('Plot')),
        awards=available(data.get('Awards')),
        box_office=available(data.get('BoxOffice')),
        ratings=ratings,
    )
