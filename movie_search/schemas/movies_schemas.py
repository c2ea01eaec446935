from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class ErrorKind(str, Enum):
    MISSING_CREDENTIAL = 'missing_credential'
    NETWORK_FAILURE = 'network_failure'
    RATE_LIMITED = 'rate_limited'
    TOO_MANY_RESULTS = 'too_many_results'
    UPSTREAM_ERROR = 'upstream_error'


class ErrorState(BaseModel):
    kind: ErrorKind
    message: str
    retryable: bool

    @property
    def throttled(self) -> bool:
        return self.kind == ErrorKind.RATE_LIMITED


class MovieSearchParams(BaseModel):
    title: str = ''
    page: int = Field(default=1, ge=1)


class MovieSummary(BaseModel):
    id: str
    title: str
    year: Optional[str]
    type: str
    poster_url: Optional[str]


class Rating(BaseModel):
    source: str
    value: str


class MovieDetail(MovieSummary):
    rated: Optional[str] = None
    runtime: Optional[str] = None
    genres: List[str] = []
    director: Optional[str] = None
    actors: List[str] = []
    country: Optional[str] = None
    plot: Optional[str] = None
    awards: Optional[str] = None
    box_office: Optional[str] = None
    ratings: List[Rating] = []


class SearchPage(BaseModel):
    results: List[MovieSummary]
    total_count: int


class ErrorResponse(BaseModel):
    code: int
    kind: ErrorKind
    message: str
    retryable: bool


class QueryInput(BaseModel):
    value: str


class MovieSelection(BaseModel):
    imdb_id: str = Field(min_length=1)


class CredentialInput(BaseModel):
    api_key: str = Field(min_length=1)
