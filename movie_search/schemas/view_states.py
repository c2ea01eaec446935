"""
View states of the search session.

Each state is its own model, tagged by ``view``, so that illegal combinations
(results shown next to an error, loading while errored) cannot be expressed.
"""
from typing import Annotated, List, Literal, Union
from pydantic import BaseModel, Field

from .movies_schemas import ErrorState, MovieDetail, MovieSummary


class IdleView(BaseModel):
    view: Literal['idle'] = 'idle'
    credential_required: bool = False


class SearchingView(BaseModel):
    view: Literal['searching'] = 'searching'
    query: str
    token: int


class ResultsView(BaseModel):
    view: Literal['results'] = 'results'
    query: str
    movies: List[MovieSummary]
    total_count: int


class EmptyView(BaseModel):
    view: Literal['empty'] = 'empty'
    query: str


class ErrorView(BaseModel):
    view: Literal['error'] = 'error'
    query: str
    error: ErrorState

    @property
    def can_retry(self) -> bool:
        return self.error.retryable


class ThrottledView(BaseModel):
    view: Literal['throttled'] = 'throttled'
    query: str
    error: ErrorState

    @property
    def can_retry(self) -> bool:
        return False


# States a details view can return to via "back".
SearchSideState = Annotated[
    Union[IdleView, SearchingView, ResultsView, EmptyView, ErrorView, ThrottledView],
    Field(discriminator='view'),
]


class DetailsLoadingView(BaseModel):
    view: Literal['details_loading'] = 'details_loading'
    imdb_id: str
    search: SearchSideState


class DetailsView(BaseModel):
    view: Literal['details'] = 'details'
    movie: MovieDetail
    search: SearchSideState


ViewState = Annotated[
    Union[
        IdleView,
        SearchingView,
        ResultsView,
        EmptyView,
        ErrorView,
        ThrottledView,
        DetailsLoadingView,
        DetailsView,
    ],
    Field(discriminator='view'),
]
