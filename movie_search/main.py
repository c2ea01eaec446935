import logging
from contextlib import asynccontextmanager
from typing import Annotated

import httpx
from fastapi import Depends, FastAPI, Path, Query, Request
from fastapi.responses import JSONResponse

from .clients.errors import GatewayError
from .clients.movie_client import OMDbGateway
from .config import settings
from .schemas.movies_schemas import (
    CredentialInput,
    ErrorKind,
    ErrorResponse,
    MovieDetail,
    MovieSearchParams,
    MovieSelection,
    QueryInput,
    SearchPage,
)
from .schemas.view_states import ViewState
from .services.search_orchestrator import SearchOrchestrator

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorKind.MISSING_CREDENTIAL: 401,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.TOO_MANY_RESULTS: 422,
    ErrorKind.NETWORK_FAILURE: 502,
    ErrorKind.UPSTREAM_ERROR: 502,
}
ERROR_RESPONSES = {
    code: {'model': ErrorResponse} for code in sorted(set(ERROR_STATUS.values()))
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT) as client:
        gateway = OMDbGateway(client, settings.OMDB_API_KEY, settings.OMDB_BASE_URL)
        orchestrator = SearchOrchestrator(gateway, settings.DEBOUNCE_SECONDS)
        app.state.orchestrator = orchestrator
        yield
        orchestrator.close()


app = FastAPI(lifespan=lifespan)


def get_orchestrator(request: Request) -> SearchOrchestrator:
    return request.app.state.orchestrator


def get_gateway(
    orchestrator: SearchOrchestrator = Depends(get_orchestrator)
) -> OMDbGateway:
    return orchestrator.gateway


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    error = exc.state
    code = ERROR_STATUS[error.kind]
    body = ErrorResponse(
        code=code, kind=error.kind, message=error.message, retryable=error.retryable
    )
    return JSONResponse(status_code=code, content=body.model_dump(mode='json'))


@app.get('/movies/search', response_model=SearchPage, responses=ERROR_RESPONSES)
async def search_movies(
    params: Annotated[MovieSearchParams, Query()],
    gateway: OMDbGateway = Depends(get_gateway)
):
    return await gateway.search_by_title(params.title, params.page)


@app.get('/movies/{imdb_id}', response_model=MovieDetail, responses=ERROR_RESPONSES)
async def movie_details(
    imdb_id: Annotated[str, Path(pattern=r'\S')],
    gateway: OMDbGateway = Depends(get_gateway)
):
    return await gateway.fetch_by_id(imdb_id)


@app.get('/session', response_model=ViewState)
async def session_state(orchestrator: SearchOrchestrator = Depends(get_orchestrator)):
    return orchestrator.state


@app.post('/session/input', response_model=ViewState)
async def session_input(
    body: QueryInput,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator)
):
    orchestrator.input(body.value)
    return orchestrator.state


@app.post('/session/select', response_model=ViewState)
async def session_select(
    body: MovieSelection,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator)
):
    orchestrator.select_movie(body.imdb_id)
    return orchestrator.state


@app.post('/session/back', response_model=ViewState)
async def session_back(orchestrator: SearchOrchestrator = Depends(get_orchestrator)):
    orchestrator.back()
    return orchestrator.state


@app.post('/session/retry', response_model=ViewState)
async def session_retry(orchestrator: SearchOrchestrator = Depends(get_orchestrator)):
    orchestrator.retry()
    return orchestrator.state


@app.put('/session/credential', response_model=ViewState)
async def session_set_credential(
    body: CredentialInput,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator)
):
    orchestrator.set_credential(body.api_key)
    return orchestrator.state


@app.delete('/session/credential', response_model=ViewState)
async def session_clear_credential(
    orchestrator: SearchOrchestrator = Depends(get_orchestrator)
):
    orchestrator.clear_credential()
    return orchestrator.state
