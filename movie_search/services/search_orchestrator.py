"""
Search session state machine.

Turns keystrokes into debounced searches against the OMDb gateway and tracks
the search -> details -> back lifecycle. All methods run on the event loop
thread; network work is spawned as tasks whose results are re-validated
before they touch state.
"""

import asyncio
import logging
from typing import Callable, Coroutine, List, Optional, Set

from .debounce import Debouncer
from ..clients.errors import GatewayError
from ..clients.movie_client import OMDbGateway
from ..schemas.movies_schemas import ErrorState
from ..schemas.view_states import (
    DetailsLoadingView,
    DetailsView,
    EmptyView,
    ErrorView,
    IdleView,
    ResultsView,
    SearchingView,
    ThrottledView,
    ViewState,
)

logger = logging.getLogger(__name__)

StateListener = Callable[[ViewState], None]


class SearchOrchestrator:
    """
    Sole caller of the gateway and sole owner of the view state.

    Every search mints a request token; a search response is applied only if
    its token is still the latest one issued. Superseded search tasks are
    also cancelled, but the token check is what guarantees the last issued
    query wins.
    """

    def __init__(self, gateway: OMDbGateway, debounce_seconds: float = 0.3):
        self._gateway = gateway
        self._debouncer: Debouncer[str] = Debouncer(debounce_seconds)
        self._debouncer.on_stable(self.apply_query)
        self._listeners: List[StateListener] = []
        self._tasks: Set[asyncio.Task] = set()
        self._search_task: Optional[asyncio.Task] = None
        self._details_task: Optional[asyncio.Task] = None
        self._raw_query = ''
        self._query = ''
        self._token = 0
        self._state: ViewState = IdleView()

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def query(self) -> str:
        """The stabilized query; empty means no active search."""
        return self._query

    @property
    def raw_query(self) -> str:
        return self._raw_query

    @property
    def latest_token(self) -> int:
        return self._token

    @property
    def gateway(self) -> OMDbGateway:
        return self._gateway

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener. Returns a function that unregisters it."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    # -- user actions ------------------------------------------------------

    def input(self, raw: str) -> None:
        """Record a keystroke-level change of the search box."""
        self._raw_query = raw
        self._debouncer.observe(raw)

    def apply_query(self, value: str) -> None:
        """
        Handle a stabilized query. Values equal to the current stabilized
        query are ignored.
        """
        query = value.strip()
        if query == self._query:
            return
        self._query = query
        if not query:
            self._supersede_search()
            self._cancel_details()
            self._set_state(IdleView())
            return
        self._issue_search(query)

    def select_movie(self, imdb_id: str) -> bool:
        """
        Open the details of one result. Only possible while results are shown.

        :return: True if a detail fetch was started.
        """
        search_state = self._state
        if not isinstance(search_state, ResultsView) or not imdb_id.strip():
            logger.debug("Ignoring selection of %r in %s", imdb_id, search_state.view)
            return False

        loading = DetailsLoadingView(imdb_id=imdb_id.strip(), search=search_state)
        self._set_state(loading)
        self._details_task = self._spawn(self._run_details(loading))
        return True

    def back(self) -> bool:
        """Leave the details view, restoring the search side without re-searching."""
        state = self._state
        if not isinstance(state, (DetailsLoadingView, DetailsView)):
            return False
        self._cancel_details()
        self._set_state(state.search)
        return True

    def retry(self) -> bool:
        """
        Re-issue the last stabilized query. Not available while throttled or
        when there was never a query.
        """
        if isinstance(self._state, ThrottledView) or not self._query:
            return False
        self._issue_search(self._query)
        return True

    def set_credential(self, api_key: str) -> bool:
        """
        Swap in a new OMDb API key. A search that was blocked waiting for a
        key is issued straight away.
        """
        gateway = self._gateway.with_api_key(api_key)
        if not gateway.has_credential:
            return False
        self._gateway = gateway
        logger.info("OMDb API key updated")
        state = self._state
        if isinstance(state, IdleView) and state.credential_required:
            if self._query:
                self._issue_search(self._query)
            else:
                self._set_state(IdleView())
        return True

    def clear_credential(self) -> None:
        self._gateway = self._gateway.with_api_key(None)

    # -- lifecycle ---------------------------------------------------------

    async def settle(self) -> None:
        """Wait until every in-flight request has completed or been dropped."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        self._debouncer.close()
        for task in list(self._tasks):
            task.cancel()

    # -- internals ---------------------------------------------------------

    def _issue_search(self, query: str) -> None:
        if not self._gateway.has_credential:
            self._supersede_search()
            self._set_state(IdleView(credential_required=True))
            return
        self._cancel_details()
        token = self._supersede_search()
        self._set_state(SearchingView(query=query, token=token))
        self._search_task = self._spawn(self._run_search(query, token))

    def _supersede_search(self) -> int:
        if self._search_task is not None and not self._search_task.done():
            self._search_task.cancel()
        self._search_task = None
        self._token += 1
        return self._token

    def _cancel_details(self) -> None:
        if self._details_task is not None and not self._details_task.done():
            self._details_task.cancel()
        self._details_task = None

    async def _run_search(self, query: str, token: int) -> None:
        try:
            page = await self._gateway.search_by_title(query)
        except GatewayError as exc:
            if self._is_current(token):
                self._show_error(query, exc.state)
            return

        if not self._is_current(token):
            return
        if page.results:
            self._set_state(ResultsView(
                query=query, movies=page.results, total_count=page.total_count
            ))
        else:
            self._set_state(EmptyView(query=query))

    async def _run_details(self, loading: DetailsLoadingView) -> None:
        try:
            movie = await self._gateway.fetch_by_id(loading.imdb_id)
        except GatewayError as exc:
            if self._state is loading:
                self._show_error(self._query, exc.state)
            return

        if self._state is not loading:
            logger.debug("Dropping details for %s, view moved on", loading.imdb_id)
            return
        self._set_state(DetailsView(movie=movie, search=loading.search))

    def _is_current(self, token: int) -> bool:
        if token != self._token:
            logger.debug("Dropping stale response #%d (latest #%d)", token, self._token)
            return False
        return True

    def _show_error(self, query: str, error: ErrorState) -> None:
        if error.throttled:
            self._set_state(ThrottledView(query=query, error=error))
        else:
            self._set_state(ErrorView(query=query, error=error))

    def _set_state(self, state: ViewState) -> None:
        logger.debug("View %s -> %s", self._state.view, state.view)
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Search task failed", exc_info=task.exception())
