from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from typing import Literal

from movie_browser.core.catalog import CatalogError, CatalogPage, MovieCatalog
from movie_browser.core.models import (
    BrowseQuery,
    GenreQuery,
    Movie,
    RandomQuery,
    SearchQuery,
    SessionState,
    SimilarQuery,
    TagQuery,
)

log = logging.getLogger(__name__)

Direction = Literal["previous", "next"]
StateListener = Callable[[SessionState], None]

FALLBACK_NOTICE = "No similar movies found. Here's some random ones:"


def failure_message(query: BrowseQuery) -> str:
    if isinstance(query, TagQuery):
        return f"Failed to fetch movies with tag: {query.tag}"
    if isinstance(query, GenreQuery):
        return f"Failed to fetch movies with genre: {query.genre}"
    if isinstance(query, SearchQuery):
        return f"Failed to search movies for: {query.text}"
    if isinstance(query, SimilarQuery):
        return "Failed to load movie or recommendations."
    return "Failed to fetch movies."


class BrowsingSessionController:
    """Stateful driver for one browsing session.

    Every loader takes a sequence stamp when it is called. A completion is
    applied only while its stamp is still the latest one issued; anything
    older is dropped, so a slow response can never overwrite the result of a
    newer request.

    Fetch failures are turned into `SessionState.error` and leave the rest of
    the state as it was. Only `CatalogError` is handled here.
    """

    def __init__(self, catalog: MovieCatalog, *, page_size: int = 12) -> None:
        self._catalog = catalog
        self._state = SessionState(page_size=page_size)
        self._stamps = itertools.count(1)
        self._latest = 0
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def page_size(self) -> int:
        return self._state.page_size

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def start(self) -> SessionState:
        return await self.load_random(1)

    # Loaders

    async def load_random(self, page: int = 1) -> SessionState:
        return await self._load(
            RandomQuery(), page, lambda: self._catalog.fetch_random(page, self.page_size)
        )

    async def load_by_tag(self, tag: str, page: int = 1) -> SessionState:
        query = TagQuery(tag)
        return await self._load(
            query, page, lambda: self._catalog.fetch_by_tag(tag, page, self.page_size)
        )

    async def load_by_genre(self, genre: str, page: int = 1) -> SessionState:
        query = GenreQuery(genre)
        return await self._load(
            query, page, lambda: self._catalog.fetch_by_genre(genre, page, self.page_size)
        )

    async def load_by_search(self, text: str, page: int = 1) -> SessionState:
        query = SearchQuery(text)
        return await self._load(
            query, page, lambda: self._catalog.search_by_title(text, page, self.page_size)
        )

    async def load_similar(self, movie_id: str, page: int = 1) -> SessionState:
        _check_page(page)
        query = SimilarQuery(movie_id)
        stamp = self._issue()

        details, similar = await asyncio.gather(
            self._catalog.fetch_details(movie_id),
            self._catalog.fetch_similar(movie_id, page, self.page_size),
            return_exceptions=True,
        )

        for outcome in (details, similar):
            if isinstance(outcome, BaseException) and not isinstance(outcome, CatalogError):
                raise outcome

        if not self._is_current(stamp):
            log.debug("Discarding stale similar-movies result for %s (stamp %d)", movie_id, stamp)
            return self._state

        for outcome in (details, similar):
            if isinstance(outcome, CatalogError):
                return self._apply_failure(query, outcome)

        if not similar.items:
            return await self._fall_back_to_random(movie_id)

        return self._apply_page(query, page, similar, selected_movie=details)

    # Intents

    async def navigate(self, direction: Direction) -> SessionState:
        current = self._state
        if direction == "previous":
            if current.page <= 1:
                return current
            target = current.page - 1
        elif direction == "next":
            if not current.has_next:
                return current
            target = current.page + 1
        else:
            raise ValueError(f"Unknown direction: {direction}")

        return await self._dispatch(current.query, target)

    async def refresh(self) -> SessionState:
        """Re-issue the active query for the current page."""
        return await self._dispatch(self._state.query, self._state.page)

    async def select_tag(self, tag: str) -> SessionState:
        return await self.load_by_tag(tag, 1)

    async def select_genre(self, genre: str) -> SessionState:
        return await self.load_by_genre(genre, 1)

    async def select_movie(self, movie_id: str) -> SessionState:
        return await self.load_similar(movie_id, 1)

    # Internals

    def _dispatch(self, query: BrowseQuery, page: int) -> Awaitable[SessionState]:
        if isinstance(query, TagQuery):
            return self.load_by_tag(query.tag, page)
        if isinstance(query, GenreQuery):
            return self.load_by_genre(query.genre, page)
        if isinstance(query, SearchQuery):
            return self.load_by_search(query.text, page)
        if isinstance(query, SimilarQuery):
            return self.load_similar(query.movie_id, page)
        return self.load_random(page)

    def _issue(self) -> int:
        self._latest = next(self._stamps)
        return self._latest

    def _is_current(self, stamp: int) -> bool:
        return stamp == self._latest

    async def _load(
        self,
        query: BrowseQuery,
        page: int,
        fetch: Callable[[], Awaitable[CatalogPage]],
        *,
        info_message: str | None = None,
    ) -> SessionState:
        _check_page(page)
        stamp = self._issue()
        try:
            result = await fetch()
        except CatalogError as e:
            if not self._is_current(stamp):
                log.debug("Discarding stale failure for %s (stamp %d)", query, stamp)
                return self._state
            return self._apply_failure(query, e)

        if not self._is_current(stamp):
            log.debug("Discarding stale result for %s (stamp %d)", query, stamp)
            return self._state
        return self._apply_page(query, page, result, info_message=info_message)

    async def _fall_back_to_random(self, movie_id: str) -> SessionState:
        log.info("No similar movies for %s; falling back to a random page", movie_id)
        # The notice rides on the fallback page itself, so it is set only once that
        # page has resolved and is dropped with it if something newer wins.
        return await self._load(
            RandomQuery(),
            1,
            lambda: self._catalog.fetch_random(1, self.page_size),
            info_message=FALLBACK_NOTICE,
        )

    def _apply_page(
        self,
        query: BrowseQuery,
        page: int,
        result: CatalogPage,
        *,
        selected_movie: Movie | None = None,
        info_message: str | None = None,
    ) -> SessionState:
        movies = tuple(result.items)
        return self._publish(
            replace(
                self._state,
                query=query,
                page=page,
                movies=movies,
                has_next=len(movies) == self.page_size,
                selected_movie=selected_movie,
                error=None,
                info_message=info_message,
            )
        )

    def _apply_failure(self, query: BrowseQuery, exc: CatalogError) -> SessionState:
        """Record a failed fetch without touching anything but `error`.

        `query` stays on the last successfully applied variant, so paging and
        `refresh` keep acting on what is on screen. The mode is not switched
        eagerly before the fetch resolves.
        """
        log.warning("Catalog fetch failed for %s: %s", query, exc)
        return self._publish(replace(self._state, error=failure_message(query)))

    def _publish(self, state: SessionState) -> SessionState:
        self._state = state
        for listener in list(self._listeners):
            listener(state)
        return state


def _check_page(page: int) -> None:
    if page < 1:
        raise ValueError("page must be >= 1")
