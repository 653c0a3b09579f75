from __future__ import annotations

import asyncio

import pytest

from movie_browser.core.catalog import CatalogPage
from movie_browser.core.models import Movie


def make_movies(n: int, prefix: str = "m") -> list[Movie]:
    return [
        Movie(
            id=f"{prefix}{i}",
            title=f"{prefix.title()} {i}",
            genres=("Drama",),
            tags=("noir",) if i % 2 else (),
        )
        for i in range(1, n + 1)
    ]


class FakeCatalog:
    """In-memory catalog keyed by (operation, parameter, page).

    Unknown keys serve an empty page. A stored exception is raised instead of
    returning. `hold()` makes a key wait until the returned event is set.
    """

    def __init__(self) -> None:
        self.pages: dict[tuple, list[Movie] | Exception] = {}
        self.details: dict[str, Movie | Exception] = {}
        self.calls: list[tuple] = []
        self._gates: dict[tuple, asyncio.Event] = {}

    def hold(self, op: str, param: str | None, page: int | None) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[(op, param, page)] = gate
        return gate

    async def _wait(self, key: tuple) -> None:
        self.calls.append(key)
        gate = self._gates.get(key)
        if gate is not None:
            await gate.wait()

    async def _page(self, key: tuple) -> CatalogPage:
        await self._wait(key)
        result = self.pages.get(key, [])
        if isinstance(result, Exception):
            raise result
        return CatalogPage(items=tuple(result))

    async def fetch_random(self, page: int, size: int) -> CatalogPage:
        return await self._page(("random", None, page))

    async def fetch_by_tag(self, tag: str, page: int, size: int) -> CatalogPage:
        return await self._page(("tag", tag, page))

    async def fetch_by_genre(self, genre: str, page: int, size: int) -> CatalogPage:
        return await self._page(("genre", genre, page))

    async def search_by_title(self, text: str, page: int, size: int) -> CatalogPage:
        return await self._page(("search", text, page))

    async def fetch_similar(self, movie_id: str, page: int, size: int) -> CatalogPage:
        return await self._page(("similar", movie_id, page))

    async def fetch_details(self, movie_id: str) -> Movie:
        await self._wait(("details", movie_id, None))
        result = self.details.get(movie_id)
        if result is None:
            result = Movie(id=movie_id, title=f"Anchor {movie_id}", genres=("Crime",))
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture()
def catalog() -> FakeCatalog:
    return FakeCatalog()
