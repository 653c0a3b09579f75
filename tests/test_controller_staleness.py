from __future__ import annotations

import asyncio

import pytest
from conftest import FakeCatalog, make_movies

from movie_browser.core.catalog import CatalogError
from movie_browser.core.controller import BrowsingSessionController
from movie_browser.core.models import GenreQuery, SessionState, TagQuery


async def _settle() -> None:
    for _ in range(20):
        await asyncio.sleep(0)


def test_late_tag_response_does_not_overwrite_newer_genre_result(catalog: FakeCatalog) -> None:
    gate = catalog.hold("tag", "x", 1)
    catalog.pages[("tag", "x", 1)] = make_movies(3, "tag")
    catalog.pages[("genre", "y", 1)] = make_movies(2, "genre")
    ctrl = BrowsingSessionController(catalog, page_size=9)
    published: list[SessionState] = []
    ctrl.subscribe(published.append)

    async def scenario() -> SessionState:
        tag_load = asyncio.create_task(ctrl.load_by_tag("x", 1))
        await _settle()
        await ctrl.load_by_genre("y", 1)
        gate.set()
        stale = await tag_load
        assert stale is ctrl.state
        return ctrl.state

    state = asyncio.run(scenario())

    assert state.query == GenreQuery("y")
    assert [m.id for m in state.movies] == ["genre1", "genre2"]
    # The stale result was never published either.
    assert [s.query for s in published] == [GenreQuery("y")]


def test_rapid_double_pagination_keeps_latest_page(catalog: FakeCatalog) -> None:
    catalog.pages[("random", None, 1)] = make_movies(2, "p1")
    catalog.pages[("random", None, 2)] = make_movies(2, "p2")
    catalog.pages[("random", None, 3)] = make_movies(2, "p3")
    ctrl = BrowsingSessionController(catalog, page_size=2)

    async def scenario() -> SessionState:
        await ctrl.start()
        slow = catalog.hold("random", None, 2)
        first = asyncio.create_task(ctrl.load_random(2))
        await _settle()
        await ctrl.load_random(3)
        slow.set()
        await first
        return ctrl.state

    state = asyncio.run(scenario())

    assert state.page == 3
    assert [m.id for m in state.movies] == ["p31", "p32"]


def test_stale_failure_does_not_set_error(catalog: FakeCatalog) -> None:
    gate = catalog.hold("tag", "x", 1)
    catalog.pages[("tag", "x", 1)] = CatalogError("late failure")
    catalog.pages[("genre", "y", 1)] = make_movies(1)
    ctrl = BrowsingSessionController(catalog, page_size=9)

    async def scenario() -> SessionState:
        tag_load = asyncio.create_task(ctrl.load_by_tag("x", 1))
        await _settle()
        await ctrl.load_by_genre("y", 1)
        gate.set()
        await tag_load
        return ctrl.state

    state = asyncio.run(scenario())

    assert state.error is None
    assert state.query == GenreQuery("y")


def test_stale_similar_result_is_discarded(catalog: FakeCatalog) -> None:
    gate = catalog.hold("similar", "42", 1)
    catalog.pages[("similar", "42", 1)] = make_movies(3, "sim")
    catalog.pages[("tag", "noir", 1)] = make_movies(1, "tag")
    ctrl = BrowsingSessionController(catalog, page_size=9)

    async def scenario() -> SessionState:
        similar = asyncio.create_task(ctrl.load_similar("42", 1))
        await _settle()
        await ctrl.load_by_tag("noir", 1)
        gate.set()
        await similar
        return ctrl.state

    state = asyncio.run(scenario())

    assert state.query == TagQuery("noir")
    assert state.selected_movie is None


def test_intent_during_fallback_supersedes_it(catalog: FakeCatalog) -> None:
    fallback_gate = catalog.hold("random", None, 1)
    catalog.pages[("random", None, 1)] = make_movies(5, "rnd")
    catalog.pages[("tag", "noir", 1)] = make_movies(2, "tag")
    ctrl = BrowsingSessionController(catalog, page_size=9)

    async def scenario() -> SessionState:
        similar = asyncio.create_task(ctrl.load_similar("42", 1))
        await _settle()
        # The empty similar page has resolved; the fallback random load is pending.
        assert ("random", None, 1) in catalog.calls
        await ctrl.load_by_tag("noir", 1)
        fallback_gate.set()
        await similar
        return ctrl.state

    state = asyncio.run(scenario())

    assert state.query == TagQuery("noir")
    assert state.info_message is None
    assert [m.id for m in state.movies] == ["tag1", "tag2"]


def test_stale_empty_similar_result_does_not_trigger_fallback(catalog: FakeCatalog) -> None:
    gate = catalog.hold("similar", "42", 1)
    catalog.pages[("genre", "Drama", 1)] = make_movies(2)
    ctrl = BrowsingSessionController(catalog, page_size=9)

    async def scenario() -> SessionState:
        similar = asyncio.create_task(ctrl.load_similar("42", 1))
        await _settle()
        await ctrl.load_by_genre("Drama", 1)
        gate.set()
        await similar
        return ctrl.state

    state = asyncio.run(scenario())

    assert state.query == GenreQuery("Drama")
    assert ("random", None, 1) not in catalog.calls


def test_programming_error_from_superseded_similar_load_still_propagates(
    catalog: FakeCatalog,
) -> None:
    gate = catalog.hold("similar", "42", 1)
    catalog.details["42"] = TypeError("bug")  # type: ignore[assignment]
    catalog.pages[("tag", "noir", 1)] = make_movies(1, "tag")
    ctrl = BrowsingSessionController(catalog, page_size=9)

    async def scenario() -> SessionState:
        similar = asyncio.create_task(ctrl.load_similar("42", 1))
        await _settle()
        await ctrl.load_by_tag("noir", 1)
        gate.set()
        with pytest.raises(TypeError):
            await similar
        return ctrl.state

    state = asyncio.run(scenario())

    assert state.query == TagQuery("noir")


def test_programming_error_from_current_similar_load_propagates(catalog: FakeCatalog) -> None:
    catalog.details["42"] = TypeError("bug")  # type: ignore[assignment]
    ctrl = BrowsingSessionController(catalog, page_size=9)

    with pytest.raises(TypeError):
        asyncio.run(ctrl.load_similar("42", 1))
