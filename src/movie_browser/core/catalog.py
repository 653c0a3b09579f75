from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from movie_browser.core.models import Movie

log = logging.getLogger(__name__)

DEFAULT_CATALOG_URL = "http://localhost:8080"
DEFAULT_PAGE_SIZE = 12


class CatalogError(RuntimeError):
    pass


class CatalogNotFound(CatalogError):
    pass


@dataclass(frozen=True)
class CatalogSettings:
    base_url: str = DEFAULT_CATALOG_URL
    page_size: int = DEFAULT_PAGE_SIZE
    timeout_s: float = 20.0

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ValueError("MOVIE_BROWSER_PAGE_SIZE must be >= 1")
        if self.timeout_s <= 0:
            raise ValueError("MOVIE_BROWSER_TIMEOUT_S must be > 0")

    @classmethod
    def from_env(cls) -> CatalogSettings:
        return cls(
            base_url=os.environ.get("MOVIE_BROWSER_CATALOG_URL", DEFAULT_CATALOG_URL),
            page_size=int(os.environ.get("MOVIE_BROWSER_PAGE_SIZE", str(DEFAULT_PAGE_SIZE))),
            timeout_s=float(os.environ.get("MOVIE_BROWSER_TIMEOUT_S", "20")),
        )


@dataclass(frozen=True)
class CatalogPage:
    items: tuple[Movie, ...]
    # Informational only; the controller never relies on them.
    current_page: int | None = None
    total_pages: int | None = None


class MovieCatalog(Protocol):
    async def fetch_random(self, page: int, size: int) -> CatalogPage: ...

    async def fetch_by_tag(self, tag: str, page: int, size: int) -> CatalogPage: ...

    async def fetch_by_genre(self, genre: str, page: int, size: int) -> CatalogPage: ...

    async def search_by_title(self, text: str, page: int, size: int) -> CatalogPage: ...

    async def fetch_similar(self, movie_id: str, page: int, size: int) -> CatalogPage: ...

    async def fetch_details(self, movie_id: str) -> Movie: ...


def _optional_id(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


def _string_list(value: Any) -> tuple[str, ...]:
    # Genres arrive either as a JSON list or as a MovieLens style "A|B" string.
    if value is None:
        return ()
    if isinstance(value, str):
        raw = value.split("|")
    elif isinstance(value, list):
        raw = [v for v in value if isinstance(v, str)]
    else:
        return ()

    seen: set[str] = set()
    out: list[str] = []
    for item in raw:
        item = item.strip()
        if not item or item in seen:
            continue
        seen.add(item)
        out.append(item)
    return tuple(out)


def parse_movie(payload: Any) -> Movie:
    """Build a `Movie` from one catalog JSON object.

    Only presence is checked: an id (`movieId` or `id`) and a title.
    """

    if not isinstance(payload, dict):
        raise CatalogError("Movie payload is not an object")

    movie_id = _optional_id(payload.get("movieId"))
    if movie_id is None:
        movie_id = _optional_id(payload.get("id"))
    title = payload.get("title")
    if movie_id is None or not isinstance(title, str) or not title.strip():
        raise CatalogError("Movie payload is missing an id or title")

    return Movie(
        id=movie_id,
        title=title.strip(),
        genres=_string_list(payload.get("genres")),
        tags=_string_list(payload.get("tags")),
        imdb_id=_optional_id(payload.get("imdbId")),
        tmdb_id=_optional_id(payload.get("tmdbId")),
    )


def _optional_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_page(payload: Any) -> CatalogPage:
    if isinstance(payload, list):
        return CatalogPage(items=tuple(parse_movie(m) for m in payload))

    if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
        raise CatalogError("Unexpected page payload")

    return CatalogPage(
        items=tuple(parse_movie(m) for m in payload["data"]),
        current_page=_optional_int(payload.get("currentPage")),
        total_pages=_optional_int(payload.get("totalPages")),
    )


class MovieCatalogClient:
    """httpx-backed implementation of `MovieCatalog`.

    Pass a shared `httpx.AsyncClient` to reuse connections; otherwise a
    short-lived client is opened per request.
    """

    def __init__(
        self,
        settings: CatalogSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or CatalogSettings.from_env()
        self._base = self._settings.base_url.rstrip("/")
        self._client = client

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self._base}{path}"
        log.debug("GET %s params=%s", url, params)

        close_client = False
        client = self._client
        if client is None:
            client = httpx.AsyncClient(
                headers={"Accept": "application/json"},
                timeout=self._settings.timeout_s,
                follow_redirects=True,
            )
            close_client = True

        try:
            resp = await client.get(url, params=params)
        except httpx.HTTPError as e:
            raise CatalogError(f"Catalog request failed: {e}") from e
        finally:
            if close_client:
                await client.aclose()

        if resp.status_code == 404:
            raise CatalogNotFound(f"Not found: {path}")
        if resp.status_code >= 400:
            raise CatalogError(f"Catalog responded with {resp.status_code}")

        try:
            return resp.json()
        except ValueError as e:
            raise CatalogError("Catalog returned invalid JSON") from e

    async def _get_page(self, path: str, *, page: int, size: int, **extra: Any) -> CatalogPage:
        payload = await self._get_json(path, {**extra, "page": page, "size": size})
        return parse_page(payload)

    async def fetch_random(self, page: int, size: int) -> CatalogPage:
        return await self._get_page("/movies", page=page, size=size)

    async def fetch_by_tag(self, tag: str, page: int, size: int) -> CatalogPage:
        return await self._get_page(f"/recommendations/tag/{_segment(tag)}", page=page, size=size)

    async def fetch_by_genre(self, genre: str, page: int, size: int) -> CatalogPage:
        return await self._get_page(
            f"/recommendations/genre/{_segment(genre)}", page=page, size=size
        )

    async def search_by_title(self, text: str, page: int, size: int) -> CatalogPage:
        return await self._get_page("/movies/search", page=page, size=size, title=text)

    async def fetch_similar(self, movie_id: str, page: int, size: int) -> CatalogPage:
        return await self._get_page(
            f"/recommendations/similar/{_segment(movie_id)}", page=page, size=size
        )

    async def fetch_details(self, movie_id: str) -> Movie:
        return parse_movie(await self._get_json(f"/movie/{_segment(movie_id)}"))


def _segment(value: str) -> str:
    # Tags may contain spaces or slashes ("sci-fi/action").
    return quote(value, safe="")
