from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Literal, Union

IMDB_TITLE_BASE = "https://www.imdb.com/title"
TMDB_MOVIE_BASE = "https://www.themoviedb.org/movie"

BrowseMode = Literal["random", "tag", "genre", "search", "similar"]


@dataclass(frozen=True)
class Movie:
    id: str
    title: str
    genres: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    imdb_id: str | None = None
    tmdb_id: str | None = None

    @property
    def imdb_url(self) -> str | None:
        return f"{IMDB_TITLE_BASE}/{self.imdb_id}" if self.imdb_id else None

    @property
    def tmdb_url(self) -> str | None:
        return f"{TMDB_MOVIE_BASE}/{self.tmdb_id}" if self.tmdb_id else None


@dataclass(frozen=True)
class RandomQuery:
    mode: ClassVar[BrowseMode] = "random"

    @property
    def value(self) -> None:
        return None


@dataclass(frozen=True)
class TagQuery:
    tag: str
    mode: ClassVar[BrowseMode] = "tag"

    @property
    def value(self) -> str:
        return self.tag


@dataclass(frozen=True)
class GenreQuery:
    genre: str
    mode: ClassVar[BrowseMode] = "genre"

    @property
    def value(self) -> str:
        return self.genre


@dataclass(frozen=True)
class SearchQuery:
    text: str
    mode: ClassVar[BrowseMode] = "search"

    @property
    def value(self) -> str:
        return self.text


@dataclass(frozen=True)
class SimilarQuery:
    movie_id: str
    mode: ClassVar[BrowseMode] = "similar"

    @property
    def value(self) -> str:
        return self.movie_id


BrowseQuery = Union[RandomQuery, TagQuery, GenreQuery, SearchQuery, SimilarQuery]


@dataclass(frozen=True)
class SessionState:
    """Snapshot of one browsing session.

    Instances are never mutated; the controller publishes a new snapshot for
    every applied transition.

    `has_next` is a heuristic: the last applied page was full
    (`len(movies) == page_size`). No total count is tracked.
    """

    page_size: int
    query: BrowseQuery = field(default_factory=RandomQuery)
    page: int = 1
    has_next: bool = False
    movies: tuple[Movie, ...] = ()
    selected_movie: Movie | None = None
    error: str | None = None
    info_message: str | None = None

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")
        if self.page < 1:
            raise ValueError("page must be >= 1")
