from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from movie_browser.core.models import Movie, SessionState


class RandomRequest(BaseModel):
    page: int = Field(default=1, ge=1)


class TagRequest(BaseModel):
    tag: str = Field(min_length=1)
    page: int = Field(default=1, ge=1)


class GenreRequest(BaseModel):
    genre: str = Field(min_length=1)
    page: int = Field(default=1, ge=1)


class SearchRequest(BaseModel):
    text: str = Field(min_length=1)
    page: int = Field(default=1, ge=1)


class SimilarRequest(BaseModel):
    movie_id: str = Field(min_length=1)
    page: int = Field(default=1, ge=1)


class NavigateRequest(BaseModel):
    direction: Literal["previous", "next"]


class MovieItem(BaseModel):
    movie_id: str
    title: str
    genres: list[str]
    tags: list[str]
    imdb_id: str | None = None
    tmdb_id: str | None = None
    imdb_url: str | None = None
    tmdb_url: str | None = None


class QueryItem(BaseModel):
    mode: Literal["random", "tag", "genre", "search", "similar"]
    value: str | None = None


class SessionStateResponse(BaseModel):
    session_id: str
    query: QueryItem
    page: int = Field(ge=1)
    page_size: int = Field(ge=1)
    has_next: bool
    movies: list[MovieItem]
    selected_movie: MovieItem | None = None
    error: str | None = None
    info_message: str | None = None


def movie_item(movie: Movie) -> MovieItem:
    return MovieItem(
        movie_id=movie.id,
        title=movie.title,
        genres=list(movie.genres),
        tags=list(movie.tags),
        imdb_id=movie.imdb_id,
        tmdb_id=movie.tmdb_id,
        imdb_url=movie.imdb_url,
        tmdb_url=movie.tmdb_url,
    )


def session_state_response(session_id: str, state: SessionState) -> SessionStateResponse:
    return SessionStateResponse(
        session_id=session_id,
        query=QueryItem(mode=state.query.mode, value=state.query.value),
        page=state.page,
        page_size=state.page_size,
        has_next=state.has_next,
        movies=[movie_item(m) for m in state.movies],
        selected_movie=movie_item(state.selected_movie) if state.selected_movie else None,
        error=state.error,
        info_message=state.info_message,
    )
