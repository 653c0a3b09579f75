# ruff: noqa: E501

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, Response
from fastapi.responses import HTMLResponse

from movie_browser.core.controller import BrowsingSessionController
from movie_browser.core.schemas import (
    GenreRequest,
    NavigateRequest,
    RandomRequest,
    SearchRequest,
    SessionStateResponse,
    SimilarRequest,
    TagRequest,
    session_state_response,
)

router = APIRouter()


def _controller(request: Request, session_id: str) -> BrowsingSessionController:
    try:
        return request.app.state.session_store.get(session_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail="Session not found") from e


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/api/sessions", response_model=SessionStateResponse, status_code=201)
async def create_session(request: Request) -> SessionStateResponse:
    controller = BrowsingSessionController(
        request.app.state.catalog, page_size=request.app.state.settings.page_size
    )
    session_id = request.app.state.session_store.create(controller)
    state = await controller.start()
    return session_state_response(session_id, state)


@router.get("/api/sessions/{session_id}", response_model=SessionStateResponse)
def get_session(session_id: str, request: Request) -> SessionStateResponse:
    controller = _controller(request, session_id)
    return session_state_response(session_id, controller.state)


@router.delete("/api/sessions/{session_id}", status_code=204)
def delete_session(session_id: str, request: Request) -> Response:
    if not request.app.state.session_store.discard(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return Response(status_code=204)


# Fetch failures never surface as HTTP errors here: the controller folds them
# into `error` on the returned state.


@router.post("/api/sessions/{session_id}/random", response_model=SessionStateResponse)
async def load_random(session_id: str, req: RandomRequest, request: Request) -> SessionStateResponse:
    state = await _controller(request, session_id).load_random(req.page)
    return session_state_response(session_id, state)


@router.post("/api/sessions/{session_id}/tag", response_model=SessionStateResponse)
async def load_by_tag(session_id: str, req: TagRequest, request: Request) -> SessionStateResponse:
    state = await _controller(request, session_id).load_by_tag(req.tag, req.page)
    return session_state_response(session_id, state)


@router.post("/api/sessions/{session_id}/genre", response_model=SessionStateResponse)
async def load_by_genre(session_id: str, req: GenreRequest, request: Request) -> SessionStateResponse:
    state = await _controller(request, session_id).load_by_genre(req.genre, req.page)
    return session_state_response(session_id, state)


@router.post("/api/sessions/{session_id}/search", response_model=SessionStateResponse)
async def load_by_search(session_id: str, req: SearchRequest, request: Request) -> SessionStateResponse:
    state = await _controller(request, session_id).load_by_search(req.text, req.page)
    return session_state_response(session_id, state)


@router.post("/api/sessions/{session_id}/similar", response_model=SessionStateResponse)
async def load_similar(session_id: str, req: SimilarRequest, request: Request) -> SessionStateResponse:
    state = await _controller(request, session_id).load_similar(req.movie_id, req.page)
    return session_state_response(session_id, state)


@router.post("/api/sessions/{session_id}/navigate", response_model=SessionStateResponse)
async def navigate(session_id: str, req: NavigateRequest, request: Request) -> SessionStateResponse:
    state = await _controller(request, session_id).navigate(req.direction)
    return session_state_response(session_id, state)


@router.post("/api/sessions/{session_id}/refresh", response_model=SessionStateResponse)
async def refresh(session_id: str, request: Request) -> SessionStateResponse:
    state = await _controller(request, session_id).refresh()
    return session_state_response(session_id, state)


@router.get("/", response_class=HTMLResponse)
def index() -> HTMLResponse:
    """Single-page browsing UI. All state lives in the server-side session."""

    html_doc = """<!doctype html>
<html lang=\"en\">
<head>
  <meta charset=\"utf-8\" />
  <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
  <title>Movie Browser</title>
  <style>
    :root {
      --bg: #10171d;
      --panel: #17222b;
      --panel-soft: #1f2f3b;
      --text: #ecf3f8;
      --muted: #9eb3c4;
      --line: #2b3f4e;
      --accent: #f5a24a;
      --genre: #6ccadf;
      --tag: #7fd18b;
      --error: #ff7b7b;
    }
    * { box-sizing: border-box; }
    body { margin: 0; color: var(--text); background: var(--bg); font-family: ui-sans-serif, system-ui, sans-serif; }
    .container { max-width: 80rem; margin: 0 auto; padding: 1rem; }
    header { display: flex; gap: .6rem; align-items: center; flex-wrap: wrap; }
    h1 { margin: 0 auto 0 0; font-size: 1.4rem; }
    input, button { font: inherit; color: inherit; }
    input[type=text] { padding: .5rem .7rem; border-radius: .6rem; border: 1px solid var(--line); background: var(--panel-soft); }
    button { padding: .5rem .85rem; border-radius: .6rem; border: 1px solid #476173; background: #273947; cursor: pointer; }
    button:disabled { opacity: .5; cursor: not-allowed; }
    .banner { margin-top: .8rem; padding: .6rem .8rem; border-radius: .6rem; border: 1px solid var(--line); }
    .banner.error { color: var(--error); }
    .banner.info { color: var(--accent); }
    .hidden { display: none; }
    .card { border: 1px solid var(--line); border-radius: .9rem; background: var(--panel); padding: .9rem; }
    #selected { margin-top: 1rem; }
    .grid { margin-top: 1rem; display: grid; gap: .8rem; grid-template-columns: repeat(auto-fill, minmax(16rem, 1fr)); }
    .title { color: var(--accent); cursor: pointer; margin: 0 0 .4rem; font-size: 1.05rem; }
    .badge { display: inline-block; margin: .1rem .2rem .1rem 0; padding: .1rem .45rem; border-radius: 999px; border: 1px solid var(--line); font-size: .8rem; cursor: pointer; }
    .badge.genre { color: var(--genre); }
    .badge.tag { color: var(--tag); }
    .muted { color: var(--muted); font-size: .85rem; }
    .links a { color: var(--genre); margin-right: .6rem; }
    nav { margin-top: 1rem; display: flex; gap: .6rem; justify-content: center; align-items: center; }
  </style>
</head>
<body>
  <div class=\"container\">
    <header>
      <h1>Movie Browser</h1>
      <span class=\"muted\" id=\"mode\"></span>
      <input type=\"text\" id=\"search\" placeholder=\"Search titles\" />
      <button id=\"searchBtn\">Search</button>
      <button id=\"randomBtn\">Random</button>
    </header>

    <div id=\"error\" class=\"banner error hidden\"></div>
    <div id=\"info\" class=\"banner info hidden\"></div>

    <section id=\"selected\" class=\"card hidden\"></section>
    <section id=\"movies\" class=\"grid\"></section>

    <nav>
      <button id=\"prevBtn\">Previous</button>
      <span class=\"muted\">Page <span id=\"page\">1</span></span>
      <button id=\"nextBtn\">Next</button>
    </nav>
  </div>

  <script>
    const $ = (id) => document.getElementById(id);
    let sessionId = null;

    // Output lands inside double-quoted attributes too, so quotes must be escaped.
    const ESCAPES = { "&": "&amp;", "<": "&lt;", ">": "&gt;", '"': "&quot;", "'": "&#39;" };
    function esc(s) {
      return (s == null ? "" : String(s)).replace(/[&<>"']/g, (c) => ESCAPES[c]);
    }

    async function call(path, body) {
      const res = await fetch(`/api/sessions/${sessionId}${path}`, {
        method: 'POST',
        headers: { 'Content-Type': 'application/json' },
        body: JSON.stringify(body || {}),
      });
      if (res.status === 404) return start();
      if (!res.ok) throw new Error(`HTTP ${res.status}`);
      render(await res.json());
    }

    function badges(items, kind) {
      if (!items.length) return `<span class=\"muted\">No ${kind === 'tag' ? 'tags' : 'genres'}</span>`;
      return items.map((v) => `<span class=\"badge ${kind}\" data-${kind}=\"${esc(v)}\">${esc(v)}</span>`).join('');
    }

    function links(m) {
      const out = [];
      if (m.imdb_url) out.push(`<a href=\"${esc(m.imdb_url)}\" target=\"_blank\" rel=\"noopener noreferrer\">IMDB</a>`);
      if (m.tmdb_url) out.push(`<a href=\"${esc(m.tmdb_url)}\" target=\"_blank\" rel=\"noopener noreferrer\">TMDB</a>`);
      return `<div class=\"links\">${out.join('')}</div>`;
    }

    function movieCard(m, clickable) {
      const title = clickable
        ? `<h3 class=\"title\" data-movie=\"${esc(m.movie_id)}\">${esc(m.title)}</h3>`
        : `<h2>${esc(m.title)}</h2>`;
      return `${title}<div>${badges(m.genres, 'genre')}</div>${links(m)}<div>${badges(m.tags, 'tag')}</div>`;
    }

    function render(state) {
      sessionId = state.session_id;
      $('mode').textContent = state.query.value ? `${state.query.mode}: ${state.query.value}` : state.query.mode;
      $('error').textContent = state.error || '';
      $('error').classList.toggle('hidden', !state.error);
      $('info').textContent = state.info_message || '';
      $('info').classList.toggle('hidden', !state.info_message);

      const sel = $('selected');
      sel.classList.toggle('hidden', !state.selected_movie);
      sel.innerHTML = state.selected_movie ? movieCard(state.selected_movie, false) : '';

      $('movies').innerHTML = state.movies.map((m) => `<article class=\"card\">${movieCard(m, true)}</article>`).join('');
      $('page').textContent = state.page;
      $('prevBtn').disabled = state.page <= 1;
      $('nextBtn').disabled = !state.has_next;
    }

    async function start() {
      const res = await fetch('/api/sessions', { method: 'POST' });
      if (!res.ok) throw new Error(`HTTP ${res.status}`);
      render(await res.json());
    }

    document.addEventListener('click', (ev) => {
      const t = ev.target;
      if (t.dataset.movie) call('/similar', { movie_id: t.dataset.movie, page: 1 });
      else if (t.dataset.tag) call('/tag', { tag: t.dataset.tag, page: 1 });
      else if (t.dataset.genre) call('/genre', { genre: t.dataset.genre, page: 1 });
    });
    $('prevBtn').addEventListener('click', () => call('/navigate', { direction: 'previous' }));
    $('nextBtn').addEventListener('click', () => call('/navigate', { direction: 'next' }));
    $('randomBtn').addEventListener('click', () => call('/random', { page: 1 }));
    $('searchBtn').addEventListener('click', () => {
      const text = $('search').value.trim();
      if (text) call('/search', { text, page: 1 });
    });
    $('search').addEventListener('keydown', (ev) => { if (ev.key === 'Enter') $('searchBtn').click(); });

    start();
  </script>
</body>
</html>"""

    return HTMLResponse(content=html_doc)
