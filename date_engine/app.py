from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events
from .auth.dependencies import require_authorization
from .config import DEFAULT_ENGINE_CONFIG
from .sources.calendar import SupabaseCalendarProvider
from .sources.events import EventbriteEventSource
from .sources.places import PlacesVenueSource
from .suggestions.cache import ResponseCache
from .suggestions.engine import DateSuggestionEngine
from .suggestions.errors import DateEngineError, InvalidInput, UpstreamUnavailable
from .suggestions.models import DateSuggestionRequest, DateSuggestionResponse


app = FastAPI(title="Date Suggestion API", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

_STATUS_BY_KIND = {
    InvalidInput.kind: 400,
    UpstreamUnavailable.kind: 503,
}


def _error_response(kind: str, message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"kind": kind, "message": message}},
    )


@app.exception_handler(DateEngineError)
def handle_engine_error(request: Request, exc: DateEngineError) -> JSONResponse:
    return _error_response(exc.kind, exc.message, _STATUS_BY_KIND.get(exc.kind, 500))


@app.exception_handler(RequestValidationError)
def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    return _error_response(InvalidInput.kind, problems or "Invalid request", 400)


@lru_cache(maxsize=1)
def get_engine() -> DateSuggestionEngine:
    """Build the production engine once per process."""
    config = DEFAULT_ENGINE_CONFIG
    return DateSuggestionEngine(
        venue_source=PlacesVenueSource(config),
        event_source=EventbriteEventSource(config),
        calendar_provider=SupabaseCalendarProvider(config),
        cache=ResponseCache(),
        config=config,
    )


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Suggestions ──────────────────────────────────────────────────────────


@app.post("/date-suggestions", response_model=DateSuggestionResponse)
def date_suggestions(
    body: DateSuggestionRequest,
    token: str = Depends(require_authorization),
    engine: DateSuggestionEngine = Depends(get_engine),
) -> DateSuggestionResponse:
    return engine.suggest(body)


# ── Operational endpoints ────────────────────────────────────────────────


@app.get("/cache/stats")
def cache_stats(
    token: str = Depends(require_authorization),
    engine: DateSuggestionEngine = Depends(get_engine),
) -> dict:
    return engine.cache.stats()


@app.get("/analytics")
def analytics(token: str = Depends(require_authorization)) -> dict:
    return compute_analytics(get_events())
