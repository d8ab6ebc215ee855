from __future__ import annotations

import logging
import uuid
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from . import __version__
from .config import AppConfig
from .dispatch import CommandDispatcher, build_dispatcher
from .errors import RelayError
from .models import ChatRequest, InterpretPolygonRequest, ResolvePlaceRequest


logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_settings() -> AppConfig:
    return AppConfig.load()


@lru_cache(maxsize=1)
def get_dispatcher() -> CommandDispatcher:
    return build_dispatcher(get_settings())


settings = get_settings()

app = FastAPI(title="polyarch API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.server.cors_origins),
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
)


def _issue_session_cookie(request: Request, response: Response) -> Response:
    """Attach a cookie issued earlier in this request, if any."""
    pending = getattr(request.state, "session_cookie", None)
    if pending:
        response.set_cookie(**pending)
    return response


@app.exception_handler(RelayError)
def relay_error_handler(request: Request, exc: RelayError) -> Response:
    return _issue_session_cookie(
        request, JSONResponse(status_code=exc.status_code, content=exc.to_payload())
    )


@app.exception_handler(RequestValidationError)
def request_validation_handler(request: Request, exc: RequestValidationError) -> Response:
    body = {
        "error": "invalid request body",
        "kind": "validation_error",
        "detail": jsonable_encoder(exc.errors()),
    }
    return _issue_session_cookie(request, JSONResponse(status_code=400, content=body))


@app.exception_handler(Exception)
def unexpected_error_handler(request: Request, exc: Exception) -> Response:
    logger.exception("unhandled error on %s", request.url.path)
    body = {"error": "server error", "kind": "internal_error", "detail": str(exc)}
    return _issue_session_cookie(request, JSONResponse(status_code=500, content=body))


def session_id(
    request: Request, response: Response, cfg: AppConfig = Depends(get_settings)
) -> str:
    """Conversation token from the client cookie, issued on first contact."""
    name = cfg.server.cookie_name
    sid = request.cookies.get(name)
    if not sid:
        sid = str(uuid.uuid4())
        cookie = {
            "key": name,
            "value": sid,
            "max_age": cfg.server.cookie_max_age,
            "httponly": True,
            "samesite": "lax",
        }
        # error handlers build their own response and re-issue from here
        request.state.session_cookie = cookie
        response.set_cookie(**cookie)
    return sid


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "healthy"}


@app.post("/resolve-place")
def resolve_place(
    req: ResolvePlaceRequest, dispatcher: CommandDispatcher = Depends(get_dispatcher)
) -> Dict[str, float]:
    """Place name -> {lat, lng}."""
    coords = dispatcher.resolve_place(req.place)
    return coords.model_dump()


@app.post("/interpret-polygon")
def interpret_polygon(
    req: InterpretPolygonRequest, dispatcher: CommandDispatcher = Depends(get_dispatcher)
) -> Dict[str, Any]:
    """Free text -> polygon spec object, passed through as the model wrote it."""
    return dispatcher.interpret_polygon(req.text)


@app.post("/chat")
def chat(
    req: ChatRequest,
    sid: str = Depends(session_id),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> Dict[str, Any]:
    """Conversational message -> normalized map command."""
    command = dispatcher.chat(req.message, req.state, sid)
    return command.to_payload()


@app.delete("/chat/history")
def clear_history(
    sid: str = Depends(session_id), dispatcher: CommandDispatcher = Depends(get_dispatcher)
) -> Dict[str, str]:
    dispatcher.store.clear(sid)
    return {"status": "cleared"}


# Serve the map client last so API routes take precedence
if settings.server.static_dir and Path(settings.server.static_dir).is_dir():
    app.mount("/", StaticFiles(directory=settings.server.static_dir, html=True), name="client")
