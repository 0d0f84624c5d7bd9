"""FastAPI wrapper for the template engine."""

from __future__ import annotations

import json
import logging
import threading
import time
import uuid
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from core.config.settings_loader import load_settings_from_env
from core.filters.registry import list_filters
from core.templates.engine import TemplateEngine
from core.utils.errors import FilterValueError, TemplateError

app = FastAPI(title="tmplpipe API", version="0.1.0")
logger = logging.getLogger("tmplpipe.api")

_REQUEST_ID_HEADER = "X-Tmplpipe-Request-Id"


class RenderRequest(BaseModel):
    """Body of ``POST /v1/render``."""

    model_config = ConfigDict(extra="forbid")

    template: str
    context: Any = Field(default_factory=dict)


class SourceRequest(BaseModel):
    """Body of ``POST /v1/source``."""

    model_config = ConfigDict(extra="forbid")

    template: str
    context_name: str | None = None


_engine_lock = threading.Lock()
_engine_cache: TemplateEngine | None = None


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Ensure every response has a request id header."""

    request_id = uuid.uuid4().hex
    request.state.request_id = request_id
    try:
        response = await call_next(request)
    except Exception:  # noqa: BLE001
        _log_event(
            logging.ERROR,
            "error",
            request_id,
            error_code="INTERNAL_ERROR",
            status_code=500,
        )
        response = _error_response(
            status_code=500,
            error_code="INTERNAL_ERROR",
            message="internal server error",
            request_id=request_id,
            detail={"path": request.url.path},
        )
    response.headers.setdefault(_REQUEST_ID_HEADER, request_id)
    return response


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    """Liveness endpoint."""

    return {"status": "ok"}


@app.get("/v1/filters")
async def filters_v1(request: Request) -> JSONResponse:
    """List registered filters and their parameters."""

    engine = _get_engine()
    payload = {
        "filters": [
            {
                "name": name,
                "description": engine.registry[name].description,
                "params": [
                    {"name": param.name, "kind": param.kind, "required": param.required}
                    for param in engine.registry[name].params
                ],
            }
            for name in list_filters(engine.registry)
        ]
    }
    return JSONResponse(
        status_code=200,
        headers={_REQUEST_ID_HEADER: _request_id_from_request(request)},
        content=payload,
    )


@app.post("/v1/render")
async def render_v1(request: Request, body: RenderRequest) -> JSONResponse:
    """Compile (memoized) and evaluate one template."""

    request_started = time.perf_counter()
    request_id = _request_id_from_request(request)
    engine = _get_engine()

    try:
        compiled = engine.compile(body.template)
        output = compiled.evaluate(body.context)
    except TemplateError as exc:
        return _template_error_response(exc, request_id)
    except FilterValueError as exc:
        _log_event(logging.INFO, "error", request_id, error_code="FILTER_VALUE_ERROR")
        return _error_response(
            status_code=422,
            error_code="FILTER_VALUE_ERROR",
            message=str(exc),
            request_id=request_id,
            detail={"filter": exc.filter_name},
        )

    _log_event(
        logging.INFO,
        "done",
        request_id,
        fields=sorted(compiled.fields),
        elapsed_ms=_elapsed_ms(request_started),
    )
    return JSONResponse(
        status_code=200,
        headers={_REQUEST_ID_HEADER: request_id},
        content={"output": output, "fields": sorted(compiled.fields)},
    )


@app.post("/v1/source")
async def source_v1(request: Request, body: SourceRequest) -> JSONResponse:
    """Emit the Python source expression for a template."""

    request_id = _request_id_from_request(request)
    engine = _get_engine()

    fields: dict[str, bool] = {}
    try:
        source = engine.emit_source(body.template, body.context_name, fields)
    except TemplateError as exc:
        return _template_error_response(exc, request_id)
    except ValueError as exc:
        return _error_response(
            status_code=400,
            error_code="INVALID_ARGUMENT",
            message=str(exc),
            request_id=request_id,
        )

    return JSONResponse(
        status_code=200,
        headers={_REQUEST_ID_HEADER: request_id},
        content={"source": source, "fields": sorted(fields)},
    )


@app.get("/v1/format-cache")
async def format_cache_v1(request: Request) -> JSONResponse:
    """Diagnostics: list constructed formatters in construction order."""

    cache = _get_engine().format_cache
    entries = [{"family": entry.family, "pattern": entry.pattern} for entry in cache.entries()]
    return JSONResponse(
        status_code=200,
        headers={_REQUEST_ID_HEADER: _request_id_from_request(request)},
        content={"size": len(entries), "generation": cache.generation, "entries": entries},
    )


@app.delete("/v1/format-cache")
async def clear_format_cache_v1(request: Request) -> JSONResponse:
    """Drop every cached formatter."""

    request_id = _request_id_from_request(request)
    engine = _get_engine()
    dropped = len(engine.format_cache)
    engine.clear_format_cache()
    _log_event(logging.INFO, "format_cache_cleared", request_id, dropped=dropped)
    return JSONResponse(
        status_code=200,
        headers={_REQUEST_ID_HEADER: request_id},
        content={"dropped": dropped},
    )


def _get_engine() -> TemplateEngine:
    global _engine_cache
    with _engine_lock:
        if _engine_cache is None:
            _engine_cache = TemplateEngine(load_settings_from_env())
        return _engine_cache


def _reset_engine_for_tests() -> None:
    global _engine_cache
    with _engine_lock:
        _engine_cache = None


def _template_error_response(exc: TemplateError, request_id: str) -> JSONResponse:
    error_code = _error_code_for(exc)
    _log_event(logging.INFO, "error", request_id, error_code=error_code)
    detail: dict[str, Any] = {"error_type": type(exc).__name__}
    if exc.position is not None:
        detail["position"] = exc.position
    return _error_response(
        status_code=400,
        error_code=error_code,
        message=str(exc),
        request_id=request_id,
        detail=detail,
    )


def _error_code_for(exc: TemplateError) -> str:
    name = type(exc).__name__.removesuffix("Error")
    chunks: list[str] = []
    for char in name:
        if char.isupper() and chunks:
            chunks.append("_")
        chunks.append(char.upper())
    return "".join(chunks)


def _request_id_from_request(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    return uuid.uuid4().hex


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _log_event(level: int, event: str, request_id: str, **fields: Any) -> None:
    payload = {
        "event": event,
        "request_id": request_id,
        **fields,
    }
    logger.log(level, _dump_json(payload))


def _dump_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"))


def _error_response(
    *,
    status_code: int,
    error_code: str,
    message: str,
    request_id: str,
    detail: dict[str, Any] | None = None,
) -> JSONResponse:
    payload_detail = dict(detail or {})
    payload_detail["request_id"] = request_id

    return JSONResponse(
        status_code=status_code,
        headers={_REQUEST_ID_HEADER: request_id},
        content={
            "error_code": error_code,
            "message": message,
            "detail": payload_detail,
        },
    )
