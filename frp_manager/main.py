from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from frp_manager.api import logs, ops, plugin
from frp_manager.audit.factory import build_audit_sink
from frp_manager.config import load_settings
from frp_manager.deps import clear_dependencies, set_dependencies
from frp_manager.errors import E_TIMEOUT, PluginError, render_error
from frp_manager.observability.logging import configure_logging, get_server_logger
from frp_manager.observability.metrics import get_manager_metrics
from frp_manager.protocol.operations import build_default_registry
from frp_manager.services.audit_service import AuditService
from frp_manager.services.dispatcher import Dispatcher
from frp_manager.trace import (
    REQ_ID_HEADER,
    TRACE_HEADER,
    get_current_trace_id,
    normalize_trace_id,
    reset_trace_id,
    set_current_trace_id,
)
from frp_manager.version import get_manager_version

settings = load_settings()
configure_logging(settings.log_level)
logger = get_server_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    sink = await build_audit_sink(settings)
    dispatcher = Dispatcher(build_default_registry(), AuditService(sink))
    set_dependencies(settings, dispatcher)
    logger.info("frp manager ready", extra={"outcome": sink.backend})

    yield

    clear_dependencies()
    await sink.close()


app = FastAPI(
    title="frp Manager",
    version=get_manager_version(),
    lifespan=lifespan,
    docs_url="/docs" if settings.enable_docs else None,
    redoc_url=None,
    openapi_url="/openapi.json" if settings.enable_docs else None,
)


def _request_trace_id(request: Request) -> str:
    return str(getattr(request.state, "trace_id", get_current_trace_id()))


@app.middleware("http")
async def trace_middleware(request: Request, call_next):
    trace_id = normalize_trace_id(request.headers.get(REQ_ID_HEADER))
    request.state.trace_id = trace_id
    token = set_current_trace_id(trace_id)
    started = datetime.now(tz=timezone.utc)
    try:
        response = await call_next(request)
    except Exception as exc:  # noqa: BLE001
        logger.exception("unhandled error", extra={"trace_id": trace_id, "path": request.url.path})
        response = render_error(exc, trace_id, json_errors=settings.json_errors)
    finally:
        reset_trace_id(token)
    duration_ms = int((datetime.now(tz=timezone.utc) - started).total_seconds() * 1000)
    logger.info(
        "http_request",
        extra={
            "trace_id": trace_id,
            "req_id": request.headers.get(REQ_ID_HEADER),
            "path": request.url.path,
            "method": request.method,
            "status": response.status_code,
            "duration_ms": duration_ms,
            "outcome": "ok" if response.status_code < 400 else "error",
        },
    )
    response.headers[TRACE_HEADER] = trace_id
    return response


@app.exception_handler(Exception)
async def exception_handler(request: Request, exc: Exception):
    return render_error(exc, _request_trace_id(request), json_errors=settings.json_errors)


@app.exception_handler(PluginError)
async def plugin_exception_handler(request: Request, exc: PluginError):
    return render_error(exc, _request_trace_id(request), json_errors=settings.json_errors)


@app.exception_handler(asyncio.TimeoutError)
async def timeout_exception_handler(request: Request, exc: asyncio.TimeoutError):
    get_manager_metrics().increment_error(E_TIMEOUT)
    logger.warning("request timed out", extra={"trace_id": _request_trace_id(request), "path": request.url.path})
    return render_error(exc, _request_trace_id(request), json_errors=settings.json_errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return render_error(exc, _request_trace_id(request), json_errors=settings.json_errors)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return await exception_handler(request, exc)


app.include_router(plugin.router)
app.include_router(logs.router)
app.include_router(ops.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("frp_manager.main:app", host=settings.host, port=settings.port)
