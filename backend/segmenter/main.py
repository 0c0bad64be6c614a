from contextlib import asynccontextmanager
from functools import lru_cache
import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from segmenter.api.routers.execution import build_execution_router
from segmenter.api.routers.responses import build_responses_router
from segmenter.api.routers.system import build_system_router
from segmenter.config import settings
from segmenter.observability import (
    configure_logging,
    normalize_request_id,
    reset_request_id,
    sanitize_for_logging,
    set_request_id,
)
from segmenter.parsers import ResponseParser
from segmenter.sandbox import PythonSandbox
from segmenter.version import APP_VERSION

logger = logging.getLogger("segmenter.api")


@lru_cache(maxsize=1)
def _cached_response_parser() -> ResponseParser:
    return ResponseParser(graph_keywords=settings.graph_keywords_list)


def get_response_parser() -> ResponseParser:
    return _cached_response_parser()


@lru_cache(maxsize=1)
def _cached_sandbox() -> PythonSandbox:
    return PythonSandbox(
        python_path=settings.sandbox_python_path,
        default_timeout_ms=settings.sandbox_default_timeout_ms,
        max_timeout_ms=settings.sandbox_max_timeout_ms,
        preload_packages=settings.sandbox_preload_packages_list,
    )


def get_sandbox() -> PythonSandbox:
    return _cached_sandbox()


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging(settings.log_level)
    logger.info("application_startup", extra={"event": "application_startup", "environment": settings.app_env})
    yield
    logger.info("application_shutdown", extra={"event": "application_shutdown"})


def create_app() -> FastAPI:
    cors_origins = settings.cors_origins_list
    if settings.cors_allow_credentials and any(origin == "*" for origin in cors_origins):
        raise RuntimeError("Invalid CORS_ORIGINS: wildcard '*' is not allowed when credentials are enabled.")

    app = FastAPI(title=settings.app_name, version=APP_VERSION, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", settings.request_id_header],
    )

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        request_id = normalize_request_id(request.headers.get(settings.request_id_header))
        request.state.request_id = request_id
        token = set_request_id(request_id)
        started = time.perf_counter()

        logger.info(
            "request_started",
            extra={
                "event": "request_started",
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "query": sanitize_for_logging(dict(request.query_params)),
                "client_ip": request.client.host if request.client else None,
            },
        )

        try:
            response = await call_next(request)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            response.headers[settings.request_id_header] = request_id
            logger.info(
                "request_completed",
                extra={
                    "event": "request_completed",
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": elapsed_ms,
                },
            )
            return response
        except Exception:
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            logger.exception(
                "request_failed",
                extra={
                    "event": "request_failed",
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "duration_ms": elapsed_ms,
                },
            )
            raise
        finally:
            reset_request_id(token)

    # Getters are wrapped so tests can monkeypatch the module-level functions.
    app.include_router(build_system_router(get_sandbox=lambda: get_sandbox()))
    app.include_router(build_responses_router(get_response_parser=lambda: get_response_parser()))
    app.include_router(build_execution_router(get_sandbox=lambda: get_sandbox()))
    return app


app = create_app()
