import time
import traceback
import uuid
from contextlib import asynccontextmanager
from os import environ

import logfire
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from granian import Granian
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.errors import app_error_handler, app_validation_exception_handler
from app.app_config import get_app_environ_config
from app.domain.live.session.session_registry import SessionRegistry
from app.shared.api.utils import E_INTERNAL, api_failure, init_logger, load_routes, make_response
from app.utils.app_errors import AppError
from app.workers.session_reaper import SessionReaper


class HTTPLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request with a short id and its duration.

    Exceptions that escape the routers are logged with their traceback and
    answered with an E_INTERNAL_ERROR envelope.
    """

    async def dispatch(self, request: Request, call_next):  # type: ignore
        started = time.perf_counter()
        request_id = uuid.uuid4().hex[:8]
        method, path = request.method, request.url.path

        logger.info("[{}] {} {}", request_id, method, path)

        try:
            response = await call_next(request)
        except Exception as exc:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.error(
                "[{}] Unhandled exception in {} {} after {:.2f}ms: {}: {}\n{}",
                request_id,
                method,
                path,
                elapsed_ms,
                type(exc).__name__,
                exc,
                traceback.format_exc(),
            )

            failure = api_failure(
                errcode=E_INTERNAL,
                errmesg=f"Internal server error (request_id: {request_id})",
            )
            return make_response(failure, status_code=500)

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "[{}] {} {} -> {} in {:.2f}ms",
            request_id,
            method,
            path,
            response.status_code,
            elapsed_ms,
        )
        return response


@asynccontextmanager
async def lifespan(server: FastAPI):
    init_logger()

    logger.info("Application startup...")

    cfg = get_app_environ_config()

    server.state.live_registry = SessionRegistry(comment_capacity=cfg.LIVE_COMMENT_CAPACITY)
    server.state.session_reaper = SessionReaper(
        server.state.live_registry,
        idle_timeout_seconds=cfg.LIVE_SESSION_IDLE_TIMEOUT_SECONDS,
        interval_seconds=cfg.LIVE_SESSION_REAP_INTERVAL_SECONDS,
    )
    server.state.session_reaper.start()

    if not cfg.RTC_APP_CERTIFICATE:
        logger.warning("RTC_APP_CERTIFICATE is not set; token issuing will fail")

    load_routes(server, "/api/v1")

    if cfg.LOGFIRE_ENABLE:
        logger.info("Logfire initializing")

        logfire.configure(
            token=cfg.LOGFIRE_TOKEN,
            service_name="live-pulse",
            service_version=environ.get("BUILD_COMMIT") or "dev",
        )

        logger.info("Logfire instrument fastapi")
        logfire.instrument_fastapi(server, capture_headers=True)

        logger.info("Logfire instrument pydantic")
        logfire.instrument_pydantic()

    yield

    logger.info("Application shutdown...")

    await server.state.session_reaper.stop()


app = FastAPI(
    version="1.0",
    title="Live Pulse API",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

app.add_middleware(HTTPLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,  # type: ignore
    allow_origins=get_app_environ_config().API_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(RequestValidationError, app_validation_exception_handler)  # type: ignore
app.add_exception_handler(AppError, app_error_handler)  # type: ignore


def build_granian_kwargs():
    cfg = get_app_environ_config()
    kwargs = {
        "interface": "asgi",
        "address": cfg.API_HOST,
        "port": cfg.API_PORT,
        "workers": cfg.API_WORKERS,
        "reload": cfg.DEBUG,
    }

    return kwargs


if __name__ == "__main__":
    granian_kwargs = build_granian_kwargs()
    Granian("app.main:app", **granian_kwargs).serve()
