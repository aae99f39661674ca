from functools import lru_cache
from importlib import import_module
from os import environ
from pathlib import Path
from typing import Any, Generic, Literal, TypeVar
from uuid import uuid4

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse
from loguru import logger
from pydantic import BaseModel, Field

from app.utils.app_errors import AppErrorCode

E_INTERNAL = AppErrorCode.E_INTERNAL_ERROR.value
E_INVALID_PARAMS = AppErrorCode.E_INVALID_REQUEST.value


def format_error(ex: BaseException) -> str:
    from traceback import TracebackException

    return ''.join(TracebackException.from_exception(ex).format())


class ApiResponse(BaseModel):
    version: str | None = Field(default_factory=lambda: environ.get('BUILD_COMMIT', 'dev'))


class ApiSuccess(ApiResponse):
    success: Literal[True] = True
    results: Any = "OK"


class ApiFailure(ApiResponse):
    success: Literal[False] = False
    errcode: str = E_INTERNAL
    erresid: str = Field(default_factory=lambda: uuid4().hex[:10])
    errmesg: str = 'We are sorry, an error occurred.'


T = TypeVar("T")


class ApiOut(ApiSuccess, Generic[T]):
    """ApiSuccess with typed results, used as the v1 router return type."""

    results: T  # type: ignore[valid-type]


def api_failure(errcode: str | None = None, errmesg: Exception | str | None = None, *, trace: Any = None):
    import inspect

    if not errcode:
        errcode = ApiFailure.model_fields['errcode'].default

    if isinstance(errmesg, Exception):
        errmesg = format_error(errmesg)

    if not errmesg:
        errmesg = ApiFailure.model_fields['errmesg'].default

    failure = ApiFailure(errcode=errcode, errmesg=errmesg)

    caller_frame = inspect.stack()[1]
    module = inspect.getmodule(caller_frame.frame)
    module_name = module.__name__ if module and getattr(module, "__name__", None) else caller_frame.filename
    caller_info = f"{module_name}:{caller_frame.function}:{caller_frame.lineno}"

    logger.warning(
        f'{failure.errcode} {failure.erresid}\n{failure.errmesg} '
        f'caller={caller_info} trace={trace}'
    )

    return failure


def check_error(results: ApiFailure | dict) -> tuple[bool, bool]:
    if isinstance(results, ApiFailure):
        return True, results.errcode == E_INTERNAL

    if isinstance(results, dict) and 'errcode' in results:
        return True, results['errcode'] == E_INTERNAL

    return False, False


def make_response(results, *, status_code: int | None = None):
    if isinstance(results, Exception):
        response = api_failure(errmesg=format_error(results))
        if status_code is None:
            status_code = 500
    else:
        response = results
        is_error, is_internal = check_error(results)
        if is_error:
            if status_code is None:
                status_code = 500 if is_internal else 400
        elif status_code is None:
            status_code = 200

    return ORJSONResponse(
        status_code=status_code,
        content=response.model_dump(mode='json') if hasattr(response, 'model_dump') else response
    )


def load_routes(app: FastAPI, prefix: str):
    app_dir = Path(__file__).parent.parent.parent
    for folder in [app_dir / 'shared' / 'api', app_dir / 'api']:
        load_routes_in_folder(app, prefix, folder)

    for route_info in get_all_routes_info(app):
        methods = ','.join(sorted(route_info['methods']))
        logger.info('Loaded route: {:<12} {:<60} {}', methods, route_info['path'], route_info['endpoint'])


def load_routes_in_folder(app: FastAPI, prefix: str, folder: Path):
    from ..config import config
    disabled_routes = [x.strip() for x in config.get('API_DISABLED', '').split(',') if x.strip()]
    logger.debug('disabled routes: {}', disabled_routes)

    project_root = Path(__file__).parent.parent.parent.parent
    for x in sorted(folder.rglob('*.py')):
        if x.name == '__init__.py':
            continue

        # app/api/v1/routers/live.py -> app.api.v1.routers.live
        relative_path = x.relative_to(project_root)
        name = '.'.join(relative_path.with_suffix('').parts)

        if any(f'.{disabled_route}' in name for disabled_route in disabled_routes):
            logger.warning('disabled route module {}', name)
            continue

        try:
            module = import_module(name)
        except ImportError as e:
            logger.warning('Failed to import {}: {}', name, e)
            continue

        router = getattr(module, 'router', None)
        if router is not None:
            app.include_router(router, prefix=prefix)
            logger.info('Added routes in {}', name)


def get_all_routes_info(app: FastAPI):
    routes_info = []

    for route in app.routes:
        if hasattr(route, 'methods'):
            endpoint_name = route.endpoint.__name__ if hasattr(route.endpoint, '__name__') else str(route.endpoint)
            routes_info.append(
                {
                    "methods": sorted(route.methods),
                    "path": route.path,
                    "name": route.name,
                    "endpoint": endpoint_name,
                }
            )

    return routes_info


@lru_cache
def get_worker_info():
    project_root = Path(__file__).parent.parent.parent.parent
    worker_name = environ.get('WORKER_NAME', project_root.name)

    parts = environ.get('BUILD_COMMIT', '').split('-')
    commit_id = parts[1] if len(parts) > 1 else 'dev'

    return worker_name, commit_id, uuid4().hex[:8]


def init_logger():
    import sys
    from app.app_config import get_app_environ_config

    logger.remove()

    worker_name, commit_id, _ = get_worker_info()

    if get_app_environ_config().DEBUG:
        logger_level = 'DEBUG'
        logger_format = (
            f'<yellow>{worker_name}:{commit_id}</yellow> | '
            '<green>{time:MM-DD HH:mm:ss.SSS}</green> | '
            '<level>{level: <8}</level> | '
            '<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | '
            '<level>{message}</level>'
        )
    else:
        logger_level = 'INFO'
        logger_format = (
            f'{worker_name}:{commit_id} | '
            '{time:MM-DD HH:mm:ss.SSS} | '
            '{level: <8} | '
            '{name}:{function}:{line} | '
            '{message}'
        )
    logger.add(sys.stderr, level=logger_level, format=logger_format)
