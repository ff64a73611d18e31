"""
FastAPI webhook application for the hooksync service.

:author: Christopher O'Brien <obriencj@preoccupied.net>
:license: GNU General Public License v3
:ai-assistant: Auto via Cursor
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import Authorizer
from .config import get_config
from .gitsync import SyncEngine, SyncError


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


TOKEN_HEADER = 'X-GIT-SYNC-TOKEN'


_engine: Optional[SyncEngine] = None


class SyncRequest(BaseModel):
    """
    POST body naming the repository to sync
    """

    name: str = ''


def get_sync_engine() -> SyncEngine:
    """
    Get the process-wide sync engine, creating it on first use.
    """

    global _engine

    if _engine is None:
        _engine = SyncEngine(timeout=get_config().sync_timeout)

    return _engine


async def app_startup():
    """
    Startup event handler for the app
    """

    # fetch configuration for the first time
    try:
        config = get_config()
    except Exception as e:
        logger.error(f'Failed to load configuration: {e}', exc_info=True)
        raise

    if not config.sync_on_startup:
        return

    logger.info(f'Syncing {len(config.repositories)} repositories on startup...')
    await get_sync_engine().sync_all(config.repositories)


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    """
    Lifespan event handler for the app
    """

    logger.info('Starting up...')

    await app_startup()

    try:
        yield
    finally:

        logger.info('Shutting down...')


# every path belongs to the webhook, so no docs or schema routes
app = FastAPI(lifespan=app_lifespan, docs_url=None, redoc_url=None, openapi_url=None)


@app.exception_handler(StarletteHTTPException)
async def plain_text_error(request: Request, exc: StarletteHTTPException):
    """
    Render rejections as a single line of plain text
    """

    return PlainTextResponse(f'{exc.detail}\n', status_code=exc.status_code,
                             headers=getattr(exc, 'headers', None))


def _unauthorized(request: Request, reason: str) -> HTTPException:
    source = request.client.host if request.client else 'unknown'
    logger.warning(f'Rejected {request.method} {request.url.path} from {source}: {reason}')
    return HTTPException(status_code=401, detail='Unauthorized')


async def webhook(request: Request):
    """
    GET checks that the token is valid for some repository. POST with a
    JSON body of {"name": ...} syncs the named repository.
    """

    x_git_sync_token = request.headers.get(TOKEN_HEADER)

    config = get_config()
    authorizer = Authorizer(config)

    if not x_git_sync_token:
        raise _unauthorized(request, 'missing token')

    if not authorizer.has_any_access(x_git_sync_token):
        raise _unauthorized(request, 'invalid token')

    if request.method == 'GET':
        return PlainTextResponse('OK\n')

    if request.method != 'POST':
        raise HTTPException(status_code=405, detail='GET or POST only',
                            headers={'Allow': 'GET, POST'})

    try:
        payload = SyncRequest.model_validate_json(await request.body())
    except ValidationError as e:
        reason = e.errors()[0]['msg']
        raise HTTPException(status_code=400,
                            detail=f'Bad Request: Failed to parse json body: {reason}')

    if not payload.name:
        raise HTTPException(status_code=400, detail='Bad Request: Repository name not provided')

    repo = config.get_repository(payload.name)
    if repo is None:
        raise HTTPException(status_code=404,
                            detail=f"Not Found: Repository '{payload.name}' not found")

    if not authorizer.has_repository_access(repo, x_git_sync_token):
        raise _unauthorized(request, f"token not valid for repository '{repo.name}'")

    # the response reports that the sync was authorized and attempted,
    # failures only reach the log
    try:
        await get_sync_engine().sync(repo)
    except SyncError as e:
        logger.error(f"Error syncing repo '{repo.name}': {e}", exc_info=True)

    return PlainTextResponse('OK\n')


# a plain route with no method list, so that every method reaches the
# token checks before any 405
app.add_route('/{path:path}', webhook, methods=None)


# The end.
