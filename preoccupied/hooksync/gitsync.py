"""
Git synchronization for the hooksync application. Forces a working
copy to match origin/<branch> by fetching, hard resetting, and then
removing untracked and ignored files.

:author: Christopher O'Brien <obriencj@preoccupied.net>
:license: GNU General Public License v3
:ai-assistant: Auto via Cursor
"""

import asyncio
import contextlib
import logging
import subprocess
from typing import Dict, Iterable, Optional

from .config import DEFAULT_SYNC_TIMEOUT, RepositoryConfig


logger = logging.getLogger(__name__)


GIT_FAILURES = (subprocess.SubprocessError, OSError)


async def run(*args: str, cwd: str = None, timeout: Optional[float] = None) -> None:
    """
    Run a command to completion, raising CalledProcessError on a non-zero
    exit, or TimeoutExpired if it runs longer than timeout seconds.
    """

    logger.debug(f'Running {args} in {cwd}')
    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE
    )

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except asyncio.TimeoutError:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()
        raise subprocess.TimeoutExpired(args, timeout)

    if process.returncode != 0:
        raise subprocess.CalledProcessError(process.returncode, args,
                                            output=stdout, stderr=stderr)


class GitClient:
    """
    The three git operations a sync needs, each run as a subprocess
    inside the working copy.
    """

    def __init__(self, timeout: Optional[float] = DEFAULT_SYNC_TIMEOUT, git: str = 'git'):
        self.timeout = timeout
        self.git = git


    async def fetch(self, repo_dir: str, branch: str) -> None:
        await run(self.git, 'fetch', 'origin', branch, cwd=repo_dir, timeout=self.timeout)


    async def hard_reset(self, repo_dir: str, branch: str) -> None:
        await run(self.git, 'reset', '--hard', f'origin/{branch}', cwd=repo_dir, timeout=self.timeout)


    async def clean(self, repo_dir: str) -> None:
        await run(self.git, 'clean', '-fdx', cwd=repo_dir, timeout=self.timeout)


def _describe(cause: BaseException) -> str:
    stderr = getattr(cause, 'stderr', None)
    if isinstance(stderr, bytes):
        stderr = stderr.decode('utf-8', errors='replace')
    if stderr and stderr.strip():
        return f'{cause} ({stderr.strip()})'
    return str(cause)


class SyncError(Exception):
    """
    A sync step failed. The original exception is kept as the cause.
    """

    step = 'sync'
    message = 'failed to sync repository'

    def __init__(self, repository: str, cause: BaseException):
        self.repository = repository
        self.cause = cause
        super().__init__(f"{self.message} for '{repository}': {_describe(cause)}")


class FetchError(SyncError):
    step = 'fetch'
    message = 'failed to fetch origin'


class ResetError(SyncError):
    step = 'reset'
    message = 'failed to reset to origin'


class CleanError(SyncError):
    step = 'clean'
    message = 'failed to clean untracked files'


class SyncEngine:
    """
    Runs fetch, reset, and clean in that order against a repository's
    working copy, stopping at the first failed step. Syncs of the same
    repository name are serialized; different repositories may sync
    concurrently.
    """

    def __init__(self, git: Optional[GitClient] = None,
                 timeout: Optional[float] = DEFAULT_SYNC_TIMEOUT):

        self.git = git if git is not None else GitClient(timeout=timeout)
        self._locks: Dict[str, asyncio.Lock] = {}


    def lock_for(self, name: str) -> asyncio.Lock:
        lock = self._locks.get(name)
        if lock is None:
            lock = self._locks[name] = asyncio.Lock()
        return lock


    async def sync(self, repository: RepositoryConfig) -> None:
        """
        Force the working copy at repository.local to match
        origin/<branch>, discarding local commits, modifications, and
        untracked files.
        """

        name = repository.name
        local = repository.local
        branch = repository.branch

        async with self.lock_for(name):
            logger.info(f"Syncing repository '{name}' local={local}"
                        f" remote={repository.remote} branch={branch}")

            try:
                await self.git.fetch(local, branch)
            except GIT_FAILURES as e:
                raise FetchError(name, e) from e

            try:
                await self.git.hard_reset(local, branch)
            except GIT_FAILURES as e:
                raise ResetError(name, e) from e

            try:
                await self.git.clean(local)
            except GIT_FAILURES as e:
                raise CleanError(name, e) from e

            logger.info(f"Successfully synced repository '{name}' to origin/{branch}")


    async def sync_all(self, repositories: Iterable[RepositoryConfig]) -> None:
        """
        Sync each repository in turn. A failure is logged and does not
        prevent the remaining repositories from syncing.
        """

        for repo in repositories:
            try:
                await self.sync(repo)
            except SyncError as e:
                logger.error(f"Failed to sync repository '{repo.name}' on startup: {e}", exc_info=True)


# The end.
