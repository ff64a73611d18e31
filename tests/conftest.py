"""
Shared pytest fixtures for hooksync tests.

:author: Christopher O'Brien <obriencj@preoccupied.net>
:license: GNU General Public License v3
:ai-assistant: Auto via Cursor
"""

import importlib
import subprocess
import tempfile

import pytest

from preoccupied.hooksync.config import RepositoryConfig, ServerConfig


# the package exports the FastAPI instance as "app", shadowing the module
app_module = importlib.import_module('preoccupied.hooksync.app')
config_module = importlib.import_module('preoccupied.hooksync.config')


class FakeGitClient:
    """
    Records git operations instead of running them. Operations named in
    fail are raised as CalledProcessError.
    """

    def __init__(self, fail=()):
        self.calls = []
        self.fail = set(fail)


    async def _record(self, op, repo_dir, *args):
        self.calls.append((op, repo_dir) + args)
        if op in self.fail:
            raise subprocess.CalledProcessError(1, ('git', op), stderr=b'simulated failure')


    async def fetch(self, repo_dir, branch):
        await self._record('fetch', repo_dir, branch)


    async def hard_reset(self, repo_dir, branch):
        await self._record('hard_reset', repo_dir, branch)


    async def clean(self, repo_dir):
        await self._record('clean', repo_dir)


    @property
    def operations(self):
        return [call[0] for call in self.calls]


@pytest.fixture(autouse=True)
def reset_singletons():
    """
    Drop the cached config and sync engine between tests.
    """

    config_module._config = None
    app_module._engine = None
    yield
    config_module._config = None
    app_module._engine = None


@pytest.fixture
def temp_dir():
    """
    Create a temporary directory for tests.
    """

    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def fake_git():
    return FakeGitClient()


@pytest.fixture
def failing_git():
    """
    Factory for a FakeGitClient that fails the named operations.
    """

    return lambda *ops: FakeGitClient(fail=ops)


@pytest.fixture
def mock_config():
    """
    Two repositories with their own tokens, plus one global token.
    """

    return ServerConfig(
        global_tokens=['global-token'],
        repositories=[
            RepositoryConfig(
                name='docs',
                local='/opt/docs',
                remote='https://git.example.com/docs.git',
                branch='main',
                tokens=['abc'],
            ),
            RepositoryConfig(
                name='site',
                local='/opt/site',
                remote='https://git.example.com/site.git',
                branch='release',
                tokens=['xyz'],
            ),
        ],
    )


@pytest.fixture
def mock_env_vars(monkeypatch):
    """
    Clear GIT_SYNC_* environment variables for testing.
    """

    env_vars_to_clear = [
        'GIT_SYNC_CONFIG_PATH',
        'GIT_SYNC_ADDRESS',
        'GIT_SYNC_PORT',
        'GIT_SYNC_LOG_DIRECTORY',
        'GIT_SYNC_GLOBAL_TOKEN',
    ]

    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)

    return monkeypatch


# The end.
