"""
Unit tests for the token authorizer.

:author: Christopher O'Brien <obriencj@preoccupied.net>
:license: GNU General Public License v3
:ai-assistant: Auto via Cursor
"""

import pytest

from preoccupied.hooksync.auth import Authorizer
from preoccupied.hooksync.config import ServerConfig


class TestHasAnyAccess:
    """
    Tests for the coarse, any-repository check.
    """

    @pytest.mark.parametrize('token', ['abc', 'xyz', 'global-token'])
    def test_known_tokens(self, mock_config, token):
        """
        Test that repository and global tokens pass.
        """

        assert Authorizer(mock_config).has_any_access(token)

    @pytest.mark.parametrize('token', ['nope', 'ABC', 'abc ', '', None])
    def test_unknown_tokens(self, mock_config, token):
        """
        Test that unknown, near-miss, empty, and missing tokens fail.
        """

        assert not Authorizer(mock_config).has_any_access(token)

    def test_no_repositories(self):
        """
        Test that a global token grants nothing when no repositories exist.
        """

        config = ServerConfig(global_tokens=['global-token'])
        assert not Authorizer(config).has_any_access('global-token')

    def test_non_ascii_token(self, mock_config):
        """
        Test that a non-ASCII token is simply rejected.
        """

        assert not Authorizer(mock_config).has_any_access('été')


class TestHasRepositoryAccess:
    """
    Tests for the per-repository check.
    """

    def test_scoped_token(self, mock_config):
        """
        Test that a repository token only opens its own repository.
        """

        authorizer = Authorizer(mock_config)
        docs = mock_config.get_repository('docs')
        site = mock_config.get_repository('site')

        assert authorizer.has_repository_access(docs, 'abc')
        assert not authorizer.has_repository_access(site, 'abc')
        assert authorizer.has_repository_access(site, 'xyz')
        assert not authorizer.has_repository_access(docs, 'xyz')

    def test_global_token_opens_every_repository(self, mock_config):
        """
        Test that a global token is valid for every repository.
        """

        authorizer = Authorizer(mock_config)
        for repo in mock_config.repositories:
            assert authorizer.has_repository_access(repo, 'global-token')

    @pytest.mark.parametrize('token', ['', None])
    def test_empty_token(self, mock_config, token):
        """
        Test that an empty token never grants access.
        """

        docs = mock_config.get_repository('docs')
        assert not Authorizer(mock_config).has_repository_access(docs, token)


# The end.
