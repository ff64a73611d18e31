"""
Token authorization for the hooksync webhook.

:author: Christopher O'Brien <obriencj@preoccupied.net>
:license: GNU General Public License v3
:ai-assistant: Auto via Cursor
"""

import hmac
from typing import Iterable, Optional

from .config import RepositoryConfig, ServerConfig


def _token_matches(token: str, candidates: Iterable[str]) -> bool:
    presented = token.encode('utf-8')
    return any(hmac.compare_digest(presented, candidate.encode('utf-8'))
               for candidate in candidates)


class Authorizer:
    """
    Decides whether a presented token may use the webhook at all, and
    whether it may act on a particular repository.

    Global tokens have already been merged into every repository's
    tokens when the configuration was loaded, so only the per-repository
    token sets are consulted here.
    """

    def __init__(self, config: ServerConfig):
        self.config = config


    def has_any_access(self, token: Optional[str]) -> bool:
        """
        True if the token is valid for at least one repository.
        """

        if not token:
            return False

        return any(_token_matches(token, repo.tokens) for repo in self.config.repositories)


    def has_repository_access(self, repository: RepositoryConfig, token: Optional[str]) -> bool:
        """
        True if the token is valid for this specific repository.
        """

        if not token:
            return False

        return _token_matches(token, repository.tokens)


# The end.
