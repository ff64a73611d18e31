"""
Webhook service that forces local git working copies to match their
origin branch on demand.

:author: Christopher O'Brien <obriencj@preoccupied.net>
:license: GNU General Public License v3
:ai-assistant: Auto via Cursor
"""

from preoccupied.hooksync.app import app
from preoccupied.hooksync.auth import Authorizer
from preoccupied.hooksync.config import get_config, load_config
from preoccupied.hooksync.gitsync import SyncEngine, SyncError


__all__ = ['app', 'Authorizer', 'get_config', 'load_config', 'SyncEngine', 'SyncError']


# The end.
