"""
Configuration models and loading for the hooksync application.

:author: Christopher O'Brien <obriencj@preoccupied.net>
:license: GNU General Public License v3
:ai-assistant: Auto via Cursor
"""

import logging
import os
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import (
    BaseModel, Field, ValidationError, ValidationInfo, field_validator, model_validator)


logger = logging.getLogger(__name__)


CONFIG_PATH_ENV = 'GIT_SYNC_CONFIG_PATH'

DEFAULT_CONFIG_PATH = '/etc/git-sync/config.yaml'

DEFAULT_PORT = '8654'

DEFAULT_BRANCH = 'main'

DEFAULT_SYNC_TIMEOUT = 300.0


_config: Optional['ServerConfig'] = None


class ConfigError(Exception):
    """
    Raised when the configuration cannot be located, read, or validated.
    """


def _token_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def _unique(values: List[Any]) -> List[Any]:
    result = []
    for value in values:
        if value not in result:
            result.append(value)
    return result


class RepositoryConfig(BaseModel):
    """
    A single managed repository. The remote is informational only, as
    syncing always works against the working copy's existing origin.
    """

    name: str
    local: str
    remote: str
    branch: str = DEFAULT_BRANCH
    tokens: Tuple[str, ...] = ()

    model_config = {'frozen': True}


    @field_validator('branch', mode='before')
    @classmethod
    def default_branch(cls, v: Any) -> Any:
        return DEFAULT_BRANCH if v is None or v == '' else v


    @field_validator('name', 'local', 'remote')
    @classmethod
    def require_value(cls, v: str, info: ValidationInfo) -> str:
        if not v:
            raise ValueError(f'repository config missing {info.field_name} value')
        return v


class ServerConfig(BaseModel):
    """
    Root configuration model
    """

    address: str = ''
    port: str = DEFAULT_PORT
    global_tokens: Tuple[str, ...] = ()
    repositories: Tuple[RepositoryConfig, ...] = ()
    log_directory: Optional[str] = None
    sync_on_startup: bool = False
    sync_timeout: float = Field(default=DEFAULT_SYNC_TIMEOUT, gt=0)

    model_config = {'frozen': True}


    @model_validator(mode='before')
    @classmethod
    def apply_global_tokens(cls, v: Any) -> Any:
        """
        Apply defaults and grant every global token to every repository.
        Works on a copy of the raw data, the input is never modified.
        """

        if not isinstance(v, dict):
            return v

        fixed = dict(v)

        port = fixed.get('port')
        fixed['port'] = DEFAULT_PORT if port is None or port == '' else str(port)

        if fixed.get('address') is None:
            fixed['address'] = ''

        glbl = fixed['global_tokens'] = _unique(_token_list(fixed.get('global_tokens')))

        repos = []
        for repo in _token_list(fixed.get('repositories')):
            if isinstance(repo, RepositoryConfig):
                repo = repo.model_dump()
            elif isinstance(repo, dict):
                repo = dict(repo)
            else:
                # leave it for field validation to reject
                repos.append(repo)
                continue

            repo['tokens'] = _unique(_token_list(repo.get('tokens')) + glbl)
            repos.append(repo)

        fixed['repositories'] = repos
        return fixed


    @field_validator('port')
    @classmethod
    def numeric_port(cls, v: str) -> str:
        if not v.isdigit():
            raise ValueError(f'port must be numeric, not {v!r}')
        return v


    @model_validator(mode='after')
    def unique_names(self) -> 'ServerConfig':
        seen = set()
        for repo in self.repositories:
            if repo.name in seen:
                raise ValueError(f'duplicate repository name: {repo.name}')
            seen.add(repo.name)
        return self


    def get_repository(self, name: str) -> Optional[RepositoryConfig]:
        """
        Find the repository configuration with the given name, or None.
        """

        for repo in self.repositories:
            if repo.name == name:
                return repo
        return None


def _config_from_env() -> Dict[str, Any]:
    """
    Build configuration overrides from GIT_SYNC_* environment variables.
    """

    result = {}
    pairs = (
        ('GIT_SYNC_ADDRESS', 'address'),
        ('GIT_SYNC_PORT', 'port'),
        ('GIT_SYNC_LOG_DIRECTORY', 'log_directory'))

    for env_var, config_key in pairs:
        value = os.environ.get(env_var)
        if value is not None:
            result[config_key] = value

    token = os.environ.get('GIT_SYNC_GLOBAL_TOKEN')
    if token:
        result['global_tokens'] = [token]

    return result


def get_config_path() -> str:
    """
    Location of the configuration file. The GIT_SYNC_CONFIG_PATH
    environment variable wins, otherwise the default path must exist.
    """

    path = os.environ.get(CONFIG_PATH_ENV)
    if path:
        return path

    if not os.path.exists(DEFAULT_CONFIG_PATH):
        raise ConfigError(f'failed to find config file. use either {CONFIG_PATH_ENV}'
                          f' or store config at {DEFAULT_CONFIG_PATH}')

    return DEFAULT_CONFIG_PATH


def load_config(path: str) -> ServerConfig:
    """
    Read, merge with environment overrides, and validate the YAML
    configuration at path.
    """

    try:
        with open(path, 'r') as f:
            config_data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f'failed to read config file {path}: {e}') from e
    except yaml.YAMLError as e:
        raise ConfigError(f'failed to parse config file {path}: {e}') from e

    if config_data is None:
        raise ConfigError(f'config file {path} is empty')

    if not isinstance(config_data, dict):
        raise ConfigError(f'config file {path} must contain a mapping')

    env_config = _config_from_env()
    env_tokens = env_config.pop('global_tokens', [])
    config_data.update(env_config)
    if env_tokens:
        config_data['global_tokens'] = _token_list(config_data.get('global_tokens')) + env_tokens

    try:
        config = ServerConfig.model_validate(config_data)
    except ValidationError as e:
        raise ConfigError(f'error in config {path}: {e}') from e

    logger.info(f'Loaded configuration with {len(config.repositories)} repositories')
    return config


def get_config(path: Optional[str] = None) -> ServerConfig:
    """
    Get the process-wide config object, loading it on first use.
    """

    global _config

    if _config is None:
        _config = load_config(path or get_config_path())

    return _config


# The end.
