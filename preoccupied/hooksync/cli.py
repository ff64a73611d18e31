"""
Command line entry point for the hooksync service.

:author: Christopher O'Brien <obriencj@preoccupied.net>
:license: GNU General Public License v3
:ai-assistant: Auto via Cursor
"""

import logging
import os
from typing import Optional

import click
import uvicorn

from .app import app
from .config import ConfigError, get_config


LOG_FILENAME = 'hooksync.log'

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


logger = logging.getLogger(__name__)


def configure_logging(level: str, log_directory: Optional[str] = None) -> None:
    """
    Set up root logging at level, optionally also writing to
    hooksync.log under log_directory.
    """

    handlers = [logging.StreamHandler()]

    if log_directory:
        os.makedirs(log_directory, exist_ok=True)
        handlers.append(logging.FileHandler(os.path.join(log_directory, LOG_FILENAME)))

    logging.basicConfig(level=level.upper(), format=LOG_FORMAT,
                        handlers=handlers, force=True)


@click.command()
@click.option('--config', 'config_path', default=None, type=click.Path(dir_okay=False),
              help='Path to the YAML configuration, overriding GIT_SYNC_CONFIG_PATH.')
@click.option('--log-level', default='info',
              type=click.Choice(['debug', 'info', 'warning', 'error'], case_sensitive=False),
              help='Logging verbosity.')
def main(config_path: Optional[str], log_level: str) -> None:
    """
    Serve the git sync webhook.
    """

    try:
        config = get_config(config_path)
    except ConfigError as e:
        raise click.ClickException(f'failed to load config: {e}')

    configure_logging(log_level, config.log_directory)

    # an empty address listens on all interfaces
    logger.info(f'Listening on {config.address}:{config.port}')
    uvicorn.run(app, host=config.address, port=int(config.port),
                log_level=log_level.lower())


# The end.
