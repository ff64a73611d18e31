"""
Allows running the service as ``python -m preoccupied.hooksync``

:author: Christopher O'Brien <obriencj@preoccupied.net>
:license: GNU General Public License v3
:ai-assistant: Auto via Cursor
"""

from .cli import main


if __name__ == '__main__':
    main()


# The end.
