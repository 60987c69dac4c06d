"""Configuration constants for notecrypt.

Everything lives in :mod:`config.settings`; this package re-exports it so
both `from config import PBKDF2_ITERATIONS` and
`from config.settings import PBKDF2_ITERATIONS` work.
"""

from .settings import *  # noqa: F401,F403
from .settings import __all__  # noqa: F401
