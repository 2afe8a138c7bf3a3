"""Figma local-copy downloader.

Exposes:
 - load_config (environment / .env -> FetchConfig)
 - fetch_file (login, open the file, export it, return the saved path)
"""

from .config import Credentials, FetchConfig, Timeouts, load_config  # noqa: F401
from .download import ExportOutcome, ExportRoute, ExportState, ExportTrigger, fetch_file  # noqa: F401
from .errors import (  # noqa: F401
    AuthenticationError,
    ConfigError,
    ExportError,
    FigFetchError,
    NavigationError,
)
from .locators import DEFAULT_LOCATORS, FigmaLocators  # noqa: F401

__version__ = "0.1.0"
