"""Error taxonomy for a figfetch run.

- ConfigError: a required input is missing or malformed (raised before any browser starts)
- AuthenticationError: the login form could not be filled/submitted or never redirected
- NavigationError: the target document did not load or settle in time
- ExportError: neither export path produced a download, or the artifact is unusable
"""

from __future__ import annotations

from typing import Optional


class FigFetchError(Exception):
    """Base exception for every failure raised by figfetch."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        self.message = message
        self.url = url
        super().__init__(message)

    def __str__(self) -> str:
        if self.url:
            return f"{self.message} (url: {self.url})"
        return self.message


class ConfigError(FigFetchError):
    """Required configuration is missing or invalid."""


class AuthenticationError(FigFetchError):
    """Login did not complete."""


class NavigationError(FigFetchError):
    """The target document never reached a usable state."""


class ExportError(FigFetchError):
    """The export action did not yield a persisted file."""
