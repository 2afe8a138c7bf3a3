from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigError

# ---------- environment variable names ----------
ENV_EMAIL = "FIGMA_EMAIL"
ENV_PASSWORD = "FIGMA_PASSWORD"
ENV_FILE_URL = "TEST_FILE_URL"
ENV_DOWNLOADS = "DOWNLOADS_PATH"
ENV_DWELL = "FIGMA_DWELL_SECONDS"
ENV_HEADLESS = "FIGMA_HEADLESS"

DEFAULT_DOWNLOADS = "downloads"
DEFAULT_DWELL_SECONDS = 10.0  # human-paced pause after the document settles
SCREENSHOT_NAME = "error-screenshot.png"
TRACE_NAME = "trace.zip"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Credentials:
    identity: str
    secret: str = field(repr=False)


@dataclass(frozen=True)
class Timeouts:
    """Per-step wait budgets, in milliseconds (Playwright's unit)."""

    navigation: int = 60_000
    form_field: int = 10_000
    # must stay well above `navigation` so MFA prompts and SSO redirects fit
    post_login: int = 120_000
    network_idle: int = 60_000
    menu_click: int = 10_000
    primary_download: int = 15_000
    palette_visible: int = 15_000
    fallback_download: int = 15_000
    keystroke_delay: int = 100


@dataclass(frozen=True)
class FetchConfig:
    credentials: Credentials
    target_url: str
    output_dir: Path
    dwell_seconds: float = DEFAULT_DWELL_SECONDS
    headless: bool = True
    trace: bool = False
    timeouts: Timeouts = field(default_factory=Timeouts)

    @property
    def screenshot_path(self) -> Path:
        return self.output_dir / SCREENSHOT_NAME

    @property
    def trace_path(self) -> Path:
        return self.output_dir / TRACE_NAME


def parse_bool(name: str, raw: str) -> bool:
    low = raw.strip().lower()
    if low in _TRUE:
        return True
    if low in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean (got {raw!r})")


def parse_seconds(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number of seconds (got {raw!r})") from None
    if value < 0:
        raise ConfigError(f"{name} cannot be negative (got {raw!r})")
    return value


def load_config(
    env: Optional[Mapping[str, str]] = None,
    env_file: Optional[str | os.PathLike] = None,
    **overrides,
) -> FetchConfig:
    """Build a FetchConfig from the environment.

    When `env` is None the process environment is used, after seeding it from
    `env_file` (or a `.env` in the working directory) with python-dotenv.
    Keyword overrides replace the matching FetchConfig fields, skipping None values.

    Raises ConfigError if FIGMA_EMAIL, FIGMA_PASSWORD or TEST_FILE_URL is missing.
    """
    if env is None:
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()
        env = os.environ

    missing: List[str] = [
        name for name in (ENV_EMAIL, ENV_PASSWORD, ENV_FILE_URL) if not (env.get(name) or "").strip()
    ]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

    values = dict(
        credentials=Credentials(identity=env[ENV_EMAIL].strip(), secret=env[ENV_PASSWORD]),
        target_url=env[ENV_FILE_URL].strip(),
        output_dir=Path(env.get(ENV_DOWNLOADS) or DEFAULT_DOWNLOADS),
        dwell_seconds=parse_seconds(ENV_DWELL, env[ENV_DWELL]) if env.get(ENV_DWELL) else DEFAULT_DWELL_SECONDS,
        headless=parse_bool(ENV_HEADLESS, env[ENV_HEADLESS]) if env.get(ENV_HEADLESS) else True,
    )
    values.update({k: v for k, v in overrides.items() if v is not None})
    values["output_dir"] = Path(values["output_dir"]).resolve()
    return FetchConfig(**values)
