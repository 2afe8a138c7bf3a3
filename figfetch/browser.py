from __future__ import annotations

import contextlib
import logging
import pathlib
from dataclasses import dataclass
from typing import Any, Callable, Iterator

from playwright.sync_api import Browser, BrowserContext, Page, sync_playwright  # type: ignore

from .config import FetchConfig

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
# hides navigator.webdriver from the page
LAUNCH_ARGS = ["--disable-blink-features=AutomationControlled"]


@dataclass
class Session:
    browser: Browser
    context: BrowserContext
    page: Page


def ensure_dir(path: str | pathlib.Path) -> pathlib.Path:
    p = pathlib.Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def stop_trace(context: BrowserContext, path: pathlib.Path) -> None:
    """Write the trace; a failure here must not replace the run's own result."""
    try:
        context.tracing.stop(path=str(path))
    except Exception:  # noqa: BLE001
        logger.exception("Could not write trace")
        return
    logger.info("Trace written to %s", path)


@contextlib.contextmanager
def launch_session(
    config: FetchConfig,
    playwright_factory: Callable[[], Any] = sync_playwright,
) -> Iterator[Session]:
    """Start Chromium with a download-capable context and yield a Session.

    The output directory is created first. The browser is closed exactly once when the
    block exits, whatever happened inside it; anything saved from the session's
    downloads must be persisted before then.
    """
    ensure_dir(config.output_dir)
    with playwright_factory() as p:
        logger.info("Launching browser (headless=%s)...", config.headless)
        browser = p.chromium.launch(headless=config.headless, args=LAUNCH_ARGS)
        try:
            context = browser.new_context(accept_downloads=True, user_agent=USER_AGENT)
            if config.trace:
                context.tracing.start(screenshots=True, snapshots=True, sources=False)
            page = context.new_page()
            try:
                yield Session(browser=browser, context=context, page=page)
            finally:
                if config.trace:
                    stop_trace(context, config.trace_path)
        finally:
            logger.info("Closing browser...")
            browser.close()
