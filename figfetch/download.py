"""Log in to Figma, open one file and save a local copy of it.

Stages run strictly in order inside one browser session:

    launch_session -> authenticate -> open_document -> ExportTrigger -> persist_download

The export step tries the main menu first and only falls back to the quick actions
palette when the menu times out. Any failure that reaches fetch_file leaves an
error-screenshot.png in the output directory before it propagates.
"""

from __future__ import annotations

import enum
import logging
import pathlib
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, ContextManager, List, Optional

from playwright.sync_api import Download, Page  # type: ignore
from playwright.sync_api import Error as PlaywrightError  # type: ignore
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError  # type: ignore

from .browser import Session, launch_session
from .config import Credentials, FetchConfig
from .errors import AuthenticationError, ExportError, NavigationError
from .locators import DEFAULT_LOCATORS, FigmaLocators

logger = logging.getLogger(__name__)


# ---------- login ----------

def authenticate(
    page: Page,
    credentials: Credentials,
    config: FetchConfig,
    locators: FigmaLocators = DEFAULT_LOCATORS,
) -> None:
    """Submit the login form once and wait for the file browser.

    Never retried: resubmitting credentials is what gets accounts locked.
    """
    t = config.timeouts
    try:
        logger.info("Navigating to Figma login page...")
        page.goto(locators.login_url, timeout=t.navigation, wait_until="domcontentloaded")

        logger.info("Filling login credentials...")
        page.fill(locators.email_input, credentials.identity, timeout=t.form_field)
        page.fill(locators.password_input, credentials.secret, timeout=t.form_field)

        logger.info("Submitting login form...")
        page.click(locators.submit_button, timeout=t.form_field)

        logger.info("Waiting for post-login navigation...")
        page.wait_for_url(locators.post_login_pattern, timeout=t.post_login)
    except PlaywrightError as err:
        raise AuthenticationError(f"Login failed: {err}", url=locators.login_url) from err


# ---------- target document ----------

def dwell(page: Page, seconds: float) -> None:
    """Sit idle for a fixed time. Not a readiness check; never cut it short."""
    page.wait_for_timeout(seconds * 1000)


def open_document(page: Page, config: FetchConfig) -> None:
    t = config.timeouts
    try:
        logger.info("Navigating to Figma file...")
        page.goto(config.target_url, timeout=t.navigation, wait_until="domcontentloaded")

        logger.info("Waiting for page to stabilize...")
        page.wait_for_load_state("networkidle", timeout=t.network_idle)
    except PlaywrightError as err:
        raise NavigationError(f"Could not open file: {err}", url=config.target_url) from err

    logger.info("Waiting %g seconds to avoid bot detection...", config.dwell_seconds)
    dwell(page, config.dwell_seconds)


# ---------- export ----------

class ExportState(enum.Enum):
    IDLE = "idle"
    PRIMARY_ATTEMPT = "primary_attempt"
    FALLBACK_ATTEMPT = "fallback_attempt"
    SUCCESS = "success"
    FAILED = "failed"


class ExportRoute(enum.Enum):
    PRIMARY = "primary"  # main menu -> File -> Save local copy
    FALLBACK = "fallback"  # quick actions palette


@dataclass
class ExportOutcome:
    state: ExportState
    download: Optional[Download] = None
    route: Optional[ExportRoute] = None
    error: Optional[BaseException] = None
    history: List[ExportState] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state is ExportState.SUCCESS


class ExportTrigger:
    """Two-route state machine for Figma's "Save local copy…" action.

    IDLE -> PRIMARY_ATTEMPT -> SUCCESS
                            -> FALLBACK_ATTEMPT -> SUCCESS
                                                -> FAILED

    A timeout on the primary route is recoverable and moves to the fallback route.
    A timeout on the fallback route is terminal. `run` reports both as an
    ExportOutcome and leaves it to the caller to raise. Errors other than timeouts
    are not part of either transition and propagate.
    """

    def __init__(
        self,
        page: Page,
        config: FetchConfig,
        locators: FigmaLocators = DEFAULT_LOCATORS,
        platform: str = sys.platform,
    ) -> None:
        self.page = page
        self.timeouts = config.timeouts
        self.locators = locators
        self.platform = platform
        self.state = ExportState.IDLE
        self.history: List[ExportState] = [ExportState.IDLE]

    def _enter(self, state: ExportState) -> None:
        self.state = state
        self.history.append(state)

    def _outcome(self, **kwargs: Any) -> ExportOutcome:
        return ExportOutcome(state=self.state, history=list(self.history), **kwargs)

    def run(self) -> ExportOutcome:
        if self.state is not ExportState.IDLE:
            raise RuntimeError(f"ExportTrigger already ran (state={self.state.value})")

        self._enter(ExportState.PRIMARY_ATTEMPT)
        logger.info("Attempting download via main menu...")
        try:
            download = self.via_main_menu()
        except PlaywrightTimeoutError as err:
            logger.warning("Main menu approach failed, falling back to command palette: %s", err)
        else:
            self._enter(ExportState.SUCCESS)
            return self._outcome(download=download, route=ExportRoute.PRIMARY)

        self._enter(ExportState.FALLBACK_ATTEMPT)
        try:
            download = self.via_command_palette()
        except PlaywrightTimeoutError as err:
            logger.error("Command palette approach failed: %s", err)
            self._enter(ExportState.FAILED)
            return self._outcome(error=err)
        self._enter(ExportState.SUCCESS)
        return self._outcome(download=download, route=ExportRoute.FALLBACK)

    def via_main_menu(self) -> Download:
        page, loc, t = self.page, self.locators, self.timeouts

        logger.info("Clicking main menu button...")
        page.get_by_role(loc.main_menu_role, name=loc.main_menu_name).click(timeout=t.menu_click)

        logger.info("Clicking File menu...")
        page.get_by_test_id(loc.file_menu_test_id).get_by_text(loc.file_menu_text).click(timeout=t.menu_click)

        logger.info("Clicking Save local copy and waiting for download...")
        with page.expect_download(timeout=t.primary_download) as download_info:
            page.get_by_text(loc.save_local_copy_text).click(timeout=t.menu_click)
        return download_info.value

    def via_command_palette(self) -> Download:
        page, loc, t = self.page, self.locators, self.timeouts

        shortcut = loc.palette_shortcut(self.platform)
        logger.info("Opening command palette with %s...", shortcut)
        page.keyboard.press(shortcut)

        logger.info("Waiting for command palette input...")
        search_input = page.locator(loc.palette_input).first
        try:
            search_input.wait_for(state="visible", timeout=t.palette_visible)
        except PlaywrightTimeoutError:
            # keystrokes usually still land in the focused search box
            logger.warning("Command palette input not found, proceeding to type anyway...")
        else:
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("Command palette input found: %s", search_input.evaluate("el => el.outerHTML"))

        logger.info("Typing %r in command palette...", loc.palette_query)
        page.keyboard.type(loc.palette_query, delay=t.keystroke_delay)

        logger.info("Pressing %s and waiting for download (fallback)...", loc.palette_confirm_key)
        with page.expect_download(timeout=t.fallback_download) as download_info:
            page.keyboard.press(loc.palette_confirm_key)
        return download_info.value


# ---------- artifact ----------

def destination_for(output_dir: str | pathlib.Path, suggested_filename: str) -> pathlib.Path:
    """Join the site-suggested name onto output_dir, dropping any directory parts it carries."""
    name = pathlib.PurePosixPath(suggested_filename.replace("\\", "/")).name
    if name in {"", ".", ".."}:
        raise ExportError(f"Unusable download filename: {suggested_filename!r}")
    return pathlib.Path(output_dir) / name


def persist_download(download: Download, output_dir: str | pathlib.Path) -> pathlib.Path:
    logger.info("Processing download...")
    target = destination_for(output_dir, download.suggested_filename)
    logger.info("Saving downloaded file...")
    download.save_as(target)
    return target


def capture_diagnostic(page: Page, config: FetchConfig) -> Optional[pathlib.Path]:
    path = config.screenshot_path
    try:
        page.screenshot(path=str(path), full_page=True)
    except Exception:  # noqa: BLE001
        logger.exception("Could not capture error screenshot")
        return None
    logger.info("Error screenshot saved to %s", path)
    return path


# ---------- run ----------

def fetch_file(
    config: FetchConfig,
    locators: FigmaLocators = DEFAULT_LOCATORS,
    session_factory: Callable[[FetchConfig], ContextManager[Session]] = launch_session,
    platform: str = sys.platform,
) -> pathlib.Path:
    """Run the whole download and return the path of the saved file.

    Raises AuthenticationError, NavigationError or ExportError for the known failure
    modes; anything else propagates as is. In every failure case a screenshot is
    attempted first.
    """
    with session_factory(config) as session:
        page = session.page
        try:
            authenticate(page, config.credentials, config, locators)
            open_document(page, config)

            outcome = ExportTrigger(page, config, locators, platform=platform).run()
            if not outcome.succeeded:
                raise ExportError(
                    f"Both export routes failed: {outcome.error}", url=config.target_url
                ) from outcome.error
            logger.info("Download received via %s route", outcome.route.value)

            path = persist_download(outcome.download, config.output_dir)
        except Exception:
            logger.error("Error during automation", exc_info=True)
            capture_diagnostic(page, config)
            raise
    logger.info("File downloaded and saved to: %s", path)
    return path
