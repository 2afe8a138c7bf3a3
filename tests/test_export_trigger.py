"""
Unit tests for the login, document and export stages.

Covers:
- authenticate / open_document error wrapping and call order
- the dwell pause
- ExportTrigger transitions (primary, fallback, failed)
- palette shortcut selection and typing pace
- destination path joining
"""

import logging
from pathlib import Path

import pytest
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from figfetch.download import (
    ExportRoute,
    ExportState,
    ExportTrigger,
    authenticate,
    destination_for,
    open_document,
    persist_download,
)
from figfetch.errors import AuthenticationError, ExportError, NavigationError
from figfetch.locators import DEFAULT_LOCATORS, FigmaLocators
from tests.fakes import FakeDownload, FakePage


# =============================================================================
# AUTHENTICATOR
# =============================================================================
class TestAuthenticate:
    def test_happy_path_order_and_timeouts(self, config) -> None:
        page = FakePage()
        authenticate(page, config.credentials, config)
        t = config.timeouts
        assert page.calls == [
            ("goto_login", t.navigation),
            ("fill_email", t.form_field),
            ("fill_password", t.form_field),
            ("submit", t.form_field),
            ("wait_for_url", t.post_login),
        ]

    @pytest.mark.parametrize("step", ["goto_login", "fill_email", "fill_password", "submit", "wait_for_url"])
    def test_timeout_becomes_authentication_error(self, config, step: str) -> None:
        page = FakePage(fail_on={step})
        with pytest.raises(AuthenticationError) as exc_info:
            authenticate(page, config.credentials, config)
        assert isinstance(exc_info.value.__cause__, PlaywrightTimeoutError)
        assert exc_info.value.url == DEFAULT_LOCATORS.login_url

    def test_no_retry_after_failed_submit(self, config) -> None:
        page = FakePage(fail_on={"wait_for_url"})
        with pytest.raises(AuthenticationError):
            authenticate(page, config.credentials, config)
        assert page.steps().count("submit") == 1


# =============================================================================
# NAVIGATOR
# =============================================================================
class TestOpenDocument:
    def test_waits_for_idle_then_dwells(self, config) -> None:
        page = FakePage()
        open_document(page, config)
        assert page.steps() == ["goto_target", "networkidle", "wait_for_timeout"]
        assert page.calls[-1] == ("wait_for_timeout", 10_000)

    def test_custom_dwell(self, make_config) -> None:
        page = FakePage()
        open_document(page, make_config(dwell_seconds=1.5))
        assert page.calls[-1] == ("wait_for_timeout", 1500)

    @pytest.mark.parametrize("step", ["goto_target", "networkidle"])
    def test_timeout_becomes_navigation_error(self, config, step: str) -> None:
        page = FakePage(fail_on={step})
        with pytest.raises(NavigationError) as exc_info:
            open_document(page, config)
        assert exc_info.value.url == config.target_url
        assert "wait_for_timeout" not in page.steps()


# =============================================================================
# EXPORT TRIGGER
# =============================================================================
class TestExportTrigger:
    def test_primary_success(self, config) -> None:
        download = FakeDownload("Design.fig")
        page = FakePage(primary_download=download)
        outcome = ExportTrigger(page, config).run()
        assert outcome.succeeded
        assert outcome.route is ExportRoute.PRIMARY
        assert outcome.download is download
        assert outcome.history == [ExportState.IDLE, ExportState.PRIMARY_ATTEMPT, ExportState.SUCCESS]
        # fallback never touched
        assert not any(c[0] == "press" for c in page.calls)

    def test_primary_download_wait_uses_primary_budget(self, config) -> None:
        page = FakePage(primary_download=FakeDownload("a.fig"))
        ExportTrigger(page, config).run()
        assert ("expect_download", config.timeouts.primary_download) in page.calls

    @pytest.mark.parametrize("step", ["main_menu", "file_menu", "save_local_copy"])
    def test_menu_timeout_falls_back(self, config, step: str) -> None:
        download = FakeDownload("Design.fig")
        page = FakePage(fail_on={step}, fallback_download=download)
        outcome = ExportTrigger(page, config, platform="linux").run()
        assert outcome.route is ExportRoute.FALLBACK
        assert outcome.download is download
        assert outcome.history == [
            ExportState.IDLE,
            ExportState.PRIMARY_ATTEMPT,
            ExportState.FALLBACK_ATTEMPT,
            ExportState.SUCCESS,
        ]

    def test_primary_download_timeout_falls_back(self, config) -> None:
        page = FakePage(primary_download=None, fallback_download=FakeDownload("x.fig"))
        outcome = ExportTrigger(page, config).run()
        assert outcome.route is ExportRoute.FALLBACK

    def test_fallback_sequence(self, config) -> None:
        page = FakePage(fail_on={"main_menu"}, fallback_download=FakeDownload("x.fig"))
        ExportTrigger(page, config, platform="linux").run()
        tail = page.calls[page.steps().index("press"):]
        assert tail == [
            ("press", "Control+/"),
            ("palette_input", config.timeouts.palette_visible),
            ("type", "save", config.timeouts.keystroke_delay),
            ("expect_download", config.timeouts.fallback_download),
            ("press", "Enter"),
        ]

    def test_mac_uses_meta_shortcut(self, config) -> None:
        page = FakePage(fail_on={"main_menu"}, fallback_download=FakeDownload("x.fig"))
        ExportTrigger(page, config, platform="darwin").run()
        assert ("press", "Meta+/") in page.calls

    def test_missing_palette_input_only_warns(self, config, caplog: pytest.LogCaptureFixture) -> None:
        page = FakePage(fail_on={"main_menu", "palette_input"}, fallback_download=FakeDownload("x.fig"))
        with caplog.at_level(logging.WARNING, logger="figfetch.download"):
            outcome = ExportTrigger(page, config).run()
        assert outcome.succeeded
        assert ("type", "save", config.timeouts.keystroke_delay) in page.calls
        assert "proceeding to type anyway" in caplog.text

    def test_transition_to_fallback_is_logged(self, config, caplog: pytest.LogCaptureFixture) -> None:
        page = FakePage(fail_on={"main_menu"}, fallback_download=FakeDownload("x.fig"))
        with caplog.at_level(logging.WARNING, logger="figfetch.download"):
            ExportTrigger(page, config).run()
        assert "falling back to command palette" in caplog.text

    def test_both_routes_fail(self, config) -> None:
        page = FakePage(fail_on={"main_menu"}, fallback_download=None)
        outcome = ExportTrigger(page, config).run()
        assert outcome.state is ExportState.FAILED
        assert not outcome.succeeded
        assert outcome.download is None
        assert outcome.route is None
        assert isinstance(outcome.error, PlaywrightTimeoutError)
        assert outcome.history[-2:] == [ExportState.FALLBACK_ATTEMPT, ExportState.FAILED]

    def test_non_timeout_error_propagates(self, config) -> None:
        page = FakePage(explode_on={"main_menu": RuntimeError("Target page closed")})
        with pytest.raises(RuntimeError, match="Target page closed"):
            ExportTrigger(page, config).run()
        assert "press" not in page.steps()

    def test_runs_only_once(self, config) -> None:
        trigger = ExportTrigger(FakePage(primary_download=FakeDownload("a.fig")), config)
        trigger.run()
        with pytest.raises(RuntimeError):
            trigger.run()

    def test_custom_locators_are_used(self, config) -> None:
        locators = FigmaLocators(palette_query="local copy", palette_shortcut_other="Control+K")
        page = FakePage(fail_on={"main_menu"}, fallback_download=FakeDownload("x.fig"))
        ExportTrigger(page, config, locators, platform="linux").run()
        assert ("press", "Control+K") in page.calls
        assert ("type", "local copy", config.timeouts.keystroke_delay) in page.calls


# =============================================================================
# DESTINATION PATH
# =============================================================================
class TestDestination:
    @pytest.mark.parametrize(
        "name",
        ["Design.fig", "My Design File.fig", "Дизайн макет.fig", "デザイン 2024 (copy).fig", "naïve café.fig"],
    )
    def test_joins_name_verbatim(self, tmp_path: Path, name: str) -> None:
        assert destination_for(tmp_path, name) == tmp_path / name

    @pytest.mark.parametrize("name", ["../../etc/passwd", "..\\..\\evil.fig", "/abs/path/evil.fig"])
    def test_directory_parts_are_dropped(self, tmp_path: Path, name: str) -> None:
        dest = destination_for(tmp_path, name)
        assert dest.parent == tmp_path

    @pytest.mark.parametrize("name", ["", ".", "..", "a/.."])
    def test_unusable_names_rejected(self, tmp_path: Path, name: str) -> None:
        with pytest.raises(ExportError):
            destination_for(tmp_path, name)

    def test_persist_writes_file(self, tmp_path: Path) -> None:
        download = FakeDownload("Café board.fig", content=b"data")
        path = persist_download(download, tmp_path)
        assert path == tmp_path / "Café board.fig"
        assert path.read_bytes() == b"data"
