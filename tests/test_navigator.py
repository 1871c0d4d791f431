"""Unit tests for macappstore.engine.navigator — App Store navigation."""

from __future__ import annotations

import pytest

from macappstore.config import MacAppStoreConfig, MacAppStoreConfigError
from macappstore.engine.errors import (
    ControlNotFoundError,
    InstallTimeoutError,
    NavigationTimeoutError,
    NotSignedInError,
    StartupTimeoutError,
)
from macappstore.engine.navigator import NavigatorState, StorefrontNavigator
from macappstore.engine.poller import WaitSpec
from macappstore.models import APP_STORE_BUNDLE_ID, ATTR_MAIN_WINDOW, ROLE_PROGRESS_INDICATOR
from tests.conftest import FakeElement


@pytest.fixture
def navigator(client, config, clock) -> StorefrontNavigator:
    return StorefrontNavigator(client, config, clock=clock.now, sleep=clock.sleep)


# ---------------------------------------------------------------------------
# 1. ensure_app_ready()
# ---------------------------------------------------------------------------

class TestEnsureAppReady:
    """The App Store handle is created once per navigator."""

    def test_launches_app_and_reports_menu_ready(self, navigator, client, storefront):
        app = navigator.ensure_app_ready()
        assert app is storefront.app
        assert client.launches == [APP_STORE_BUNDLE_ID]
        assert navigator.state is NavigatorState.MENU_READY

    def test_handle_is_memoized(self, navigator, client, storefront):
        first = navigator.ensure_app_ready()
        second = navigator.ensure_app_ready()
        assert first is second
        assert client.application_calls == 1

    def test_new_navigator_resolves_a_new_handle(self, client, config, clock, storefront):
        StorefrontNavigator(client, config, clock=clock.now, sleep=clock.sleep).ensure_app_ready()
        StorefrontNavigator(client, config, clock=clock.now, sleep=clock.sleep).ensure_app_ready()
        assert client.application_calls == 2

    def test_waits_for_menu_to_load(self, navigator, clock, storefront):
        storefront.purchases_item.hidden = True
        clock.call_later(2.0, lambda: setattr(storefront.purchases_item, "hidden", False))
        navigator.ensure_app_ready()
        assert clock.sleeps == [1.0, 1.0]

    def test_invalid_timings_rejected_before_launch(self, client, clock, storefront):
        config = MacAppStoreConfig(poll_interval=5.0, navigation_timeout=1.0)
        with pytest.raises(MacAppStoreConfigError, match="shorter than the poll interval"):
            StorefrontNavigator(client, config, clock=clock.now, sleep=clock.sleep)
        assert client.application_calls == 0

    def test_menu_never_loading_is_startup_timeout(self, navigator, clock, storefront, config):
        storefront.purchases_item.hidden = True
        with pytest.raises(StartupTimeoutError) as excinfo:
            navigator.ensure_app_ready()
        assert excinfo.value.retryable is True
        assert clock.time >= config.startup_timeout
        assert navigator.state is NavigatorState.APP_LAUNCHING


# ---------------------------------------------------------------------------
# 2. open_purchases()
# ---------------------------------------------------------------------------

class TestOpenPurchases:
    """open_purchases() drives Store > Purchases and checks sign-in."""

    def test_presses_store_then_purchases(self, navigator, client, storefront):
        navigator.open_purchases()
        assert client.presses == [storefront.store_menu, storefront.purchases_item]
        assert navigator.state is NavigatorState.PURCHASES_OPEN

    def test_purchases_never_loading_is_navigation_timeout(self, navigator, storefront):
        storefront.purchases_item.on_press = None
        with pytest.raises(NavigationTimeoutError, match="Purchases"):
            navigator.open_purchases()

    def test_sign_in_link_means_not_signed_in(self, navigator, make_storefront):
        make_storefront(signed_in=False)
        with pytest.raises(NotSignedInError) as excinfo:
            navigator.open_purchases()
        assert excinfo.value.retryable is False
        assert navigator.state is NavigatorState.SIGNED_OUT

    def test_missing_store_menu_is_control_not_found(self, navigator, storefront):
        storefront.store_menu.attrs["AXTitle"] = "Shop"
        with pytest.raises(ControlNotFoundError, match="'Store' menu"):
            navigator.open_purchases()


# ---------------------------------------------------------------------------
# 3. find_row()
# ---------------------------------------------------------------------------

class TestFindRow:
    """find_row() locates a purchased app's row by exact link title."""

    def test_finds_purchased_app(self, navigator, storefront):
        navigator.open_purchases()
        assert navigator.find_row("Example App") is storefront.rows["Example App"]
        assert navigator.state is NavigatorState.ROW_FOUND

    def test_absent_app_returns_none(self, navigator, storefront):
        navigator.open_purchases()
        assert navigator.find_row("Unknown App") is None
        assert navigator.state is NavigatorState.ROW_ABSENT

    def test_name_must_match_exactly(self, navigator, storefront):
        navigator.open_purchases()
        assert navigator.find_row("example app") is None

    def test_row_installing_detects_progress_indicator(self, navigator, storefront):
        navigator.open_purchases()
        row = navigator.find_row("Example App")
        assert navigator.row_installing(row) is False
        row.add(FakeElement(ROLE_PROGRESS_INDICATOR))
        assert navigator.row_installing(row) is True


# ---------------------------------------------------------------------------
# 4. App page
# ---------------------------------------------------------------------------

class TestAppPage:
    """open_app_page() follows the link and waits the fixed settle delay."""

    def test_open_app_page_sleeps_settle_delay(self, navigator, clock, storefront, config):
        navigator.open_purchases()
        row = navigator.find_row("Example App")
        app = navigator.open_app_page(row)
        assert app is storefront.app
        assert clock.sleeps == [config.settle_delay]
        assert navigator.state is NavigatorState.PAGE_OPEN

    def test_row_without_link_is_control_not_found(self, navigator, storefront):
        with pytest.raises(ControlNotFoundError):
            navigator.open_app_page(FakeElement("AXRow"))

    def test_install_control_found_on_page(self, navigator, storefront):
        navigator.open_purchases()
        navigator.open_app_page(navigator.find_row("Example App"))
        assert navigator.install_control() is storefront.install_buttons["Example App"]

    def test_install_control_absent_before_page_opens(self, navigator, storefront):
        navigator.open_purchases()
        assert navigator.install_control() is None

    def test_latest_version_reads_sidebar(self, navigator, make_storefront):
        make_storefront(version="3.4.1")
        navigator.open_purchases()
        navigator.open_app_page(navigator.find_row("Example App"))
        assert navigator.latest_version() == "3.4.1"

    def test_latest_version_none_without_sidebar(self, navigator, storefront):
        navigator.open_purchases()
        assert navigator.latest_version() is None

    def test_main_window_falls_back_to_app(self, navigator, storefront):
        del storefront.app.attrs[ATTR_MAIN_WINDOW]
        assert navigator.main_window() is storefront.app


# ---------------------------------------------------------------------------
# 5. wait_for_install()
# ---------------------------------------------------------------------------

class TestWaitForInstall:
    """wait_for_install() polls for the Installed/Open label."""

    def _press_install(self, navigator, client):
        navigator.open_purchases()
        navigator.open_app_page(navigator.find_row("Example App"))
        client.press(navigator.install_control())

    def test_completes_when_label_flips_to_installed(self, navigator, client, storefront):
        self._press_install(navigator, client)
        assert navigator.wait_for_install("Example App") is storefront.install_buttons["Example App"]

    def test_open_label_variant_also_completes(self, navigator, client, make_storefront):
        make_storefront(complete_label="Open, {name}")
        self._press_install(navigator, client)
        assert navigator.wait_for_install("Example App") is not None

    def test_lowercase_label_does_not_complete(self, navigator, client, make_storefront):
        make_storefront(complete_label="installed, {name}")
        self._press_install(navigator, client)
        with pytest.raises(InstallTimeoutError):
            navigator.wait_for_install("Example App")

    def test_never_completing_is_install_timeout(self, navigator, client, make_storefront):
        make_storefront(install_seconds=None)
        self._press_install(navigator, client)
        with pytest.raises(InstallTimeoutError, match="Example App") as excinfo:
            navigator.wait_for_install("Example App", WaitSpec(interval=1.0, timeout=4.0))
        assert "4s" in excinfo.value.message
        assert excinfo.value.retryable is True
