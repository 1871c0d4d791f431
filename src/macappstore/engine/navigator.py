"""App Store navigation: launch, menus, Purchases list, app pages.

``StorefrontNavigator`` owns the single App Store application handle for one
workflow run.  It is created lazily the first time the app is needed and
reused for every later lookup in that run; a new run builds a new navigator.

Every wait goes through ``wait_for`` with a bounded ``WaitSpec`` from the
config, and each timeout is reported as the specific ``InstallError`` for the
step that stalled.
"""

from __future__ import annotations

import enum
import logging
import time
from typing import Any, Callable

from macappstore.config import MacAppStoreConfig
from macappstore.engine.errors import (
    ControlNotFoundError,
    InstallTimeoutError,
    NavigationTimeoutError,
    NotSignedInError,
    StartupTimeoutError,
)
from macappstore.engine.locator import SearchCriterion, any_of, find_element
from macappstore.engine.poller import WaitSpec, WaitTimeout, wait_with
from macappstore.engine.protocols import AccessibilityClient
from macappstore.models import (
    ATTR_MAIN_WINDOW,
    ATTR_PARENT,
    ATTR_VALUE,
    ROLE_BUTTON,
    ROLE_GROUP,
    ROLE_LINK,
    ROLE_MENU_BAR_ITEM,
    ROLE_MENU_ITEM,
    ROLE_PROGRESS_INDICATOR,
    ROLE_ROW,
    ROLE_STATIC_TEXT,
    ROLE_WEB_AREA,
)

logger = logging.getLogger("macappstore.engine.navigator")


class NavigatorState(str, enum.Enum):
    """Where the navigator last left the App Store."""

    APP_NOT_RUNNING = "app_not_running"
    APP_LAUNCHING = "app_launching"
    MENU_READY = "menu_ready"
    PURCHASES_OPEN = "purchases_open"
    SIGNED_OUT = "signed_out"
    ROW_FOUND = "row_found"
    ROW_ABSENT = "row_absent"
    PAGE_OPEN = "page_open"


# The install button sits in the app page's header: web area > group > group.
INSTALL_CONTROL = SearchCriterion(
    role=ROLE_BUTTON,
    within=SearchCriterion(
        role=ROLE_GROUP,
        within=SearchCriterion(role=ROLE_GROUP, within=SearchCriterion(role=ROLE_WEB_AREA)),
    ),
)

VERSION_LABEL = SearchCriterion(role=ROLE_STATIC_TEXT, value="Version: ")
VERSION_NUMBER = SearchCriterion(role=ROLE_STATIC_TEXT, value=any_of(r"^[0-9]"))


class StorefrontNavigator:
    """Moves the App Store between the screens the install workflow needs."""

    def __init__(
        self,
        client: AccessibilityClient,
        config: MacAppStoreConfig,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._config = config
        self._clock = clock
        self._sleep = sleep
        self._app: Any = None
        self.state = NavigatorState.APP_NOT_RUNNING
        # Built up front so bad timings fail before the App Store is touched.
        self._startup_wait = config.wait_spec("startup")
        self._navigation_wait = config.wait_spec("navigation")
        self._install_complete = SearchCriterion(
            role=ROLE_BUTTON,
            description=any_of(*config.install_complete_labels),
        )

    # -- Helpers -------------------------------------------------------------

    def _find(self, root: Any, criterion: SearchCriterion) -> Any | None:
        return find_element(self._client, root, criterion, max_depth=self._config.max_depth)

    def _wait(self, spec: WaitSpec, locate: Callable[[], Any], description: str) -> Any:
        return wait_with(
            spec,
            locate,
            description=description,
            clock=self._clock,
            sleep=self._sleep,
        )

    def main_window(self) -> Any:
        """The App Store's main window, or the application while it has none."""
        app = self.ensure_app_ready()
        return self._client.read_attribute(app, ATTR_MAIN_WINDOW) or app

    # -- Startup -------------------------------------------------------------

    def ensure_app_ready(self) -> Any:
        """Return the App Store application element, launching it if needed.

        The app counts as loaded once its menu bar offers the last item of
        the Purchases menu path.

        Raises:
            StartupTimeoutError: The menu never appeared.
        """
        if self._app is not None:
            return self._app

        self.state = NavigatorState.APP_LAUNCHING
        app = self._client.application(self._config.bundle_id)
        ready_item = SearchCriterion(role=ROLE_MENU_ITEM, title=self._config.purchases_menu_path[-1])
        try:
            self._wait(self._startup_wait, lambda: self._find(app, ready_item), "App Store menu")
        except WaitTimeout as exc:
            raise StartupTimeoutError(self._config.startup_timeout) from exc

        self._app = app
        self.state = NavigatorState.MENU_READY
        logger.info("App Store is ready")
        return app

    # -- Menus ---------------------------------------------------------------

    def select_menu_item(self, *path: str) -> None:
        """Press a menu bar item, then each nested menu item along *path*.

        Raises:
            ControlNotFoundError: The top-level menu does not exist.
            NavigationTimeoutError: A submenu item never showed up.
        """
        app = self.ensure_app_ready()
        top, *rest = path
        current = self._find(app, SearchCriterion(role=ROLE_MENU_BAR_ITEM, title=top))
        if current is None:
            raise ControlNotFoundError(f"'{top}' menu")
        self._client.press(current)

        for title in rest:
            parent = current
            item = SearchCriterion(role=ROLE_MENU_ITEM, title=title)
            try:
                current = self._wait(
                    self._navigation_wait,
                    lambda: self._find(parent, item),
                    f"'{title}' menu item",
                )
            except WaitTimeout as exc:
                raise NavigationTimeoutError(f"'{title}' menu", self._config.navigation_timeout) from exc
            self._client.press(current)
        logger.info("Selected menu %s", " > ".join(path))

    # -- Purchases -----------------------------------------------------------

    def open_purchases(self) -> Any:
        """Show the Purchases list.

        Raises:
            NavigationTimeoutError: The Purchases list never loaded.
            NotSignedInError: The page asks the user to sign in.
        """
        app = self.ensure_app_ready()
        self.select_menu_item(*self._config.purchases_menu_path)

        purchases = SearchCriterion(role=ROLE_GROUP, identifier=self._config.purchases_group_id)
        try:
            self._wait(self._navigation_wait, lambda: self._find(app, purchases), "Purchases page")
        except WaitTimeout as exc:
            raise NavigationTimeoutError("Purchases", self._config.navigation_timeout) from exc

        sign_in = SearchCriterion(role=ROLE_LINK, title=self._config.sign_in_link_title)
        if self._find(self.main_window(), sign_in) is not None:
            self.state = NavigatorState.SIGNED_OUT
            raise NotSignedInError()

        self.state = NavigatorState.PURCHASES_OPEN
        return app

    def find_row(self, app_name: str) -> Any | None:
        """The Purchases row linking to *app_name*, or None if not purchased."""
        row = self._find(
            self.main_window(),
            SearchCriterion(role=ROLE_ROW, containing=SearchCriterion(role=ROLE_LINK, title=app_name)),
        )
        self.state = NavigatorState.ROW_FOUND if row is not None else NavigatorState.ROW_ABSENT
        logger.info("'%s' %s in Purchases", app_name, "found" if row is not None else "not found")
        return row

    def row_installing(self, row: Any) -> bool:
        """True while the row shows a download progress indicator."""
        return self._find(row, SearchCriterion(role=ROLE_PROGRESS_INDICATOR)) is not None

    # -- App page ------------------------------------------------------------

    def open_app_page(self, row: Any) -> Any:
        """Follow the row's link to the app's page and return the app element.

        The App Store exposes nothing that signals the page finished loading,
        so this sleeps for the configured ``settle_delay`` instead.  A slow
        machine can outlast it; raise ``settle_delay`` if the install button
        is reported missing.
        """
        link = self._find(row, SearchCriterion(role=ROLE_LINK))
        if link is None:
            raise ControlNotFoundError("app link in the Purchases row")
        self._client.press(link)
        logger.debug("Sleeping %.1fs for the app page to settle", self._config.settle_delay)
        self._sleep(self._config.settle_delay)
        self.state = NavigatorState.PAGE_OPEN
        return self.ensure_app_ready()

    def install_control(self) -> Any | None:
        """The install button on the open app page, or None."""
        return self._find(self.main_window(), INSTALL_CONTROL)

    def install_complete_control(self) -> Any | None:
        """The button labelled as installed/openable, or None."""
        return self._find(self.main_window(), self._install_complete)

    def wait_for_install(self, app_name: str, spec: WaitSpec | None = None) -> Any:
        """Poll until the app page reports the install finished.

        Raises:
            InstallTimeoutError: Completion was not seen within *spec*
                (the configured install wait if None).
        """
        if spec is None:
            spec = self._config.wait_spec("install")
        try:
            return self._wait(spec, self.install_complete_control, f"'{app_name}' install")
        except WaitTimeout as exc:
            raise InstallTimeoutError(app_name, spec.timeout) from exc

    def latest_version(self) -> str | None:
        """The version advertised in the open app page's information sidebar."""
        label = self._find(self.main_window(), VERSION_LABEL)
        if label is None:
            return None
        parent = self._client.read_attribute(label, ATTR_PARENT)
        number = self._find(parent, VERSION_NUMBER) if parent is not None else None
        if number is None:
            return None
        return str(self._client.read_attribute(number, ATTR_VALUE))
