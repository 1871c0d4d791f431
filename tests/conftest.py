"""Shared fixtures for macappstore unit tests.

The App Store is simulated by ``FakeAccessibilityClient`` over an in-memory
element tree.  ``FakeClock`` stands in for ``time.monotonic``/``time.sleep``
so waits finish instantly, and fires scheduled callbacks as simulated time
passes ("the install button flips to 'Installed' two seconds after press").
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from macappstore.config import MacAppStoreConfig
from macappstore.engine.errors import ActivationError
from macappstore.engine.orchestrator import InstallOrchestrator
from macappstore.models import (
    APP_STORE_BUNDLE_ID,
    ATTR_CHILDREN,
    ATTR_DESCRIPTION,
    ATTR_IDENTIFIER,
    ATTR_MAIN_WINDOW,
    ATTR_PARENT,
    ATTR_ROLE,
    ATTR_TITLE,
    ATTR_VALUE,
    ROLE_APPLICATION,
    ROLE_BUTTON,
    ROLE_GROUP,
    ROLE_LINK,
    ROLE_MENU_BAR_ITEM,
    ROLE_MENU_ITEM,
    ROLE_ROW,
    ROLE_STATIC_TEXT,
    ROLE_WEB_AREA,
    ROLE_WINDOW,
)

TERMINAL_BUNDLE_ID = "com.apple.Terminal"


# ---------------------------------------------------------------------------
# Fake clock
# ---------------------------------------------------------------------------

class FakeClock:
    """Simulated monotonic clock; ``sleep`` advances time instantly."""

    def __init__(self) -> None:
        self.time = 0.0
        self.sleeps: list[float] = []
        self._scheduled: list[tuple[float, Callable[[], None]]] = []

    def now(self) -> float:
        return self.time

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)

    def advance(self, seconds: float) -> None:
        self.time += seconds
        due = [item for item in self._scheduled if item[0] <= self.time]
        self._scheduled = [item for item in self._scheduled if item[0] > self.time]
        for _, callback in due:
            callback()

    def call_later(self, delay: float, callback: Callable[[], None]) -> None:
        self._scheduled.append((self.time + delay, callback))


# ---------------------------------------------------------------------------
# Fake accessibility tree
# ---------------------------------------------------------------------------

class FakeElement:
    """An in-memory accessibility element."""

    def __init__(self, role: str, hidden: bool = False, **attrs: Any) -> None:
        self.attrs: dict[str, Any] = {ATTR_ROLE: role}
        for key, name in (
            ("title", ATTR_TITLE),
            ("value", ATTR_VALUE),
            ("description", ATTR_DESCRIPTION),
            ("identifier", ATTR_IDENTIFIER),
        ):
            if key in attrs:
                self.attrs[name] = attrs[key]
        self.children: list[FakeElement] = []
        self.parent: FakeElement | None = None
        self.hidden = hidden
        self.on_press: Callable[[], None] | None = None
        self.press_error: str | None = None

    def add(self, child: FakeElement) -> FakeElement:
        child.parent = self
        self.children.append(child)
        return child

    def __repr__(self) -> str:
        label = self.attrs.get(ATTR_TITLE) or self.attrs.get(ATTR_DESCRIPTION) or ""
        return f"<FakeElement {self.attrs[ATTR_ROLE]} {label!r}>"


class FakeAccessibilityClient:
    """In-memory ``AccessibilityClient`` that records every side effect."""

    def __init__(self, focused: str | None = TERMINAL_BUNDLE_ID) -> None:
        self.trees: dict[str, FakeElement] = {}
        self.running: set[str] = set()
        if focused:
            self.running.add(focused)
        self.focused = focused
        self.presses: list[FakeElement] = []
        self.launches: list[str] = []
        self.activations: list[str] = []
        self.terminations: list[str] = []
        self.application_calls = 0

    def read_attribute(self, element: FakeElement, name: str) -> Any:
        if name == ATTR_CHILDREN:
            return self.children(element)
        if name == ATTR_PARENT:
            return element.parent
        return element.attrs.get(name)

    def write_attribute(self, element: FakeElement, name: str, value: Any) -> None:
        element.attrs[name] = value

    def children(self, element: FakeElement) -> list[FakeElement]:
        return [child for child in element.children if not child.hidden]

    def press(self, element: FakeElement) -> None:
        if element.press_error:
            raise ActivationError(element.press_error)
        self.presses.append(element)
        if element.on_press is not None:
            element.on_press()

    def is_running(self, bundle_id: str) -> bool:
        return bundle_id in self.running

    def application(self, bundle_id: str) -> FakeElement:
        self.application_calls += 1
        if bundle_id not in self.running:
            self.launches.append(bundle_id)
            self.running.add(bundle_id)
        return self.trees[bundle_id]

    def focused_application(self) -> str | None:
        return self.focused

    def activate_application(self, bundle_id: str) -> None:
        if bundle_id not in self.running:
            raise ActivationError(f"Cannot focus {bundle_id}: it is not running")
        self.activations.append(bundle_id)
        self.focused = bundle_id

    def terminate_application(self, bundle_id: str) -> None:
        self.terminations.append(bundle_id)
        self.running.discard(bundle_id)
        if self.focused == bundle_id:
            self.focused = None


class FakeInstalledState:
    """In-memory installed-state collaborator."""

    def __init__(self, installed: set[str] | None = None, upgradable: set[str] | None = None) -> None:
        self.installed_apps = set(installed or ())
        self.upgradable_apps = set(upgradable or ())
        self.queries: list[str] = []

    def installed(self, app_name: str) -> bool:
        self.queries.append(app_name)
        return app_name in self.installed_apps

    def upgradable(self, app_name: str) -> bool:
        return app_name in self.upgradable_apps


# ---------------------------------------------------------------------------
# Simulated App Store
# ---------------------------------------------------------------------------

class FakeStorefront:
    """Builds an App Store accessibility tree with scripted behaviour.

    Pressing Store > Purchases reveals the Purchases list; pressing an app's
    link reveals its page; pressing the install button flips its label to
    ``complete_label`` after ``install_seconds`` of simulated time (never,
    if None) and marks the app installed.
    """

    def __init__(
        self,
        client: FakeAccessibilityClient,
        clock: FakeClock,
        installed_state: FakeInstalledState,
        purchased: tuple[str, ...] = ("Example App",),
        signed_in: bool = True,
        install_seconds: float | None = 2.0,
        complete_label: str = "Installed, {name}",
        version: str = "2.1.0",
    ) -> None:
        self.client = client
        self.clock = clock
        self.installed_state = installed_state

        self.app = FakeElement(ROLE_APPLICATION, title="App Store")
        menu_bar = self.app.add(FakeElement("AXMenuBar"))
        self.store_menu = menu_bar.add(FakeElement(ROLE_MENU_BAR_ITEM, title="Store"))
        store_items = self.store_menu.add(FakeElement("AXMenu"))
        store_items.add(FakeElement(ROLE_MENU_ITEM, title="Reload Page"))
        self.purchases_item = store_items.add(FakeElement(ROLE_MENU_ITEM, title="Purchases"))

        self.window = self.app.add(FakeElement(ROLE_WINDOW, title="App Store"))
        self.app.attrs[ATTR_MAIN_WINDOW] = self.window

        self.purchases = self.window.add(FakeElement(ROLE_GROUP, hidden=True, identifier="purchased"))
        if not signed_in:
            self.purchases.add(FakeElement(ROLE_LINK, title="sign in"))
        table = self.purchases.add(FakeElement("AXTable"))
        self.rows: dict[str, FakeElement] = {}
        self.pages: dict[str, FakeElement] = {}
        self.install_buttons: dict[str, FakeElement] = {}
        for name in purchased:
            row = table.add(FakeElement(ROLE_ROW))
            cell = row.add(FakeElement("AXCell"))
            link = cell.add(FakeElement(ROLE_LINK, title=name))
            self.rows[name] = row
            self._build_page(name, link, install_seconds, complete_label, version)

        self.purchases_item.on_press = self._show_purchases
        client.trees[APP_STORE_BUNDLE_ID] = self.app

    def _show_purchases(self) -> None:
        for page in self.pages.values():
            page.hidden = True
        self.purchases.hidden = False

    def _build_page(
        self,
        name: str,
        link: FakeElement,
        install_seconds: float | None,
        complete_label: str,
        version: str,
    ) -> None:
        page = self.window.add(FakeElement(ROLE_WEB_AREA, hidden=True))
        header = page.add(FakeElement(ROLE_GROUP))
        controls = header.add(FakeElement(ROLE_GROUP))
        controls.add(FakeElement(ROLE_STATIC_TEXT, value=name))
        button = controls.add(FakeElement(ROLE_BUTTON, description=f"Get, {name}"))
        sidebar = page.add(FakeElement(ROLE_GROUP))
        sidebar.add(FakeElement(ROLE_STATIC_TEXT, value="Version: "))
        sidebar.add(FakeElement(ROLE_STATIC_TEXT, value=version))

        def show_page() -> None:
            self.purchases.hidden = True
            page.hidden = False

        def complete() -> None:
            button.attrs[ATTR_DESCRIPTION] = complete_label.format(name=name)
            self.installed_state.installed_apps.add(name)

        def start_install() -> None:
            button.attrs[ATTR_DESCRIPTION] = f"Installing, {name}"
            if install_seconds is not None:
                self.clock.call_later(install_seconds, complete)

        link.on_press = show_page
        button.on_press = start_install
        self.pages[name] = page
        self.install_buttons[name] = button


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def client() -> FakeAccessibilityClient:
    return FakeAccessibilityClient()


@pytest.fixture
def installed_state() -> FakeInstalledState:
    return FakeInstalledState()


@pytest.fixture
def config() -> MacAppStoreConfig:
    """Short, round timings so simulated waits are easy to reason about."""
    return MacAppStoreConfig(
        poll_interval=1.0,
        startup_timeout=10.0,
        navigation_timeout=10.0,
        install_timeout=5.0,
        settle_delay=3.0,
    )


@pytest.fixture
def make_storefront(
    client: FakeAccessibilityClient,
    clock: FakeClock,
    installed_state: FakeInstalledState,
) -> Callable[..., FakeStorefront]:
    def _make(**kwargs: Any) -> FakeStorefront:
        return FakeStorefront(client, clock, installed_state, **kwargs)

    return _make


@pytest.fixture
def storefront(make_storefront: Callable[..., FakeStorefront]) -> FakeStorefront:
    return make_storefront()


@pytest.fixture
def orchestrator(
    client: FakeAccessibilityClient,
    installed_state: FakeInstalledState,
    config: MacAppStoreConfig,
    clock: FakeClock,
) -> InstallOrchestrator:
    return InstallOrchestrator(client, installed_state, config, clock=clock.now, sleep=clock.sleep)


@pytest.fixture
def sample_config_yaml() -> str:
    """Return a valid macappstore config.yaml as a string."""
    return """\
poll_interval: 0.5
startup_timeout: 45
navigation_timeout: 20
install_timeout: 900
settle_delay: 5
install_complete_labels:
  - "^Installed,"
  - "^Open,"
  - "^Update,"
mas_path: /opt/homebrew/bin/mas
"""


@pytest.fixture
def tmp_project_dir(tmp_path: Path, sample_config_yaml: str) -> Path:
    """Create a temporary .macappstore/ project directory with a config."""
    project_dir = tmp_path / ".macappstore"
    project_dir.mkdir()
    (project_dir / "config.yaml").write_text(sample_config_yaml, encoding="utf-8")
    return project_dir
