"""Install Orchestrator -- the top-level install workflow.

Walks one app from "purchased" to "installed" through the App Store UI:

    START -> CHECK_PURCHASED -> CHECK_INSTALLED -> NAVIGATING -> INSTALLING
          -> WAIT_COMPLETE -> CLEANUP -> DONE

with any step able to end in FAILED.  The installed-state collaborator is
consulted before anything else, so an app that is already installed costs no
UI interaction at all and is reported as unchanged.

Side effects are not transactional.  A failure after the install button was
pressed leaves the App Store mid-install; the outcome says so through
``changed=True`` and nothing is rolled back.  Focus is restored on every exit
path, success or failure.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
import time
from typing import Callable

from macappstore.config import MacAppStoreConfig
from macappstore.engine.errors import (
    ActivationError,
    ControlNotFoundError,
    FailureReason,
    InstallError,
    NotPurchasedError,
    NotSignedInError,
)
from macappstore.engine.focus import FocusTracker
from macappstore.engine.navigator import StorefrontNavigator
from macappstore.engine.protocols import AccessibilityClient, InstalledState

logger = logging.getLogger("macappstore.engine.orchestrator")


class WorkflowState(str, enum.Enum):
    """Steps of the install workflow."""

    START = "start"
    CHECK_PURCHASED = "check_purchased"
    CHECK_INSTALLED = "check_installed"
    NAVIGATING = "navigating"
    INSTALLING = "installing"
    WAIT_COMPLETE = "wait_complete"
    CLEANUP = "cleanup"
    DONE = "done"
    FAILED = "failed"


class AppState(str, enum.Enum):
    """Where an app stands, recomputed from the live system on every call."""

    NOT_PURCHASED = "not_purchased"
    PURCHASED_NOT_INSTALLED = "purchased_not_installed"
    INSTALLING = "installing"
    INSTALLED = "installed"
    SIGNED_OUT = "signed_out"


@dataclasses.dataclass
class InstallOutcome:
    """What an install call did, for the caller's convergence reporting."""

    app_name: str
    success: bool
    changed: bool
    states: list[WorkflowState]
    reason: FailureReason | None = None
    message: str = ""
    retryable: bool = False


class InstallOrchestrator:
    """Runs install workflows against the App Store.

    Each call builds its own ``StorefrontNavigator`` (and with it its own
    App Store handle), so one orchestrator can serve several sequential
    installs.  Only one workflow may drive the App Store at a time.

    Usage::

        orchestrator = InstallOrchestrator(MacAccessibilityClient(), MasCli())
        outcome = orchestrator.install("Example App", timeout=600)
    """

    def __init__(
        self,
        client: AccessibilityClient,
        installed_state: InstalledState,
        config: MacAppStoreConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._installed_state = installed_state
        self._config = config or MacAppStoreConfig()
        self._clock = clock
        self._sleep = sleep
        self._focus = FocusTracker(client, self._config.bundle_id)

    def _navigator(self) -> StorefrontNavigator:
        return StorefrontNavigator(self._client, self._config, clock=self._clock, sleep=self._sleep)

    def _quit_storefront(self) -> None:
        """Quit the App Store.  A refusal is logged, not raised: the work is done."""
        logger.info("Quitting the App Store")
        try:
            self._client.terminate_application(self._config.bundle_id)
        except ActivationError as exc:
            logger.warning("Could not quit the App Store: %s", exc)

    # -- Install -------------------------------------------------------------

    def install(
        self,
        app_name: str,
        timeout: float | None = None,
        quit_when_done: bool | None = None,
    ) -> InstallOutcome:
        """Install *app_name* from the account's Purchases list.

        Args:
            app_name: The app's name exactly as listed in Purchases.
            timeout: Seconds to wait for the install to finish (defaults to
                the configured ``install_timeout``).
            quit_when_done: Quit the App Store afterwards.  Defaults to
                quitting only if this run had to launch it.

        Returns:
            An ``InstallOutcome``.  Workflow failures are reported in it,
            never raised.

        Raises:
            MacAppStoreConfigError: The wait timings are invalid (e.g. a
                *timeout* shorter than the poll interval).  Checked before
                anything is queried or pressed.
        """
        install_wait = self._config.wait_spec("install", timeout)
        navigator = self._navigator()
        states = [WorkflowState.START]

        def advance(state: WorkflowState) -> None:
            states.append(state)
            logger.info("'%s': %s", app_name, state.value)

        if self._installed_state.installed(app_name):
            logger.info("'%s' is already installed", app_name)
            advance(WorkflowState.DONE)
            return InstallOutcome(app_name, success=True, changed=False, states=states, message="Already installed")

        changed = False
        try:
            with self._focus.preserved() as snapshot:
                if quit_when_done is None:
                    quit_when_done = not snapshot.storefront_was_running

                advance(WorkflowState.CHECK_PURCHASED)
                navigator.open_purchases()
                row = navigator.find_row(app_name)
                if row is None:
                    raise NotPurchasedError(app_name)

                # Not installed: established before any UI was touched.
                advance(WorkflowState.CHECK_INSTALLED)

                advance(WorkflowState.NAVIGATING)
                navigator.open_app_page(row)

                advance(WorkflowState.INSTALLING)
                self._client.activate_application(self._config.bundle_id)
                button = navigator.install_control()
                if button is None:
                    raise ControlNotFoundError("install button")
                self._client.press(button)
                changed = True

                advance(WorkflowState.WAIT_COMPLETE)
                navigator.wait_for_install(app_name, install_wait)

                advance(WorkflowState.CLEANUP)
                if quit_when_done:
                    self._quit_storefront()
        except InstallError as exc:
            states.append(WorkflowState.FAILED)
            logger.error("'%s' install failed (%s): %s", app_name, exc.reason.value, exc.message)
            return InstallOutcome(
                app_name,
                success=False,
                changed=changed,
                states=states,
                reason=exc.reason,
                message=exc.message,
                retryable=exc.retryable,
            )

        advance(WorkflowState.DONE)
        return InstallOutcome(app_name, success=True, changed=True, states=states, message="Installed")

    # -- Inspection ----------------------------------------------------------

    def status(self, app_name: str) -> AppState:
        """Work out where *app_name* stands right now.

        Raises:
            InstallError: The App Store could not be driven to an answer
                (timeouts, missing controls, accessibility failures).
        """
        if self._installed_state.installed(app_name):
            return AppState.INSTALLED

        navigator = self._navigator()
        with self._focus.preserved() as snapshot:
            try:
                try:
                    navigator.open_purchases()
                except NotSignedInError:
                    return AppState.SIGNED_OUT
                row = navigator.find_row(app_name)
                if row is None:
                    return AppState.NOT_PURCHASED
                if navigator.row_installing(row):
                    return AppState.INSTALLING
                return AppState.PURCHASED_NOT_INSTALLED
            finally:
                if not snapshot.storefront_was_running:
                    self._quit_storefront()

    def latest_version(self, app_name: str) -> str | None:
        """The version the App Store offers for a purchased *app_name*.

        Raises:
            NotPurchasedError: *app_name* is not in Purchases.
            InstallError: Any other navigation failure.
        """
        navigator = self._navigator()
        with self._focus.preserved() as snapshot:
            try:
                navigator.open_purchases()
                row = navigator.find_row(app_name)
                if row is None:
                    raise NotPurchasedError(app_name)
                navigator.open_app_page(row)
                return navigator.latest_version()
            finally:
                if not snapshot.storefront_was_running:
                    self._quit_storefront()
