"""macOS Accessibility API client.

Implements ``AccessibilityClient`` with AXUIElement calls through
pyobjc-framework-ApplicationServices, and application lifecycle (launch,
activate, terminate, frontmost app) through ``NSWorkspace`` /
``NSRunningApplication`` from pyobjc-framework-Cocoa.

pyobjc dependencies are conditionally imported so that the rest of the
package (config, CLI, the ``mas`` path, tests) works on systems where pyobjc
is not installed.  Constructing a ``MacAccessibilityClient`` without pyobjc
raises ``RuntimeError``.
"""

from __future__ import annotations

import logging
import subprocess
import time
from typing import Any, Sequence

from macappstore.engine.errors import AccessibilityPermissionError, ActivationError
from macappstore.engine.poller import WaitTimeout, wait_for
from macappstore.models import ATTR_CHILDREN

logger = logging.getLogger("macappstore.engine.ax_client")

# ---------------------------------------------------------------------------
# Conditional pyobjc imports
# ---------------------------------------------------------------------------
_HAS_PYOBJC = False

try:
    from ApplicationServices import (  # type: ignore[import-untyped]
        AXIsProcessTrusted,
        AXUIElementCopyAttributeValue,
        AXUIElementCreateApplication,
        AXUIElementPerformAction,
        AXUIElementSetAttributeValue,
        kAXErrorAPIDisabled,
        kAXErrorAttributeUnsupported,
        kAXErrorCannotComplete,
        kAXErrorInvalidUIElement,
        kAXErrorNoValue,
        kAXErrorSuccess,
    )
    from Cocoa import (  # type: ignore[import-untyped]
        NSApplicationActivateIgnoringOtherApps,
        NSRunningApplication,
        NSWorkspace,
    )

    _HAS_PYOBJC = True
except ImportError:
    pass

_PRESS_ACTION = "AXPress"


class MacAccessibilityClient:
    """Drives the live macOS accessibility tree.

    Usage::

        client = MacAccessibilityClient()
        app = client.application("com.apple.appstore")
        for child in client.children(app):
            print(client.read_attribute(child, "AXRole"))
    """

    def __init__(self, launch_timeout: float = 30.0) -> None:
        """
        Args:
            launch_timeout: Seconds to wait for a launched application's
                process to appear.
        """
        if not _HAS_PYOBJC:
            raise RuntimeError(
                "pyobjc is required to drive the App Store. "
                "Install it with: pip install 'macappstore[native]'"
            )
        if not AXIsProcessTrusted():
            raise AccessibilityPermissionError()
        self._launch_timeout = launch_timeout

    # -- Attributes ----------------------------------------------------------

    def read_attribute(self, element: Any, name: str) -> Any:
        """Read an accessibility attribute.

        Returns ``None`` if the attribute does not exist, has no value, or
        the element went stale mid-traversal.  Raises ``ActivationError``
        only when the Accessibility API itself is unavailable.
        """
        err, value = AXUIElementCopyAttributeValue(element, name, None)
        if err == kAXErrorSuccess:
            return value
        if err == kAXErrorAPIDisabled:
            raise AccessibilityPermissionError()
        if err not in (kAXErrorNoValue, kAXErrorAttributeUnsupported, kAXErrorInvalidUIElement, kAXErrorCannotComplete):
            logger.debug("Reading %s failed with AX error %s", name, err)
        return None

    def write_attribute(self, element: Any, name: str, value: Any) -> None:
        err = AXUIElementSetAttributeValue(element, name, value)
        if err == kAXErrorAPIDisabled:
            raise AccessibilityPermissionError()
        if err != kAXErrorSuccess:
            raise ActivationError(f"Setting {name} failed (AX error {err})")

    def children(self, element: Any) -> Sequence[Any]:
        children = self.read_attribute(element, ATTR_CHILDREN)
        if children is None or not hasattr(children, "__iter__"):
            return []
        return list(children)

    # -- Actions -------------------------------------------------------------

    def press(self, element: Any) -> None:
        """Send AXPress to *element*."""
        err = AXUIElementPerformAction(element, _PRESS_ACTION)
        if err == kAXErrorSuccess:
            logger.debug("AXPress delivered")
            return
        if err == kAXErrorAPIDisabled:
            raise AccessibilityPermissionError()
        if err == kAXErrorInvalidUIElement:
            raise ActivationError("AXPress failed: the element or its application is gone")
        raise ActivationError(f"AXPress failed (AX error {err})")

    # -- Applications --------------------------------------------------------

    def _running(self, bundle_id: str) -> list[Any]:
        apps = NSRunningApplication.runningApplicationsWithBundleIdentifier_(bundle_id) or []
        return [app for app in apps if not app.isTerminated()]

    @staticmethod
    def _newest(apps: Sequence[Any]) -> Any:
        """The most recently spawned instance (highest PID)."""
        return max(apps, key=lambda app: app.processIdentifier())

    def is_running(self, bundle_id: str) -> bool:
        return bool(self._running(bundle_id))

    def application(self, bundle_id: str) -> Any:
        """Return the AXUIElement for *bundle_id*, launching it if needed.

        When several processes share the bundle ID the highest PID (the most
        recently spawned) wins.
        """
        if not self._running(bundle_id):
            logger.info("Launching %s", bundle_id)
            try:
                subprocess.run(["open", "-b", bundle_id], check=True, capture_output=True, timeout=30)
            except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as exc:
                raise ActivationError(f"Could not launch {bundle_id}: {exc}") from exc

        try:
            apps = wait_for(
                lambda: self._running(bundle_id),
                interval=0.5,
                timeout=self._launch_timeout,
                description=f"{bundle_id} process",
            )
        except WaitTimeout as exc:
            raise ActivationError(f"{bundle_id} did not start: {exc}") from exc

        pid = self._newest(apps).processIdentifier()
        logger.debug("Attached to %s pid=%s", bundle_id, pid)
        return AXUIElementCreateApplication(pid)

    def focused_application(self) -> str | None:
        app = NSWorkspace.sharedWorkspace().frontmostApplication()
        if app is None:
            return None
        bundle_id = app.bundleIdentifier()
        return str(bundle_id) if bundle_id else None

    def activate_application(self, bundle_id: str) -> None:
        apps = self._running(bundle_id)
        if not apps:
            raise ActivationError(f"Cannot focus {bundle_id}: it is not running")
        if not self._newest(apps).activateWithOptions_(NSApplicationActivateIgnoringOtherApps):
            raise ActivationError(f"macOS refused to focus {bundle_id}")
        # Let the window server finish the switch before the next event.
        time.sleep(0.2)

    def terminate_application(self, bundle_id: str) -> None:
        for app in self._running(bundle_id):
            if not app.terminate():
                raise ActivationError(f"Could not quit {bundle_id} (pid {app.processIdentifier()})")
            logger.info("Terminated %s pid=%s", bundle_id, app.processIdentifier())
