"""Contracts between the install workflow and the world outside the process.

``AccessibilityClient`` is the thin facade over the OS accessibility API that
the locator, navigator and focus tracker drive.  ``MacAccessibilityClient``
implements it with pyobjc; tests inject an in-memory fake.

``InstalledState`` is the non-UI collaborator that answers whether an app is
already installed or has an update pending (``MasCli`` implements it).
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable


@runtime_checkable
class AccessibilityClient(Protocol):
    """Primitive accessibility operations.

    Elements are opaque handles into the live accessibility tree.  Reading
    an attribute that is absent returns ``None``; only genuine platform
    failures (permission revoked, process gone) raise ``ActivationError``.
    """

    def read_attribute(self, element: Any, name: str) -> Any: ...

    def write_attribute(self, element: Any, name: str, value: Any) -> None: ...

    def children(self, element: Any) -> Sequence[Any]: ...

    def press(self, element: Any) -> None:
        """Send an AXPress.  Success means the press was delivered, not that
        the UI finished reacting to it."""
        ...

    def is_running(self, bundle_id: str) -> bool: ...

    def application(self, bundle_id: str) -> Any:
        """Return the application element, launching the app if needed."""
        ...

    def focused_application(self) -> str | None:
        """Bundle identifier of the frontmost application, if any."""
        ...

    def activate_application(self, bundle_id: str) -> None: ...

    def terminate_application(self, bundle_id: str) -> None: ...


@runtime_checkable
class InstalledState(Protocol):
    """Answers installed/upgradable questions without touching the UI."""

    def installed(self, app_name: str) -> bool: ...

    def upgradable(self, app_name: str) -> bool: ...
