"""Failure taxonomy for the install workflow.

Every failure the workflow can report upward is an ``InstallError`` subclass
carrying a ``FailureReason`` and a user-readable message.  "Element not found"
is never an error: lookups return ``None`` for that.
"""

from __future__ import annotations

import enum


class FailureReason(str, enum.Enum):
    """Why an install workflow ended in failure."""

    NOT_PURCHASED = "not_purchased"
    NOT_SIGNED_IN = "not_signed_in"
    STARTUP_TIMEOUT = "startup_timeout"
    NAVIGATION_TIMEOUT = "navigation_timeout"
    INSTALL_TIMEOUT = "install_timeout"
    CONTROL_NOT_FOUND = "control_not_found"
    ACTIVATION_ERROR = "activation_error"
    INVALID_APP_NAME = "invalid_app_name"


class InstallError(Exception):
    """Base class for every reportable workflow failure."""

    reason: FailureReason = FailureReason.ACTIVATION_ERROR
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotPurchasedError(InstallError):
    """The app is absent from the account's purchases list."""

    reason = FailureReason.NOT_PURCHASED

    def __init__(self, app_name: str) -> None:
        super().__init__(
            f"App '{app_name}' has not been purchased. "
            "Buy it in the App Store with this account first."
        )


class NotSignedInError(InstallError):
    """The App Store has no signed-in account."""

    reason = FailureReason.NOT_SIGNED_IN

    def __init__(self) -> None:
        super().__init__("User must be signed into the App Store to install apps")


class StartupTimeoutError(InstallError):
    """The App Store did not finish loading in time."""

    reason = FailureReason.STARTUP_TIMEOUT
    retryable = True

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Timed out after {timeout:g}s waiting for the App Store to load")


class NavigationTimeoutError(InstallError):
    """A page inside the App Store did not load in time."""

    reason = FailureReason.NAVIGATION_TIMEOUT
    retryable = True

    def __init__(self, page: str, timeout: float) -> None:
        super().__init__(f"Timed out after {timeout:g}s waiting for the {page} page to load")


class InstallTimeoutError(InstallError):
    """The install never reported completion."""

    reason = FailureReason.INSTALL_TIMEOUT
    retryable = True

    def __init__(self, app_name: str, timeout: float) -> None:
        super().__init__(f"Timed out after {timeout:g}s waiting for '{app_name}' to install")


class ControlNotFoundError(InstallError):
    """An expected UI control is missing, most likely an unknown layout."""

    reason = FailureReason.CONTROL_NOT_FOUND

    def __init__(self, control: str) -> None:
        super().__init__(
            f"Could not find the {control} in the App Store window. "
            "The App Store layout may have changed."
        )


class ActivationError(InstallError):
    """An accessibility call failed at the platform level."""

    reason = FailureReason.ACTIVATION_ERROR


class AccessibilityPermissionError(ActivationError):
    """This process is not trusted to use the Accessibility API."""

    def __init__(self) -> None:
        super().__init__(
            "Accessibility API not trusted. Grant Terminal / IDE access "
            "in System Settings > Privacy & Security > Accessibility."
        )


class InvalidAppNameError(InstallError):
    """``mas`` does not know an app by this name."""

    reason = FailureReason.INVALID_APP_NAME

    def __init__(self, app_name: str) -> None:
        super().__init__(
            f"Could not find '{app_name}' in the Mac App Store. "
            "Is the name correct and do you own the app?"
        )
