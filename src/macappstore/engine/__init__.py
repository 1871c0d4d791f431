"""macappstore engine -- App Store automation.

Provides the install workflow and its building blocks:
- InstallOrchestrator: purchased -> installed workflow with focus restore
- StorefrontNavigator: App Store launch, menus, Purchases list, app pages
- SearchCriterion / find_element: accessibility tree lookups
- wait_for / WaitSpec: bounded polling
- FocusTracker: focus capture and restore
- MasCli: installed/upgradable queries and the command-line install path
- MacAccessibilityClient: pyobjc AX client (requires the ``[native]`` extra)
"""

from macappstore.engine.errors import FailureReason, InstallError
from macappstore.engine.focus import FocusSnapshot, FocusTracker
from macappstore.engine.locator import SearchCriterion, find_element, find_elements
from macappstore.engine.mas import MasCli, MasError
from macappstore.engine.navigator import NavigatorState, StorefrontNavigator
from macappstore.engine.orchestrator import AppState, InstallOrchestrator, InstallOutcome, WorkflowState
from macappstore.engine.poller import WaitSpec, WaitTimeout, wait_for

# MacAccessibilityClient is NOT eagerly imported here because it depends on
# pyobjc.  Import it directly when needed:
#   from macappstore.engine.ax_client import MacAccessibilityClient

__all__ = [
    "AppState",
    "FailureReason",
    "FocusSnapshot",
    "FocusTracker",
    "InstallError",
    "InstallOrchestrator",
    "InstallOutcome",
    "MasCli",
    "MasError",
    "NavigatorState",
    "SearchCriterion",
    "StorefrontNavigator",
    "WaitSpec",
    "WaitTimeout",
    "WorkflowState",
    "find_element",
    "find_elements",
    "wait_for",
]
