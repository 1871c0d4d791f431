"""Centralized constants for the App Store automation."""

# The storefront application
APP_STORE_BUNDLE_ID = "com.apple.appstore"

# Accessibility roles
ROLE_APPLICATION = "AXApplication"
ROLE_BUTTON = "AXButton"
ROLE_GROUP = "AXGroup"
ROLE_LINK = "AXLink"
ROLE_MENU_BAR_ITEM = "AXMenuBarItem"
ROLE_MENU_ITEM = "AXMenuItem"
ROLE_PROGRESS_INDICATOR = "AXProgressIndicator"
ROLE_ROW = "AXRow"
ROLE_STATIC_TEXT = "AXStaticText"
ROLE_WEB_AREA = "AXWebArea"
ROLE_WINDOW = "AXWindow"

# Accessibility attributes
ATTR_CHILDREN = "AXChildren"
ATTR_DESCRIPTION = "AXDescription"
ATTR_IDENTIFIER = "AXIdentifier"
ATTR_MAIN_WINDOW = "AXMainWindow"
ATTR_PARENT = "AXParent"
ATTR_ROLE = "AXRole"
ATTR_TITLE = "AXTitle"
ATTR_VALUE = "AXValue"

# The install button reads "Installed, <app>" or "Open, <app>" once done,
# depending on the OS X version.
DEFAULT_INSTALL_COMPLETE_LABELS = (r"^Installed,", r"^Open,")

DEFAULT_PURCHASES_MENU_PATH = ("Store", "Purchases")
DEFAULT_PURCHASES_GROUP_ID = "purchased"
DEFAULT_SIGN_IN_LINK_TITLE = "sign in"

# Timeouts and intervals (seconds)
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_STARTUP_TIMEOUT = 60.0
DEFAULT_NAVIGATION_TIMEOUT = 30.0
DEFAULT_INSTALL_TIMEOUT = 600.0

# Navigating to an app page exposes no readiness signal, so a fixed delay is
# used after following the purchases link.
FIXED_SETTLE_DELAY = 3.0

# Accessibility tree traversal limit
DEFAULT_MAX_DEPTH = 25

DEFAULT_MAS_PATH = "mas"
