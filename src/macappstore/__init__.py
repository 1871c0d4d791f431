"""macappstore -- install Mac App Store apps by driving the App Store UI."""

__version__ = "0.1.0"
