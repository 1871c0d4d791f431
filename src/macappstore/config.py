"""macappstore configuration management."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from macappstore.models import (
    APP_STORE_BUNDLE_ID,
    DEFAULT_INSTALL_COMPLETE_LABELS,
    DEFAULT_INSTALL_TIMEOUT,
    DEFAULT_MAS_PATH,
    DEFAULT_MAX_DEPTH,
    DEFAULT_NAVIGATION_TIMEOUT,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_PURCHASES_GROUP_ID,
    DEFAULT_PURCHASES_MENU_PATH,
    DEFAULT_SIGN_IN_LINK_TITLE,
    DEFAULT_STARTUP_TIMEOUT,
    FIXED_SETTLE_DELAY,
)

if TYPE_CHECKING:
    from macappstore.engine.poller import WaitSpec


_WAIT_KINDS = ("startup", "navigation", "install")


class MacAppStoreConfigError(Exception):
    """Raised when configuration is invalid or missing."""

    pass


@dataclass
class MacAppStoreConfig:
    """Configuration for an App Store automation run."""

    # Storefront
    bundle_id: str = APP_STORE_BUNDLE_ID
    purchases_menu_path: list[str] = field(default_factory=lambda: list(DEFAULT_PURCHASES_MENU_PATH))
    purchases_group_id: str = DEFAULT_PURCHASES_GROUP_ID
    sign_in_link_title: str = DEFAULT_SIGN_IN_LINK_TITLE
    install_complete_labels: list[str] = field(
        default_factory=lambda: list(DEFAULT_INSTALL_COMPLETE_LABELS)
    )

    # Timing (seconds)
    poll_interval: float = DEFAULT_POLL_INTERVAL
    startup_timeout: float = DEFAULT_STARTUP_TIMEOUT
    navigation_timeout: float = DEFAULT_NAVIGATION_TIMEOUT
    install_timeout: float = DEFAULT_INSTALL_TIMEOUT
    settle_delay: float = FIXED_SETTLE_DELAY

    # Accessibility tree traversal
    max_depth: int = DEFAULT_MAX_DEPTH

    # Command-line path
    mas_path: str = DEFAULT_MAS_PATH

    project_dir: Path | None = None

    @classmethod
    def from_file(cls, config_path: Path) -> MacAppStoreConfig:
        """Load config from a YAML file."""
        if not config_path.exists():
            raise MacAppStoreConfigError(
                f"Config file not found: {config_path}\n\n"
                "To fix: create the file or drop the --config option"
            )
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise MacAppStoreConfigError(f"Config file must contain a mapping: {config_path}")
        return cls._from_dict(data, config_path.parent)

    @classmethod
    def _from_dict(cls, data: dict[str, Any], project_dir: Path | None = None) -> MacAppStoreConfig:
        """Create config from a dictionary."""
        config = cls()
        config.project_dir = project_dir

        try:
            if "bundle_id" in data:
                config.bundle_id = str(data["bundle_id"])
            if "purchases_menu_path" in data:
                config.purchases_menu_path = [str(p) for p in data["purchases_menu_path"]]
            if "purchases_group_id" in data:
                config.purchases_group_id = str(data["purchases_group_id"])
            if "sign_in_link_title" in data:
                config.sign_in_link_title = str(data["sign_in_link_title"])
            if "install_complete_labels" in data:
                labels = data["install_complete_labels"]
                if isinstance(labels, str):
                    labels = [labels]
                config.install_complete_labels = [str(label) for label in labels]

            for key in (
                "poll_interval",
                "startup_timeout",
                "navigation_timeout",
                "install_timeout",
                "settle_delay",
            ):
                if key in data:
                    setattr(config, key, float(data[key]))

            if "max_depth" in data:
                config.max_depth = int(data["max_depth"])
            if "mas_path" in data:
                config.mas_path = str(data["mas_path"])
        except (TypeError, ValueError) as exc:
            raise MacAppStoreConfigError(f"Invalid config value: {exc}") from exc

        if config.settle_delay < 0:
            raise MacAppStoreConfigError(
                f"settle_delay must not be negative, got {config.settle_delay:g}"
            )
        if not config.purchases_menu_path:
            raise MacAppStoreConfigError("purchases_menu_path must name at least one menu")
        if not config.install_complete_labels:
            raise MacAppStoreConfigError("install_complete_labels must not be empty")
        for label in config.install_complete_labels:
            try:
                re.compile(label)
            except re.error as exc:
                raise MacAppStoreConfigError(f"Invalid install_complete_labels pattern {label!r}: {exc}") from exc

        # Reject bad timings at load, before any run touches the App Store.
        for kind in _WAIT_KINDS:
            config.wait_spec(kind)

        return config

    def wait_spec(self, kind: str, timeout: float | None = None) -> WaitSpec:
        """Return the validated ``WaitSpec`` for ``startup``, ``navigation`` or ``install``.

        *timeout* overrides the configured value (e.g. from a CLI option).
        """
        from macappstore.engine.poller import WaitSpec

        timeouts = {
            "startup": self.startup_timeout,
            "navigation": self.navigation_timeout,
            "install": self.install_timeout,
        }
        if kind not in timeouts:
            raise MacAppStoreConfigError(f"Unknown wait kind: {kind}")
        return WaitSpec(
            interval=self.poll_interval,
            timeout=timeouts[kind] if timeout is None else timeout,
        )


def find_config_file(start: Path | None = None) -> Path | None:
    """Find ``.macappstore/config.yaml``, searching upward from *start* (cwd)."""
    current = start or Path.cwd()
    for directory in (current, *current.parents):
        candidate = directory / ".macappstore" / "config.yaml"
        if candidate.is_file():
            return candidate
    return None


def load_config(config_path: Path | None = None) -> MacAppStoreConfig:
    """Load *config_path*, or the discovered project config, or defaults."""
    if config_path is not None:
        return MacAppStoreConfig.from_file(config_path)
    discovered = find_config_file()
    if discovered is not None:
        return MacAppStoreConfig.from_file(discovered)
    return MacAppStoreConfig()
