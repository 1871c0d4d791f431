"""Command-line App Store access through ``mas``.

``MasCli`` answers installed/upgradable questions for the install workflow
without touching the UI, and provides the plain command-line install and
upgrade path for apps that ``mas`` can handle on its own.
"""

from __future__ import annotations

import dataclasses
import logging
import re
import subprocess

from macappstore.engine.errors import InvalidAppNameError
from macappstore.models import DEFAULT_MAS_PATH

logger = logging.getLogger("macappstore.engine.mas")

# "497799835  Xcode  (15.0)" or, for outdated, "497799835 Xcode (14.3 -> 15.0)"
_LINE_RE = re.compile(r"^\s*(\d+)\s+(.+?)\s+\(([^)]*)\)\s*$")


class MasError(Exception):
    """Raised when the ``mas`` command is missing or fails."""

    pass


@dataclasses.dataclass(frozen=True)
class MasApp:
    """One line of ``mas`` output."""

    app_id: str
    name: str
    version: str


def parse_app_lines(output: str) -> list[MasApp]:
    """Parse ``mas list`` / ``mas outdated`` / ``mas search`` output."""
    apps: list[MasApp] = []
    for line in output.splitlines():
        match = _LINE_RE.match(line)
        if match:
            apps.append(MasApp(app_id=match.group(1), name=match.group(2).strip(), version=match.group(3)))
        elif line.strip():
            logger.debug("Ignoring unparseable mas output line: %r", line)
    return apps


class MasCli:
    """Thin wrapper around the ``mas`` command-line tool."""

    def __init__(self, mas_path: str = DEFAULT_MAS_PATH, timeout: float = 600) -> None:
        self._mas_path = mas_path
        self._timeout = timeout

    def _run(self, *args: str) -> str:
        cmd = [self._mas_path, *args]
        logger.debug("mas: %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self._timeout)
        except FileNotFoundError as exc:
            raise MasError(
                f"'{self._mas_path}' not found. Install it with: brew install mas"
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise MasError(f"'{' '.join(cmd)}' timed out after {self._timeout:g}s") from exc
        if result.returncode != 0:
            raise MasError(
                f"'{' '.join(cmd)}' failed (exit {result.returncode}): {result.stderr.strip()}"
            )
        return result.stdout

    # -- Queries -------------------------------------------------------------

    def list_installed(self) -> list[MasApp]:
        return parse_app_lines(self._run("list"))

    def list_outdated(self) -> list[MasApp]:
        return parse_app_lines(self._run("outdated"))

    def installed(self, app_name: str) -> bool:
        return any(app.name == app_name for app in self.list_installed())

    def upgradable(self, app_name: str) -> bool:
        return any(app.name == app_name for app in self.list_outdated())

    def app_id_for(self, app_name: str) -> str | None:
        """Look up the store ID for *app_name*, installed apps first."""
        for app in self.list_installed():
            if app.name == app_name:
                return app.app_id
        try:
            results = parse_app_lines(self._run("search", app_name))
        except MasError as exc:
            # mas exits non-zero when a search finds nothing
            logger.debug("mas search for '%s' failed: %s", app_name, exc)
            return None
        for app in results:
            if app.name == app_name:
                return app.app_id
        return None

    # -- Actions -------------------------------------------------------------

    def install(self, app_name: str) -> bool:
        """Install *app_name* unless already installed.  Returns True if it ran."""
        if self.installed(app_name):
            logger.info("'%s' is already installed", app_name)
            return False
        app_id = self.app_id_for(app_name)
        if app_id is None:
            raise InvalidAppNameError(app_name)
        logger.info("Installing '%s' (%s) with mas", app_name, app_id)
        self._run("install", app_id)
        return True

    def upgrade(self, app_name: str) -> bool:
        """Install or upgrade *app_name* as needed.  Returns True if it ran."""
        if not self.installed(app_name):
            return self.install(app_name)
        if not self.upgradable(app_name):
            logger.info("'%s' is up to date", app_name)
            return False
        app_id = self.app_id_for(app_name)
        if app_id is None:
            raise InvalidAppNameError(app_name)
        logger.info("Upgrading '%s' (%s) with mas", app_name, app_id)
        self._run("upgrade", app_id)
        return True
