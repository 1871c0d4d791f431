"""Remember and restore what the user was looking at before automation."""

from __future__ import annotations

import contextlib
import dataclasses
import logging
from typing import Iterator

from macappstore.engine.errors import ActivationError
from macappstore.engine.protocols import AccessibilityClient

logger = logging.getLogger("macappstore.engine.focus")


@dataclasses.dataclass(frozen=True)
class FocusSnapshot:
    """System state captured when a workflow starts."""

    focused_bundle_id: str | None
    storefront_was_running: bool


class FocusTracker:
    """Captures focus at workflow entry and puts it back at exit."""

    def __init__(self, client: AccessibilityClient, storefront_bundle_id: str) -> None:
        self._client = client
        self._storefront_bundle_id = storefront_bundle_id

    def capture(self) -> FocusSnapshot:
        snapshot = FocusSnapshot(
            focused_bundle_id=self._client.focused_application(),
            storefront_was_running=self._client.is_running(self._storefront_bundle_id),
        )
        logger.debug(
            "Focus snapshot: focused=%s, storefront running=%s",
            snapshot.focused_bundle_id,
            snapshot.storefront_was_running,
        )
        return snapshot

    def restore(self, snapshot: FocusSnapshot) -> None:
        """Re-focus the application that was frontmost at capture time.

        Nothing to do if no application had focus, or if that application
        has since quit (the storefront included, when this run closed it).
        """
        bundle_id = snapshot.focused_bundle_id
        if not bundle_id:
            return
        if not self._client.is_running(bundle_id):
            logger.info("Previously focused app %s is no longer running", bundle_id)
            return
        self._client.activate_application(bundle_id)
        logger.info("Restored focus to %s", bundle_id)

    @contextlib.contextmanager
    def preserved(self) -> Iterator[FocusSnapshot]:
        """Capture on entry; attempt a restore on every exit path.

        A failed restore is logged and never replaces the exception (or
        result) of the wrapped block.
        """
        snapshot = self.capture()
        try:
            yield snapshot
        finally:
            try:
                self.restore(snapshot)
            except ActivationError as exc:
                logger.warning("Could not restore focus to %s: %s", snapshot.focused_bundle_id, exc)
