"""Element lookup in the accessibility tree.

A ``SearchCriterion`` describes what an element looks like: its role, the
text of its labelling attributes, an enclosing element it must sit inside,
and a child it must contain.  ``find_element`` walks the tree breadth-first
and returns the first match, or ``None``.  Nothing here retries or sleeps;
callers that need to wait hand a locator to ``wait_for``.

Text matchers are one of:

- a string, matched exactly;
- a compiled regular expression, matched with ``search`` (anchor it with
  ``^`` for a prefix match);
- a tuple/list of the above, matched if any one of them matches.  This is
  how label variants across OS versions are expressed by callers.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from collections import deque
from typing import Any, Iterator, Pattern, Sequence, Union

from macappstore.engine.protocols import AccessibilityClient
from macappstore.models import (
    ATTR_DESCRIPTION,
    ATTR_IDENTIFIER,
    ATTR_ROLE,
    ATTR_TITLE,
    ATTR_VALUE,
    DEFAULT_MAX_DEPTH,
)

logger = logging.getLogger("macappstore.engine.locator")

TextMatcher = Union[str, Pattern[str], Sequence[Union[str, Pattern[str]]]]


def any_of(*patterns: str) -> tuple[Pattern[str], ...]:
    """Compile label *patterns* into a matcher accepting any of them."""
    return tuple(re.compile(p) for p in patterns)


def text_matches(matcher: TextMatcher, text: Any) -> bool:
    """Return True if *text* satisfies *matcher*.  Missing text never matches."""
    if text is None:
        return False
    text = str(text)
    if isinstance(matcher, str):
        return text == matcher
    if isinstance(matcher, re.Pattern):
        return matcher.search(text) is not None
    return any(text_matches(m, text) for m in matcher)


@dataclasses.dataclass(frozen=True)
class SearchCriterion:
    """What an element must look like to match."""

    role: str | None = None
    title: TextMatcher | None = None
    value: TextMatcher | None = None
    description: TextMatcher | None = None
    identifier: TextMatcher | None = None
    # Only search inside the first element matching this criterion.
    within: SearchCriterion | None = None
    # The element must have a descendant matching this criterion.
    containing: SearchCriterion | None = None

    def describe(self) -> str:
        parts = [self.role or "element"]
        for name in ("title", "value", "description", "identifier"):
            matcher = getattr(self, name)
            if matcher is not None:
                parts.append(f"{name}={_describe_matcher(matcher)}")
        if self.containing is not None:
            parts.append(f"containing [{self.containing.describe()}]")
        if self.within is not None:
            parts.append(f"within [{self.within.describe()}]")
        return " ".join(parts)

    def matches(self, client: AccessibilityClient, element: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> bool:
        """Check *element* itself (ignores ``within``, which scopes the search)."""
        if self.role is not None and client.read_attribute(element, ATTR_ROLE) != self.role:
            return False
        for name, attr in (
            ("title", ATTR_TITLE),
            ("value", ATTR_VALUE),
            ("description", ATTR_DESCRIPTION),
            ("identifier", ATTR_IDENTIFIER),
        ):
            matcher = getattr(self, name)
            if matcher is not None and not text_matches(matcher, client.read_attribute(element, attr)):
                return False
        if self.containing is not None:
            for child in client.children(element):
                if find_element(client, child, self.containing, max_depth=max_depth, include_root=True) is not None:
                    return True
            return False
        return True


def _describe_matcher(matcher: TextMatcher) -> str:
    if isinstance(matcher, str):
        return repr(matcher)
    if isinstance(matcher, re.Pattern):
        return f"/{matcher.pattern}/"
    return "|".join(_describe_matcher(m) for m in matcher)


def _walk(client: AccessibilityClient, root: Any, max_depth: int, include_root: bool) -> Iterator[Any]:
    """Breadth-first traversal below *root*, bounded by *max_depth*."""
    queue: deque[tuple[Any, int]] = deque([(root, 0)])
    while queue:
        element, depth = queue.popleft()
        if depth > 0 or include_root:
            yield element
        if depth < max_depth:
            for child in client.children(element):
                queue.append((child, depth + 1))


def find_elements(
    client: AccessibilityClient,
    root: Any,
    criterion: SearchCriterion,
    max_depth: int = DEFAULT_MAX_DEPTH,
    include_root: bool = False,
) -> Iterator[Any]:
    """Yield every element below *root* matching *criterion*, nearest first."""
    if root is None:
        return
    if criterion.within is not None:
        scope = find_element(client, root, criterion.within, max_depth=max_depth, include_root=include_root)
        if scope is None:
            return
        root = scope
        include_root = False
    for element in _walk(client, root, max_depth, include_root):
        if criterion.matches(client, element, max_depth=max_depth):
            yield element


def find_element(
    client: AccessibilityClient,
    root: Any,
    criterion: SearchCriterion,
    max_depth: int = DEFAULT_MAX_DEPTH,
    include_root: bool = False,
) -> Any | None:
    """Return the first element below *root* matching *criterion*, or None."""
    element = next(find_elements(client, root, criterion, max_depth=max_depth, include_root=include_root), None)
    if element is None:
        logger.debug("No match for %s", criterion.describe())
    return element
