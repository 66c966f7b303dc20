"""Search filtering over trees of searchable items."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Protocol, Sequence, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Searchable(Protocol):
    """Anything the search filter can look at: topics, subjects, containers, connections."""

    @property
    def id(self) -> str: ...

    @property
    def children(self) -> Sequence[Any]: ...

    def searchable_text(self) -> str: ...


def _children_of(item: Searchable) -> Sequence[Searchable]:
    return getattr(item, "children", None) or []


def item_matches_search(item: Searchable, search_str: str | None) -> bool:
    """Case-insensitive substring match on the item's searchable text.

    An empty search string matches everything.
    """
    if not search_str:
        return True
    return search_str.lower() in item.searchable_text().lower()


def matches_or_has_matching_child(item: Searchable, search_str: str | None) -> bool:
    """True if the item or any descendant matches."""
    if item_matches_search(item, search_str):
        return True
    return any(matches_or_has_matching_child(child, search_str) for child in _children_of(item))


def has_matching_descendant(item: Searchable, search_str: str | None) -> bool:
    return any(matches_or_has_matching_child(child, search_str) for child in _children_of(item))


def filter_items(items: Iterable[Searchable], search_str: str | None) -> list[Searchable]:
    """Keep items that match or have a matching descendant."""
    return [item for item in items if matches_or_has_matching_child(item, search_str)]


def traverse_matches(item: Searchable, search_str: str | None, callback: Callable[[Searchable], None]) -> None:
    """Call ``callback`` for every directly-matching item in the subtree.

    A matching item is reported and not descended into.
    """
    if item_matches_search(item, search_str):
        callback(item)
        return
    for child in _children_of(item):
        traverse_matches(child, search_str, callback)


def count_matching_elements(item: Searchable, search_str: str | None) -> int:
    """Count direct matches within the subtree; 0 when there is no search string."""
    if not search_str:
        return 0
    found: list[Searchable] = []
    traverse_matches(item, search_str, found.append)
    return len(found)


@dataclass
class SearchSession:
    """Per-view search state.

    ``total_item_count`` and ``matches`` describe the current traversal: a
    root-level :func:`filter_children` call starts a new one.
    """

    search_string: str | None = None
    matches: set[Searchable] = field(default_factory=set)
    total_item_count: int = 0
    search_string_set_count: int = 0
    message: str | None = None

    def set_search(self, search_string: str | None) -> None:
        self.search_string = search_string or None
        if search_string:
            self.search_string_set_count += 1

    def reset(self) -> None:
        """Forget the search string and traversal results (the set-count is kept)."""
        self.search_string = None
        self.matches = set()
        self.total_item_count = 0
        self.message = None


def format_search_message(match_count: int, total: int, search_str: str) -> str:
    return f'Showing {match_count} of {total} for "{search_str}"'


def filter_children(
    parent: Searchable | None,
    children: Sequence[Searchable],
    session: SearchSession,
) -> list[Searchable]:
    """Filter one level of children against the session's search string.

    Args:
        parent: The element whose children these are, or None at the root.
        children: Unfiltered children.
        session: Search state; counters and matches are updated in place.

    Returns:
        The children to display.
    """
    if parent is None:
        # Root level: a fresh pass through the whole tree starts here.
        session.total_item_count = 0
        session.matches.clear()

    session.total_item_count += len(children)

    search = session.search_string
    if not search:
        session.message = None
        return list(children)

    if parent is not None and item_matches_search(parent, search):
        # A matching parent shows all of its children, matching or not.
        visible = list(children)
    else:
        visible = filter_items(children, search)

    for child in visible:
        if item_matches_search(child, search):
            session.matches.add(child)

    if session.matches:
        session.message = format_search_message(len(session.matches), session.total_item_count, search)
    else:
        # Let the empty state take over instead of "Showing 0 of N".
        session.message = None

    logger.debug(
        "filtered %d/%d children (matches=%d, total=%d, from_expansion=%s)",
        len(visible),
        len(children),
        len(session.matches),
        session.total_item_count,
        parent is not None,
    )
    return visible
