"""Expand/collapse decisions driven by the active search string."""

from __future__ import annotations

from kafkit.domains.explorer.domain.search import Searchable, has_matching_descendant
from kafkit.domains.explorer.domain.tree_items import CollapsibleState, TreeItem

SEARCH_ID_SUFFIX = "-search"


def collapsible_state_for_search(item: Searchable, search_str: str | None) -> CollapsibleState:
    if not getattr(item, "children", None):
        return CollapsibleState.NONE
    if search_str and has_matching_descendant(item, search_str):
        return CollapsibleState.EXPANDED
    return CollapsibleState.COLLAPSED


def update_collapsible_state_from_search(item: Searchable, tree_item: TreeItem, search_str: str | None) -> None:
    """Expand items hiding matches, collapse the rest; leaves never expand.

    When the state changes, the tree item's id gets a ``-search`` suffix so
    the tree widget treats it as a new node and honors the new state. An
    unchanged state keeps the id so the widget does not reset the node.
    """
    new_state = collapsible_state_for_search(item, search_str)
    if new_state == tree_item.collapsible_state:
        return
    tree_item.collapsible_state = new_state
    if tree_item.id and not tree_item.id.endswith(SEARCH_ID_SUFFIX):
        tree_item.id = f"{tree_item.id}{SEARCH_ID_SUFFIX}"
