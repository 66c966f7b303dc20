"""Presentation records produced from explorer domain objects."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from kafkit.domains.explorer.domain.icons import ThemeIcon


class CollapsibleState(Enum):
    NONE = 0
    COLLAPSED = 1
    EXPANDED = 2


@dataclass
class TreeItem:
    """Everything the UI needs to draw one tree row.

    ``tooltip`` is either a plain string or a rich renderable (e.g.
    ``rich.markdown.Markdown``) and is passed through untouched.
    """

    label: str
    id: str | None = None
    description: str | None = None
    icon: ThemeIcon | None = None
    tooltip: Any = None
    context_value: str | None = None
    collapsible_state: CollapsibleState = CollapsibleState.NONE
    # Set when the item directly matches the active search string.
    search_highlight: bool = False
