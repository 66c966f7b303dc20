"""Textual explorer for stored direct connections."""

from __future__ import annotations

import logging
from typing import Any

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Input, Static, Tree
from textual.widgets.tree import TreeNode

from kafkit.domains.explorer.app.view_provider import ResourcesViewProvider
from kafkit.domains.explorer.domain.containers import ResourceContainer
from kafkit.domains.explorer.domain.icons import icon_glyph
from kafkit.domains.explorer.domain.tree_items import CollapsibleState, TreeItem

logger = logging.getLogger(__name__)


def format_tree_label(tree_item: TreeItem) -> Text:
    """Render a TreeItem as a single rich Text row."""
    label = Text()
    glyph = icon_glyph(tree_item.icon)
    if glyph:
        label.append(f"{glyph} ", style=tree_item.icon.color if tree_item.icon and tree_item.icon.color else "")
    label.append(tree_item.label, style="bold yellow" if tree_item.search_highlight else "")
    if tree_item.description:
        label.append(f" {tree_item.description}", style="dim")
    return label


class ExplorerApp(App):
    """Browse connections, their topics and schema subjects."""

    TITLE = "kafkit"

    CSS = """
    #search-input {
        dock: top;
    }

    #resource-tree {
        height: 1fr;
    }

    #status {
        dock: bottom;
        height: 1;
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("/", "focus_search", "Search"),
        Binding("escape", "clear_search", "Clear search", priority=True),
        Binding("r", "refresh", "Refresh"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, provider: ResourcesViewProvider | None = None, *, load_on_mount: bool = True) -> None:
        super().__init__()
        self._provider = provider
        self._load_on_mount = load_on_mount
        self._expanded_ids: set[str] = set()
        self._unsubscribe: Any = None

    @property
    def provider(self) -> ResourcesViewProvider:
        if self._provider is None:
            self._provider = ResourcesViewProvider.get_instance()
        return self._provider

    @property
    def resource_tree(self) -> Tree:
        return self.query_one("#resource-tree", Tree)

    def compose(self) -> ComposeResult:
        yield Input(placeholder="Search connections, topics, subjects", id="search-input")
        tree: Tree[Any] = Tree("Connections", id="resource-tree")
        tree.show_root = False
        yield tree
        yield Static("", id="status")

    def on_mount(self) -> None:
        self._unsubscribe = self.provider.tree_data_changed.subscribe(self._on_tree_data_changed)
        self.rebuild_tree()
        self.resource_tree.focus()
        if self._load_on_mount:
            self.action_refresh()

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_tree_data_changed(self, element: Any) -> None:
        self.call_later(self.rebuild_tree)

    def rebuild_tree(self) -> None:
        """Redraw the whole tree from the provider."""
        tree = self.resource_tree
        tree.clear()
        for element in self.provider.get_children(None):
            self._add_node(tree.root, element)
        tree.root.expand()
        self.query_one("#status", Static).update(self.provider.message or "")

    def _add_node(self, parent: TreeNode[Any], element: Any) -> None:
        tree_item = self.provider.get_tree_item(element)
        label = format_tree_label(tree_item)
        if tree_item.collapsible_state == CollapsibleState.NONE and not isinstance(element, ResourceContainer):
            parent.add_leaf(label, data=element)
            return
        expand = tree_item.collapsible_state == CollapsibleState.EXPANDED or element.id in self._expanded_ids
        node = parent.add(label, data=element, expand=expand)
        for child in self.provider.get_children(element):
            self._add_node(node, child)

    def on_tree_node_expanded(self, event: Tree.NodeExpanded) -> None:
        element = event.node.data
        if element is None:
            return
        self._expanded_ids.add(element.id)
        if isinstance(element, ResourceContainer) and element.description is None and not element.is_loading:
            # First expansion of a container that has never been loaded.
            self.load_container(element)

    def on_tree_node_collapsed(self, event: Tree.NodeCollapsed) -> None:
        element = event.node.data
        if element is not None:
            self._expanded_ids.discard(element.id)

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "search-input":
            self.provider.set_search(event.value)

    def load_container(self, container: ResourceContainer[Any]) -> None:
        self.run_worker(
            self.provider.refresh_container(container),
            name=f"load-{container.id}",
            group="containers",
            exclusive=False,
        )

    def action_focus_search(self) -> None:
        self.query_one("#search-input", Input).focus()

    def action_clear_search(self) -> None:
        search_input = self.query_one("#search-input", Input)
        search_input.value = ""
        self.provider.reset()
        self.resource_tree.focus()

    def action_refresh(self) -> None:
        self.provider.reload()
        self.run_worker(self.provider.refresh_all(), name="refresh-all", group="refresh", exclusive=True)
