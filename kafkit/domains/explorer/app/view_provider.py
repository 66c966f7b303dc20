"""View providers: tree data + search state for explorer views.

Providers are plain objects; the Textual layer subscribes to
``tree_data_changed`` and asks for children and tree items again.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, TypeVar

from rich.markdown import Markdown

from kafkit.domains.connections.app.loaders import ResourceLoader, UnknownConnectionError
from kafkit.domains.explorer.domain.collapsing import update_collapsible_state_from_search
from kafkit.domains.explorer.domain.containers import ResourceContainer, SubjectsContainer, TopicsContainer
from kafkit.domains.explorer.domain.resources import DirectConnectionItem, KafkaTopic
from kafkit.domains.explorer.domain.search import SearchSession, filter_children, item_matches_search
from kafkit.domains.explorer.domain.tree_items import TreeItem
from kafkit.shared.core.events import Emitter, connections_changed

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BaseViewProvider(ABC, Generic[T]):
    """Base class for tree views that support search."""

    kind: ClassVar[str] = "base"
    _instances: ClassVar[dict[str, BaseViewProvider[Any]]] = {}

    def __init__(self) -> None:
        self.search = SearchSession()
        self.tree_data_changed: Emitter[Any] = Emitter(f"{self.kind}.tree_data_changed")

    @classmethod
    def get_instance(cls, *args: Any, **kwargs: Any) -> Any:
        """Get the singleton instance of this provider class."""
        key = cls.__name__
        if key not in BaseViewProvider._instances:
            BaseViewProvider._instances[key] = cls(*args, **kwargs)
        return BaseViewProvider._instances[key]

    @classmethod
    def reset_instances(cls) -> None:
        BaseViewProvider._instances.clear()

    @property
    def message(self) -> str | None:
        """Status line text, e.g. 'Showing 2 of 9 for "orders"'."""
        return self.search.message

    @abstractmethod
    def get_children(self, element: T | None = None) -> list[Any]:
        ...

    def get_tree_item(self, element: Any) -> TreeItem:
        tree_item: TreeItem = element.to_tree_item()
        self.adjust_tree_item_for_search(element, tree_item)
        return tree_item

    def adjust_tree_item_for_search(self, element: Any, tree_item: TreeItem) -> None:
        search = self.search.search_string
        if not search:
            return
        if item_matches_search(element, search):
            tree_item.search_highlight = True
        if getattr(element, "children", None):
            update_collapsible_state_from_search(element, tree_item, search)

    def filter_children(self, element: Any | None, children: list[Any]) -> list[Any]:
        return filter_children(element, children, self.search)

    def set_search(self, search_string: str | None) -> None:
        self.search.set_search(search_string)
        self.tree_data_changed.fire(None)

    def reset(self) -> None:
        logger.debug("%s: reset() called, clearing search state", self.kind)
        self.search.reset()
        self.tree_data_changed.fire(None)

    def refresh(self) -> None:
        self.tree_data_changed.fire(None)


class ResourcesViewProvider(BaseViewProvider[Any]):
    """Stored direct connections, each with Topics / Schema Subjects containers."""

    kind = "resources"

    def __init__(self, store: Any = None, load_timeout_ms: int | None = None) -> None:
        super().__init__()
        if load_timeout_ms is None:
            from kafkit.domains.shell.store.settings import RuntimeSettings

            load_timeout_ms = RuntimeSettings.load().container_load_timeout_ms
        self.load_timeout_ms = load_timeout_ms
        if store is None:
            from kafkit.domains.connections.store.connections import DirectConnectionStore

            store = DirectConnectionStore.get_instance()
        self.store = store
        self._items: dict[str, DirectConnectionItem] = {}
        self._unsubscribe = connections_changed.subscribe(self._on_connections_changed)
        self.reload()

    def close(self) -> None:
        self._unsubscribe()

    def _on_connections_changed(self, connection_id: str | None) -> None:
        self.reload()

    def reload(self) -> None:
        """Re-read stored connections, keeping containers of unchanged connections."""
        specs = self.store.get_all(load_secrets=False)
        items: dict[str, DirectConnectionItem] = {}
        for connection_id, spec in specs.items():
            existing = self._items.get(connection_id)
            if existing is not None and existing.spec.to_dict() == spec.to_dict():
                items[connection_id] = existing
                continue
            containers: list[ResourceContainer[Any]] = []
            if spec.kafka_cluster is not None:
                containers.append(TopicsContainer(connection_id))
            if spec.schema_registry is not None:
                containers.append(SubjectsContainer(connection_id))
            items[connection_id] = DirectConnectionItem(spec=spec, children=containers)
        self._items = items
        self.tree_data_changed.fire(None)

    @property
    def connection_items(self) -> list[DirectConnectionItem]:
        return list(self._items.values())

    def containers(self) -> list[ResourceContainer[Any]]:
        return [c for item in self._items.values() for c in item.children if isinstance(c, ResourceContainer)]

    def get_children(self, element: Any | None = None) -> list[Any]:
        if element is None:
            children: list[Any] = self.connection_items
        elif isinstance(element, (DirectConnectionItem, ResourceContainer, KafkaTopic)):
            children = list(element.children)
        else:
            children = []
        return self.filter_children(element, children)

    async def refresh_container(self, container: ResourceContainer[Any]) -> None:
        """Run one loading cycle for ``container`` through its connection's loader."""
        container.set_loading()
        self.tree_data_changed.fire(container)
        try:
            loader = ResourceLoader.get_instance(container.connection_id)
            if isinstance(container, TopicsContainer):
                subjects = None
                item = self._items.get(container.connection_id)
                sibling = next((c for c in item.children if isinstance(c, SubjectsContainer)), None) if item else None
                if sibling is not None:
                    subjects = await sibling.gather_resources(self.load_timeout_ms)
                children = await loader.get_topics(subjects)
            else:
                children = await loader.get_subjects()
        except UnknownConnectionError as error:
            container.set_error(str(error))
        except Exception as error:
            logger.error("refresh_container(%s): %s", container.id, error)
            container.set_error(Markdown(f"**Failed to load {container.label}**\n\n{error}"))
        else:
            container.set_loaded(children)
        self.tree_data_changed.fire(container)

    async def refresh_all(self) -> None:
        subjects = [c for c in self.containers() if isinstance(c, SubjectsContainer)]
        others = [c for c in self.containers() if not isinstance(c, SubjectsContainer)]
        # Subjects first so topics can pick up their key/value subjects.
        for container in subjects:
            container.set_loading()
        await asyncio.gather(*(self.refresh_container(c) for c in subjects + others))
