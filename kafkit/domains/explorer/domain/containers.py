"""Tree container nodes with loading / loaded / error display state."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Generic, Sequence, TypeVar

from kafkit.domains.explorer.domain.icons import ERROR_ICON, LOADING_ICON, IconNames, ThemeIcon
from kafkit.domains.explorer.domain.tree_items import CollapsibleState, TreeItem

logger = logging.getLogger(__name__)

T = TypeVar("T")

ERROR_CONTEXT_SUFFIX = "-error"
DEFAULT_LOADING_TIMEOUT_MS = 10_000


class ContainerLoadTimeoutError(TimeoutError):
    """A container was still loading when the caller stopped waiting."""


class ResourceContainer(Generic[T]):
    """A labeled tree node owning an ordered list of child resources.

    Exactly one of three display states is active after the first
    transition: loading, loaded(children) or error(message). Each transition
    resets the icon, tooltip, description and context value so nothing from a
    previous state leaks through. ``loaded([])`` is a successful empty result,
    not an error.

    Before any transition the container is idle: no description, the default
    icon, and neither loading nor errored.
    """

    def __init__(
        self,
        connection_id: str,
        label: str,
        children: Sequence[T] | None = None,
        context_value: str | None = None,
        icon: ThemeIcon | None = None,
    ) -> None:
        self.connection_id = connection_id
        self.label = label
        self.id = f"{connection_id}-{label}"
        self.collapsible_state = CollapsibleState.COLLAPSED
        self.description: str | None = None
        self.tooltip: Any = None
        self.icon = icon
        self.context_value = context_value

        self._children: list[T] = list(children or [])
        self._default_icon = icon
        self._default_context_value = context_value
        self._is_loading = False
        self._has_error = False
        self._done_loading: asyncio.Event | None = None
        self._waiting_loop: asyncio.AbstractEventLoop | None = None

    @property
    def children(self) -> list[T]:
        return self._children

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def has_error(self) -> bool:
        return self._has_error

    def searchable_text(self) -> str:
        return self.label

    def set_loading(self) -> None:
        """Enter the loading state; existing children stay visible underneath the spinner."""
        if not self._is_loading or self._done_loading is None:
            # Reuse the pending event on repeated set_loading() so earlier waiters still wake up.
            self._done_loading = asyncio.Event()
            self._waiting_loop = None
        self._is_loading = True
        self._has_error = False
        self.icon = LOADING_ICON
        self.tooltip = None
        self.context_value = self._default_context_value

    def set_loaded(self, children: Sequence[T]) -> None:
        self._children = list(children)
        self.description = f"({len(self._children)})"
        self._has_error = False
        self.icon = self._default_icon
        self.tooltip = None
        self.context_value = self._default_context_value
        self._finish_loading()

    def set_error(self, message: Any) -> None:
        """Enter the error state.

        Args:
            message: Tooltip content, a string or a rich renderable; kept as given.
        """
        self._children = []
        self.description = "(0)"
        self._has_error = True
        self.icon = ERROR_ICON
        self.tooltip = message
        if self._default_context_value:
            self.context_value = f"{self._default_context_value}{ERROR_CONTEXT_SUFFIX}"
        self._finish_loading()

    def _finish_loading(self) -> None:
        self._is_loading = False
        if self._done_loading is not None:
            self._done_loading.set()

    async def ensure_done_loading(self, timeout_ms: int = DEFAULT_LOADING_TIMEOUT_MS) -> None:
        """Wait until the container leaves the loading state.

        Raises:
            ContainerLoadTimeoutError: still loading after ``timeout_ms``.
        """
        if not self._is_loading or self._done_loading is None:
            return
        loop = asyncio.get_running_loop()
        if self._waiting_loop is not None and self._waiting_loop is not loop:
            # An asyncio.Event only works on the loop that first waited on it.
            self._done_loading = asyncio.Event()
        self._waiting_loop = loop
        try:
            await asyncio.wait_for(self._done_loading.wait(), timeout=timeout_ms / 1000)
        except asyncio.TimeoutError as error:
            raise ContainerLoadTimeoutError("Timeout waiting for container to finish loading") from error

    async def gather_resources(self, timeout_ms: int = DEFAULT_LOADING_TIMEOUT_MS) -> list[T]:
        """Return the children once loading settles, or ``[]`` if it never does."""
        try:
            await self.ensure_done_loading(timeout_ms)
        except TimeoutError as error:
            logger.warning("gather_resources(%s): %s", self.id, error)
            return []
        return list(self._children)

    def to_tree_item(self) -> TreeItem:
        return TreeItem(
            label=self.label,
            id=self.id,
            description=self.description,
            icon=self.icon,
            tooltip=self.tooltip,
            context_value=self.context_value,
            collapsible_state=self.collapsible_state,
        )

    def __repr__(self) -> str:
        state = "loading" if self._is_loading else "error" if self._has_error else "ready"
        return f"{type(self).__name__}(id={self.id!r}, {state}, children={len(self._children)})"


class TopicsContainer(ResourceContainer[Any]):
    def __init__(self, connection_id: str, children: Sequence[Any] | None = None) -> None:
        super().__init__(
            connection_id,
            "Topics",
            children,
            context_value="topics-container",
            icon=ThemeIcon(IconNames.KAFKA_CLUSTER),
        )


class SubjectsContainer(ResourceContainer[Any]):
    def __init__(self, connection_id: str, children: Sequence[Any] | None = None) -> None:
        super().__init__(
            connection_id,
            "Schema Subjects",
            children,
            context_value="subjects-container",
            icon=ThemeIcon(IconNames.SCHEMA_REGISTRY),
        )
