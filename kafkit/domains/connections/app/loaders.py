"""Per-connection resource loaders and their process-wide registry."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

from kafkit.domains.connections.domain.config import ConnectionType
from kafkit.domains.explorer.domain.resources import KafkaTopic, Subject, topic_subject_names

if TYPE_CHECKING:
    from kafkit.domains.connections.app.client import ConnectionsApiClient

logger = logging.getLogger(__name__)


class UnknownConnectionError(LookupError):
    """No loader is registered for a connection id."""

    def __init__(self, connection_id: str) -> None:
        super().__init__(f"Unknown connection ID {connection_id}")
        self.connection_id = connection_id


class ResourceLoader(ABC):
    """Base class for objects that fetch the resources of one connection.

    Loaders register themselves by connection id so UI code can look one up
    without threading it through every callback. Deregistering makes later
    lookups fail fast instead of silently using a stale loader.
    """

    connection_type: ClassVar[str] = ""
    _registry: ClassVar[dict[str, ResourceLoader]] = {}

    def __init__(self, connection_id: str) -> None:
        self.connection_id = connection_id

    @classmethod
    def register_instance(cls, connection_id: str, loader: ResourceLoader) -> None:
        ResourceLoader._registry[connection_id] = loader

    @classmethod
    def deregister_instance(cls, connection_id: str) -> None:
        ResourceLoader._registry.pop(connection_id, None)

    @classmethod
    def loaders(cls) -> list[ResourceLoader]:
        return list(ResourceLoader._registry.values())

    @classmethod
    def get_instance(cls, connection_id: str) -> ResourceLoader:
        loader = ResourceLoader._registry.get(connection_id)
        if loader is None:
            raise UnknownConnectionError(connection_id)
        return loader

    @classmethod
    def clear_registry(cls) -> None:
        """Drop every registered loader (useful for testing)."""
        ResourceLoader._registry.clear()

    @abstractmethod
    async def get_topics(self, subjects: list[Subject] | None = None) -> list[KafkaTopic]:
        """Load topics; ``subjects`` lets a loader attach each topic's key/value subjects."""
        ...

    @abstractmethod
    async def get_subjects(self) -> list[Subject]:
        ...


class DirectResourceLoader(ResourceLoader):
    """Loads topics and subjects of a direct connection through the gateway proxies."""

    connection_type = ConnectionType.DIRECT.value

    def __init__(self, connection_id: str, client: ConnectionsApiClient) -> None:
        super().__init__(connection_id)
        self.client = client

    async def get_subjects(self) -> list[Subject]:
        names = await asyncio.to_thread(self.client.list_subjects, self.connection_id)
        return [Subject(name=name, connection_id=self.connection_id) for name in sorted(names)]

    async def get_topics(self, subjects: list[Subject] | None = None) -> list[KafkaTopic]:
        """Fetch topics, attaching their key/value subjects as children when known."""
        raw_topics = await asyncio.to_thread(self.client.list_topics, self.connection_id)
        topics = [KafkaTopic.from_api(item, self.connection_id) for item in raw_topics]
        topics.sort(key=lambda t: t.name)
        if subjects:
            by_name = {subject.name: subject for subject in subjects}
            for topic in topics:
                topic.children = [by_name[n] for n in topic_subject_names(topic.name) if n in by_name]
        return topics
