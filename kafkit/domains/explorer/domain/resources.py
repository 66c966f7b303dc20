"""Searchable resource models shown in the explorer tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from kafkit.domains.connections.domain.config import ConnectionSpec
from kafkit.domains.explorer.domain.icons import IconNames, ThemeIcon
from kafkit.domains.explorer.domain.tree_items import CollapsibleState, TreeItem


# eq=False keeps identity semantics so items can live in search-match sets.
@dataclass(eq=False)
class Subject:
    """Schema Registry subject."""

    name: str
    connection_id: str
    children: list[Any] = field(default_factory=list)

    @property
    def id(self) -> str:
        return f"{self.connection_id}-subject-{self.name}"

    def searchable_text(self) -> str:
        return self.name

    def to_tree_item(self) -> TreeItem:
        return TreeItem(
            label=self.name,
            id=self.id,
            icon=ThemeIcon(IconNames.SUBJECT),
            context_value="subject",
            collapsible_state=CollapsibleState.NONE,
        )


@dataclass(eq=False)
class KafkaTopic:
    """Kafka topic; children are the subjects named after it (``{topic}-key`` / ``{topic}-value``)."""

    name: str
    connection_id: str
    partitions_count: int = 0
    replication_factor: int = 0
    is_internal: bool = False
    children: list[Subject] = field(default_factory=list)

    @property
    def id(self) -> str:
        return f"{self.connection_id}-topic-{self.name}"

    @property
    def has_schema(self) -> bool:
        return bool(self.children)

    def searchable_text(self) -> str:
        return self.name

    @classmethod
    def from_api(cls, data: dict[str, Any], connection_id: str) -> KafkaTopic:
        return cls(
            name=str(data.get("topic_name", "")),
            connection_id=connection_id,
            partitions_count=int(data.get("partitions_count") or 0),
            replication_factor=int(data.get("replication_factor") or 0),
            is_internal=bool(data.get("is_internal", False)),
        )

    def to_tree_item(self) -> TreeItem:
        return TreeItem(
            label=self.name,
            id=self.id,
            description=f"{self.partitions_count}p" if self.partitions_count else None,
            icon=ThemeIcon(IconNames.TOPIC),
            context_value="topic-with-schema" if self.has_schema else "topic",
            collapsible_state=CollapsibleState.COLLAPSED if self.children else CollapsibleState.NONE,
        )


@dataclass(eq=False)
class DirectConnectionItem:
    """Root-level tree element for one stored direct connection."""

    spec: ConnectionSpec
    children: list[Any] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.spec.id

    @property
    def connection_id(self) -> str:
        return self.spec.id

    def searchable_text(self) -> str:
        return self.spec.name

    def to_tree_item(self) -> TreeItem:
        form_type = self.spec.specified_connection_type or self.spec.form_connection_type
        return TreeItem(
            label=self.spec.name,
            id=f"direct-connection-{self.spec.id}",
            description=form_type,
            icon=ThemeIcon(IconNames.CONNECTION),
            context_value="resources-direct-connection",
            collapsible_state=CollapsibleState.EXPANDED,
        )


def topic_subject_names(topic_name: str) -> tuple[str, str]:
    """Conventional (TopicNameStrategy) key/value subject names for a topic."""
    return f"{topic_name}-key", f"{topic_name}-value"
