"""Icon identifiers for explorer tree items."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ThemeIcon:
    """Named icon with an optional theme color, rendered by the UI layer."""

    id: str
    color: str | None = None


class IconNames:
    LOADING = "loading~spin"
    ERROR = "error"
    CONNECTION = "connection"
    KAFKA_CLUSTER = "kafka-cluster"
    SCHEMA_REGISTRY = "schema-registry"
    TOPIC = "topic"
    SUBJECT = "subject"


LOADING_ICON = ThemeIcon(IconNames.LOADING)
ERROR_ICON = ThemeIcon(IconNames.ERROR, color="red")

# Glyphs used by the terminal renderer.
ICON_GLYPHS: dict[str, str] = {
    IconNames.LOADING: "⠋",
    IconNames.ERROR: "✗",
    IconNames.CONNECTION: "⚡",
    IconNames.KAFKA_CLUSTER: "▣",
    IconNames.SCHEMA_REGISTRY: "◈",
    IconNames.TOPIC: "≡",
    IconNames.SUBJECT: "§",
}


def icon_glyph(icon: ThemeIcon | None) -> str:
    if icon is None:
        return ""
    return ICON_GLYPHS.get(icon.id, "•")
