"""kafkit - A terminal UI for direct Kafka and Schema Registry connections."""

from typing import TYPE_CHECKING, Any

__all__ = [
    "__version__",
    "main",
    "ExplorerApp",
    "ConnectionSpec",
    "DirectConnectionManager",
]

try:
    from ._version import __version__
except ImportError:
    __version__ = "0.0.0.dev"

if TYPE_CHECKING:
    from kafkit.domains.connections.app.manager import DirectConnectionManager
    from kafkit.domains.connections.domain.config import ConnectionSpec
    from kafkit.domains.explorer.ui.app import ExplorerApp
    from .cli import main


def __getattr__(name: str) -> Any:
    """Lazy import for heavy modules to keep package import side-effect free."""
    if name == "main":
        from .cli import main

        return main
    if name == "ExplorerApp":
        from kafkit.domains.explorer.ui.app import ExplorerApp

        return ExplorerApp
    if name == "ConnectionSpec":
        from kafkit.domains.connections.domain.config import ConnectionSpec

        return ConnectionSpec
    if name == "DirectConnectionManager":
        from kafkit.domains.connections.app.manager import DirectConnectionManager

        return DirectConnectionManager
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
