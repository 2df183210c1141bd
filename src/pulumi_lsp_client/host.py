"""Editor host capabilities used by the Pulumi LSP client.

The client never talks to an editor directly. Everything it needs from the
editor (settings, the installed extension list, message dialogs, an output
channel and a window reload) comes through an ``EditorHost``.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, FrozenSet, Optional, Protocol, Union


class ConfigurationTarget(Enum):
    """Scope a configuration value is written to."""
    GLOBAL = "global"
    WORKSPACE = "workspace"


@dataclass(frozen=True)
class ConfigurationChangeEvent:
    """Fully qualified keys whose effective value changed."""
    changed_keys: FrozenSet[str]

    def affects_configuration(self, section: str) -> bool:
        return any(
            key == section or key.startswith(f"{section}.")
            for key in self.changed_keys
        )


ConfigurationListener = Callable[[ConfigurationChangeEvent], Union[None, Awaitable[None]]]


class Disposable:
    """Releases a subscription exactly once."""

    def __init__(self, on_dispose: Callable[[], None]):
        self._on_dispose = on_dispose
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._on_dispose()


@dataclass(frozen=True)
class Extension:
    """An extension installed in the editor."""
    id: str
    display_name: str
    path: Path
    version: str = ""
    is_active: bool = True


class OutputChannel(Protocol):
    name: str

    def append_line(self, text: str) -> None: ...

    def clear(self) -> None: ...

    def show(self, preserve_focus: bool = True) -> None: ...


class ConfigurationProvider(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    async def update(self, key: str, value: Any,
                     target: ConfigurationTarget = ConfigurationTarget.GLOBAL) -> None: ...

    def on_did_change(self, listener: ConfigurationListener) -> Disposable: ...


class ExtensionRegistry(Protocol):
    async def get_extension(self, extension_id: str) -> Optional[Extension]: ...

    async def uninstall(self, extension_id: str) -> None: ...


class EditorHost(Protocol):
    configuration: ConfigurationProvider
    extensions: ExtensionRegistry

    def create_output_channel(self, name: str) -> OutputChannel: ...

    async def show_information_message(self, message: str, *items: str) -> Optional[str]: ...

    async def show_warning_message(self, message: str, *items: str) -> Optional[str]: ...

    async def show_error_message(self, message: str, *items: str) -> Optional[str]: ...

    async def reload(self) -> None: ...


async def notify_listener(listener: ConfigurationListener, event: ConfigurationChangeEvent) -> None:
    """Call a listener that may be a plain function or a coroutine function."""
    result = listener(event)
    if asyncio.iscoroutine(result):
        await result
