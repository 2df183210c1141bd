"""Configuration management for the Pulumi LSP client."""

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from ..host import (
    ConfigurationListener,
    ConfigurationProvider,
    ConfigurationTarget,
    Disposable,
)


@dataclass(frozen=True)
class ClientDefaults:
    """Fixed identity and policy values for the client."""
    namespace: str = "pulumi-lsp"
    client_id: str = "pulumi-lsp"
    client_name: str = "Pulumi LSP"
    output_channel_name: str = "Pulumi LSP"
    server_binary: str = "pulumi-lsp"
    document_patterns: Tuple[str, ...] = ("**/Pulumi.yaml", "**/Main.yaml")
    conflicting_extension_id: str = "redhat.vscode-yaml"
    conflicting_extension_name: str = "YAML"
    conflict_check_interval_s: float = 5.0
    stop_timeout_s: float = 2.0


# Global defaults instance
_config: Optional[ClientDefaults] = None


def get_config() -> ClientDefaults:
    """Get the global defaults instance."""
    global _config
    if _config is None:
        _config = ClientDefaults()
    return _config


def set_config(config: ClientDefaults):
    """Set the global defaults instance."""
    global _config
    _config = config


FALSE_STRINGS = frozenset({"false", "0", "no", "off"})


class ConfigStore:
    """Typed view over the host configuration under one namespace.

    Nothing is cached: every read goes back to the provider, so a value
    edited by the user is visible on the next read.
    """

    SERVER_PATH = "server.path"
    DETECT_EXTENSION_CONFLICTS = "detectExtensionConflicts"

    def __init__(self, provider: ConfigurationProvider, section: Optional[str] = None):
        self._provider = provider
        self.section = section or get_config().namespace

    def qualify(self, key: str) -> str:
        return f"{self.section}.{key}"

    def get(self, key: str, default: Any = None) -> Any:
        value = self._provider.get(self.qualify(key))
        return default if value is None else value

    async def update(self, key: str, value: Any,
                     target: ConfigurationTarget = ConfigurationTarget.GLOBAL) -> None:
        await self._provider.update(self.qualify(key), value, target)

    def on_change(self, callback: ConfigurationListener) -> Disposable:
        """Subscribe to changes that touch this namespace only."""
        def listener(event):
            if event.affects_configuration(self.section):
                return callback(event)
            return None

        return self._provider.on_did_change(listener)

    @property
    def server_path(self) -> Optional[str]:
        value = self.get(self.SERVER_PATH)
        if not isinstance(value, str) or not value.strip():
            return None
        return value

    @property
    def detect_extension_conflicts(self) -> bool:
        value = self.get(self.DETECT_EXTENSION_CONFLICTS, True)
        if isinstance(value, str):
            # Hand-edited settings files may quote booleans
            return value.strip().lower() not in FALSE_STRINGS
        return bool(value)
