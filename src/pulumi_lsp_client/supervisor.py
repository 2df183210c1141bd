"""Lifecycle supervision for the Pulumi LSP client."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from aiologger import Logger

from .client import ClientHandle, create_language_client, query_server_version
from .conflicts import ConflictMonitor
from .host import ConfigurationChangeEvent, Disposable, EditorHost
from .output import OutputSink, get_output_sink
from .resolver import resolve
from .utils.config import ClientDefaults, ConfigStore, get_config
from .utils.error_handler import (
    PulumiLSPError,
    ResolutionError,
    SupervisorStateError,
    create_error_handler,
)


RESTART_REQUIRED_MESSAGE = (
    "Pulumi LSP configuration changed. Restart to apply the new configuration."
)


@dataclass
class ExtensionContext:
    """What the host knows about this installed extension."""
    extension_path: Path
    workspace_root: Optional[Path] = None
    subscriptions: List[Disposable] = field(default_factory=list)


class ClientSupervisor:
    """Owns the one protocol client for the lifetime of the process."""

    def __init__(self, host: EditorHost, logger: Logger,
                 client_factory: Callable[..., ClientHandle] = create_language_client,
                 monitor_factory: Callable[..., ConflictMonitor] = ConflictMonitor,
                 defaults: Optional[ClientDefaults] = None):
        self.host = host
        self.logger = logger
        self.defaults = defaults or get_config()
        self.client: Optional[ClientHandle] = None
        self.monitor: Optional[ConflictMonitor] = None
        self._client_factory = client_factory
        self._monitor_factory = monitor_factory
        self._subscription: Optional[Disposable] = None
        self._activated = False

    @property
    def sink(self) -> OutputSink:
        return get_output_sink(self.host, self.logger)

    async def activate(self, context: ExtensionContext) -> ClientHandle:
        """Resolve the server, start the client, then start the side watchers.

        Raises the ``ResolutionError`` when no server can be found; client
        start failures propagate unchanged from the protocol layer.
        """
        if self._activated:
            raise SupervisorStateError("Pulumi LSP client has already been activated")
        self._activated = True

        sink = self.sink
        config = ConfigStore(self.host.configuration, self.defaults.namespace)
        try:
            resolved = await resolve(config, context.extension_path, sink)
        except ResolutionError as e:
            await self.logger.error(f"Activation failed: {e.message}")
            raise

        self.client = self._client_factory(
            resolved, sink, self.logger,
            defaults=self.defaults,
            workspace_root=context.workspace_root,
        )
        await self.client.start()

        if config.detect_extension_conflicts:
            self.monitor = self._monitor_factory(
                self.host, config, sink, self.logger,
                error_handler=create_error_handler(self.logger, sink),
            )
            self.monitor.start(self.defaults.conflict_check_interval_s)

        self._subscription = config.on_change(self._on_configuration_changed)
        context.subscriptions.append(self._subscription)
        return self.client

    async def _on_configuration_changed(self, event: ConfigurationChangeEvent) -> None:
        # The running client keeps its launch configuration until restart
        await self.sink.info(RESTART_REQUIRED_MESSAGE)

    async def deactivate(self) -> None:
        """Stop the client. A no-op when no client was ever built."""
        if self.monitor is not None:
            self.monitor.stop()
        if self._subscription is not None:
            self._subscription.dispose()
            self._subscription = None
        if self.client is None:
            return

        client, self.client = self.client, None
        await client.stop()

    async def show_server_version(self) -> Optional[str]:
        """Write the running server's version to the output channel."""
        sink = self.sink
        if self.client is None:
            sink.append("Pulumi LSP Server is not running.")
            sink.show()
            return None
        try:
            version = await query_server_version(self.client.resolved)
        except (OSError, PulumiLSPError) as e:
            await sink.error(f"Could not read the Pulumi LSP Server version: {e}", show=True)
            return None
        await sink.info(f"Pulumi LSP Server version {version} ({self.client.resolved.path})")
        sink.show()
        return version
