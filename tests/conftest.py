"""
Pytest configuration and fixtures for the Pulumi LSP client tests
"""

import asyncio
import tempfile
from pathlib import Path
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiologger import Logger
from lsprotocol import types

from pulumi_lsp_client import extension, output
from pulumi_lsp_client.client import ClientHandle, document_selector
from pulumi_lsp_client.host import Extension
from pulumi_lsp_client.utils import SettingsStore, get_config


class RecordingChannel:
    """Output channel that keeps every line in memory."""

    def __init__(self, name: str):
        self.name = name
        self.lines: List[str] = []
        self.shown = 0

    def append_line(self, text: str) -> None:
        self.lines.append(text)

    def clear(self) -> None:
        self.lines.clear()

    def show(self, preserve_focus: bool = True) -> None:
        self.shown += 1


class FakeExtensionRegistry:
    def __init__(self):
        self.installed: Dict[str, Extension] = {}
        self.uninstalled: List[str] = []
        self.uninstall_error: Optional[Exception] = None
        self.lookup_error: Optional[Exception] = None

    def install(self, extension_id: str, active: bool = True) -> Extension:
        ext = Extension(
            id=extension_id,
            display_name=extension_id.split(".")[-1],
            path=Path("/extensions") / extension_id,
            version="1.0.0",
            is_active=active,
        )
        self.installed[extension_id] = ext
        return ext

    async def get_extension(self, extension_id: str) -> Optional[Extension]:
        if self.lookup_error is not None:
            raise self.lookup_error
        return self.installed.get(extension_id)

    async def uninstall(self, extension_id: str) -> None:
        if self.uninstall_error is not None:
            raise self.uninstall_error
        self.installed.pop(extension_id)
        self.uninstalled.append(extension_id)


class FakeHost:
    """Editor host with scripted dialog answers.

    Each dialog with actions pops the next entry of ``responses``; an empty
    queue behaves like the user closing the dialog.
    """

    def __init__(self, configuration: SettingsStore):
        self.configuration = configuration
        self.extensions = FakeExtensionRegistry()
        self.channels: List[RecordingChannel] = []
        self.messages: List[tuple] = []
        self.responses: List[Optional[str]] = []
        self.reloads = 0
        self.reload_error: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None

    @property
    def channel(self) -> RecordingChannel:
        return self.channels[0]

    def create_output_channel(self, name: str) -> RecordingChannel:
        channel = RecordingChannel(name)
        self.channels.append(channel)
        return channel

    def dialogs(self, severity: str) -> List[tuple]:
        return [message for message in self.messages if message[0] == severity and message[2]]

    async def _show(self, severity: str, message: str, items) -> Optional[str]:
        self.messages.append((severity, message, tuple(items)))
        if not items:
            return None
        if self.gate is not None:
            await self.gate.wait()
        return self.responses.pop(0) if self.responses else None

    async def show_information_message(self, message: str, *items: str) -> Optional[str]:
        return await self._show("information", message, items)

    async def show_warning_message(self, message: str, *items: str) -> Optional[str]:
        return await self._show("warning", message, items)

    async def show_error_message(self, message: str, *items: str) -> Optional[str]:
        return await self._show("error", message, items)

    async def reload(self) -> None:
        if self.reload_error is not None:
            raise self.reload_error
        self.reloads += 1


def make_language_client() -> MagicMock:
    """A stand-in for pygls' LanguageClient."""
    client = MagicMock()
    client.start_io = AsyncMock()
    client.initialize_async = AsyncMock(return_value=types.InitializeResult(
        capabilities=types.ServerCapabilities(),
        server_info=types.ServerInfo(name="pulumi-lsp", version="1.0.0"),
    ))
    client.initialized = MagicMock()
    client.shutdown_async = AsyncMock()
    client.exit = MagicMock()
    client.stop = AsyncMock()
    client._server = None
    return client


@pytest.fixture(autouse=True)
def reset_singletons(monkeypatch):
    """Each test gets a fresh output sink and supervisor."""
    monkeypatch.setattr(output, "_sink", None)
    monkeypatch.setattr(extension, "_supervisor", None)


@pytest.fixture
def temp_project_dir():
    """Create a temporary directory for test projects."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def extension_dir(temp_project_dir):
    """Empty extension install directory."""
    path = temp_project_dir / "extension"
    path.mkdir()
    return path


@pytest.fixture
def bundled_server(extension_dir):
    """A bundled pulumi-lsp binary inside the extension directory."""
    path = extension_dir / "pulumi-lsp"
    path.write_text("#!/bin/sh\n")
    path.chmod(0o755)
    return path


@pytest.fixture
def settings(temp_project_dir):
    return SettingsStore(
        global_file=temp_project_dir / "home" / "settings.json",
        workspace_file=temp_project_dir / "workspace" / ".pulumi-lsp" / "settings.json",
    )


@pytest.fixture
def host(settings):
    return FakeHost(settings)


@pytest.fixture
def logger():
    """Stand-in for aiologger.Logger; every log call is awaitable and recorded."""
    logger = MagicMock(spec=Logger)
    for level in ("debug", "info", "warning", "error", "critical", "exception", "shutdown"):
        setattr(logger, level, AsyncMock())
    return logger


@pytest.fixture
def sink(host, logger):
    return output.get_output_sink(host, logger)


@pytest.fixture
def language_client():
    return make_language_client()


@pytest.fixture
def language_clients():
    """Every stand-in client built by ``client_factory``."""
    return []


@pytest.fixture
def client_factory(language_clients):
    """Client factory for ClientSupervisor that never spawns a process."""
    def factory(resolved, sink, logger, defaults=None, workspace_root=None):
        defaults = defaults or get_config()
        client = make_language_client()
        language_clients.append(client)
        return ClientHandle(
            client, resolved,
            client_id=defaults.client_id,
            client_name=defaults.client_name,
            selector=document_selector(defaults.document_patterns),
            sink=sink,
            logger=logger,
            workspace_root=workspace_root,
        )
    return factory
