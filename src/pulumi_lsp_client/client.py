"""Protocol client construction and lifecycle."""

import asyncio
import contextlib
import os
from dataclasses import dataclass
from enum import Enum
from fnmatch import fnmatchcase
from pathlib import Path, PurePosixPath
from typing import List, Optional, Sequence, Tuple, Union

from aiologger import Logger
from lsprotocol import types
from pygls.lsp.client import LanguageClient

from . import __version__
from .output import OutputSink
from .resolver import ResolvedServerPath
from .utils.config import ClientDefaults, get_config
from .utils.error_handler import PulumiLSPError, SupervisorStateError


class ClientState(Enum):
    UNSTARTED = "unstarted"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


@dataclass(frozen=True)
class DocumentFilter:
    """A glob over workspace paths. ``**/`` matches any depth, including none."""
    pattern: str

    def matches(self, path: Union[str, Path]) -> bool:
        posix = PurePosixPath(Path(path).as_posix())
        pattern = self.pattern
        if pattern.startswith("**/"):
            tail = pattern[3:]
            return any(
                fnmatchcase(str(PurePosixPath(*posix.parts[i:])), tail)
                for i in range(len(posix.parts))
            )
        return fnmatchcase(str(posix), pattern)


def document_selector(patterns: Sequence[str]) -> Tuple[DocumentFilter, ...]:
    return tuple(DocumentFilter(pattern) for pattern in patterns)


MESSAGE_TYPE_LABELS = {
    types.MessageType.Error: "Error",
    types.MessageType.Warning: "Warning",
    types.MessageType.Info: "Info",
    types.MessageType.Log: "Log",
}


class ClientHandle:
    """The single supervised protocol client and its lifecycle state.

    ``start`` returns once the server process has been spawned; the LSP
    handshake finishes in a background task. A stopped handle is never
    restarted.

    Every stop step is bounded by ``stop_timeout_s``. A server that does
    not exit in time is terminated, then killed.
    """

    def __init__(self, client: LanguageClient, resolved: ResolvedServerPath,
                 client_id: str, client_name: str,
                 selector: Sequence[DocumentFilter],
                 sink: OutputSink, logger: Logger,
                 workspace_root: Optional[Path] = None,
                 stop_timeout_s: float = 2.0):
        self.client = client
        self.resolved = resolved
        self.client_id = client_id
        self.client_name = client_name
        self.selector = tuple(selector)
        self.sink = sink
        self.logger = logger
        self.workspace_root = workspace_root
        self.stop_timeout_s = stop_timeout_s
        self.state = ClientState.UNSTARTED
        self.server_info: Optional[types.ServerInfo] = None
        self._handshake: Optional[asyncio.Task] = None
        self._stderr_reader: Optional[asyncio.Task] = None
        self._initialized = False

    @property
    def command(self) -> List[str]:
        return self.resolved.command

    @property
    def process(self) -> Optional[asyncio.subprocess.Process]:
        """The server subprocess spawned by ``start_io``."""
        return getattr(self.client, "_server", None)

    @property
    def is_running(self) -> bool:
        return self.state is ClientState.RUNNING

    def matches(self, path: Union[str, Path]) -> bool:
        """True when a document is routed to this client."""
        return any(document_filter.matches(path) for document_filter in self.selector)

    async def start(self) -> None:
        if self.state is not ClientState.UNSTARTED:
            raise SupervisorStateError(
                f"{self.client_name} client cannot start from state {self.state.value}"
            )
        self.state = ClientState.STARTING
        command = self.command
        await self.logger.info(f"Starting {self.client_name}: {' '.join(command)}")
        try:
            cwd = str(self.workspace_root) if self.workspace_root else None
            await self.client.start_io(command[0], *command[1:], cwd=cwd)
        except BaseException:
            self.state = ClientState.STOPPED
            raise
        process = self.process
        if process is not None and process.stderr is not None:
            self._stderr_reader = asyncio.create_task(self._forward_stderr(process.stderr))
        self._handshake = asyncio.create_task(self._initialize())

    async def _forward_stderr(self, stream: asyncio.StreamReader) -> None:
        # Crash reports land on stderr; reading it also keeps the pipe from filling
        while True:
            try:
                line = await stream.readline()
            except ValueError:
                # Longer than the stream limit; take what is buffered
                line = await stream.read(2 ** 16)
            if not line:
                break
            self.sink.append(line.decode(errors="replace").rstrip())

    async def _initialize(self) -> None:
        root_uri = self.workspace_root.resolve().as_uri() if self.workspace_root else None
        params = types.InitializeParams(
            process_id=os.getpid(),
            root_uri=root_uri,
            capabilities=types.ClientCapabilities(),
            client_info=types.ClientInfo(name=self.client_id, version=__version__),
        )
        try:
            result = await self.client.initialize_async(params)
            self.client.initialized(types.InitializedParams())
        except asyncio.CancelledError:
            raise
        except Exception as e:
            await self.sink.error(f"{self.client_name} failed to initialize: {e}", show=True)
            return

        self._initialized = True
        self.server_info = result.server_info
        if self.state is ClientState.STARTING:
            self.state = ClientState.RUNNING
        await self.logger.info(f"{self.client_name} initialized")

    async def wait_until_ready(self) -> bool:
        """Wait for the handshake started by ``start`` and report whether it succeeded."""
        if self._handshake is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await asyncio.shield(self._handshake)
        return self.is_running

    async def stop(self) -> None:
        """Shut the server down. A no-op unless the client was started."""
        if self.state in (ClientState.UNSTARTED, ClientState.STOPPED, ClientState.STOPPING):
            return
        self.state = ClientState.STOPPING
        await self.logger.info(f"Stopping {self.client_name}")
        try:
            if self._handshake is not None and not self._handshake.done():
                self._handshake.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._handshake
            if self._initialized:
                try:
                    await asyncio.wait_for(self.client.shutdown_async(None), self.stop_timeout_s)
                    self.client.exit(None)
                except Exception as e:
                    await self.logger.warning(f"{self.client_name} did not shut down cleanly: {e!r}")
            else:
                # Without a handshake the server was never told to exit
                await self._terminate_process()
            try:
                await asyncio.wait_for(self.client.stop(), self.stop_timeout_s)
            except asyncio.TimeoutError:
                await self.logger.warning(f"{self.client_name} ignored exit, terminating it")
                await self._terminate_process()
        finally:
            await self._stop_stderr_reader()
            self.state = ClientState.STOPPED
            await self.logger.info(f"{self.client_name} stopped")

    async def _terminate_process(self) -> None:
        process = self.process
        if process is None or process.returncode is not None:
            return
        with contextlib.suppress(ProcessLookupError):
            process.terminate()
        try:
            await asyncio.wait_for(process.wait(), self.stop_timeout_s)
        except asyncio.TimeoutError:
            await self.logger.warning(f"{self.client_name} ignored SIGTERM, killing it")
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()

    async def _stop_stderr_reader(self) -> None:
        reader, self._stderr_reader = self._stderr_reader, None
        if reader is None:
            return
        if not reader.done():
            # Give the reader a moment to drain what the server wrote before exiting
            with contextlib.suppress(asyncio.TimeoutError, asyncio.CancelledError):
                await asyncio.wait_for(asyncio.shield(reader), 0.5)
            reader.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await reader


def _forward_server_messages(client: LanguageClient, sink: OutputSink) -> None:
    """Route window/logMessage and window/showMessage into the output channel."""

    @client.feature(types.WINDOW_LOG_MESSAGE)
    def on_log_message(params: types.LogMessageParams):
        sink.append(f"[{MESSAGE_TYPE_LABELS.get(params.type, 'Log')}] {params.message}")

    @client.feature(types.WINDOW_SHOW_MESSAGE)
    def on_show_message(params: types.ShowMessageParams):
        sink.append(f"[{MESSAGE_TYPE_LABELS.get(params.type, 'Info')}] {params.message}")
        if params.type == types.MessageType.Error:
            sink.show()


def create_language_client(resolved: ResolvedServerPath, sink: OutputSink, logger: Logger,
                           defaults: Optional[ClientDefaults] = None,
                           workspace_root: Optional[Path] = None) -> ClientHandle:
    """Build a stock LanguageClient with the fixed Pulumi identity and selector."""
    defaults = defaults or get_config()
    client = LanguageClient(defaults.client_id, __version__)
    _forward_server_messages(client, sink)
    return ClientHandle(
        client,
        resolved,
        client_id=defaults.client_id,
        client_name=defaults.client_name,
        selector=document_selector(defaults.document_patterns),
        sink=sink,
        logger=logger,
        workspace_root=workspace_root,
        stop_timeout_s=defaults.stop_timeout_s,
    )


async def query_server_version(resolved: ResolvedServerPath) -> str:
    """Run ``pulumi-lsp version`` and return what it prints."""
    process = await asyncio.create_subprocess_exec(
        *resolved.command, "version",
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await process.communicate()
    if process.returncode != 0:
        detail = stderr.decode(errors="replace").strip() or f"exit code {process.returncode}"
        raise PulumiLSPError(f"{resolved.path} version failed: {detail}")
    return stdout.decode(errors="replace").strip()
