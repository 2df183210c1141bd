"""Locate the pulumi-lsp executable to launch.

An explicit ``pulumi-lsp.server.path`` always wins. When it is set but
missing, resolution fails outright instead of quietly using the bundled
server. Without an override the server shipped next to the extension is
used.
"""

import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

import aiofiles.os

from .output import OutputSink
from .utils.config import ConfigStore, get_config
from .utils.error_handler import ExplicitPathNotFound, NoServerFound


class ServerProvenance(Enum):
    EXPLICIT = "explicit"
    BUNDLED = "bundled"


@dataclass(frozen=True)
class ResolvedServerPath:
    """An executable that existed when it was resolved."""
    path: Path
    provenance: ServerProvenance

    @property
    def command(self) -> List[str]:
        return [str(self.path)]


def bundled_executable_name(platform: str = sys.platform, base: Optional[str] = None) -> str:
    """Name of the bundled server binary; Windows needs the .exe suffix."""
    base = base or get_config().server_binary
    return f"{base}.exe" if platform == "win32" else base


async def resolve(config: ConfigStore, bundle_location: Union[str, Path], sink: OutputSink,
                  platform: str = sys.platform) -> ResolvedServerPath:
    """Resolve the server executable or raise a ``ResolutionError``."""
    server_path = config.server_path
    if server_path:
        explicit = Path(server_path).expanduser()
        if await aiofiles.os.path.exists(explicit):
            await sink.info(f"Launching server from explicitly provided path: {server_path}")
            return ResolvedServerPath(explicit.absolute(), ServerProvenance.EXPLICIT)
        error = ExplicitPathNotFound(server_path)
        await sink.error(error.message, show=True)
        raise error

    bundled = Path(bundle_location) / bundled_executable_name(platform)
    if await aiofiles.os.path.exists(bundled):
        await sink.info("Launching built-in Pulumi LSP Server")
        return ResolvedServerPath(bundled.absolute(), ServerProvenance.BUNDLED)

    error = NoServerFound(bundled)
    await sink.error(error.message, show=True)
    raise error
