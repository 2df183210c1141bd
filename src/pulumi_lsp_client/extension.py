"""Entry points the editor host calls on activation and deactivation."""

from typing import Optional

from aiologger import Logger

from .client import ClientHandle
from .host import EditorHost
from .logger import get_logger
from .supervisor import ClientSupervisor, ExtensionContext


_supervisor: Optional[ClientSupervisor] = None


def get_supervisor(host: EditorHost, logger: Optional[Logger] = None) -> ClientSupervisor:
    """Return the process-wide supervisor, creating it on first use."""
    global _supervisor
    if _supervisor is None:
        _supervisor = ClientSupervisor(host, logger or get_logger())
    return _supervisor


def current_supervisor() -> Optional[ClientSupervisor]:
    return _supervisor


async def activate(context: ExtensionContext, host: EditorHost,
                   logger: Optional[Logger] = None) -> ClientHandle:
    return await get_supervisor(host, logger).activate(context)


async def deactivate() -> None:
    if _supervisor is None:
        return
    await _supervisor.deactivate()
