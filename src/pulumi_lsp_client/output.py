"""Process-wide output channel for user-facing diagnostics."""

from typing import Optional

from aiologger import Logger

from .host import EditorHost, OutputChannel
from .utils.config import get_config


class OutputSink:
    """Thin wrapper over the host output channel.

    Lines written through ``info``/``warning``/``error`` are also mirrored to
    the diagnostic trace log.
    """

    def __init__(self, channel: OutputChannel, logger: Logger):
        self.channel = channel
        self.logger = logger

    def append(self, text: str) -> None:
        self.channel.append_line(text)

    def replace(self, text: str) -> None:
        """Clear the channel, then write ``text``."""
        self.channel.clear()
        self.channel.append_line(text)

    def show(self) -> None:
        self.channel.show(preserve_focus=True)

    async def info(self, text: str) -> None:
        self.append(text)
        await self.logger.info(text)

    async def warning(self, text: str) -> None:
        self.append(text)
        await self.logger.warning(text)

    async def error(self, text: str, show: bool = False) -> None:
        self.append(text)
        await self.logger.error(text)
        if show:
            self.show()


_sink: Optional[OutputSink] = None


def get_output_sink(host: EditorHost, logger: Logger) -> OutputSink:
    """Return the process-wide sink, creating its channel on first use."""
    global _sink
    if _sink is None:
        channel = host.create_output_channel(get_config().output_channel_name)
        _sink = OutputSink(channel, logger)
    return _sink
