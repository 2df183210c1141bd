"""Polling detection of extensions that conflict with the Pulumi LSP client."""

import asyncio
from dataclasses import dataclass
from typing import Optional

from aiologger import Logger

from .host import EditorHost
from .output import OutputSink
from .utils.config import ConfigStore, get_config
from .utils.error_handler import ConflictRemediationError, ErrorHandler


NEVER_SHOW_AGAIN = "Never show this warning again"
RESTART_NOW = "Restart now"
RESTART_LATER = "Restart later"


@dataclass
class ConflictMonitorState:
    interval_task: Optional[asyncio.Task] = None
    warning_shown: bool = False
    # Set by "never show again"; the monitor cannot be restarted afterwards
    disabled: bool = False


class ConflictMonitor:
    """Warns when the conflicting extension is active, at most one dialog at a time.

    ``tick`` performs a single check and is what the interval loop calls.
    """

    def __init__(self, host: EditorHost, config: ConfigStore, sink: OutputSink,
                 logger: Logger, error_handler: Optional[ErrorHandler] = None,
                 extension_id: Optional[str] = None, extension_name: Optional[str] = None):
        defaults = get_config()
        self.host = host
        self.config = config
        self.sink = sink
        self.logger = logger
        self.errors = error_handler or ErrorHandler(logger, sink)
        self.extension_id = extension_id or defaults.conflicting_extension_id
        self.extension_name = extension_name or defaults.conflicting_extension_name
        self.state = ConflictMonitorState()

    @property
    def disable_action(self) -> str:
        return f"Disable {self.extension_name}"

    @property
    def warning_message(self) -> str:
        return (
            f"The {self.extension_name} extension ({self.extension_id}) conflicts with "
            f"Pulumi LSP: both provide diagnostics and completion for Pulumi.yaml files."
        )

    @property
    def running(self) -> bool:
        task = self.state.interval_task
        return task is not None and not task.done()

    def start(self, check_interval_s: Optional[float] = None) -> None:
        if self.running or self.state.disabled:
            return
        interval = check_interval_s or get_config().conflict_check_interval_s
        self.state.interval_task = asyncio.create_task(self._run(interval))

    def stop(self) -> None:
        """Cancel the interval. Safe to call when it never started."""
        task = self.state.interval_task
        self.state.interval_task = None
        if task is not None and not task.done():
            task.cancel()

    async def _run(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.tick()
            except Exception as e:
                await self.errors.handle_error(e, user_message="Extension conflict check failed.")

    async def tick(self) -> None:
        if self.state.disabled or self.state.warning_shown:
            return
        extension = await self.host.extensions.get_extension(self.extension_id)
        if extension is None or not extension.is_active:
            return

        self.state.warning_shown = True
        try:
            await self.logger.warning(f"Conflicting extension {extension.id} is active")
            choice = await self.host.show_warning_message(
                self.warning_message, self.disable_action, NEVER_SHOW_AGAIN
            )
            if choice == self.disable_action:
                await self._disable_conflicting_extension()
            elif choice == NEVER_SHOW_AGAIN:
                await self._never_show_again()
        finally:
            self.state.warning_shown = False

    async def _disable_conflicting_extension(self) -> None:
        uninstall = self.errors.with_error_handling(
            user_message=f"Failed to uninstall the {self.extension_name} extension."
        )(self._uninstall)
        if not await uninstall():
            await self.host.show_error_message(
                f"Could not disable the {self.extension_name} extension. Please uninstall it manually."
            )
            return

        choice = await self.host.show_information_message(
            f"The {self.extension_name} extension was uninstalled. Restart to finish removing it.",
            RESTART_NOW, RESTART_LATER
        )
        if choice == RESTART_NOW:
            reload = self.errors.with_error_handling(
                user_message="Failed to restart the editor."
            )(self._reload)
            await reload()

    async def _uninstall(self) -> bool:
        try:
            await self.host.extensions.uninstall(self.extension_id)
        except Exception as e:
            raise ConflictRemediationError(
                f"Uninstalling {self.extension_id} failed: {e}",
                context={"extension": self.extension_id},
            ) from e
        await self.sink.info(f"Uninstalled conflicting extension {self.extension_id}")
        return True

    async def _reload(self) -> None:
        try:
            await self.host.reload()
        except Exception as e:
            raise ConflictRemediationError(f"Reload failed: {e}") from e

    async def _never_show_again(self) -> None:
        await self.config.update(self.config.DETECT_EXTENSION_CONFLICTS, False)
        self.state.disabled = True
        await self.sink.info("Extension conflict detection disabled")
        self.stop()
