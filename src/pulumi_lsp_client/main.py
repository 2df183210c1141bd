#!/usr/bin/env python3
"""
Pulumi LSP terminal host
Runs the Pulumi LSP client inside a Textual application that plays the role
of the editor: it stores settings, lists installed extensions, shows dialogs
and hosts the output channel.
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from aiologger import Logger

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.command import Hit, Hits, Provider
from textual.widgets import Footer, Header, Static

from . import extension
from .host import OutputChannel
from .logger import setup_logging
from .output import get_output_sink
from .supervisor import ExtensionContext
from .utils import DirectoryExtensionRegistry, PulumiLSPError, SettingsStore, get_config
from .views.modals import MessageModal
from .views.output_panel import OutputPanel


RELOAD = "reload"


class TextualHost:
    """Editor host capabilities implemented on top of a Textual app."""

    def __init__(self, app: "PulumiLSPApp", configuration: SettingsStore,
                 extensions: DirectoryExtensionRegistry):
        self.app = app
        self.configuration = configuration
        self.extensions = extensions

    def create_output_channel(self, name: str) -> OutputChannel:
        self.app.output_panel.set_title(name)
        return self.app.output_panel

    async def show_information_message(self, message: str, *items: str) -> Optional[str]:
        return await self._show(message, "information", items)

    async def show_warning_message(self, message: str, *items: str) -> Optional[str]:
        return await self._show(message, "warning", items)

    async def show_error_message(self, message: str, *items: str) -> Optional[str]:
        return await self._show(message, "error", items)

    async def _show(self, message: str, severity: str, items) -> Optional[str]:
        if not items:
            self.app.notify(message, severity=severity, title="Pulumi LSP")
            return None
        choice: asyncio.Future = asyncio.get_running_loop().create_future()

        def on_dismiss(result: Optional[str]) -> None:
            if not choice.done():
                choice.set_result(result)

        self.app.push_screen(MessageModal(message, items, severity), callback=on_dismiss)
        return await choice

    async def reload(self) -> None:
        self.app.exit(RELOAD)


class PulumiLSPCommands(Provider):
    """Command provider for Pulumi LSP features."""

    async def search(self, query: str) -> Hits:
        matcher = self.matcher(query)

        commands = [
            ("Pulumi LSP: Show Output", "Bring the Pulumi LSP output to the front",
             lambda: self.app.action_show_output()),
            ("Pulumi LSP: Clear Output", "Clear the Pulumi LSP output",
             lambda: self.app.action_clear_output()),
            ("Pulumi LSP: Show Server Version", "Print the pulumi-lsp version",
             lambda: self.app.run_action("server_version")),
            ("Reload Window", "Restart the client with the current settings",
             lambda: self.app.run_action("reload_window")),
        ]

        for name, description, callback in commands:
            score = matcher.match(name)
            if score > 0:
                yield Hit(
                    score,
                    matcher.highlight(name),
                    callback,
                    help=description
                )


class PulumiLSPApp(App):
    """Terminal host for the Pulumi LSP client."""

    TITLE = "Pulumi LSP"
    COMMANDS = App.COMMANDS | {PulumiLSPCommands}

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
        Binding("ctrl+o", "show_output", "Output"),
        Binding("ctrl+v", "server_version", "Server Version"),
        Binding("ctrl+r", "reload_window", "Reload"),
    ]

    def __init__(self, workspace_root: Path, extension_dir: Path,
                 settings: SettingsStore, extensions: DirectoryExtensionRegistry,
                 logger: Logger, **kwargs):
        super().__init__(**kwargs)
        self.logger = logger
        self.workspace_root = workspace_root
        self.extension_dir = extension_dir
        self.settings = settings
        self.output_panel = OutputPanel(get_config().output_channel_name, id="output-panel")
        self.status_line = Static("Pulumi LSP: starting", id="client-status")
        self.host = TextualHost(self, settings, extensions)
        self.extension_context = ExtensionContext(extension_path=extension_dir, workspace_root=workspace_root)

    def compose(self) -> ComposeResult:
        yield Header()
        yield self.status_line
        yield self.output_panel
        yield Footer()

    async def on_mount(self) -> None:
        await self.logger.info(f"Pulumi LSP host mounted for {self.workspace_root}")
        await self.settings.initialize()
        self.set_interval(2.0, self._refresh_settings)
        self.set_interval(1.0, self._update_status)

        try:
            await extension.activate(self.extension_context, self.host, self.logger)
        except PulumiLSPError as e:
            self.notify(e.message, severity="error", title="Pulumi LSP")
        except OSError as e:
            self.output_panel.append_line(f"Failed to launch the Pulumi LSP Server: {e}")
            self.output_panel.show()
            await self.logger.error(f"Failed to launch the Pulumi LSP Server: {e}", exc_info=True)
        self._update_status()

    async def _refresh_settings(self) -> None:
        try:
            await self.settings.refresh()
        except RuntimeError as e:
            await self.logger.warning(f"Could not refresh settings: {e}")

    def _update_status(self) -> None:
        supervisor = extension.current_supervisor()
        client = supervisor.client if supervisor else None
        if client is None:
            self.status_line.update("Pulumi LSP: not running")
        else:
            self.status_line.update(
                f"Pulumi LSP: {client.state.value} ({client.resolved.provenance.value} {client.resolved.path})"
            )

    async def on_unmount(self) -> None:
        try:
            await extension.deactivate()
        finally:
            await self.logger.info("Pulumi LSP host stopped")
            await self.logger.shutdown()

    def action_show_output(self) -> None:
        self.output_panel.show(preserve_focus=False)

    def action_clear_output(self) -> None:
        get_output_sink(self.host, self.logger).replace("Output cleared")

    async def action_server_version(self) -> None:
        supervisor = extension.current_supervisor()
        if supervisor is None:
            self.notify("Pulumi LSP is not active", severity="warning")
            return
        version = await supervisor.show_server_version()
        if version:
            self.notify(f"pulumi-lsp {version}", title="Pulumi LSP")

    async def action_reload_window(self) -> None:
        await self.host.reload()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pulumi-lsp-client",
        description="Run the Pulumi LSP client against a workspace",
    )
    parser.add_argument("workspace", nargs="?", default=".",
                        help="Workspace directory (default: current directory)")
    parser.add_argument("--extension-dir", type=Path,
                        default=Path(__file__).resolve().parent,
                        help="Directory holding the bundled pulumi-lsp binary")
    parser.add_argument("--extensions-root", type=Path,
                        default=Path.home() / ".vscode" / "extensions",
                        help="Editor extensions directory scanned for conflicts")
    parser.add_argument("--log-level", default=None,
                        help="Log level for the diagnostic trace file")
    return parser


def main():
    """Main entry point."""
    load_dotenv()

    args = build_parser().parse_args()
    log_level = args.log_level or os.getenv("PULUMI_LSP_LOG_LEVEL", "INFO")
    logger = setup_logging(log_level)

    workspace_root = Path(args.workspace).resolve()
    if not workspace_root.is_dir():
        print(f"Error: Workspace '{args.workspace}' is not a directory")
        sys.exit(1)

    settings = SettingsStore(workspace_file=workspace_root / ".pulumi-lsp" / "settings.json")
    extensions = DirectoryExtensionRegistry(args.extensions_root, logger=logger)

    app = PulumiLSPApp(
        workspace_root=workspace_root,
        extension_dir=args.extension_dir,
        settings=settings,
        extensions=extensions,
        logger=logger,
    )
    if app.run() == RELOAD:
        os.execv(sys.executable, [sys.executable, *sys.argv])


if __name__ == "__main__":
    main()
