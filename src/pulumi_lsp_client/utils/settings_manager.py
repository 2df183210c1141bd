#!/usr/bin/env python3
"""Persisted editor settings for the Pulumi LSP client."""

import asyncio
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiofiles

from ..host import (
    ConfigurationChangeEvent,
    ConfigurationListener,
    ConfigurationTarget,
    Disposable,
    notify_listener,
)


class SettingsStore:
    """JSON-backed settings with a global and a workspace scope.

    Keys are flat and dotted, the way editor settings files store them
    (``"pulumi-lsp.server.path": "/opt/bin/pulumi-lsp"``). Workspace values
    override global ones.
    """

    def __init__(self, global_file: Optional[Path] = None,
                 workspace_file: Optional[Path] = None):
        self.global_file = global_file or self._get_settings_file_path()
        self.workspace_file = workspace_file
        self._scopes: Dict[ConfigurationTarget, Dict[str, Any]] = {
            ConfigurationTarget.GLOBAL: {},
            ConfigurationTarget.WORKSPACE: {},
        }
        self._listeners: List[ConfigurationListener] = []
        self._initialized = False

    async def initialize(self) -> None:
        """Load both scopes from disk once."""
        if not self._initialized:
            for target in ConfigurationTarget:
                self._scopes[target] = await self._load_settings(target)
            self._initialized = True

    @staticmethod
    def _get_settings_file_path() -> Path:
        """Get the cross-platform global settings file path."""
        if os.name == 'nt':
            base_dir = Path(os.environ.get('USERPROFILE', Path.home()))
        else:
            base_dir = Path.home()
        return base_dir / '.pulumi-lsp' / 'settings.json'

    def _file_for(self, target: ConfigurationTarget) -> Optional[Path]:
        if target is ConfigurationTarget.GLOBAL:
            return self.global_file
        return self.workspace_file

    async def _load_settings(self, target: ConfigurationTarget) -> Dict[str, Any]:
        """Load one scope from its file using async I/O."""
        settings_file = self._file_for(target)
        if settings_file is None or not settings_file.exists():
            return {}
        try:
            async with aiofiles.open(settings_file, 'r', encoding='utf-8') as f:
                content = await f.read()
            data = await asyncio.to_thread(json.loads, content) if content.strip() else {}
        except (json.JSONDecodeError, IOError):
            # A corrupted settings file behaves like an empty one
            return {}
        return data if isinstance(data, dict) else {}

    async def _save_settings(self, target: ConfigurationTarget) -> None:
        """Save one scope to its file using async I/O."""
        settings_file = self._file_for(target)
        if settings_file is None:
            raise RuntimeError(f"No settings file configured for {target.value} scope")
        try:
            settings_file.parent.mkdir(parents=True, exist_ok=True)
            json_content = await asyncio.to_thread(
                json.dumps, self._scopes[target], indent=2, ensure_ascii=False
            )
            async with aiofiles.open(settings_file, 'w', encoding='utf-8') as f:
                await f.write(json_content)
        except IOError as e:
            raise RuntimeError(f"Failed to save settings: {e}")

    def _effective(self) -> Dict[str, Any]:
        merged = dict(self._scopes[ConfigurationTarget.GLOBAL])
        merged.update(self._scopes[ConfigurationTarget.WORKSPACE])
        return merged

    def get(self, key: str, default: Any = None) -> Any:
        """Return the effective value of a fully qualified key."""
        workspace = self._scopes[ConfigurationTarget.WORKSPACE]
        if key in workspace:
            return workspace[key]
        return self._scopes[ConfigurationTarget.GLOBAL].get(key, default)

    async def update(self, key: str, value: Any,
                     target: ConfigurationTarget = ConfigurationTarget.GLOBAL) -> None:
        """Write a value to a scope and notify listeners. ``None`` removes the key."""
        before = self._effective()
        if value is None:
            self._scopes[target].pop(key, None)
        else:
            self._scopes[target][key] = value
        await self._save_settings(target)
        await self._fire(before)

    async def refresh(self) -> None:
        """Re-read both files, picking up edits made outside the client."""
        before = self._effective()
        for target in ConfigurationTarget:
            self._scopes[target] = await self._load_settings(target)
        self._initialized = True
        await self._fire(before)

    async def _fire(self, before: Dict[str, Any]) -> None:
        after = self._effective()
        changed = frozenset(
            key for key in set(before) | set(after)
            if before.get(key) != after.get(key)
        )
        if not changed:
            return
        event = ConfigurationChangeEvent(changed_keys=changed)
        for listener in list(self._listeners):
            await notify_listener(listener, event)

    def on_did_change(self, listener: ConfigurationListener) -> Disposable:
        self._listeners.append(listener)

        def remove():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Disposable(remove)
