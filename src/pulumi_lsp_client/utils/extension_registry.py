"""Installed-extension lookup backed by an editor extensions directory."""

import asyncio
import json
import shutil
from pathlib import Path
from typing import Dict, List, Optional

import aiofiles
from aiologger import Logger

from ..host import Extension


OBSOLETE_FILE = ".obsolete"
DISABLED_SUFFIX = ".disabled"


def _is_disabled_dir(name: str) -> bool:
    return name.lower().endswith(DISABLED_SUFFIX)


class DirectoryExtensionRegistry:
    """Reads extensions from ``<root>/<publisher>.<name>-<version>/package.json``.

    Folders listed in ``<root>/.obsolete`` are treated as uninstalled, and
    folders ending in ``.disabled`` are installed but not active.
    """

    def __init__(self, extensions_root: Path, logger: Optional[Logger] = None):
        self.extensions_root = Path(extensions_root)
        self.logger = logger

    async def list_extensions(self) -> List[Extension]:
        """Every installed extension, active or not."""
        return await asyncio.to_thread(self._scan)

    def _scan(self) -> List[Extension]:
        results: List[Extension] = []
        root = self.extensions_root
        if not root.is_dir():
            return results
        obsolete = self._read_obsolete()
        for entry in sorted(root.iterdir(), key=lambda p: p.name.lower()):
            if not entry.is_dir() or entry.name in obsolete:
                continue
            manifest = entry / "package.json"
            try:
                data = json.loads(manifest.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError):
                continue
            if not isinstance(data, dict):
                continue
            publisher = data.get("publisher")
            name = data.get("name")
            if not publisher or not name:
                continue
            results.append(Extension(
                id=f"{publisher}.{name}".lower(),
                display_name=data.get("displayName") or name,
                path=entry.resolve(),
                version=str(data.get("version", "")),
                is_active=not _is_disabled_dir(entry.name),
            ))
        return results

    def _read_obsolete(self) -> Dict[str, bool]:
        try:
            data = json.loads((self.extensions_root / OBSOLETE_FILE).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return {}
        return data if isinstance(data, dict) else {}

    async def get_extension(self, extension_id: str) -> Optional[Extension]:
        """Find an extension by id, preferring an active install."""
        wanted = extension_id.lower()
        matches = [ext for ext in await self.list_extensions() if ext.id == wanted]
        if not matches:
            return None
        active = [ext for ext in matches if ext.is_active]
        return (active or matches)[0]

    async def uninstall(self, extension_id: str) -> None:
        """Mark every install of an extension obsolete and remove its folder."""
        wanted = extension_id.lower()
        installs = [ext for ext in await self.list_extensions() if ext.id == wanted]
        if not installs:
            raise FileNotFoundError(f"Extension {extension_id} is not installed")

        obsolete = await asyncio.to_thread(self._read_obsolete)
        for ext in installs:
            obsolete[ext.path.name] = True
        async with aiofiles.open(self.extensions_root / OBSOLETE_FILE, 'w', encoding='utf-8') as f:
            await f.write(json.dumps(obsolete, indent=2))

        for ext in installs:
            await asyncio.to_thread(shutil.rmtree, ext.path, ignore_errors=True)
            if self.logger:
                await self.logger.info(f"Uninstalled {ext.id} from {ext.path}")
