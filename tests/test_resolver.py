"""Tests for server executable resolution"""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from pulumi_lsp_client.resolver import (
    ResolvedServerPath,
    ServerProvenance,
    bundled_executable_name,
    resolve,
)
from pulumi_lsp_client.utils import ConfigStore, ExplicitPathNotFound, NoServerFound
from pulumi_lsp_client.utils.error_handler import NO_SERVER_FOUND_MESSAGE


@pytest.fixture
def config(settings):
    return ConfigStore(settings)


async def set_server_path(config, value):
    await config.update(ConfigStore.SERVER_PATH, value)


@pytest.mark.asyncio
async def test_explicit_path_wins_over_bundled(config, sink, host, temp_project_dir, bundled_server, extension_dir):
    explicit = temp_project_dir / "custom" / "pulumi-lsp"
    explicit.parent.mkdir()
    explicit.write_text("")
    await set_server_path(config, str(explicit))

    result = await resolve(config, extension_dir, sink)

    assert result == ResolvedServerPath(explicit, ServerProvenance.EXPLICIT)
    assert host.channel.lines == [f"Launching server from explicitly provided path: {explicit}"]
    assert host.channel.shown == 0


@pytest.mark.asyncio
async def test_missing_explicit_path_never_falls_back(config, sink, host, bundled_server, extension_dir):
    await set_server_path(config, "/missing/path")

    with pytest.raises(ExplicitPathNotFound) as excinfo:
        await resolve(config, extension_dir, sink)

    assert excinfo.value.path == "/missing/path"
    assert host.channel.lines == ["/missing/path does not exist."]
    assert host.channel.shown == 1


@pytest.mark.asyncio
async def test_bundled_server_used_without_override(config, sink, host, bundled_server, extension_dir):
    result = await resolve(config, extension_dir, sink, platform="linux")

    assert result.path == bundled_server.absolute()
    assert result.provenance is ServerProvenance.BUNDLED
    assert result.command == [str(bundled_server.absolute())]
    assert host.channel.lines == ["Launching built-in Pulumi LSP Server"]


@pytest.mark.asyncio
async def test_empty_server_path_is_treated_as_unset(config, sink, bundled_server, extension_dir):
    await set_server_path(config, "   ")

    result = await resolve(config, extension_dir, sink, platform="linux")

    assert result.provenance is ServerProvenance.BUNDLED


@pytest.mark.asyncio
async def test_no_server_found(config, sink, host, extension_dir):
    with pytest.raises(NoServerFound) as excinfo:
        await resolve(config, extension_dir, sink, platform="linux")

    assert excinfo.value.expected_path == str(extension_dir / "pulumi-lsp")
    assert host.channel.lines == [NO_SERVER_FOUND_MESSAGE]
    assert host.channel.shown == 1


@pytest.mark.asyncio
async def test_windows_bundled_name_has_exe_suffix(config, sink, extension_dir, bundled_server):
    # Only the suffix-less binary exists, so a Windows lookup must miss it
    with pytest.raises(NoServerFound):
        await resolve(config, extension_dir, sink, platform="win32")

    exe = extension_dir / "pulumi-lsp.exe"
    exe.write_text("")
    result = await resolve(config, extension_dir, sink, platform="win32")
    assert result.path == exe.absolute()


def test_bundled_executable_name():
    assert bundled_executable_name("linux") == "pulumi-lsp"
    assert bundled_executable_name("darwin") == "pulumi-lsp"
    assert bundled_executable_name("win32") == "pulumi-lsp.exe"


@pytest.mark.asyncio
async def test_relative_server_path_resolves_against_cwd(config, sink, temp_project_dir, extension_dir, monkeypatch):
    (temp_project_dir / "bin").mkdir()
    (temp_project_dir / "bin" / "pulumi-lsp").write_text("")
    monkeypatch.chdir(temp_project_dir)
    await set_server_path(config, "bin/pulumi-lsp")

    result = await resolve(config, extension_dir, sink)

    assert result.path.is_absolute()
    assert result.path.resolve() == (temp_project_dir / "bin" / "pulumi-lsp").resolve()
    assert result.provenance is ServerProvenance.EXPLICIT


@pytest.mark.asyncio
async def test_opt_bin_override_scenario(config, sink, host, extension_dir):
    await set_server_path(config, "/opt/bin/pulumi-lsp")
    exists = AsyncMock(side_effect=lambda path: str(path) == "/opt/bin/pulumi-lsp")

    with patch("pulumi_lsp_client.resolver.aiofiles.os.path.exists", exists):
        result = await resolve(config, extension_dir, sink)

    assert result.path == Path("/opt/bin/pulumi-lsp")
    assert result.provenance is ServerProvenance.EXPLICIT
    assert result.command == ["/opt/bin/pulumi-lsp"]
    assert host.channel.lines == ["Launching server from explicitly provided path: /opt/bin/pulumi-lsp"]
