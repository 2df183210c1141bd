"""Tests for conflicting extension detection and remediation"""

import asyncio

import pytest

from pulumi_lsp_client.conflicts import (
    NEVER_SHOW_AGAIN,
    RESTART_LATER,
    RESTART_NOW,
    ConflictMonitor,
)
from pulumi_lsp_client.utils import ConfigStore


YAML_ID = "redhat.vscode-yaml"


@pytest.fixture
def config(settings):
    return ConfigStore(settings)


@pytest.fixture
def monitor(host, config, sink, logger):
    monitor = ConflictMonitor(host, config, sink, logger)
    yield monitor
    monitor.stop()


async def wait_for(predicate, timeout=2.0):
    async def poll():
        while not predicate():
            await asyncio.sleep(0.005)
    await asyncio.wait_for(poll(), timeout)


@pytest.mark.asyncio
async def test_no_dialog_without_conflicting_extension(monitor, host):
    await monitor.tick()

    assert host.messages == []


@pytest.mark.asyncio
async def test_no_dialog_for_inactive_extension(monitor, host):
    host.extensions.install(YAML_ID, active=False)

    await monitor.tick()

    assert host.messages == []


@pytest.mark.asyncio
async def test_warning_offers_both_actions(monitor, host):
    host.extensions.install(YAML_ID)

    await monitor.tick()

    [(severity, message, items)] = host.messages
    assert severity == "warning"
    assert "YAML" in message
    assert items == ("Disable YAML", NEVER_SHOW_AGAIN)


@pytest.mark.asyncio
async def test_dismissed_warning_shows_again_on_next_check(monitor, host):
    host.extensions.install(YAML_ID)

    await monitor.tick()
    await monitor.tick()

    assert len(host.dialogs("warning")) == 2
    assert host.extensions.uninstalled == []


@pytest.mark.asyncio
async def test_never_show_again_persists_and_stops(monitor, host, settings):
    host.extensions.install(YAML_ID)
    host.responses = [NEVER_SHOW_AGAIN]
    monitor.start(60)

    await monitor.tick()

    assert settings.get("pulumi-lsp.detectExtensionConflicts") is False
    assert monitor.state.disabled
    assert not monitor.running
    assert host.channel.lines[-1] == "Extension conflict detection disabled"

    await monitor.tick()
    monitor.start(60)
    assert len(host.dialogs("warning")) == 1
    assert not monitor.running


@pytest.mark.asyncio
async def test_disable_and_restart_now(monitor, host):
    host.extensions.install(YAML_ID)
    host.responses = ["Disable YAML", RESTART_NOW]

    await monitor.tick()

    assert host.extensions.uninstalled == [YAML_ID]
    assert f"Uninstalled conflicting extension {YAML_ID}" in host.channel.lines
    assert host.dialogs("information")[0][2] == (RESTART_NOW, RESTART_LATER)
    assert host.reloads == 1


@pytest.mark.asyncio
async def test_disable_and_restart_later(monitor, host):
    host.extensions.install(YAML_ID)
    host.responses = ["Disable YAML", RESTART_LATER]

    await monitor.tick()

    assert host.extensions.uninstalled == [YAML_ID]
    assert host.reloads == 0

    # The extension is gone, so later checks stay quiet
    await monitor.tick()
    assert len(host.dialogs("warning")) == 1


@pytest.mark.asyncio
async def test_uninstall_failure_is_reported(monitor, host):
    host.extensions.install(YAML_ID)
    host.extensions.uninstall_error = PermissionError("read-only extensions directory")
    host.responses = ["Disable YAML"]

    await monitor.tick()

    assert "Failed to uninstall the YAML extension." in host.channel.lines
    assert host.messages[-1] == (
        "error",
        "Could not disable the YAML extension. Please uninstall it manually.",
        (),
    )
    assert host.reloads == 0
    assert not monitor.state.warning_shown


@pytest.mark.asyncio
async def test_reload_failure_is_reported(monitor, host):
    host.extensions.install(YAML_ID)
    host.reload_error = RuntimeError("window is gone")
    host.responses = ["Disable YAML", RESTART_NOW]

    await monitor.tick()

    assert "Failed to restart the editor." in host.channel.lines
    assert host.extensions.uninstalled == [YAML_ID]


@pytest.mark.asyncio
async def test_at_most_one_warning_while_pending(monitor, host):
    host.extensions.install(YAML_ID)
    host.gate = asyncio.Event()

    pending = asyncio.create_task(monitor.tick())
    await wait_for(lambda: host.messages)

    await monitor.tick()
    await monitor.tick()
    assert len(host.dialogs("warning")) == 1

    host.gate.set()
    await pending
    assert not monitor.state.warning_shown

    await monitor.tick()
    assert len(host.dialogs("warning")) == 2


@pytest.mark.asyncio
async def test_interval_runs_checks(monitor, host, settings):
    host.extensions.install(YAML_ID)
    host.responses = [NEVER_SHOW_AGAIN]

    monitor.start(0.01)
    assert monitor.running
    await wait_for(lambda: monitor.state.disabled)
    await wait_for(lambda: not monitor.running)

    assert len(host.dialogs("warning")) == 1
    assert settings.get("pulumi-lsp.detectExtensionConflicts") is False


@pytest.mark.asyncio
async def test_failed_check_reaches_output_and_keeps_polling(monitor, host, logger):
    host.extensions.lookup_error = PermissionError("extensions directory unreadable")

    monitor.start(0.01)
    await wait_for(lambda: host.channel.lines.count("Extension conflict check failed.") >= 2)

    assert monitor.running
    assert "extensions directory unreadable" in logger.error.await_args.args[0]
    assert host.messages == []


@pytest.mark.asyncio
async def test_start_twice_keeps_one_interval(monitor):
    monitor.start(60)
    task = monitor.state.interval_task

    monitor.start(60)

    assert monitor.state.interval_task is task


def test_stop_without_start(host, config, sink, logger):
    monitor = ConflictMonitor(host, config, sink, logger)

    monitor.stop()
    monitor.stop()

    assert not monitor.running
