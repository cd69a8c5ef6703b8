# tests/test_wizard_e2e.py
"""
End-to-end headless Pilot tests for the HA setup wizard.

Host operations go through the FakeOps fixture, so the tests run without
root privileges and without touching the host.
"""
from __future__ import annotations

from unittest.mock import patch

import pytest
from textual.widgets import Button, Input, Select

from sequencer import ABORT, DONE
from state import WizardState


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _screen_name(pilot):
    return type(pilot.app.screen).__name__


def _make_app(ops, **kwargs):
    from app import HAWizard
    debug = kwargs.pop("debug", False)
    return HAWizard(WizardState(ops=ops, debug=debug, **kwargs), debug=debug)


@pytest.fixture(autouse=True)
def no_local_networks():
    with patch("screens.s02_comm_layer.suggested_ring_networks", return_value=[]):
        yield


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_starts_on_scenario_selection(ops):
    app = _make_app(ops)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        await pilot.pause(0.3)
        assert _screen_name(pilot) == "ScenarioSelectionScreen"
        sel = pilot.app.screen.query_one("#sel_scenario", Select)
        assert sel.value == "Performance-optimized"
    assert app.state.product_id == "HANA"


@pytest.mark.asyncio
async def test_abort_exits(ops):
    app = _make_app(ops)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        await pilot.pause(0.3)
        await pilot.click("#go_abort")
        await pilot.pause(0.3)
    assert app.return_value == ABORT
    assert ops.calls == []


@pytest.mark.asyncio
async def test_next_stores_scenario_and_back_returns(ops):
    app = _make_app(ops)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        await pilot.pause(0.3)
        await pilot.click("#go_next")
        await pilot.pause(0.3)
        assert _screen_name(pilot) == "CommLayerScreen"
        assert pilot.app.state.scenario_name == "Performance-optimized"
        assert pilot.app.state.cluster.fixed_number_of_nodes

        await pilot.click("#go_back")
        await pilot.pause(0.3)
        assert _screen_name(pilot) == "ScenarioSelectionScreen"


@pytest.mark.asyncio
async def test_invalid_comm_layer_stays_on_step(ops):
    app = _make_app(ops)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        await pilot.pause(0.3)
        await pilot.click("#go_next")
        await pilot.pause(0.3)

        # ring address is still empty
        await pilot.click("#go_next")
        await pilot.pause(0.3)
        assert _screen_name(pilot) == "CommLayerScreen"

        screen = pilot.app.screen
        screen.query_one("#inp_ring1_address", Input).value = "192.168.100.0"
        await pilot.pause(0.1)
        await pilot.click("#go_next")
        await pilot.pause(0.3)
        assert _screen_name(pilot) == "MembersScreen"
        assert pilot.app.state.cluster.ring(1).address == "192.168.100.0"


@pytest.mark.asyncio
async def test_no_validators_skips_checks(ops):
    app = _make_app(ops, no_validators=True)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        await pilot.pause(0.3)
        await pilot.click("#go_next")
        await pilot.pause(0.3)
        await pilot.click("#go_next")
        await pilot.pause(0.3)
        assert _screen_name(pilot) == "MembersScreen"


@pytest.mark.asyncio
async def test_join_cluster_sets_secondary_role(ops):
    app = _make_app(ops)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        await pilot.pause(0.3)
        await pilot.click("#go_next")
        await pilot.pause(0.3)
        await pilot.click("#go_join_cluster")
        await pilot.pause(0.3)
        assert _screen_name(pilot) == "JoinClusterScreen"

        pilot.app.screen.query_one("#inp_master_ip", Input).value = "192.168.100.100"
        await pilot.pause(0.1)
        await pilot.click("#go_next")
        await pilot.pause(0.3)
        assert _screen_name(pilot) == "MembersScreen"
        assert pilot.app.state.master_ip == "192.168.100.100"
        assert pilot.app.state.role.value == "secondary"


@pytest.mark.asyncio
async def test_debug_starts_on_overview(ops):
    app = _make_app(ops, debug=True)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        await pilot.pause(0.3)
        assert _screen_name(pilot) == "OverviewScreen"
        assert pilot.app.state.scenario_name == "Performance-optimized"
        assert pilot.app.screen.query_one("#go_install", Button).disabled


@pytest.mark.asyncio
async def test_overview_jump_and_back(ops):
    app = _make_app(ops, debug=True)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        await pilot.pause(0.3)
        pilot.app.screen.query_one("#go_ntp", Button).press()
        await pilot.pause(0.3)
        assert _screen_name(pilot) == "NtpScreen"
        await pilot.click("#go_back")
        await pilot.pause(0.3)
        assert _screen_name(pilot) == "OverviewScreen"


@pytest.mark.asyncio
async def test_install_with_sample_values(ops):
    app = _make_app(ops, debug=True, use_sample_values=True)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        await pilot.pause(0.3)
        assert _screen_name(pilot) == "OverviewScreen"
        install = pilot.app.screen.query_one("#go_install", Button)
        assert not install.disabled

        await pilot.click("#go_install")
        await pilot.pause(0.3)
        assert _screen_name(pilot) == "InstallationScreen"

        for _ in range(30):
            finish = pilot.app.screen.query_one("#go_next", Button)
            if not finish.disabled:
                break
            await pilot.pause(0.1)
        else:
            pytest.fail("Finish never became enabled")

        assert pilot.app.screen.outcome is True
        await pilot.click("#go_next")
        await pilot.pause(0.3)

    assert app.return_value == DONE
    assert "write_cluster_config" in ops.names()
    assert "register_fencing_resource" in ops.names()


@pytest.mark.asyncio
async def test_create_after_join_restores_master_role(ops):
    app = _make_app(ops)
    async with app.run_test(headless=True, size=(120, 40)) as pilot:
        await pilot.pause(0.3)
        await pilot.click("#go_next")
        await pilot.pause(0.3)
        await pilot.click("#go_join_cluster")
        await pilot.pause(0.3)
        pilot.app.screen.query_one("#inp_master_ip", Input).value = "192.168.100.100"
        await pilot.pause(0.1)
        await pilot.click("#go_next")
        await pilot.pause(0.3)
        assert _screen_name(pilot) == "MembersScreen"
        assert pilot.app.state.role.value == "secondary"

        await pilot.click("#go_back")
        await pilot.pause(0.3)
        assert _screen_name(pilot) == "JoinClusterScreen"
        await pilot.click("#go_back")
        await pilot.pause(0.3)
        assert _screen_name(pilot) == "CommLayerScreen"

        pilot.app.screen.query_one("#inp_ring1_address", Input).value = "192.168.100.0"
        await pilot.pause(0.1)
        await pilot.click("#go_next")
        await pilot.pause(0.3)
        assert _screen_name(pilot) == "MembersScreen"
        assert pilot.app.state.role.value == "master"
