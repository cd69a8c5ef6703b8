# tests/test_state.py
import pytest

from configuration.base import Role
from exceptions import ProductNotFoundError, ScenarioNotFoundError


def test_products_loaded(state):
    assert set(state.products) >= {"HANA", "NW"}


def test_set_product(state):
    state.set_product("HANA")
    assert state.product_name == "SAP HANA"
    assert state.all_scenarios() == ["Performance-optimized", "Cost-optimized"]


def test_unknown_product(state):
    with pytest.raises(ProductNotFoundError):
        state.set_product("ORACLE")
    assert state.product_id is None
    assert state.all_scenarios() == []


def test_set_scenario_applies_node_count(state):
    state.set_product("HANA")
    state.set_scenario("Cost-optimized")
    assert state.scenario_name == "Cost-optimized"
    assert state.cluster.fixed_number_of_nodes
    assert state.cluster.node_count == 2
    assert "non-production" in state.scenario_help("Cost-optimized")


def test_adjustable_scenario(state):
    state.set_product("NW")
    state.set_scenario("ASCS/ERS")
    assert not state.cluster.fixed_number_of_nodes
    state.cluster.add_node()
    assert state.cluster.node_count == 3


def test_unknown_scenario(state):
    state.set_product("HANA")
    with pytest.raises(ScenarioNotFoundError):
        state.set_scenario("ASCS/ERS")


def test_read_system(state, ops):
    ops.loaded = {"softdog"}
    ops.time_sync = {"servers": ["pool.ntp.org"], "start_at_boot": True}
    state.read_system()
    assert state.watchdog.configured()
    assert state.ntp.configured()


def test_sample_values_make_state_installable(configured_state):
    state = configured_state
    assert state.product_id == "HANA"
    assert state.cluster.ring_count == 2
    assert state.cluster.node(2).hostname == "hana02"
    assert [d.name for d in state.fencing.devices] == ["/dev/sda"]
    assert state.can_install()


def test_cannot_install_without_scenario(configured_state):
    configured_state.scenario_name = None
    assert not configured_state.can_install()


def test_cannot_install_with_unconfigured_section(configured_state):
    configured_state.fencing.devices = []
    assert not configured_state.can_install()


def test_apply_all_order(configured_state, ops):
    assert configured_state.apply_all()
    names = ops.names()
    assert names.index("install_module") < names.index("initialize_fencing_device")
    assert names.index("write_fencing_config") < names.index("write_cluster_config")
    assert configured_state.status.entries[-1].success


def test_apply_all_runs_every_section_after_failure(state, ops):
    # nothing is configured: the cluster export fails but the remaining actions still run
    state.fencing.add_device("/dev/sda")
    assert state.apply_all() is False
    names = ops.names()
    assert "write_cluster_config" not in names
    assert "initialize_fencing_device" in names
    assert "start_cluster_services" in names
    assert "open_ports" in names
    assert not state.status.entries[-1].success


def test_apply_all_as_secondary(configured_state, ops):
    configured_state.role = Role.SECONDARY
    assert configured_state.apply_all()
    names = ops.names()
    assert "write_time_sync_config" in names
    assert "register_fencing_resource" not in names
    assert "initialize_fencing_device" not in names
