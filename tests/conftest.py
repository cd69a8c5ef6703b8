# tests/conftest.py
import sys, os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from logger import StatusLog
from state import WizardState


class FakeOps:
    """Records every host operation; each returns `results.get(name, True)`."""

    def __init__(self, local_ips=("10.0.0.1",)):
        self.calls = []
        self.results = {}
        self.local_ips = set(local_ips)
        self.loaded = set()
        self.configured = set()
        self.available = ["iTCO_wdt", "softdog"]
        self.time_sync = {"servers": [], "start_at_boot": False, "sync_via_cron": False}

    def _call(self, name, *args):
        self.calls.append((name,) + args)
        return self.results.get(name, True)

    def names(self):
        return [c[0] for c in self.calls]

    def local_ip_addresses(self):
        return set(self.local_ips)

    def write_cluster_config(self, payload):
        return self._call("write_cluster_config", payload)

    def start_cluster_services(self):
        return self._call("start_cluster_services")

    def register_fencing_resource(self):
        return self._call("register_fencing_resource")

    def open_ports(self, rings):
        return self._call("open_ports", list(rings))

    def install_module(self, name):
        return self._call("install_module", name)

    def load_module(self, name):
        return self._call("load_module", name)

    def write_time_sync_config(self, payload):
        return self._call("write_time_sync_config", payload)

    def write_fencing_config(self, devices):
        return self._call("write_fencing_config", list(devices))

    def initialize_fencing_device(self, path):
        return self._call("initialize_fencing_device", path)

    def loaded_watchdogs(self):
        return set(self.loaded)

    def configured_watchdogs(self):
        return set(self.configured)

    def list_watchdogs(self):
        return list(self.available)

    def read_time_sync(self):
        return dict(self.time_sync)


@pytest.fixture
def ops():
    return FakeOps()


@pytest.fixture
def status():
    return StatusLog()


@pytest.fixture
def state(ops):
    return WizardState(ops=ops)


@pytest.fixture
def configured_state(state):
    """HANA scenario with every section ready for installation."""
    state.load_sample_values()
    return state
