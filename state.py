from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml

from configuration.base import ConfigSection, Role, SystemOperations
from configuration.cluster import ClusterTopology
from configuration.fencing import FencingConfig
from configuration.ntp import TimeSyncConfig
from configuration.watchdog import WatchdogConfig
from exceptions import ProductNotFoundError, ScenarioNotFoundError
from logger import StatusLog, log

DATA_DIR = Path(__file__).parent / "data"
SCENARIOS_FILE = DATA_DIR / "scenarios.yaml"
SAMPLE_CONFIG_FILE = DATA_DIR / "sample_config.yaml"


def load_products(path=SCENARIOS_FILE) -> Dict[str, Any]:
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _default_ops() -> SystemOperations:
    from system.local import LocalSystem
    return LocalSystem()


@dataclass
class WizardState:
    ops: SystemOperations = field(default_factory=_default_ops)
    status: StatusLog = field(default_factory=StatusLog)
    products: Dict[str, Any] = field(default_factory=load_products)

    product_id: Optional[str] = None
    scenario_name: Optional[str] = None
    role: Role = Role.MASTER
    master_ip: str = ""

    # Run flags
    debug: bool = False
    no_validators: bool = False
    use_sample_values: bool = False

    cluster: Optional[ClusterTopology] = None
    fencing: Optional[FencingConfig] = None
    watchdog: Optional[WatchdogConfig] = None
    ntp: Optional[TimeSyncConfig] = None

    def __post_init__(self) -> None:
        if self.cluster is None:
            self.cluster = ClusterTopology(self.ops, self.status)
        if self.fencing is None:
            self.fencing = FencingConfig(self.ops, self.status)
        if self.watchdog is None:
            self.watchdog = WatchdogConfig(self.ops, self.status)
        if self.ntp is None:
            self.ntp = TimeSyncConfig(self.ops, self.status)

    # -- Product / scenario --------------------------------------------------

    @property
    def product(self) -> Dict[str, Any]:
        return self.products.get(self.product_id, {}) if self.product_id else {}

    @property
    def product_name(self) -> str:
        return self.product.get("name", self.product_id or "")

    def set_product(self, product_id: str) -> None:
        if product_id not in self.products:
            raise ProductNotFoundError(f"Product {product_id!r} is not supported")
        self.product_id = product_id
        self.scenario_name = None
        log.info("Product set to %s", product_id)

    def all_scenarios(self) -> List[str]:
        return [s["name"] for s in self.product.get("scenarios", [])]

    def scenario_help(self, name: str) -> str:
        return self._scenario(name).get("help", "")

    def set_scenario(self, name: str) -> None:
        scenario = self._scenario(name)
        self.scenario_name = name
        self.cluster.set_fixed_node_count(
            bool(scenario.get("fixed_number_of_nodes", False)),
            int(scenario.get("number_of_nodes", 2)),
        )
        log.info("Scenario set to %s", name)

    def _scenario(self, name: str) -> Dict[str, Any]:
        for s in self.product.get("scenarios", []):
            if s["name"] == name:
                return s
        raise ScenarioNotFoundError(
            f"Scenario {name!r} is not defined for product {self.product_id!r}"
        )

    # -- Sections ------------------------------------------------------------

    def sections(self) -> List[ConfigSection]:
        return [self.cluster, self.fencing, self.watchdog, self.ntp]

    def apply_order(self) -> List[ConfigSection]:
        # Time sync, watchdog and SBD must be in place before pacemaker starts
        return [self.ntp, self.watchdog, self.fencing, self.cluster]

    def read_system(self) -> None:
        """Load the parts of the configuration that mirror the live host."""
        self.watchdog.read_system()
        self.ntp.read_system()

    def load_sample_values(self, path=SAMPLE_CONFIG_FILE) -> None:
        with open(path) as f:
            values = yaml.safe_load(f) or {}
        log.info("Loading sample values from %s", path)
        self.set_product(values.get("product_id", "HANA"))
        self.set_scenario(values.get("scenario_name", self.all_scenarios()[0]))
        self.cluster.import_values(values.get("cluster", {}))
        self.fencing.devices = []
        for d in values.get("fencing", {}).get("devices", []):
            self.fencing.add_device(d["name"], d.get("device_type", "disk"), d.get("uuid", ""))
        for module in values.get("watchdog", {}).get("to_install", []):
            self.watchdog.add_to_config(module)
        ntp = values.get("ntp", {})
        self.ntp.used_servers = list(ntp.get("servers", []))
        self.ntp.start_at_boot = bool(ntp.get("start_at_boot", False))
        self.ntp.sync_via_cron = bool(ntp.get("sync_via_cron", False))

    def can_install(self) -> bool:
        flag = bool(self.product_id and self.scenario_name)
        for section in self.sections():
            flag &= section.configured()
        return flag

    def apply_all(self) -> bool:
        """Apply every section with the current role, even after a failure."""
        log.info("Applying configuration as %s", self.role.value)
        flag = True
        for section in self.apply_order():
            status = section.apply(self.role)
            if not status:
                log.warning("%s: apply reported failure", section.screen_name)
            flag &= status
        self.status.log_status(flag, "Configuration applied", "Configuration applied with errors")
        return flag
