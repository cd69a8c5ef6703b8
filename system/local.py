from __future__ import annotations
import os
import shutil
import subprocess
import yaml
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence, Set
from configuration.cluster import CSYNC2_KEY, ClusterExport
from logger import log
from system import interfaces

CLUSTER_EXPORT_FILE = Path("/etc/ha-wizard/cluster.yaml")
CSYNC2_CONFIG = Path("/etc/csync2/csync2.cfg")
SBD_SYSCONFIG = Path("/etc/sysconfig/sbd")
MODULES_LOAD_FILE = Path("/etc/modules-load.d/ha-wizard-watchdog.conf")
MODULES_LOAD_DIR = Path("/etc/modules-load.d")
PROC_MODULES = Path("/proc/modules")
WATCHDOG_DRIVERS_DIR = Path("/lib/modules") / os.uname().release / "kernel/drivers/watchdog"
TIMESYNCD_CONF = Path("/etc/systemd/timesyncd.conf")
NTP_CONF_DIR = Path("/etc/systemd/timesyncd.conf.d")
NTP_CONF_FILENAME = "ha-wizard.conf"
CRON_SYNC_FILE = Path("/etc/cron.d/ha-wizard-timesync")

CLUSTER_SERVICES = ["csync2.socket", "pacemaker"]
# csync2, hawk web UI
CLUSTER_TCP_PORTS = [30865, 7630]


def _run(cmd: List[str]) -> bool:
    try:
        subprocess.run(cmd, check=True, capture_output=True, text=True)
        log.info("Ran: %s", " ".join(cmd))
        return True
    except subprocess.CalledProcessError as e:
        log.warning("%s failed (rc=%s): %s", " ".join(cmd), e.returncode,
                    (e.stderr or "").strip())
        return False
    except OSError as e:
        log.warning("%s failed: %s", " ".join(cmd), e)
        return False


def _module_name(filename: str) -> str:
    """'softdog.ko.xz' -> 'softdog'"""
    return filename.split(".", 1)[0]


class LocalSystem:
    """System operations and local facts for the host the wizard runs on."""

    # -- Local facts -----------------------------------------------------------

    def local_ip_addresses(self) -> Set[str]:
        return interfaces.local_ip_addresses()

    # -- Cluster ---------------------------------------------------------------

    def write_cluster_config(self, payload: Mapping[str, Any]) -> bool:
        try:
            CLUSTER_EXPORT_FILE.parent.mkdir(parents=True, exist_ok=True)
            with open(CLUSTER_EXPORT_FILE, "w") as f:
                yaml.dump(dict(payload), f, default_flow_style=False)
            os.chmod(CLUSTER_EXPORT_FILE, 0o600)
            log.info("Wrote cluster export to %s", CLUSTER_EXPORT_FILE)

            CSYNC2_CONFIG.parent.mkdir(parents=True, exist_ok=True)
            CSYNC2_CONFIG.write_text(ClusterExport.from_dict(payload).csync2_config())
            os.chmod(CSYNC2_CONFIG, 0o644)
            log.info("Wrote csync2 config to %s", CSYNC2_CONFIG)
        except OSError as e:
            log.error("Failed to write cluster config: %s", e)
            return False
        if not Path(CSYNC2_KEY).exists():
            return _run(["csync2", "-k", CSYNC2_KEY])
        return True

    def start_cluster_services(self) -> bool:
        results = [_run(["systemctl", "enable", "--now", unit]) for unit in CLUSTER_SERVICES]
        return all(results)

    def register_fencing_resource(self) -> bool:
        return _run(["crm", "configure", "primitive", "stonith-sbd", "stonith:external/sbd"])

    def open_ports(self, rings: Sequence[Any]) -> bool:
        if shutil.which("firewall-cmd") is None:
            log.info("firewall-cmd not found – assuming no firewall")
            return True
        ports = [f"{p}/tcp" for p in CLUSTER_TCP_PORTS]
        valid = True
        for ring in rings:
            try:
                port = int(ring.port)
            except (TypeError, ValueError):
                log.error("Ring %s has an invalid port %r, not opening it", ring.id, ring.port)
                valid = False
                continue
            # corosync sends from mcastport - 1 and receives on mcastport
            for p in (port - 1, port):
                if f"{p}/udp" not in ports:
                    ports.append(f"{p}/udp")
        results = [_run(["firewall-cmd", "--permanent", f"--add-port={p}"]) for p in ports]
        results.append(_run(["firewall-cmd", "--reload"]))
        return valid and all(results)

    # -- Fencing ---------------------------------------------------------------

    def initialize_fencing_device(self, path: str) -> bool:
        return _run(["sbd", "-d", path, "create"])

    def write_fencing_config(self, devices: Sequence[Any]) -> bool:
        """Set SBD_DEVICE in the sbd sysconfig, keeping unrelated lines."""
        keys = ("SBD_DEVICE=", "SBD_WATCHDOG_DEV=")
        lines: List[str] = []
        try:
            if SBD_SYSCONFIG.exists():
                for line in SBD_SYSCONFIG.read_text().splitlines():
                    if not line.startswith(keys):
                        lines.append(line)
            lines += [
                f'SBD_DEVICE="{";".join(d.name for d in devices)}"',
                "SBD_WATCHDOG_DEV=/dev/watchdog",
            ]
            SBD_SYSCONFIG.parent.mkdir(parents=True, exist_ok=True)
            SBD_SYSCONFIG.write_text("\n".join(lines) + "\n")
        except OSError as e:
            log.error("Failed to write %s: %s", SBD_SYSCONFIG, e)
            return False
        log.info("Wrote SBD config to %s", SBD_SYSCONFIG)
        return True

    # -- Watchdog --------------------------------------------------------------

    def list_watchdogs(self) -> List[str]:
        try:
            names = {_module_name(f.name) for f in WATCHDOG_DRIVERS_DIR.iterdir()}
        except OSError:
            names = set()
        names.add("softdog")
        return sorted(names)

    def loaded_watchdogs(self) -> Set[str]:
        try:
            loaded = {line.split()[0] for line in PROC_MODULES.read_text().splitlines() if line}
        except OSError:
            return set()
        return loaded & set(self.list_watchdogs())

    def configured_watchdogs(self) -> Set[str]:
        configured: Set[str] = set()
        for conf in sorted(MODULES_LOAD_DIR.glob("*.conf")):
            try:
                for line in conf.read_text().splitlines():
                    line = line.strip()
                    if line and not line.startswith("#"):
                        configured.add(line)
            except OSError as e:
                log.debug("Cannot read %s: %s", conf, e)
        return configured & set(self.list_watchdogs())

    def install_module(self, name: str) -> bool:
        try:
            MODULES_LOAD_FILE.parent.mkdir(parents=True, exist_ok=True)
            existing = MODULES_LOAD_FILE.read_text().split() if MODULES_LOAD_FILE.exists() else []
            if name not in existing:
                with open(MODULES_LOAD_FILE, "a") as f:
                    f.write(f"{name}\n")
        except OSError as e:
            log.error("Failed to register module %s: %s", name, e)
            return False
        log.info("Registered module %s in %s", name, MODULES_LOAD_FILE)
        return True

    def load_module(self, name: str) -> bool:
        return _run(["modprobe", name])

    # -- Time sync -------------------------------------------------------------

    def read_time_sync(self) -> Dict[str, Any]:
        servers: List[str] = []
        confs = [TIMESYNCD_CONF] + sorted(NTP_CONF_DIR.glob("*.conf"))
        for conf in confs:
            try:
                text = conf.read_text()
            except OSError:
                continue
            for line in text.splitlines():
                if line.strip().startswith("NTP="):
                    # later files override earlier ones
                    servers = line.split("=", 1)[1].split()
        return {
            "servers": servers,
            "start_at_boot": _run(["systemctl", "is-enabled", "systemd-timesyncd"]),
            "sync_via_cron": CRON_SYNC_FILE.exists(),
        }

    def write_time_sync_config(self, payload: Mapping[str, Any]) -> bool:
        """Write NTP servers to a systemd-timesyncd drop-in and enable the service."""
        servers = payload.get("servers", [])
        try:
            NTP_CONF_DIR.mkdir(parents=True, exist_ok=True)
            conf_path = NTP_CONF_DIR / NTP_CONF_FILENAME
            conf_path.write_text(f"[Time]\nNTP={' '.join(servers)}\n")
            os.chmod(conf_path, 0o644)
            log.info("Wrote NTP config to %s", conf_path)
            if payload.get("sync_via_cron"):
                CRON_SYNC_FILE.write_text(
                    "@reboot root /usr/bin/systemctl restart systemd-timesyncd\n"
                )
                log.info("Wrote boot-time sync job to %s", CRON_SYNC_FILE)
        except OSError as e:
            log.error("Failed to write NTP config: %s", e)
            return False
        if payload.get("start_at_boot"):
            return _run(["systemctl", "enable", "--now", "systemd-timesyncd"])
        return _run(["systemctl", "restart", "systemd-timesyncd"])
