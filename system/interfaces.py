from __future__ import annotations
import json
import os
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Set
from logger import log
from validators import parse_ip_prefix

SYS_NET = "/sys/class/net"


@dataclass
class InterfaceInfo:
    name: str
    operstate: str          # "up" | "down" | "unknown"
    mac: str
    ip_addresses: List[str]  # CIDR notation

    @property
    def networks(self) -> List[str]:
        """Network part of each address, e.g. '192.168.1.0/24'."""
        nets = []
        for cidr in self.ip_addresses:
            addr, prefix = parse_ip_prefix(cidr)
            nets.append(f"{addr}/{prefix}")
        return nets

    def display_str(self) -> str:
        state = self.operstate.upper()
        ips = ", ".join(self.ip_addresses) if self.ip_addresses else "no IP"
        return f"{self.name:<12} {state:<6}  {self.mac}  [{ips}]"


def _read_sysfs(iface: str, attr: str, default: Optional[str] = None) -> Optional[str]:
    path = os.path.join(SYS_NET, iface, attr)
    try:
        with open(path) as f:
            return f.read().strip()
    except OSError:
        return default


def _get_ip_addresses(iface: str) -> List[str]:
    try:
        result = subprocess.run(
            ["ip", "-j", "addr", "show", iface],
            capture_output=True, text=True, timeout=2
        )
        data = json.loads(result.stdout)
        addrs = []
        for entry in data:
            for ai in entry.get("addr_info", []):
                if ai.get("family") == "inet":
                    addrs.append(f"{ai['local']}/{ai['prefixlen']}")
        return addrs
    except (OSError, ValueError, subprocess.SubprocessError) as e:
        log.debug(f"ip addr failed for {iface}: {e}")
        return []


def get_interface_info(iface: str) -> InterfaceInfo:
    operstate = _read_sysfs(iface, "operstate", "unknown")
    mac = _read_sysfs(iface, "address", "")
    return InterfaceInfo(
        name=iface,
        operstate=operstate or "unknown",
        mac=mac or "",
        ip_addresses=_get_ip_addresses(iface),
    )


def list_interfaces(exclude_lo: bool = True) -> List[InterfaceInfo]:
    """Return all interfaces from /sys/class/net, sorted by name."""
    try:
        ifaces = sorted(os.listdir(SYS_NET))
    except OSError:
        return []
    result = []
    for name in ifaces:
        if exclude_lo and name == "lo":
            continue
        result.append(get_interface_info(name))
    return result


def local_ip_addresses() -> Set[str]:
    """Plain IPv4 addresses of every interface, loopback included."""
    ips = set()
    for iface in list_interfaces(exclude_lo=False):
        for cidr in iface.ip_addresses:
            ips.add(cidr.split("/")[0])
    return ips


def suggested_ring_networks() -> List[str]:
    """Networks of the non-loopback interfaces, candidates for ring addresses."""
    nets: List[str] = []
    for iface in list_interfaces():
        for net in iface.networks:
            if net not in nets:
                nets.append(net)
    return nets
