from __future__ import annotations
import enum
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from configuration.base import ConfigSection, LocalFacts, Role, SystemOperations
from exceptions import (
    EmptyAddressError, FixedTopologyError, InvariantViolationError,
    ModelValidationError,
)
from logger import StatusLog, log
from validators import Checks

DEFAULT_PORT = 5405
MAX_RINGS = 3
CSYNC2_KEY = "/etc/csync2/key_hagroup"

# Files kept identical on every node by csync2
SYNCED_FILES = (
    "/etc/corosync/corosync.conf",
    "/etc/corosync/authkey",
    "/etc/sysconfig/pacemaker",
    "/etc/drbd.d",
    "/etc/drbd.conf",
    "/etc/lvm/lvm.conf",
    "/etc/multipath.conf",
    "/etc/ha.d/ldirectord.cf",
    "/etc/ctdb/nodes",
    "/etc/samba/smb.conf",
    "/etc/booth",
    "/etc/sysconfig/sbd",
    "/etc/csync2/csync2.cfg",
    CSYNC2_KEY,
)


class TransportMode(enum.Enum):
    UNICAST = "unicast"
    MULTICAST = "multicast"


@dataclass
class Ring:
    id: int
    address: str = ""
    port: Union[int, str] = DEFAULT_PORT
    mcast: str = ""


@dataclass
class Node:
    node_id: int
    hostname: str = ""
    ips: List[str] = field(default_factory=list)

    def ip(self, ring_id: int) -> str:
        """Address on ring `ring_id` (1-based), '' when not entered."""
        if 1 <= ring_id <= len(self.ips):
            return self.ips[ring_id - 1]
        return ""


@dataclass(frozen=True)
class ClusterExport:
    """Cluster-wide settings handed to the host, in the corosync/csync2 vocabulary.

    `rings` holds one (bind address, multicast address, port) triple per ring.
    """

    transport: str
    rings: Tuple[Tuple[str, str, str], ...]
    member_addresses: Tuple[str, ...]
    cluster_name: str
    expected_votes: str
    host_names: Tuple[str, ...]
    included_files: Tuple[str, ...] = SYNCED_FILES
    secauth: bool = True

    @property
    def ring_count(self) -> int:
        return len(self.rings)

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"secauth": self.secauth, "transport": self.transport}
        for ix in range(1, MAX_RINGS + 1):
            bindnetaddr, mcastaddr, port = (
                self.rings[ix - 1] if ix <= self.ring_count else ("", "", "")
            )
            data[f"bindnetaddr{ix}"] = bindnetaddr
            data[f"mcastaddr{ix}"] = mcastaddr
            data[f"mcastport{ix}"] = port
            if ix > 1:
                data[f"enable{ix}"] = ix <= self.ring_count
        data.update({
            "memberaddr": [{"addr1": addr} for addr in self.member_addresses],
            "cluster_name": self.cluster_name,
            "expected_votes": self.expected_votes,
            "two_node": "1" if len(self.member_addresses) == 2 else "0",
            "autoid": True,
            "rrpmode": "none" if self.ring_count == 1 else "passive",
            "csync2_host": list(self.host_names),
            "csync2_include": list(self.included_files),
        })
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ClusterExport":
        ring_count = 1
        for ix in range(2, MAX_RINGS + 1):
            if not data.get(f"enable{ix}"):
                break
            ring_count = ix
        rings = tuple(
            (data.get(f"bindnetaddr{ix}", ""), data.get(f"mcastaddr{ix}", ""),
             str(data.get(f"mcastport{ix}", "")))
            for ix in range(1, ring_count + 1)
        )
        return cls(
            transport=data["transport"],
            rings=rings,
            member_addresses=tuple(m["addr1"] for m in data.get("memberaddr", [])),
            cluster_name=data["cluster_name"],
            expected_votes=str(data["expected_votes"]),
            host_names=tuple(data.get("csync2_host", [])),
            included_files=tuple(data.get("csync2_include", SYNCED_FILES)),
            secauth=bool(data.get("secauth", True)),
        )

    def csync2_config(self, group: str = "ha_group") -> str:
        lines = [f"group {group}", "{", f"    key {CSYNC2_KEY};"]
        lines += [f"    host {h};" for h in self.host_names]
        lines += [f"    include {f};" for f in self.included_files]
        lines.append("}")
        return "\n".join(lines) + "\n"


class ClusterTopology(ConfigSection):
    """Communication rings and cluster members.

    The rings and the nodes are edited on separate steps, so the two can
    disagree for a while: changing the ring count leaves every node's IP
    list as it was, and validation reports the mismatch until the members
    are re-entered.
    """

    screen_name = "Cluster Configuration"

    def __init__(
        self,
        ops: SystemOperations,
        status: Optional[StatusLog] = None,
        facts: Optional[LocalFacts] = None,
    ):
        super().__init__(ops, status)
        self.facts = facts if facts is not None else ops
        self.cluster_name = "hacluster"
        self.expected_votes: Union[int, str] = 2
        self.fixed_number_of_nodes = False
        self._transport_mode = TransportMode.UNICAST
        self._ring_count = 0
        self._rings: Dict[int, Ring] = {}
        self._nodes: Dict[int, Node] = {}
        self.set_ring_count(1)
        self._resize_nodes(2)

    # -- Rings ---------------------------------------------------------------

    @property
    def ring_count(self) -> int:
        return self._ring_count

    @property
    def rings(self) -> List[Ring]:
        return [self._rings[k] for k in sorted(self._rings)]

    def ring(self, ring_id: int) -> Ring:
        try:
            return self._rings[ring_id]
        except KeyError:
            raise ModelValidationError(f"No ring with id {ring_id}") from None

    def set_ring_count(self, count: int) -> None:
        if count not in range(1, MAX_RINGS + 1):
            raise ModelValidationError(
                f"Number of rings must be 1-{MAX_RINGS}, got {count!r}"
            )
        old = self._rings
        self._rings = {
            ix: old[ix] if ix in old else Ring(id=ix)
            for ix in range(1, count + 1)
        }
        self._ring_count = count
        log.info("Cluster: number of rings set to %d", count)

    @property
    def transport_mode(self) -> TransportMode:
        return self._transport_mode

    @transport_mode.setter
    def transport_mode(self, value: Union[TransportMode, str]) -> None:
        try:
            self._transport_mode = TransportMode(value)
        except ValueError:
            raise ModelValidationError(
                f"Error setting transport mode to {value!r}"
            ) from None

    @property
    def multicast(self) -> bool:
        return self._transport_mode is TransportMode.MULTICAST

    def update_ring(self, ring_id: int, fields: Mapping[str, Any]) -> None:
        ring = self.ring(ring_id)
        ring.address = fields.get("address", "")
        ring.port = fields.get("port", "")
        if self.multicast:
            ring.mcast = fields.get("mcast", "")
        log.info("Cluster: ring %d updated: %s", ring_id, ring)

    # -- Nodes ---------------------------------------------------------------

    @property
    def nodes(self) -> List[Node]:
        return [self._nodes[k] for k in sorted(self._nodes)]

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    def node(self, node_id: int) -> Node:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise ModelValidationError(f"No node with id {node_id}") from None

    def set_fixed_node_count(self, fixed: bool, count: int) -> None:
        self.fixed_number_of_nodes = fixed
        self._resize_nodes(count)
        log.info("Cluster: %s number of nodes set to %d",
                 "fixed" if fixed else "adjustable", count)

    def update_node(self, node_id: int, fields: Mapping[str, Any]) -> None:
        self.node(node_id)
        ips = list(fields.get("ips", []))
        if len(ips) != self._ring_count:
            raise InvariantViolationError(
                f"Node {node_id} was given {len(ips)} ring addresses "
                f"but the cluster has {self._ring_count} rings"
            )
        self._nodes[node_id] = Node(node_id, fields.get("hostname", ""), ips)
        log.info("Cluster: node %d updated: %s", node_id, self._nodes[node_id])

    def add_node(self, hostname: str = "", ips: Optional[List[str]] = None) -> Node:
        self._ensure_adjustable("add a node")
        node_id = len(self._nodes) + 1
        ips = list(ips) if ips is not None else [""] * self._ring_count
        if len(ips) != self._ring_count:
            raise InvariantViolationError(
                f"New node was given {len(ips)} ring addresses "
                f"but the cluster has {self._ring_count} rings"
            )
        node = Node(node_id, hostname or f"node{node_id}", ips)
        self._nodes[node_id] = node
        log.info("Cluster: added node %d", node_id)
        return node

    def remove_node(self, node_id: int) -> None:
        """Remove a node; the remaining ids are renumbered 1..n in order."""
        self._ensure_adjustable("remove a node")
        self.node(node_id)
        remaining = [n for n in self.nodes if n.node_id != node_id]
        self._nodes = {
            ix: replace(n, node_id=ix) for ix, n in enumerate(remaining, 1)
        }
        log.info("Cluster: removed node %d, %d left", node_id, len(self._nodes))

    def _ensure_adjustable(self, action: str) -> None:
        if self.fixed_number_of_nodes:
            log.error(
                "Scenario defines a fixed number of nodes (%d), cannot %s",
                len(self._nodes), action,
            )
            raise FixedTopologyError(
                f"The scenario requires exactly {len(self._nodes)} nodes; "
                f"cannot {action}."
            )

    def _resize_nodes(self, count: int) -> None:
        self._nodes = {
            ix: self._nodes.get(ix) or Node(ix, f"node{ix}", [""] * self._ring_count)
            for ix in range(1, count + 1)
        }

    def other_nodes(self) -> List[str]:
        """Ring-1 addresses of every node that is not this machine."""
        local = self.facts.local_ip_addresses()
        ips = [n.ip(1) for n in self.nodes if n.ip(1) not in local]
        if any(not ip for ip in ips):
            raise EmptyAddressError("Empty IPs detected")
        return ips

    def other_nodes_ext(self) -> List[Dict[str, str]]:
        others = self.other_nodes()
        return [
            {"hostname": n.hostname, "ip": n.ip(1)}
            for n in self.nodes if n.ip(1) in others
        ]

    # -- Validation ----------------------------------------------------------

    def validate_ring(self, ring: Ring, verbose: bool = False):
        checks = Checks(verbose)
        self._check_ring(ring, checks)
        return checks.result()

    def validate_node(self, node: Node, verbose: bool = False):
        checks = Checks(verbose)
        self._check_node(node, checks)
        return checks.result()

    def validate_comm_layer(self, verbose: bool = True):
        checks = Checks(verbose)
        self._check_comm_layer(checks)
        return checks.result()

    def validate_members(self, verbose: bool = True):
        checks = Checks(verbose)
        self._check_members(checks)
        return checks.result()

    def validate(self, verbose: bool = True):
        checks = Checks(verbose)
        self._check_comm_layer(checks)
        self._check_members(checks)
        return checks.result()

    def configured(self) -> bool:
        return self.validate(verbose=False)

    def _check_ring(self, ring: Ring, checks: Checks) -> None:
        label = f"Ring {ring.id}"
        checks.ipv4(ring.address, f"{label} address")
        checks.port(ring.port, f"{label} port")
        if self.multicast:
            checks.ipv4_multicast(ring.mcast, f"{label} multicast address")

    def _check_node(self, node: Node, checks: Checks) -> None:
        label = f"Node {node.node_id}"
        if len(node.ips) != self._ring_count:
            checks.fail(
                f"{label}: has {len(node.ips)} ring addresses, "
                f"expected {self._ring_count}."
            )
        for ix in range(1, self._ring_count + 1):
            checks.ipv4(node.ip(ix), f"{label} IP ring {ix}")
        checks.hostname(node.hostname, f"{label} hostname")
        checks.nonneg_integer(node.node_id, f"{label} ID")

    def _check_comm_layer(self, checks: Checks) -> None:
        for ring in self.rings:
            self._check_ring(ring, checks)
        checks.equal(len(self._rings), self._ring_count, "Number of rings")
        checks.identifier(self.cluster_name, "Cluster name")
        checks.integer_in_range(
            self.expected_votes, 1, len(self._nodes), "Expected votes"
        )

    def _check_members(self, checks: Checks) -> None:
        for node in self.nodes:
            self._check_node(node, checks)
        for ring in self.rings:
            column = [n.ip(ring.id) for n in self.nodes]
            label = f"IP addresses in ring #{ring.id}"
            checks.all_present(column, label)
            checks.unique(column, label)
            checks.ips_in_network(column, ring.address, label)

    # -- Export --------------------------------------------------------------

    def render_cluster_export(self) -> ClusterExport:
        return ClusterExport(
            transport="udp" if self.multicast else "udpu",
            rings=tuple(
                (r.address, r.mcast if self.multicast else "", str(r.port))
                for r in self.rings
            ),
            member_addresses=tuple(n.ip(1) for n in self.nodes),
            cluster_name=self.cluster_name,
            expected_votes=str(self.expected_votes),
            host_names=tuple(n.hostname for n in self.nodes),
        )

    def render_csync2_config(self, group: str = "ha_group") -> str:
        return self.render_cluster_export().csync2_config(group)

    def import_values(self, values: Mapping[str, Any]) -> None:
        """Bulk-load settings, bypassing the per-step editing rules."""
        self.transport_mode = values.get("transport_mode", "unicast")
        self.set_ring_count(int(values.get("number_of_rings", 1)))
        self.cluster_name = values.get("cluster_name", self.cluster_name)
        self.expected_votes = values.get("expected_votes", self.expected_votes)
        for ix, ring in enumerate(values.get("rings", []), 1):
            if ix > self._ring_count:
                break
            self._rings[ix] = Ring(
                id=ix,
                address=ring.get("address", ""),
                port=ring.get("port", DEFAULT_PORT),
                mcast=ring.get("mcast", ""),
            )
        nodes = values.get("nodes")
        if nodes is not None:
            self._nodes = {
                ix: Node(ix, n.get("hostname", ""), list(n.get("ips", [])))
                for ix, n in enumerate(nodes, 1)
            }
        log.info("Cluster: imported %d rings, %d nodes",
                 self._ring_count, len(self._nodes))

    def description(self) -> str:
        lines = [
            f"Transport mode: {self._transport_mode.value}.",
            f"Cluster name: {self.cluster_name}.",
            f"Expected votes: {self.expected_votes}.",
            "Rings:",
        ]
        for r in self.rings:
            mcast = f", multicast {r.mcast}" if self.multicast else ""
            lines.append(f"  {r.id}. {r.address or '-'}, port {r.port}{mcast}")
        lines.append("Nodes:")
        for n in self.nodes:
            ips = ", ".join(n.ip(ix) or "-" for ix in range(1, self._ring_count + 1))
            lines.append(f"  {n.node_id}. {n.hostname} ({ips})")
        return "\n".join(lines)

    # -- Apply ---------------------------------------------------------------

    def apply(self, role: Role) -> bool:
        self._check_role(role)
        self.status.info("Applying Cluster Configuration")
        flag = True
        status = self._export_config()
        flag &= status
        self.status.log_status(status, "Exported the cluster configuration",
                               "Could not export the cluster configuration")
        status = self.ops.start_cluster_services()
        flag &= status
        self.status.log_status(status, "Enabled and started cluster-required systemd units",
                               "Could not enable and start cluster-required systemd units")
        if role is Role.MASTER:
            status = self.ops.register_fencing_resource()
            flag &= status
            self.status.log_status(status, "Registered the fencing resource",
                                   "Could not register the fencing resource")
        status = self.ops.open_ports(self.rings)
        flag &= status
        self.status.log_status(status, "Opened necessary communication ports",
                               "Could not open necessary communication ports")
        return flag

    def _export_config(self) -> bool:
        log.debug("Cluster export: nodes=%s rings=%s", self.nodes, self.rings)
        if not self.configured():
            log.warning("Cluster is not configured, skipping configuration export")
            return False
        return self.ops.write_cluster_config(self.render_cluster_export().as_dict())
