from __future__ import annotations
from textual.containers import Horizontal
from textual.widgets import Button, Input, Label, Select, Static
from configuration.base import Role
from configuration.cluster import MAX_RINGS, TransportMode
from screens.base import StepScreen
from system.interfaces import suggested_ring_networks
from logger import log


def _as_int(text: str):
    """Digits become an int; anything else is kept so validation can report it."""
    text = text.strip()
    return int(text) if text.isdigit() else text


class CommLayerScreen(StepScreen):
    """Communication layer: transport, rings, cluster name and votes."""

    STEP_TITLE = "Communication Layer"

    def compose_form(self):
        cluster = self.app.state.cluster
        yield Label("Transport mode:")
        yield Select(
            options=[("Unicast", TransportMode.UNICAST.value),
                     ("Multicast", TransportMode.MULTICAST.value)],
            value=cluster.transport_mode.value,
            allow_blank=False,
            id="sel_transport",
        )
        yield Label("Number of rings:")
        yield Select(
            options=[(str(n), n) for n in range(1, MAX_RINGS + 1)],
            value=cluster.ring_count,
            allow_blank=False,
            id="sel_rings",
        )
        yield Label("Cluster name:")
        yield Input(value=cluster.cluster_name, id="inp_cluster_name")
        yield Label("Expected votes:")
        yield Input(value=str(cluster.expected_votes), id="inp_votes")
        for ix in range(1, MAX_RINGS + 1):
            ring = cluster.ring(ix) if ix <= cluster.ring_count else None
            with Horizontal(id=f"ring{ix}_row", classes="ring_row"):
                yield Label(f"Ring {ix}:")
                yield Input(value=ring.address if ring else "",
                            placeholder="network address, e.g. 192.168.100.0",
                            id=f"inp_ring{ix}_address")
                yield Input(value=str(ring.port) if ring else "5405",
                            placeholder="port", id=f"inp_ring{ix}_port")
                yield Input(value=ring.mcast if ring else "",
                            placeholder="multicast address",
                            id=f"inp_ring{ix}_mcast", classes="mcast")
        nets = suggested_ring_networks()
        yield Static(
            f"Networks on this machine: {', '.join(nets) if nets else '-'}",
            id="networks_hint",
        )

    def nav_buttons(self):
        yield from super().nav_buttons()
        yield Button("Join existing cluster", id="go_join_cluster", variant="warning")

    def on_mount(self) -> None:
        self._refresh_rows()

    def _refresh_rows(self) -> None:
        count = int(self.query_one("#sel_rings", Select).value)
        multicast = self.query_one("#sel_transport", Select).value == TransportMode.MULTICAST.value
        for ix in range(1, MAX_RINGS + 1):
            self.query_one(f"#ring{ix}_row").display = ix <= count
            self.query_one(f"#inp_ring{ix}_mcast").display = multicast

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id in ("sel_rings", "sel_transport"):
            self._refresh_rows()

    def update_model(self) -> None:
        # leaving this step forward means creating a new cluster
        self.app.state.role = Role.MASTER
        cluster = self.app.state.cluster
        cluster.transport_mode = str(self.query_one("#sel_transport", Select).value)
        count = int(self.query_one("#sel_rings", Select).value)
        if count != cluster.ring_count:
            cluster.set_ring_count(count)
        cluster.cluster_name = self.query_one("#inp_cluster_name", Input).value.strip()
        cluster.expected_votes = _as_int(self.query_one("#inp_votes", Input).value)
        for ix in range(1, count + 1):
            cluster.update_ring(ix, {
                "address": self.query_one(f"#inp_ring{ix}_address", Input).value.strip(),
                "port": _as_int(self.query_one(f"#inp_ring{ix}_port", Input).value),
                "mcast": self.query_one(f"#inp_ring{ix}_mcast", Input).value.strip(),
            })
        log.info("Communication layer: %d rings, %s", count, cluster.transport_mode.value)

    def collect_errors(self):
        return self.app.state.cluster.validate_comm_layer(verbose=True)
