from __future__ import annotations
from textual.containers import Horizontal
from textual.widgets import Button, Input, Label, Static
from exceptions import FixedTopologyError
from screens.base import StepScreen
from logger import log


class MembersScreen(StepScreen):
    """Cluster members: one row per node with a host name and an IP per ring."""

    STEP_TITLE = "Cluster Members"

    def compose_form(self):
        cluster = self.app.state.cluster
        if cluster.fixed_number_of_nodes:
            yield Static(f"This scenario requires exactly {cluster.node_count} nodes.")
        for node in cluster.nodes:
            with Horizontal(classes="node_row"):
                yield Label(f"{node.node_id}.")
                yield Input(value=node.hostname, placeholder="host name",
                            id=f"inp_host_{node.node_id}")
                for ring in range(1, cluster.ring_count + 1):
                    yield Input(value=node.ip(ring), placeholder=f"IP ring {ring}",
                                id=f"inp_ip_{node.node_id}_{ring}")
        with Horizontal(id="node_buttons"):
            yield Button("Add node", id="btn_add", disabled=cluster.fixed_number_of_nodes)
            yield Button("Remove last node", id="btn_remove",
                         disabled=cluster.fixed_number_of_nodes)

    def update_model(self) -> None:
        cluster = self.app.state.cluster
        for node in cluster.nodes:
            cluster.update_node(node.node_id, {
                "hostname": self.query_one(f"#inp_host_{node.node_id}", Input).value.strip(),
                "ips": [
                    self.query_one(f"#inp_ip_{node.node_id}_{ring}", Input).value.strip()
                    for ring in range(1, cluster.ring_count + 1)
                ],
            })

    def collect_errors(self):
        return self.app.state.cluster.validate_members(verbose=True)

    async def handle_button(self, button_id: str) -> None:
        cluster = self.app.state.cluster
        self.update_model()
        try:
            if button_id == "btn_add":
                cluster.add_node()
            elif button_id == "btn_remove":
                if cluster.node_count <= 1:
                    self.show_errors(["A cluster needs at least one node."])
                    return
                cluster.remove_node(cluster.node_count)
            else:
                await super().handle_button(button_id)
                return
        except FixedTopologyError as e:
            log.warning("Members: %s", e)
            self.show_errors([str(e)])
            return
        await self.recompose()
