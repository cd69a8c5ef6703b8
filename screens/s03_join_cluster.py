from __future__ import annotations
from textual.widgets import Button, Input, Label, Static
from configuration.base import Role
from screens.base import StepScreen
from system.reachability import build_check_matrix, run_all_checks
from validators import validate_ipv4
from logger import log


class JoinClusterScreen(StepScreen):
    """Join a cluster that is already running on another node."""

    STEP_TITLE = "Join Existing Cluster"

    def compose_form(self):
        yield Static(
            "This node will import its settings from the node that created the "
            "cluster. Enter the ring 1 address of that node."
        )
        yield Label("Address of the existing cluster node:")
        yield Input(value=self.app.state.master_ip,
                    placeholder="e.g. 192.168.100.100", id="inp_master_ip")
        yield Button("Check connection", id="btn_check")
        yield Static("", id="check_results", markup=False)

    async def handle_button(self, button_id: str) -> None:
        if button_id != "btn_check":
            await super().handle_button(button_id)
            return
        ip = self.query_one("#inp_master_ip", Input).value.strip()
        ok, msg = validate_ipv4(ip, "Node address")
        if not ok:
            self.show_errors([msg])
            return
        self.show_errors([])
        out = self.query_one("#check_results", Static)
        out.update("Checking…")
        results = await run_all_checks(build_check_matrix([ip]))
        out.update("\n".join(str(r) for r in results))

    def update_model(self) -> None:
        state = self.app.state
        state.master_ip = self.query_one("#inp_master_ip", Input).value.strip()
        state.role = Role.SECONDARY
        log.info("Join cluster: master at %s, this node is secondary", state.master_ip)

    def collect_errors(self):
        ok, msg = validate_ipv4(self.app.state.master_ip, "Node address")
        return [] if ok else [msg]
