from __future__ import annotations
import asyncio
from textual.widgets import Button, Static
from screens.base import StepScreen
from logger import log


class InstallationScreen(StepScreen):
    """Applies every section on this host and shows the outcome of each action."""

    STEP_TITLE = "Installation"
    NAV = ("abort", "next")
    SAVING = ()

    def __init__(self) -> None:
        super().__init__()
        self._install_task = None
        self.outcome = None

    def compose_form(self):
        state = self.app.state
        yield Static(f"Installing as {state.role.value} node…", id="install_msg")
        yield Static("", id="install_log", markup=False)

    def on_mount(self) -> None:
        self.query_one("#go_next", Button).disabled = True
        self.query_one("#go_abort", Button).disabled = True
        self._install_task = asyncio.create_task(self._install())

    def _show_entries(self) -> None:
        entries = self.app.state.status.entries
        self.query_one("#install_log", Static).update("\n".join(str(e) for e in entries))

    async def _install(self) -> None:
        state = self.app.state
        loop = asyncio.get_running_loop()
        msg = self.query_one("#install_msg", Static)
        try:
            self.outcome = await loop.run_in_executor(None, state.apply_all)
        except Exception as e:
            log.error("Installation failed: %s", e)
            self.outcome = False
            state.status.log_status(False, "", f"Installation aborted: {e}")
        self._show_entries()
        if self.outcome:
            msg.update("[green]Installation finished successfully.[/green]")
        else:
            msg.update("[red]Installation finished with errors, see the log below.[/red]")
        finish = self.query_one("#go_next", Button)
        finish.label = "Finish"
        finish.disabled = False
        self.query_one("#go_abort", Button).disabled = False

    def action_go(self, key: str) -> None:
        # nothing to go back to once the host has been changed
        if key == "back":
            return
        super().action_go(key)
