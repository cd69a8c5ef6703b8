from __future__ import annotations
from textual.containers import Vertical
from textual.widgets import Button, Static
from screens.base import StepScreen

# overview button -> transition key
SECTION_BUTTONS = {
    "Cluster Configuration": [("Communication layer", "config_network"),
                              ("Cluster members", "config_members")],
    "Fencing Mechanism": [("Fencing", "fencing")],
    "Watchdog Setup": [("Watchdog", "watchdog")],
    "NTP Configuration": [("NTP", "ntp")],
}


class OverviewScreen(StepScreen):
    """Summary of every section; jumps back into any of them or starts the installation."""

    STEP_TITLE = "High-Availability Configuration Overview"
    NAV = ("back", "abort")
    SAVING = ("install",)

    def compose_form(self):
        state = self.app.state
        yield Static(
            f"Product: {state.product_name or '-'}    "
            f"Scenario: {state.scenario_name or '-'}    "
            f"Role: {state.role.value}",
            markup=False,
        )
        for section in state.sections():
            mark = "[green]✓[/green]" if section.configured() else "[red]✗[/red]"
            with Vertical(classes="section"):
                yield Static(f"[bold]{section.screen_name}[/bold] {mark}")
                yield Static(section.description(), markup=False)
                for label, key in SECTION_BUTTONS.get(section.screen_name, []):
                    yield Button(label, id=f"go_{key}")
        yield Button("Join existing cluster", id="go_join_cluster")

    def nav_buttons(self):
        yield from super().nav_buttons()
        yield Button("Install", id="go_install", variant="success",
                     disabled=not self.app.state.can_install())

    def collect_errors(self):
        state = self.app.state
        if state.can_install():
            return []
        errors = []
        if not state.scenario_name:
            errors.append("No scenario selected.")
        for section in state.sections():
            errors += [f"{section.screen_name}: {e}" for e in section.validate(verbose=True)]
        return errors or ["Configuration is incomplete."]
