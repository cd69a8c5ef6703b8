from __future__ import annotations
from textual.widgets import Label, Select, Static
from screens.base import StepScreen
from logger import log


class ProductNotSupportedScreen(StepScreen):
    STEP_TITLE = "Product not supported"
    NAV = ("abort",)

    def compose_form(self):
        yield Static(
            "No high-availability scenarios are defined for the installed product.\n"
            "You can still set up a cluster manually with the cluster tools."
        )

    def on_mount(self) -> None:
        log.error("No HA scenarios found for product %s", self.app.state.product_id)


class ScenarioSelectionScreen(StepScreen):
    """Pick one of the HA scenarios the detected product supports."""

    STEP_TITLE = "Scenario selection"
    NAV = ("summary", "abort", "next")

    def compose_form(self):
        state = self.app.state
        scenarios = state.all_scenarios()
        if not scenarios:
            return
        current = state.scenario_name if state.scenario_name in scenarios else scenarios[0]
        yield Static(
            f"An installation of {state.product_name} was detected. Select one of "
            "the high-availability scenarios from the list below:"
        )
        yield Label("Scenario:")
        yield Select(
            options=[(name, name) for name in scenarios],
            value=current,
            allow_blank=False,
            id="sel_scenario",
        )
        yield Static(state.scenario_help(current), id="scenario_help")

    def on_mount(self) -> None:
        if not self.app.state.all_scenarios():
            self.app.finish_step("unknown")

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id == "sel_scenario":
            self.query_one("#scenario_help", Static).update(
                self.app.state.scenario_help(str(event.value))
            )

    def update_model(self) -> None:
        value = str(self.query_one("#sel_scenario", Select).value)
        if value != self.app.state.scenario_name:
            self.app.state.set_scenario(value)

    def collect_errors(self):
        if not self.app.state.scenario_name:
            return ["Select a scenario to continue."]
        return []
