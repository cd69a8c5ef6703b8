from __future__ import annotations
from textual.containers import Horizontal
from textual.widgets import Button, Input, Label, Static
from exceptions import AlreadyConfiguredError
from screens.base import StepScreen


class WatchdogScreen(StepScreen):
    STEP_TITLE = "Watchdog Setup"

    def compose_form(self):
        watchdog = self.app.state.watchdog
        yield Static(
            "Available modules: " + (", ".join(watchdog.proposals) or "-"),
            id="proposals",
        )
        yield Static("", id="modules")
        yield Label("Module to install:")
        yield Input(placeholder="e.g. softdog", id="inp_module")
        with Horizontal(id="module_buttons"):
            yield Button("Add module", id="btn_add")
            yield Button("Remove module", id="btn_remove")

    def on_mount(self) -> None:
        self._show_modules()

    def _show_modules(self) -> None:
        self.query_one("#modules", Static).update(self.app.state.watchdog.description())

    async def handle_button(self, button_id: str) -> None:
        watchdog = self.app.state.watchdog
        module = self.query_one("#inp_module", Input).value.strip()
        if button_id == "btn_add":
            if not module:
                self.show_errors(["Enter a module name."])
                return
            try:
                watchdog.add_to_config(module)
            except AlreadyConfiguredError as e:
                self.show_errors([str(e)])
                return
        elif button_id == "btn_remove":
            watchdog.remove_from_config(module)
        else:
            await super().handle_button(button_id)
            return
        self.show_errors([])
        self._show_modules()

    def collect_errors(self):
        return self.app.state.watchdog.validate(verbose=True)
