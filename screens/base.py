from __future__ import annotations
from typing import Dict, Iterable, List, Tuple
from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.screen import Screen
from textual.widget import Widget
from textual.widgets import Button, Footer, Static
from widgets.ha_header import HAHeader
from logger import log

NAV_LABELS: Dict[str, Tuple[str, str]] = {
    "back": ("← Back", "default"),
    "summary": ("Overview", "default"),
    "abort": ("✗ Abort", "error"),
    "next": ("Next →", "primary"),
}


class StepScreen(Screen):
    """One step of the wizard.

    Buttons with id `go_<key>` end the step with transition key `<key>`.
    Keys listed in SAVING copy the form into the model first and keep the
    user on the step while the model reports errors.
    """

    BINDINGS = [("escape", "go('back')", "Back")]

    STEP_TITLE = ""
    NAV: Tuple[str, ...] = ("back", "summary", "abort", "next")
    SAVING: Tuple[str, ...] = ("next", "summary")

    def compose(self) -> ComposeResult:
        yield HAHeader()
        with VerticalScroll(id="form"):
            yield Static(self.STEP_TITLE, classes="title")
            yield from self.compose_form()
            yield Static("", id="err_msg", markup=False)
        with Horizontal(id="nav_buttons"):
            yield from self.nav_buttons()
        yield Footer()

    def compose_form(self) -> Iterable[Widget]:
        return []

    def nav_buttons(self) -> Iterable[Button]:
        for key in self.NAV:
            label, variant = NAV_LABELS[key]
            yield Button(label, id=f"go_{key}", variant=variant)

    # -- Hooks -----------------------------------------------------------------

    def update_model(self) -> None:
        """Copy the form values into the configuration."""

    def collect_errors(self) -> List[str]:
        return []

    async def handle_button(self, button_id: str) -> None:
        log.warning("%s: unexpected button %s", type(self).__name__, button_id)

    # -- Navigation ------------------------------------------------------------

    def show_errors(self, errors: List[str]) -> None:
        text = "\n".join(f"• {e}" for e in errors)
        self.query_one("#err_msg", Static).update(text)

    def action_go(self, key: str) -> None:
        if key in self.SAVING:
            self.update_model()
            errors = [] if self.app.state.no_validators else self.collect_errors()
            if errors:
                log.info("%s: cannot continue, %d problems", type(self).__name__, len(errors))
                self.show_errors(errors)
                return
        self.app.finish_step(key)

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id or ""
        if button_id.startswith("go_"):
            self.action_go(button_id[3:])
        else:
            await self.handle_button(button_id)
