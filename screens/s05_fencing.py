from __future__ import annotations
from textual.containers import Horizontal
from textual.widgets import Button, DataTable, Input, Label
from exceptions import AlreadyConfiguredError, ModelValidationError
from screens.base import StepScreen


class FencingScreen(StepScreen):
    STEP_TITLE = "Fencing Mechanism (SBD devices)"

    def compose_form(self):
        yield DataTable(id="device_table")
        yield Label("Device path:")
        yield Input(placeholder="/dev/disk/by-id/…", id="inp_device")
        yield Label("Device type:")
        yield Input(value="disk", id="inp_type")
        yield Label("UUID (optional):")
        yield Input(id="inp_uuid")
        with Horizontal(id="device_buttons"):
            yield Button("Add device", id="btn_add")
            yield Button("Remove device", id="btn_remove")

    def on_mount(self) -> None:
        table = self.query_one("#device_table", DataTable)
        table.add_columns("#", "Device", "Type", "UUID")
        self._refresh_table()

    def _refresh_table(self) -> None:
        table = self.query_one("#device_table", DataTable)
        table.clear()
        for ix, d in enumerate(self.app.state.fencing.devices, 1):
            table.add_row(str(ix), d.name, d.device_type, d.uuid or "-")

    async def handle_button(self, button_id: str) -> None:
        fencing = self.app.state.fencing
        name = self.query_one("#inp_device", Input).value.strip()
        if button_id not in ("btn_add", "btn_remove"):
            await super().handle_button(button_id)
            return
        if not name:
            self.show_errors(["Enter a device path."])
            return
        try:
            if button_id == "btn_add":
                fencing.add_device(
                    name,
                    self.query_one("#inp_type", Input).value.strip(),
                    self.query_one("#inp_uuid", Input).value.strip(),
                )
            else:
                fencing.remove_device(name)
        except (AlreadyConfiguredError, ModelValidationError) as e:
            self.show_errors([str(e)])
            return
        self.show_errors([])
        self.query_one("#inp_device", Input).value = ""
        self._refresh_table()

    def collect_errors(self):
        return self.app.state.fencing.validate(verbose=True)
