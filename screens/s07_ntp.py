from __future__ import annotations
from textual.widgets import Checkbox, Input, Label
from screens.base import StepScreen
from logger import log


class NtpScreen(StepScreen):
    """Time synchronisation for every cluster node."""

    STEP_TITLE = "NTP Configuration"

    def compose_form(self):
        ntp = self.app.state.ntp
        yield Label("NTP Servers (comma-separated):")
        yield Input(value=", ".join(ntp.used_servers),
                    placeholder="pool.ntp.org", id="inp_ntp")
        yield Checkbox("Start NTP service at boot", id="chk_boot", value=ntp.start_at_boot)
        yield Checkbox("Synchronize once at boot (cron job)", id="chk_cron",
                       value=ntp.sync_via_cron)

    def update_model(self) -> None:
        ntp = self.app.state.ntp
        raw = self.query_one("#inp_ntp", Input).value
        ntp.used_servers = [s.strip() for s in raw.split(",") if s.strip()]
        ntp.start_at_boot = self.query_one("#chk_boot", Checkbox).value
        ntp.sync_via_cron = self.query_one("#chk_cron", Checkbox).value
        log.info("NTP: servers=%s boot=%s cron=%s",
                 ntp.used_servers, ntp.start_at_boot, ntp.sync_via_cron)

    def collect_errors(self):
        return self.app.state.ntp.validate(verbose=True)
