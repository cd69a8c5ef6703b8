from __future__ import annotations
from typing import Any, Dict, List

from configuration.base import ConfigSection, Role
from logger import log
from validators import validate_hostname, validate_ipv4


class TimeSyncConfig(ConfigSection):
    """NTP servers every node synchronises with."""

    screen_name = "NTP Configuration"

    def __init__(self, ops, status=None):
        super().__init__(ops, status)
        self.used_servers: List[str] = []
        self.start_at_boot = False
        self.sync_via_cron = False

    def read_system(self) -> None:
        current = self.ops.read_time_sync()
        self.used_servers = list(current.get("servers", []))
        self.start_at_boot = bool(current.get("start_at_boot", False))
        self.sync_via_cron = bool(current.get("sync_via_cron", False))
        log.info("NTP: servers=%s start_at_boot=%s cron=%s",
                 self.used_servers, self.start_at_boot, self.sync_via_cron)

    def configured(self) -> bool:
        return (self.start_at_boot or self.sync_via_cron) and bool(self.used_servers)

    def validate(self, verbose: bool = True):
        errors = []
        if not self.configured():
            errors.append("Every node has to sync with at least one NTP server.")
        for server in self.used_servers:
            if not (validate_ipv4(server)[0] or validate_hostname(server)[0]):
                errors.append(f"NTP server '{server}' is neither an IP address nor a host name.")
        if verbose:
            return errors
        return not errors

    def payload(self) -> Dict[str, Any]:
        return {
            "servers": list(self.used_servers),
            "start_at_boot": self.start_at_boot,
            "sync_via_cron": self.sync_via_cron,
        }

    def description(self) -> str:
        servers = ", ".join(self.used_servers) or "-"
        return f"Synchronize with servers: {servers}.\nStart at boot: {self.start_at_boot}."

    def apply(self, role: Role) -> bool:
        self._check_role(role)
        if not self.configured():
            return False
        self.status.info("Applying NTP Configuration")
        # The master's time source is already in place
        if role is Role.MASTER:
            return True
        status = self.ops.write_time_sync_config(self.payload())
        self.status.log_status(status, "Wrote NTP configuration",
                               "Could not write NTP configuration")
        return status
