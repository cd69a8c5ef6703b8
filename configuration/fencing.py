from __future__ import annotations
from dataclasses import dataclass
from typing import List

from configuration.base import ConfigSection, Role
from exceptions import AlreadyConfiguredError, ModelValidationError
from logger import log
from validators import Checks


@dataclass
class FencingDevice:
    name: str
    device_type: str = "disk"
    uuid: str = ""


class FencingConfig(ConfigSection):
    """STONITH block devices (SBD) shared by all the nodes."""

    screen_name = "Fencing Mechanism"

    def __init__(self, ops, status=None):
        super().__init__(ops, status)
        self.devices: List[FencingDevice] = []

    def add_device(self, name: str, device_type: str = "disk", uuid: str = "") -> FencingDevice:
        if any(d.name == name for d in self.devices):
            raise AlreadyConfiguredError(f"Device {name} is already configured.")
        device = FencingDevice(name, device_type, uuid)
        self.devices.append(device)
        log.info("Fencing: added device %s", device)
        return device

    def remove_device(self, name: str) -> None:
        for device in self.devices:
            if device.name == name:
                self.devices.remove(device)
                log.info("Fencing: removed device %s", name)
                return
        raise ModelValidationError(f"No fencing device named {name}")

    def configured(self) -> bool:
        return bool(self.devices) and self.validate(verbose=False)

    def validate(self, verbose: bool = True):
        checks = Checks(verbose)
        if not self.devices:
            checks.fail("At least one fencing device has to be configured.")
        names = [d.name for d in self.devices]
        checks.all_present(names, "Fencing device names")
        checks.unique(names, "Fencing device names")
        for d in self.devices:
            if not d.device_type:
                checks.fail(f"Fencing device {d.name}: device type is missing.")
        return checks.result()

    def description(self) -> str:
        if not self.devices:
            return "No fencing devices configured."
        lines = ["Devices:"]
        for ix, d in enumerate(self.devices, 1):
            uuid = f" [{d.uuid}]" if d.uuid else ""
            lines.append(f"  {ix}. {d.name} ({d.device_type}){uuid}")
        return "\n".join(lines)

    def apply(self, role: Role) -> bool:
        self._check_role(role)
        self.status.info("Applying Fencing Configuration")
        flag = True
        if role is Role.MASTER:
            for d in self.devices:
                status = self.ops.initialize_fencing_device(d.name)
                flag &= status
                self.status.log_status(status, f"Initialized fencing device {d.name}",
                                       f"Could not initialize fencing device {d.name}")
        status = self.ops.write_fencing_config(self.devices)
        flag &= status
        self.status.log_status(status, "Wrote the fencing configuration",
                               "Could not write the fencing configuration")
        return flag
