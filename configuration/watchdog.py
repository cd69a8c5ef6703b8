from __future__ import annotations
from typing import List, Set

from configuration.base import ConfigSection, Role
from exceptions import AlreadyConfiguredError
from logger import log


class WatchdogConfig(ConfigSection):
    screen_name = "Watchdog Setup"

    def __init__(self, ops, status=None):
        super().__init__(ops, status)
        self.loaded: Set[str] = set()
        self.configured_modules: Set[str] = set()
        self.to_install: Set[str] = set()
        self.proposals: List[str] = []

    def read_system(self) -> None:
        self.loaded = set(self.ops.loaded_watchdogs())
        self.configured_modules = set(self.ops.configured_watchdogs())
        self.proposals = list(self.ops.list_watchdogs())
        log.info("Watchdog: loaded=%s configured=%s",
                 sorted(self.loaded), sorted(self.configured_modules))

    def add_to_config(self, module: str) -> None:
        if module in self.configured_modules:
            raise AlreadyConfiguredError(f"Module {module} is already configured.")
        self.to_install.add(module)
        log.info("Watchdog: %s scheduled for installation", module)

    def remove_from_config(self, module: str) -> None:
        self.to_install.discard(module)

    def configured(self) -> bool:
        return bool(self.loaded or self.configured_modules or self.to_install)

    def validate(self, verbose: bool = True):
        if verbose:
            if not self.configured():
                return ["At least one watchdog module has to be configured or loaded."]
            return []
        return self.configured()

    def description(self) -> str:
        lines = []
        if self.configured_modules:
            lines.append(f"Configured modules: {', '.join(sorted(self.configured_modules))}.")
        if self.loaded:
            lines.append(f"Already loaded modules: {', '.join(sorted(self.loaded))}.")
        if self.to_install:
            lines.append(f"Modules to install: {', '.join(sorted(self.to_install))}.")
        return "\n".join(lines) or "No watchdog modules."

    def apply(self, role: Role) -> bool:
        self._check_role(role)
        if not self.configured():
            return False
        self.status.info("Applying Watchdog Configuration")
        flag = True
        for module in sorted(self.to_install):
            flag &= self.ops.install_module(module)
            flag &= self.ops.load_module(module)
        self.status.log_status(flag, "Configured requested watchdog devices",
                               "Could not configure requested watchdog devices")
        return flag
