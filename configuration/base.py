from __future__ import annotations
import enum
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Set, Union
from logger import StatusLog


class Role(enum.Enum):
    MASTER = "master"
    SECONDARY = "secondary"


class LocalFacts(Protocol):
    def local_ip_addresses(self) -> Set[str]: ...


class SystemOperations(Protocol):
    """Everything the sections ask of the host. Each call reports success as a bool."""

    def write_cluster_config(self, payload: Mapping[str, Any]) -> bool: ...
    def start_cluster_services(self) -> bool: ...
    def register_fencing_resource(self) -> bool: ...
    def open_ports(self, rings: Sequence[Any]) -> bool: ...
    def install_module(self, name: str) -> bool: ...
    def load_module(self, name: str) -> bool: ...
    def write_time_sync_config(self, payload: Mapping[str, Any]) -> bool: ...
    def write_fencing_config(self, devices: Sequence[Any]) -> bool: ...
    def initialize_fencing_device(self, path: str) -> bool: ...
    def loaded_watchdogs(self) -> Set[str]: ...
    def configured_watchdogs(self) -> Set[str]: ...
    def list_watchdogs(self) -> List[str]: ...
    def read_time_sync(self) -> Dict[str, Any]: ...


class ConfigSection(ABC):
    """Common contract of every configurable topic shown on the overview."""

    screen_name = ""

    def __init__(self, ops: SystemOperations, status: Optional[StatusLog] = None):
        self.ops = ops
        self.status = status if status is not None else StatusLog()

    @abstractmethod
    def configured(self) -> bool:
        ...

    @abstractmethod
    def validate(self, verbose: bool = True) -> Union[bool, List[str]]:
        ...

    @abstractmethod
    def description(self) -> str:
        ...

    @abstractmethod
    def apply(self, role: Role) -> bool:
        ...

    @staticmethod
    def _check_role(role: Role) -> None:
        if not isinstance(role, Role):
            raise TypeError(f"Unknown role {role!r}")
