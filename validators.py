from __future__ import annotations
import ipaddress
import re
from typing import Any, Iterable, List, Tuple, Union
from logger import log

DEFAULT_PREFIX_LEN = 24

_LABEL_RE = re.compile(r"^[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?$")
_IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def _to_int(value: Any) -> Union[int, None]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def validate_ipv4(address: Any, label: str = "IP address") -> Tuple[bool, str]:
    if not isinstance(address, str) or not address:
        return False, f"{label}: value is missing."
    try:
        ipaddress.IPv4Address(address)
    except ValueError:
        return False, f"{label}: '{address}' is not a valid IPv4 address."
    return True, ""


def validate_ipv4_multicast(address: Any, label: str = "Multicast address") -> Tuple[bool, str]:
    ok, msg = validate_ipv4(address, label)
    if not ok:
        return ok, msg
    if not ipaddress.IPv4Address(address).is_multicast:
        return False, f"{label}: {address} is not in the multicast range 224.0.0.0-239.255.255.255."
    return True, ""


def validate_port(port: Any, label: str = "Port") -> Tuple[bool, str]:
    value = _to_int(port)
    if value is None or not (1 <= value <= 65535):
        return False, f"{label}: port must be 1-65535, got {port!r}."
    return True, ""


def validate_hostname(hostname: Any, label: str = "Hostname") -> Tuple[bool, str]:
    if not isinstance(hostname, str) or not hostname:
        return False, f"{label}: value is missing."
    if len(hostname) > 253:
        return False, f"{label}: '{hostname}' is longer than 253 characters."
    for part in hostname.split("."):
        if not _LABEL_RE.match(part):
            return False, f"{label}: '{hostname}' is not a valid host name."
    return True, ""


def validate_identifier(value: Any, label: str = "Identifier") -> Tuple[bool, str]:
    if not isinstance(value, str) or not _IDENTIFIER_RE.match(value):
        return False, (
            f"{label}: '{value}' must be non-empty and contain only "
            "letters, digits, '_' and '-'."
        )
    return True, ""


def validate_integer_in_range(
    value: Any, lo: int, hi: int, label: str = "Value"
) -> Tuple[bool, str]:
    number = _to_int(value)
    if number is None or not (lo <= number <= hi):
        return False, f"{label}: must be an integer in {lo}-{hi}, got {value!r}."
    return True, ""


def validate_nonneg_integer(value: Any, label: str = "Value") -> Tuple[bool, str]:
    number = _to_int(value)
    if number is None or number < 0:
        return False, f"{label}: must be a non-negative integer, got {value!r}."
    return True, ""


def validate_unique(values: Iterable[Any], label: str = "Values") -> Tuple[bool, str]:
    """Empty values are ignored; callers report them via validate_all_present."""
    seen = set()
    dups = []
    for v in values:
        if not v:
            continue
        if v in seen and v not in dups:
            dups.append(v)
        seen.add(v)
    if dups:
        return False, f"{label}: duplicate values {', '.join(map(str, dups))}."
    return True, ""


def validate_all_present(values: Iterable[Any], label: str = "Values") -> Tuple[bool, str]:
    if any(not v for v in values):
        return False, f"{label}: some values are missing."
    return True, ""


def validate_ips_in_network(
    ips: Iterable[str],
    network: str,
    label: str = "IP addresses",
    prefix_len: int = DEFAULT_PREFIX_LEN,
) -> Tuple[bool, str]:
    try:
        net = ipaddress.IPv4Network(f"{network}/{prefix_len}", strict=False)
    except ValueError:
        return False, f"{label}: '{network}' is not a valid network address."
    outside = []
    for ip in ips:
        try:
            if ipaddress.IPv4Address(ip) not in net:
                outside.append(ip)
        except ValueError:
            outside.append(ip)
    if outside:
        return False, f"{label}: {', '.join(map(str, outside))} not in network {net}."
    return True, ""


def validate_equal(actual: Any, expected: Any, label: str = "Value") -> Tuple[bool, str]:
    if actual != expected:
        return False, f"{label}: expected {expected!r}, got {actual!r}."
    return True, ""


def parse_ip_prefix(cidr: str) -> Tuple[str, int]:
    """Parse '192.168.1.0/24' -> ('192.168.1.0', 24). Raises ValueError on bad input."""
    net = ipaddress.IPv4Network(cidr, strict=False)
    return str(net.network_address), net.prefixlen


class Checks:
    """Runs a batch of validators and combines their outcome.

    Every check is executed even after an earlier one failed; the silent
    result is the AND of all of them, the verbose result is every message.
    """

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.passed = True
        self.errors: List[str] = []

    def _record(self, outcome: Tuple[bool, str]) -> bool:
        ok, msg = outcome
        self.passed &= ok
        if not ok:
            log.debug("Validation failed: %s", msg)
            self.errors.append(msg)
        return ok

    def result(self) -> Union[bool, List[str]]:
        return list(self.errors) if self.verbose else self.passed

    def ipv4(self, value, label):
        return self._record(validate_ipv4(value, label))

    def ipv4_multicast(self, value, label):
        return self._record(validate_ipv4_multicast(value, label))

    def port(self, value, label):
        return self._record(validate_port(value, label))

    def hostname(self, value, label):
        return self._record(validate_hostname(value, label))

    def identifier(self, value, label):
        return self._record(validate_identifier(value, label))

    def integer_in_range(self, value, lo, hi, label):
        return self._record(validate_integer_in_range(value, lo, hi, label))

    def nonneg_integer(self, value, label):
        return self._record(validate_nonneg_integer(value, label))

    def unique(self, values, label):
        return self._record(validate_unique(values, label))

    def all_present(self, values, label):
        return self._record(validate_all_present(values, label))

    def ips_in_network(self, ips, network, label, prefix_len=DEFAULT_PREFIX_LEN):
        return self._record(validate_ips_in_network(ips, network, label, prefix_len))

    def equal(self, actual, expected, label):
        return self._record(validate_equal(actual, expected, label))

    def fail(self, message: str) -> bool:
        return self._record((False, message))
