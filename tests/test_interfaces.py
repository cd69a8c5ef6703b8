# tests/test_interfaces.py
import json
import pytest
from unittest.mock import patch, MagicMock
from system.interfaces import (
    InterfaceInfo, get_interface_info, list_interfaces, local_ip_addresses,
    suggested_ring_networks,
)

def _iface(name, ips=(), state="up"):
    return InterfaceInfo(name=name, operstate=state, mac="aa:bb:cc:dd:ee:ff",
                         ip_addresses=list(ips))

def test_networks():
    iface = _iface("eth0", ["192.168.100.7/24", "10.1.2.3/8"])
    assert iface.networks == ["192.168.100.0/24", "10.0.0.0/8"]

def test_display_str_contains_key_fields():
    s = _iface("eth2", ["10.0.0.1/24"]).display_str()
    assert "eth2" in s
    assert "UP" in s
    assert "aa:bb:cc:dd:ee:ff" in s
    assert "10.0.0.1/24" in s

def test_display_str_without_ip():
    assert "no IP" in _iface("eth3", state="down").display_str()

def test_list_interfaces_excludes_loopback():
    with patch("system.interfaces.os.listdir", return_value=["lo", "eth0", "eth1"]):
        with patch("system.interfaces.get_interface_info", side_effect=_iface):
            result = list_interfaces(exclude_lo=True)
    assert [i.name for i in result] == ["eth0", "eth1"]

def test_list_interfaces_no_sysfs():
    with patch("system.interfaces.os.listdir", side_effect=FileNotFoundError):
        assert list_interfaces() == []

def test_get_interface_info_parses_ip_json():
    out = json.dumps([{"addr_info": [
        {"family": "inet", "local": "192.168.100.7", "prefixlen": 24},
        {"family": "inet6", "local": "fe80::1", "prefixlen": 64},
    ]}])
    with patch("system.interfaces._read_sysfs", side_effect=["up", "aa:bb"]):
        with patch("system.interfaces.subprocess.run",
                   return_value=MagicMock(stdout=out)):
            info = get_interface_info("eth0")
    assert info.operstate == "up"
    assert info.ip_addresses == ["192.168.100.7/24"]

def test_get_interface_info_ip_failure():
    with patch("system.interfaces._read_sysfs", return_value=None):
        with patch("system.interfaces.subprocess.run", side_effect=OSError):
            info = get_interface_info("eth0")
    assert info.operstate == "unknown"
    assert info.ip_addresses == []

def test_local_ip_addresses_include_loopback():
    ifaces = [_iface("lo", ["127.0.0.1/8"]), _iface("eth0", ["192.168.100.7/24"])]
    with patch("system.interfaces.list_interfaces", return_value=ifaces) as mock_list:
        assert local_ip_addresses() == {"127.0.0.1", "192.168.100.7"}
    mock_list.assert_called_once_with(exclude_lo=False)

def test_suggested_ring_networks_unique():
    ifaces = [_iface("eth0", ["192.168.100.7/24"]), _iface("eth1", ["192.168.100.8/24"])]
    with patch("system.interfaces.list_interfaces", return_value=ifaces):
        assert suggested_ring_networks() == ["192.168.100.0/24"]
