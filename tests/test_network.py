import socket
from typing import NamedTuple

import pytest

from otaserve.errors import StartupError
from otaserve.utils import network
from otaserve.utils.network import interfaceAddresses, isUsableAddress, resolveHost


class Address(NamedTuple):
	family: int
	address: str


class Stats(NamedTuple):
	isup: bool


def candidates(
	monkeypatch: pytest.MonkeyPatch,
	route: str | None,
	interfaces: list[str],
	host: list[str],
) -> None:
	monkeypatch.setattr(network, "routeAddress", lambda: route)
	monkeypatch.setattr(network, "interfaceAddresses", lambda: interfaces)
	monkeypatch.setattr(network, "hostAddresses", lambda: host)


def test_usable_addresses():
	assert isUsableAddress("192.168.1.20")
	assert isUsableAddress("10.0.0.5")
	assert not isUsableAddress("127.0.0.1")
	assert not isUsableAddress("127.1.2.3")
	assert not isUsableAddress("0.0.0.0")
	assert not isUsableAddress("169.254.10.1")
	assert isUsableAddress("169.254.10.1", linkLocal=True)
	assert not isUsableAddress("127.0.0.1", linkLocal=True)
	assert not isUsableAddress("::1")
	assert not isUsableAddress("fe80::1")
	assert not isUsableAddress("not an address")


def test_resolve_prefers_route(monkeypatch: pytest.MonkeyPatch):
	candidates(monkeypatch, "192.168.1.20", ["10.0.0.7"], ["10.0.0.5"])
	assert resolveHost() == "192.168.1.20"


def test_resolve_skips_loopback(monkeypatch: pytest.MonkeyPatch):
	candidates(monkeypatch, "127.0.0.1", ["127.0.0.1"], ["127.0.1.1", "10.0.0.5"])
	assert resolveHost() == "10.0.0.5"


def test_resolve_without_gateway(monkeypatch: pytest.MonkeyPatch):
	# A hotspot has no default route and the host name maps to loopback
	monkeypatch.setattr(network, "routeAddress", lambda: None)
	monkeypatch.setattr(network, "hostAddresses", lambda: ["127.0.1.1"])
	monkeypatch.setattr(
		network.psutil,
		"net_if_addrs",
		lambda: {
			"lo": [Address(socket.AF_INET, "127.0.0.1")],
			"eth0": [
				Address(socket.AF_INET6, "fe80::1"),
				Address(socket.AF_INET, "192.0.2.2"),
			],
			"wlan0": [Address(socket.AF_INET, "10.1.1.1")],
		},
	)
	monkeypatch.setattr(
		network.psutil,
		"net_if_stats",
		lambda: {"lo": Stats(True), "eth0": Stats(True), "wlan0": Stats(False)},
	)
	assert interfaceAddresses() == ["127.0.0.1", "192.0.2.2"]
	assert resolveHost() == "192.0.2.2"


def test_resolve_falls_back_to_link_local(monkeypatch: pytest.MonkeyPatch):
	candidates(monkeypatch, None, ["169.254.3.4"], ["127.0.0.1"])
	assert resolveHost() == "169.254.3.4"
	candidates(monkeypatch, "169.254.3.4", ["169.254.3.4", "192.168.0.9"], [])
	assert resolveHost() == "192.168.0.9"


def test_resolve_fails_without_lan(monkeypatch: pytest.MonkeyPatch):
	candidates(monkeypatch, None, ["127.0.0.1"], ["127.0.0.1"])
	with pytest.raises(StartupError):
		resolveHost()


def test_resolve_on_this_host():
	# Whatever the network, the result is either usable or a startup error
	try:
		assert isUsableAddress(resolveHost(), linkLocal=True)
	except StartupError:
		pass


# EOF
