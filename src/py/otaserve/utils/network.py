import ipaddress
import socket
from typing import Callable, Iterator

import psutil

from ..errors import StartupError
from .logging import debug, logged

# A connected UDP socket lets the OS pick the outgoing interface without
# sending anything. The address does not need to be reachable.
PROBE_ADDRESS: tuple[str, int] = ("10.255.255.255", 1)

TResolver = Callable[[], str]


def isUsableAddress(address: str, *, linkLocal: bool = False) -> bool:
	"""Tells if the given address is an IPv4 address that a device on the
	LAN could connect to. Link-local addresses are only accepted with
	`linkLocal`."""
	try:
		ip = ipaddress.ip_address(address)
	except ValueError:
		return False
	return (
		ip.version == 4
		and not ip.is_loopback
		and (linkLocal or not ip.is_link_local)
		and not ip.is_unspecified
		and not ip.is_multicast
	)


def routeAddress(probe: tuple[str, int] = PROBE_ADDRESS) -> str | None:
	"""Returns the address of the interface used for the default route."""
	s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
	try:
		s.settimeout(0)
		s.connect(probe)
		return str(s.getsockname()[0])
	except OSError:
		return None
	finally:
		s.close()


def hostAddresses() -> list[str]:
	"""Returns the IPv4 addresses associated with the host name."""
	try:
		infos = socket.getaddrinfo(
			socket.gethostname(), None, socket.AF_INET, socket.SOCK_STREAM
		)
	except OSError:
		return []
	return [str(_[4][0]) for _ in infos]


def interfaceAddresses() -> list[str]:
	"""Returns the IPv4 addresses of the network interfaces that are up."""
	try:
		interfaces = psutil.net_if_addrs()
		stats = psutil.net_if_stats()
	except OSError:
		return []
	res: list[str] = []
	for name, addresses in interfaces.items():
		stat = stats.get(name)
		if not stat or not stat.isup:
			continue
		res.extend(_.address for _ in addresses if _.family == socket.AF_INET)
	return res


def iterCandidates() -> Iterator[str]:
	route = routeAddress()
	if route:
		yield route
	# Without a default gateway (hotspot, isolated LAN) there is no route,
	# but the interfaces still have their addresses.
	yield from interfaceAddresses()
	yield from hostAddresses()


def resolveHost() -> str:
	"""Returns the first non-loopback IPv4 address of this host, raising
	a `StartupError` when there is none. Routable addresses are preferred,
	link-local ones are used for direct links."""
	candidates: list[str] = list(iterCandidates())
	for linkLocal in (False, True):
		for address in candidates:
			if isUsableAddress(address, linkLocal=linkLocal):
				return address
	logged(debug) and debug("No usable LAN address", Candidates=candidates)
	raise StartupError("No LAN address available: connect to a network first")


# EOF
