"""Pytest configuration for otaserve."""
import asyncio
import os
from pathlib import Path

import pytest


def pytest_configure():
	# Keeps the test output readable, the configuration is read on import
	os.environ.setdefault("OTASERVE_LOG_LEVEL", "warning")
	os.environ.setdefault("NO_COLOR", "1")


# A LAN address the device would use, the tests themselves go through
# the loopback interface.
ADVERTISED_HOST = "192.168.1.20"


class Fetched:
	def __init__(self, status: int, headers: dict[str, str], body: bytes):
		self.status = status
		self.headers = headers
		self.body = body


def parseResponse(data: bytes) -> Fetched:
	head, _, body = data.partition(b"\r\n\r\n")
	lines = head.decode("ascii").split("\r\n")
	status = int(lines[0].split(" ")[1])
	headers = dict(_.split(": ", 1) for _ in lines[1:])
	return Fetched(status, headers, body)


async def fetch(
	port: int, path: str = "/", *, method: str = "GET", raw: bytes | None = None
) -> Fetched:
	"""Sends a single request and reads the response until the server
	closes the connection."""
	reader, writer = await asyncio.open_connection("127.0.0.1", port)
	try:
		writer.write(raw or f"{method} {path} HTTP/1.1\r\nHost: device\r\n\r\n".encode())
		await writer.drain()
		data = await asyncio.wait_for(reader.read(), timeout=5)
	finally:
		writer.close()
	return parseResponse(data)


@pytest.fixture
def app(tmp_path: Path) -> Path:
	path = tmp_path / "app.ipa"
	path.write_bytes(bytes(i % 251 for i in range(10_000)))
	return path


@pytest.fixture
def plist(tmp_path: Path) -> Path:
	path = tmp_path / "Info.plist"
	path.write_bytes(b'<?xml version="1.0"?><plist version="1.0"><dict/></plist>')
	return path


# EOF
