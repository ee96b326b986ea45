import asyncio
import socket
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, NamedTuple

from .config import (
	ADVERTISE,
	CHUNK_SIZE,
	GRACE,
	HOST,
	LOG_REQUESTS,
	MANIFEST_NAME,
	TIMEOUT,
)
from .manifest import Manifest, PublishedFileSet, fileURL, generateManifest
from .tracker import DownloadTracker

if TYPE_CHECKING:
	from .connection import Connection
	from .streamer import FileStreamer


class ServerOptions(NamedTuple):
	host: str = HOST
	# Forces the advertised host, otherwise the LAN address is resolved
	advertise: str | None = ADVERTISE
	manifestName: str = MANIFEST_NAME
	backlog: int = 128
	# Maximum time waiting for the client to send data
	timeout: float = TIMEOUT
	# This is the polling timeout for accepting new connections
	polling: float = 1.0
	readsize: int = 4_096
	chunkSize: int = CHUNK_SIZE
	maxHeadSize: int = 16 * 1024
	grace: float = GRACE
	logRequests: bool = LOG_REQUESTS


OPTIONS: ServerOptions = ServerOptions()


@dataclass(slots=True)
class ServerSession:
	"""The state of one serving session, from `start` to `stop`. The port
	and advertised host never change during a session."""

	host: str
	port: int
	files: PublishedFileSet
	manifestName: str
	tracker: DownloadTracker
	streamer: "FileStreamer"
	server: socket.socket
	isRunning: bool = True
	acceptor: asyncio.Task[None] | None = None
	connections: set["Connection"] = field(default_factory=set)
	tasks: set[asyncio.Task[None]] = field(default_factory=set)

	@property
	def manifestURL(self) -> str:
		return fileURL(self.host, self.port, self.manifestName)

	def manifest(self) -> Manifest:
		return generateManifest(self.files, self.host, self.port)


# EOF
