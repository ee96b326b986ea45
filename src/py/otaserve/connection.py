import asyncio
import socket
from enum import Enum

from .errors import RequestError
from .http.model import (
	HTTPBodyBlob,
	HTTPProcessingStatus,
	HTTPRequest,
	HTTPRequestLine,
	HTTPResponse,
)
from .http.parser import HTTPParser
from .http.path import basename, normalizePath
from .session import ServerOptions, ServerSession
from .utils.logging import debug, event, exception, logged, warning


class ConnectionState(Enum):
	AwaitingRequestLine = 0
	AwaitingHeaders = 1
	Dispatching = 2
	Streaming = 3
	Closed = 4


class Connection:
	"""Processes a single request on an accepted socket: reads until the
	request head is complete, routes it to the manifest or to a published
	file, writes the response and closes. Connections are not kept alive,
	the device opens a new one for each download."""

	__slots__ = [
		"client",
		"session",
		"options",
		"loop",
		"peer",
		"state",
		"status",
		"parser",
		"received",
		"sent",
		"shouldClose",
	]

	def __init__(
		self,
		client: socket.socket,
		session: ServerSession,
		*,
		loop: asyncio.AbstractEventLoop,
		options: ServerOptions,
		peer: str = "?",
	):
		self.client: socket.socket = client
		self.session: ServerSession = session
		self.options: ServerOptions = options
		self.loop: asyncio.AbstractEventLoop = loop
		self.peer: str = peer
		self.state: ConnectionState = ConnectionState.AwaitingRequestLine
		self.status: HTTPProcessingStatus = HTTPProcessingStatus.Processing
		self.parser: HTTPParser = HTTPParser(options.maxHeadSize)
		self.received: int = 0
		self.sent: int = 0
		self.shouldClose: bool = False

	async def process(self) -> None:
		"""Runs the connection until it is closed."""
		try:
			request = await self.read()
			if request:
				self.state = ConnectionState.Dispatching
				if self.options.logRequests:
					event(
						request.method,
						request.path,
						Client=self.peer,
						Agent=request.header("User-Agent"),
					)
				await self.dispatch(request)
				self.status = HTTPProcessingStatus.Complete
		except OSError as e:
			warning("Connection failed", Client=self.peer, Error=str(e))
		except Exception as e:
			exception(e, f"Connection {self.peer} failed")
		finally:
			self.close()
			logged(debug) and debug(
				"Connection closed",
				Client=self.peer,
				Status=self.status.name,
				Read=self.received,
				Sent=self.sent,
			)

	async def read(self) -> HTTPRequest | None:
		"""Reads from the socket until a complete request head is parsed. A
		malformed head is answered with a 400 and `None` is returned. The
		whole head must arrive within `options.timeout`."""
		buffer = bytearray(self.options.readsize)
		deadline: float = self.loop.time() + self.options.timeout
		while not self.shouldClose:
			try:
				n = await asyncio.wait_for(
					self.loop.sock_recv_into(self.client, buffer),
					timeout=max(0.0, deadline - self.loop.time()),
				)
			except asyncio.TimeoutError:
				self.status = HTTPProcessingStatus.Timeout
				if self.received:
					warning("Client timed out", Client=self.peer, Read=self.received)
				return None
			if not n:
				# A no-data means a close
				self.status = HTTPProcessingStatus.NoData
				if self.received:
					warning(
						"Client did not feed a complete request",
						Client=self.peer,
						Read=self.received,
					)
				return None
			self.received += n
			for atom in self.parser.feed(bytes(buffer[:n])):
				if isinstance(atom, HTTPRequestLine):
					self.state = ConnectionState.AwaitingHeaders
				elif isinstance(atom, HTTPRequest):
					return atom
				elif (
					atom is HTTPProcessingStatus.BadFormat
					or atom is HTTPProcessingStatus.TooLarge
				):
					self.status = atom
					warning("Malformed request", Client=self.peer, Status=atom.name)
					self.state = ConnectionState.Dispatching
					await self.respond(HTTPResponse.Error(400))
					return None
		return None

	async def dispatch(self, request: HTTPRequest) -> None:
		try:
			if request.method != "GET":
				raise RequestError(f"Unsupported method: {request.method}", 400)
			name: str | None = basename(normalizePath(request.path))
		except RequestError as e:
			warning(e.message, Client=self.peer)
			await self.respond(HTTPResponse.Error(e.status, protocol=request.protocol))
			return
		session = self.session
		path = session.files.get(name) if name else None
		if name == session.manifestName:
			await self.respond(
				request.respond(session.manifest().encode(), "application/json")
			)
		elif path is not None:
			await session.streamer.stream(self, path)
		else:
			await self.respond(request.notFound())

	async def sendHead(self, response: HTTPResponse) -> None:
		response.setHeader("Connection", "close")
		if isinstance(response.body, HTTPBodyBlob):
			# Small bodies go in the same write as the head
			await self.send(response.head() + response.body.payload)
		else:
			self.state = ConnectionState.Streaming
			await self.send(response.head())

	async def respond(self, response: HTTPResponse) -> None:
		"""Sends a response which body is already in memory."""
		await self.sendHead(response)
		self.shouldClose = True
		logged(debug) and debug(
			"Response sent", Client=self.peer, Status=response.status, Sent=self.sent
		)

	async def send(self, data: bytes) -> None:
		await self.loop.sock_sendall(self.client, data)
		self.sent += len(data)

	def close(self) -> None:
		if self.state is ConnectionState.Closed:
			return
		self.state = ConnectionState.Closed
		self.shouldClose = True
		try:
			self.client.shutdown(socket.SHUT_RDWR)
		except OSError:
			# The peer may already be gone
			pass
		self.client.close()
		self.session.connections.discard(self)

	def __repr__(self) -> str:
		return f"(Connection {self.peer} {self.state.name} in={self.received} out={self.sent})"


# EOF
