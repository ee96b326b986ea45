import asyncio
import errno
import socket
import threading
from pathlib import Path
from signal import SIGINT, SIGTERM
from typing import Any, Callable, Iterable

from .connection import Connection
from .errors import ConfigurationError, StartupError
from .manifest import PublishedFileSet
from .session import OPTIONS, ServerOptions, ServerSession
from .streamer import FileStreamer
from .tracker import DownloadTracker, TProgressListener
from .utils.logging import event, error, exception, info, warning
from .utils.network import TResolver, resolveHost

TReadyListener = Callable[[int, str], None]
TErrorListener = Callable[[str], None]


class OTAServer:
	"""Serves a manifest and the files it lists to devices on the LAN.

	Each call to `start` creates a new `ServerSession` bound to an ephemeral
	port. Calling `start` while running restarts on a new port. Listeners
	registered with `onReady`, `onError` and `onProgress` are called from
	the event loop the server runs in."""

	def __init__(
		self,
		options: ServerOptions = OPTIONS,
		*,
		resolver: TResolver | None = None,
	) -> None:
		self.options: ServerOptions = options
		self.resolver: TResolver = resolver or resolveHost
		self.session: ServerSession | None = None
		self.tracker: DownloadTracker = DownloadTracker()
		self._onReady: list[TReadyListener] = []
		self._onError: list[TErrorListener] = []

	# =========================================================================
	# LISTENERS
	# =========================================================================

	def onReady(self, callback: TReadyListener) -> "OTAServer":
		self._onReady.append(callback)
		return self

	def onError(self, callback: TErrorListener) -> "OTAServer":
		self._onError.append(callback)
		return self

	def onProgress(self, callback: TProgressListener) -> "OTAServer":
		self.tracker.onProgress(callback)
		return self

	def _notify(self, listeners: list[Callable[..., None]], *args: Any) -> None:
		for listener in listeners:
			try:
				listener(*args)
			except Exception as e:
				exception(e, "Server listener failed")

	# =========================================================================
	# API
	# =========================================================================

	@property
	def isRunning(self) -> bool:
		return self.session is not None

	def getPort(self) -> int:
		return self.session.port if self.session else 0

	def getManifestName(self) -> str:
		return self.options.manifestName

	def getManifestURL(self) -> str | None:
		return self.session.manifestURL if self.session else None

	async def start(self, files: Iterable[str | Path]) -> ServerSession:
		"""Starts serving the given files, returning the new session. Raises
		`StartupError` or `ConfigurationError` when the session can't be
		created, after notifying the error listeners."""
		if self.session:
			info("Restarting OTA server", Port=self.session.port)
			await self.stop()
		try:
			published = PublishedFileSet.Make(
				files, reserved=(self.options.manifestName,)
			)
			host: str = self.options.advertise or self.resolver()
			server = self.bind()
		except (StartupError, ConfigurationError) as e:
			error(e.message, e.__class__.__name__)
			self._notify(self._onError, e.message)
			raise
		port: int = server.getsockname()[1]
		self.tracker.clear()
		session = ServerSession(
			host=host,
			port=port,
			files=published,
			manifestName=self.options.manifestName,
			tracker=self.tracker,
			streamer=FileStreamer(self.tracker, self.options.chunkSize),
			server=server,
		)
		self.session = session
		session.acceptor = asyncio.get_running_loop().create_task(
			self.accept(session)
		)
		info(
			"OTA server listening",
			icon="🚀",
			Host=host,
			Port=port,
			Files=published.names,
		)
		self._notify(self._onReady, port, session.manifestName)
		return session

	async def stop(self) -> None:
		"""Stops the current session, if any: the listening socket is closed
		and in-flight connections are cancelled."""
		session = self.session
		if session is None:
			return
		self.session = None
		session.isRunning = False
		# The acceptor must be done before the listening socket is closed, so
		# that the loop no longer watches it.
		if session.acceptor:
			session.acceptor.cancel()
			await asyncio.gather(session.acceptor, return_exceptions=True)
		session.server.close()
		tasks: list[asyncio.Task[None]] = list(session.tasks)
		for task in tasks:
			task.cancel()
		if tasks:
			_, pending = await asyncio.wait(tasks, timeout=self.options.grace)
			if pending:
				warning(
					"Abandoning connections that did not stop in time",
					Count=len(pending),
					Grace=self.options.grace,
				)
		for connection in list(session.connections):
			connection.close()
		session.connections.clear()
		session.tasks.clear()
		self.tracker.clear()
		info("OTA server stopped", Port=session.port)

	# =========================================================================
	# CORE
	# =========================================================================

	def bind(self) -> socket.socket:
		"""Binds the listening socket on an ephemeral port."""
		server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
		try:
			server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
			server.bind((self.options.host, 0))
			# The argument is the backlog of connections that will be accepted before
			# they are refused.
			server.listen(self.options.backlog)
			# This is what we need to use it with asyncio
			server.setblocking(False)
		except OSError as e:
			server.close()
			raise StartupError(
				f"Unable to bind to {self.options.host}: {e.strerror or e}"
			) from e
		return server

	async def accept(self, session: ServerSession) -> None:
		"""Accepts connections until the session stops, running each one in
		its own task."""
		loop = asyncio.get_running_loop()
		while session.isRunning:
			try:
				client, address = await asyncio.wait_for(
					loop.sock_accept(session.server), timeout=self.options.polling
				)
			except asyncio.TimeoutError:
				continue
			except OSError as e:
				if not session.isRunning:
					break
				elif e.errno == errno.EMFILE:
					# Too many open files, we wait for connections to close
					await asyncio.sleep(0.1)
				else:
					exception(e)
				continue
			client.setblocking(False)
			client.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
			connection = Connection(
				client,
				session,
				loop=loop,
				options=self.options,
				peer=f"{address[0]}:{address[1]}",
			)
			# Registered before the task runs, so that `stop` can close it even
			# if the task is cancelled before it starts.
			session.connections.add(connection)
			task = loop.create_task(connection.process())
			session.tasks.add(task)
			task.add_done_callback(session.tasks.discard)

	async def __aenter__(self) -> "OTAServer":
		return self

	async def __aexit__(self, *args: Any) -> None:
		await self.stop()


# -----------------------------------------------------------------------------
#
# RUN
#
# -----------------------------------------------------------------------------


def run(
	files: Iterable[str | Path],
	*,
	options: ServerOptions = OPTIONS,
	resolver: TResolver | None = None,
	condition: Callable[[], bool] | None = None,
) -> None:
	"""High level function to serve the files until interrupted. Startup
	failures propagate as `StartupError` or `ConfigurationError`."""
	paths = list(files)

	def onException(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
		e = context.get("exception")
		if e:
			exception(e)

	def onProgress(name: str, sent: int, total: int) -> None:
		if sent == total:
			event("Downloaded", name, Size=total)

	async def main() -> None:
		loop = asyncio.get_running_loop()
		stopped = asyncio.Event()
		# Signal handlers can only be set from the main thread
		if threading.current_thread() is threading.main_thread():
			loop.add_signal_handler(SIGINT, stopped.set)
			loop.add_signal_handler(SIGTERM, stopped.set)
		loop.set_exception_handler(onException)
		async with OTAServer(options, resolver=resolver) as server:
			server.onProgress(onProgress)
			await server.start(paths)
			info("Install manifest available", icon="📦", URL=server.getManifestURL())
			while not stopped.is_set():
				if condition and not condition():
					break
				try:
					await asyncio.wait_for(stopped.wait(), timeout=options.polling)
				except asyncio.TimeoutError:
					continue

	try:
		asyncio.run(main())
	except KeyboardInterrupt:
		event("ManualShutdown")
	event("EOK")


# EOF
