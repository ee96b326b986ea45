import asyncio
import os
from pathlib import Path
from typing import TYPE_CHECKING

from .http.model import HTTPBodyFile, HTTPResponse
from .tracker import DownloadTracker, StreamProgress
from .utils.files import contentType
from .utils.logging import debug, logged, warning

if TYPE_CHECKING:
	from .connection import Connection


class FileStreamer:
	"""Streams published files to connections in bounded chunks, reporting
	progress to the tracker after each chunk is sent."""

	def __init__(self, tracker: DownloadTracker, chunkSize: int = 64 * 1024):
		self.tracker: DownloadTracker = tracker
		self.chunkSize: int = max(1, chunkSize)

	async def stream(self, connection: "Connection", path: Path) -> bool:
		"""Sends `path` as the response on the connection. Returns `True` when
		the whole file was sent. A file that can't be opened yields a 404,
		a failure once the head is sent aborts the connection."""
		try:
			f = open(path, "rb")
		except OSError as e:
			warning("Published file could not be opened", Path=str(path), Error=str(e))
			await connection.respond(HTTPResponse.Error(404))
			return False
		loop = asyncio.get_running_loop()
		with f:
			size: int = os.fstat(f.fileno()).st_size
			res = HTTPResponse.Create(
				HTTPBodyFile(path, size), contentType=contentType(path)
			)
			progress = StreamProgress(self.tracker, path.name, size)
			await connection.sendHead(res)
			if not size:
				self.tracker.recordProgress(path.name, 0, 0)
			while progress.sent < size:
				try:
					# Disk reads happen off the loop so that other connections
					# are not stalled.
					chunk: bytes = await loop.run_in_executor(
						None, f.read, min(self.chunkSize, size - progress.sent)
					)
				except OSError as e:
					warning("File read failed", Path=str(path), Error=str(e))
					return False
				if not chunk:
					warning(
						"File shrank while streaming",
						Path=str(path),
						Sent=progress.sent,
						Expected=size,
					)
					return False
				try:
					await connection.send(chunk)
				except OSError as e:
					# ConnectionError is an OSError too
					warning(
						"Client disconnected during download",
						Client=connection.peer,
						Path=path.name,
						Sent=progress.sent,
						Expected=size,
						Error=str(e),
					)
					return False
				progress.advance(len(chunk))
			logged(debug) and debug(
				"File sent", Client=connection.peer, Path=path.name, Size=size
			)
			return True


# EOF
