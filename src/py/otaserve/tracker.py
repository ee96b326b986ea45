import threading
from typing import Callable, Iterator, NamedTuple

from .utils.logging import exception

TProgressListener = Callable[[str, int, int], None]


class DownloadProgress(NamedTuple):
	sent: int
	total: int

	@property
	def isComplete(self) -> bool:
		return self.sent >= self.total


class DownloadTracker:
	"""Keeps the last known progress of each file being downloaded, keyed
	by filename. Concurrent downloads of the same file share the same entry.

	Updates happen on the server loop, but the tracker may be read from
	another thread (a UI typically), so access is serialized by a lock."""

	def __init__(self) -> None:
		self._entries: dict[str, DownloadProgress] = {}
		self._lock: threading.Lock = threading.Lock()
		self.listeners: list[TProgressListener] = []

	def onProgress(self, listener: TProgressListener) -> "DownloadTracker":
		self.listeners.append(listener)
		return self

	def recordProgress(
		self, filename: str, bytesSent: int, totalBytes: int
	) -> DownloadProgress:
		"""Creates or overwrites the entry for `filename` and notifies the
		listeners."""
		if bytesSent < 0 or totalBytes < 0 or bytesSent > totalBytes:
			raise ValueError(
				f"Invalid progress for '{filename}': {bytesSent}/{totalBytes}"
			)
		progress = DownloadProgress(bytesSent, totalBytes)
		with self._lock:
			self._entries[filename] = progress
		for listener in self.listeners:
			try:
				listener(filename, bytesSent, totalBytes)
			except Exception as e:
				exception(e, "Progress listener failed")
		return progress

	def get(self, filename: str) -> DownloadProgress | None:
		with self._lock:
			return self._entries.get(filename)

	def items(self) -> list[tuple[str, DownloadProgress]]:
		with self._lock:
			return list(self._entries.items())

	def clear(self) -> None:
		with self._lock:
			self._entries.clear()

	def __contains__(self, filename: object) -> bool:
		with self._lock:
			return filename in self._entries

	def __iter__(self) -> Iterator[str]:
		return iter([name for name, _ in self.items()])

	def __len__(self) -> int:
		with self._lock:
			return len(self._entries)


class StreamProgress:
	"""Enforces that progress reported by a single stream only grows, and
	stays within the expected total, before relaying it to the tracker."""

	__slots__ = ["tracker", "filename", "total", "sent"]

	def __init__(self, tracker: DownloadTracker, filename: str, total: int):
		self.tracker: DownloadTracker = tracker
		self.filename: str = filename
		self.total: int = total
		self.sent: int = 0

	def advance(self, count: int) -> DownloadProgress:
		if count < 0 or self.sent + count > self.total:
			raise ValueError(
				f"Stream for '{self.filename}' overflows: {self.sent}+{count}/{self.total}"
			)
		self.sent += count
		return self.tracker.recordProgress(self.filename, self.sent, self.total)


# EOF
