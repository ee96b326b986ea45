from pathlib import Path
from typing import Iterable, Iterator, NamedTuple
from urllib.parse import quote

from .errors import ConfigurationError
from .utils.files import contentType
from .utils.json import json
from .utils.logging import warning

# -----------------------------------------------------------------------------
#
# PUBLISHED FILES
#
# -----------------------------------------------------------------------------


class PublishedFileSet:
	"""The immutable, ordered set of files published during a session,
	indexed by basename."""

	__slots__ = ["paths", "_byName"]

	@staticmethod
	def Make(
		files: Iterable[str | Path], *, reserved: Iterable[str] = ()
	) -> "PublishedFileSet":
		"""Validates the given files, raising a `ConfigurationError` when
		the set is empty, when a file is not a regular file, or when two
		files (or a file and a reserved name) share the same basename."""
		paths: list[Path] = []
		names: dict[str, Path] = {}
		taken: set[str] = set(reserved)
		for item in files:
			path = Path(item).expanduser().absolute()
			if not path.is_file():
				raise ConfigurationError(f"Not a readable file: {path}")
			if path.name in taken:
				raise ConfigurationError(f"Reserved file name: {path.name}")
			if path.name in names:
				raise ConfigurationError(
					f"Duplicate file name '{path.name}': {names[path.name]} and {path}"
				)
			names[path.name] = path
			paths.append(path)
		if not paths:
			raise ConfigurationError("No files to publish")
		return PublishedFileSet(tuple(paths))

	def __init__(self, paths: tuple[Path, ...]):
		self.paths: tuple[Path, ...] = paths
		self._byName: dict[str, Path] = {_.name: _ for _ in paths}

	@property
	def names(self) -> list[str]:
		return [_.name for _ in self.paths]

	def get(self, name: str) -> Path | None:
		return self._byName.get(name)

	def __contains__(self, name: object) -> bool:
		return name in self._byName

	def __iter__(self) -> Iterator[Path]:
		return iter(self.paths)

	def __len__(self) -> int:
		return len(self.paths)

	def __repr__(self) -> str:
		return f"(PublishedFileSet {' '.join(self.names)})"


# -----------------------------------------------------------------------------
#
# MANIFEST
#
# -----------------------------------------------------------------------------


class ManifestEntry(NamedTuple):
	name: str
	url: str
	size: int
	contentType: str


class Manifest(NamedTuple):
	"""The manifest document listing the downloadable files. It serializes
	to a JSON array of entries."""

	entries: tuple[ManifestEntry, ...]

	def encode(self) -> bytes:
		return json(list(self.entries))


def fileURL(host: str, port: int, name: str) -> str:
	return f"http://{host}:{port}/{quote(name)}"


def generateManifest(files: Iterable[Path], host: str, port: int) -> Manifest:
	"""Builds the manifest for the given files, as served from `host:port`.
	Each file is stat'ed now, so that the size is always current."""
	entries: list[ManifestEntry] = []
	for path in files:
		try:
			size = path.stat().st_size
		except OSError as e:
			warning("Published file is not available", Path=str(path), Error=str(e))
			continue
		entries.append(
			ManifestEntry(
				name=path.name,
				url=fileURL(host, port, path.name),
				size=size,
				contentType=contentType(path),
			)
		)
	return Manifest(tuple(entries))


# EOF
