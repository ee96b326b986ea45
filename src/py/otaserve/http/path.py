from urllib.parse import unquote, urlsplit

from ..errors import RequestError

# Segments that would let a request escape the published file set once
# decoded.
FORBIDDEN_SEGMENTS: frozenset[str] = frozenset({".."})


def normalizePath(target: str) -> str:
	"""Normalizes a request target into an absolute path with a single
	leading slash.

	- Absolute-form targets (`http://host/path`) are reduced to their path.
	- Query and fragment are dropped.
	- Percent-escapes are decoded (once).
	- Empty and `.` segments are collapsed.
	- Any `..` segment, NUL byte or backslash raises a `RequestError`
	  with status 400.

	>>> normalizePath("//app%20v2.ipa?x=1")
	'/app v2.ipa'
	"""
	if not target:
		raise RequestError("Empty request target", 400)
	if "://" in target and not target.startswith("/"):
		target = urlsplit(target).path or "/"
	target = target.split("#", 1)[0].split("?", 1)[0]
	try:
		decoded: str = unquote(target, errors="strict")
	except UnicodeDecodeError as e:
		raise RequestError(f"Invalid percent-encoding in path: {target!r}", 400) from e
	if "\x00" in decoded or "\\" in decoded:
		raise RequestError(f"Invalid characters in path: {target!r}", 400)
	segments: list[str] = []
	for segment in decoded.split("/"):
		if not segment or segment == ".":
			continue
		elif segment in FORBIDDEN_SEGMENTS:
			raise RequestError(f"Path traversal rejected: {target!r}", 400)
		else:
			segments.append(segment)
	return "/" + "/".join(segments)


def basename(path: str) -> str | None:
	"""Returns the single segment of a normalized path, or `None` when the
	path has more than one segment (or none)."""
	name = path[1:] if path.startswith("/") else path
	return name if name and "/" not in name else None


# EOF
