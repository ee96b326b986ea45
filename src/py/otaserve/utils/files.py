import mimetypes
from pathlib import Path

mimetypes.init()

DEFAULT_CONTENT_TYPE: str = "application/octet-stream"

# Types that the platform registry gets wrong or does not know, notably
# the iOS packaging formats served during an install.
MIME_TYPES: dict[str, str] = dict(
	ipa="application/octet-stream",
	plist="application/xml",
	mobileprovision="application/x-apple-aspen-mobileprovision",
	json="application/json",
	zip="application/zip",
	png="image/png",
	jpg="image/jpeg",
	jpeg="image/jpeg",
	html="text/html",
	htm="text/html",
	txt="text/plain",
	bz2="application/x-bzip",
	gz="application/x-gzip",
)


def extension(path: Path | str) -> str:
	"""Returns the lowercase extension of the path, without the dot."""
	name = Path(path).name
	return name.rsplit(".", 1)[-1].lower() if "." in name.lstrip(".") else ""


def contentType(path: Path | str) -> str:
	"""Guesses the content type from the given path"""
	ext = extension(path)
	if not ext:
		return DEFAULT_CONTENT_TYPE
	elif res := MIME_TYPES.get(ext):
		return res
	else:
		return mimetypes.guess_type(f"file.{ext}")[0] or DEFAULT_CONTENT_TYPE


# EOF
