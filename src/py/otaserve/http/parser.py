import re
from typing import ClassVar, Iterator, Literal

from ..utils.io import LineParser
from .model import (
	HTTPAtom,
	HTTPHeaders,
	HTTPProcessingStatus,
	HTTPRequest,
	HTTPRequestLine,
	headername,
)

RE_METHOD: re.Pattern[str] = re.compile(r"^[A-Z]+$")
RE_PROTOCOL: re.Pattern[str] = re.compile(r"^HTTP/\d\.\d$")


class MessageParser:
	"""Parses an HTTP request line."""

	__slots__ = ["line", "value", "malformed"]

	def __init__(self) -> None:
		self.line: LineParser = LineParser()
		self.value: HTTPRequestLine | None = None
		self.malformed: bool = False

	def flush(self) -> HTTPRequestLine | None:
		res = self.value
		self.reset()
		return res

	def reset(self) -> "MessageParser":
		self.line.reset()
		self.value = None
		self.malformed = False
		return self

	@staticmethod
	def Parse(line: bytes) -> HTTPRequestLine | None:
		"""Parses `METHOD SP TARGET SP PROTOCOL`, returning `None` when the
		line is malformed."""
		try:
			ln = line.decode("ascii")
		except UnicodeDecodeError:
			return None
		parts = ln.split(" ")
		if len(parts) != 3:
			return None
		method, target, protocol = parts
		if not (RE_METHOD.match(method) and RE_PROTOCOL.match(protocol) and target):
			return None
		p: list[str] = target.split("?", 1)
		return HTTPRequestLine(method, p[0], p[1] if len(p) > 1 else "", protocol)

	def feed(self, chunk: bytes, start: int = 0) -> tuple[bool | None, int]:
		line, read = self.line.feed(chunk, start)
		if line is None:
			return None, read
		elif not line:
			# Empty lines preceding the request line are ignored
			return None, read
		else:
			self.value = self.Parse(line)
			self.malformed = self.value is None
			return True, read

	def __str__(self) -> str:
		return f"MessageParser({self.value})"


class HeadersParser:
	__slots__ = ["headers", "contentType", "contentLength", "line"]

	def __init__(self) -> None:
		self.line: LineParser = LineParser()
		self.headers: dict[str, str] = {}
		self.contentType: str | None = None
		self.contentLength: int | None = None

	def flush(self) -> HTTPHeaders:
		res = HTTPHeaders(self.headers, self.contentType, self.contentLength)
		self.reset()
		return res

	def reset(self) -> "HeadersParser":
		self.line.reset()
		self.headers = {}
		self.contentType = None
		self.contentLength = None
		return self

	def feed(
		self, chunk: bytes, start: int = 0
	) -> tuple[str | Literal[False] | None, int]:
		"""Feeds data from chunk, starting at `start` offset. Returns
		a value and the next start offset. When the value is `None`, no
		header has been extracted, when the value is `False` it's an empty
		line, and when the value is a string, that header was added."""
		line, read = self.line.feed(chunk, start)
		if line is None:
			return None, read
		elif not line:
			# An empty line denotes the end of headers
			return False, read
		# Headers are expected to be in ASCII format, we tolerate Latin-1
		ln: str = line.decode("latin-1")
		i = ln.find(":")
		if i == -1:
			return None, read
		h = ln[:i].lower().strip()
		v = ln[i + 1 :].strip()
		if h == "content-length":
			try:
				self.contentLength = int(v)
			except ValueError:
				self.contentLength = None
		elif h == "content-type":
			self.contentType = v
		n: str = headername(h)
		self.headers[n] = v
		return n, read

	def __str__(self) -> str:
		return f"HeadersParser({self.headers})"


class HTTPParser:
	"""A stateful HTTP request head parser. Chunks are fed as they are
	received, and the parser yields the request line, the headers and
	then the request once the head is complete. Request bodies are not
	parsed, as only `GET` is served."""

	MAX_HEAD_SIZE: ClassVar[int] = 16 * 1024

	def __init__(self, maxHeadSize: int | None = None) -> None:
		self.message: MessageParser = MessageParser()
		self.headers: HeadersParser = HeadersParser()
		self.parser: MessageParser | HeadersParser = self.message
		self.requestLine: HTTPRequestLine | None = None
		self.maxHeadSize: int = maxHeadSize or self.MAX_HEAD_SIZE
		self.headSize: int = 0
		self.isComplete: bool = False

	def reset(self) -> "HTTPParser":
		self.parser = self.message.reset()
		self.headers.reset()
		self.requestLine = None
		self.headSize = 0
		self.isComplete = False
		return self

	def feed(self, chunk: bytes) -> Iterator[HTTPAtom]:
		size: int = len(chunk)
		offset: int = 0
		while offset < size and not self.isComplete:
			ln, read = self.parser.feed(chunk, offset)
			offset += read
			self.headSize += read
			if self.headSize > self.maxHeadSize:
				self.isComplete = True
				yield HTTPProcessingStatus.TooLarge
				return
			if ln is None:
				continue
			elif self.parser is self.message:
				# We've parsed a request line
				line = self.message.flush()
				if line is None:
					self.isComplete = True
					yield HTTPProcessingStatus.BadFormat
					return
				self.requestLine = line
				yield line
				self.parser = self.headers
			elif ln is False:
				# We've parsed the headers
				headers = self.headers.flush()
				yield headers
				line = self.requestLine
				if line is None:
					yield HTTPProcessingStatus.BadFormat
				else:
					yield HTTPRequest(
						method=line.method,
						path=line.path,
						query=line.query,
						headers=headers,
						protocol=line.protocol,
					)
					yield HTTPProcessingStatus.Complete
				self.isComplete = True
			else:
				# `ln` is going to be the header name as a string there.
				pass


# EOF
