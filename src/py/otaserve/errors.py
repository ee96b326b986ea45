class OTAServerError(Exception):
	"""Base class for the errors raised by the server."""

	def __init__(self, message: str):
		super().__init__(message)
		self.message: str = message


class StartupError(OTAServerError):
	"""The server could not start: the port could not be bound or there is
	no LAN address a device could reach."""


class ConfigurationError(OTAServerError):
	"""The set of files to publish is invalid."""


class RequestError(OTAServerError):
	"""To be raised while processing a request to generate an error
	response with the given status."""

	def __init__(self, message: str, status: int = 400):
		super().__init__(message)
		self.status: int = status


# EOF
