from .errors import (
	OTAServerError,
	StartupError,
	ConfigurationError,
	RequestError,
)  # NOQA: F401
from .manifest import Manifest, ManifestEntry, PublishedFileSet, generateManifest  # NOQA: F401
from .session import ServerOptions, ServerSession  # NOQA: F401
from .server import OTAServer, run  # NOQA: F401
from .tracker import DownloadTracker, DownloadProgress  # NOQA: F401


# EOF
