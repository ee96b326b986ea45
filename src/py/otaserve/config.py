from os import getenv

# Interface the listening socket binds to. Devices on the LAN need to reach
# it, so we listen on all interfaces by default.
HOST: str = getenv("OTASERVE_HOST", "0.0.0.0")  # nosec: B104

# Forces the host advertised in manifest URLs, bypassing interface lookup.
ADVERTISE: str | None = getenv("OTASERVE_ADVERTISE") or None

MANIFEST_NAME: str = getenv("OTASERVE_MANIFEST", "manifest.json")

CHUNK_SIZE: int = int(getenv("OTASERVE_CHUNK_SIZE", 64 * 1024))

# Seconds a client has to send a complete request head
TIMEOUT: float = float(getenv("OTASERVE_TIMEOUT", 10.0))

# Seconds `stop()` waits for in-flight connections before abandoning them
GRACE: float = float(getenv("OTASERVE_GRACE", 2.0))

LOG_REQUESTS: bool = getenv("OTASERVE_LOG_REQUESTS", "1") == "1"

LOG_LEVEL: str = getenv("OTASERVE_LOG_LEVEL", "info").lower()

# EOF
