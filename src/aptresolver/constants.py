from os import getenv

from aptresolver.version import __version__

LOG_LEVEL = getenv("APTRESOLVER_LOG_LEVEL", "INFO").upper()

# httpx timeout in seconds; retries are left to the caller
HTTP_TIMEOUT = float(getenv("APTRESOLVER_HTTP_TIMEOUT", "30.0"))

USER_AGENT = getenv("APTRESOLVER_USER_AGENT", f"aptresolver/{__version__}")

# chunk size used by the local (in-memory / filesystem) readers
CHUNK_SIZE = int(getenv("APTRESOLVER_CHUNK_SIZE", str(64 * 1024)))
