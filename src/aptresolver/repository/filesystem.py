"""A repository reader for local mirrors."""

import logging
from collections.abc import AsyncIterator
from pathlib import Path

import aiofiles

from aptresolver.constants import CHUNK_SIZE
from aptresolver.errors import PathNotFoundError, TransportError
from aptresolver.repository import RepositoryReader

logger = logging.getLogger(__name__)


class FilesystemRepositoryReader(RepositoryReader):
    """Reads a repository mirrored to a local directory."""

    def __init__(self, root: Path | str, chunk_size: int = CHUNK_SIZE):
        self.root = Path(root).resolve()
        self.chunk_size = chunk_size

    def local_path(self, path: str) -> Path:
        local_path = (self.root / path.lstrip("/")).resolve()
        if not local_path.is_relative_to(self.root):
            raise PathNotFoundError(path)
        return local_path

    async def get_path(self, path: str) -> AsyncIterator[bytes]:
        local_path = self.local_path(path)
        logger.debug(f"Reading {local_path}")
        try:
            async with aiofiles.open(local_path, "rb") as f:
                while chunk := await f.read(self.chunk_size):
                    yield chunk
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            raise PathNotFoundError(path) from None
        except OSError as e:
            raise TransportError(path, f"I/O error: {e}") from e

    def __repr__(self) -> str:
        return f"FilesystemRepositoryReader({str(self.root)!r})"
