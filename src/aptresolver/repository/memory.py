"""A repository reader serving files from memory, for tests and fixtures."""

from collections.abc import AsyncIterator, Mapping

from aptresolver.constants import CHUNK_SIZE
from aptresolver.errors import PathNotFoundError
from aptresolver.repository import RepositoryReader


class InMemoryRepositoryReader(RepositoryReader):
    """Serves a mapping of relative paths to file contents."""

    def __init__(self, files: Mapping[str, bytes | str] | None = None, chunk_size: int = CHUNK_SIZE):
        self.files: dict[str, bytes] = {}
        self.chunk_size = chunk_size
        self.requested: list[str] = []
        for path, content in (files or {}).items():
            self.add_file(path, content)

    def add_file(self, path: str, content: bytes | str) -> None:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.files[path.strip("/")] = content

    async def get_path(self, path: str) -> AsyncIterator[bytes]:
        path = path.strip("/")
        self.requested.append(path)
        try:
            data = self.files[path]
        except KeyError:
            raise PathNotFoundError(path) from None
        for offset in range(0, len(data), self.chunk_size):
            yield data[offset : offset + self.chunk_size]
