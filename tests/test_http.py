"""
Tests for aptresolver.repository.http: the HTTP repository client.

Requests are served by httpx.MockTransport; no network access.
"""

import gzip

import httpx
import pytest

from aptresolver import BinaryDependency, DependencyResolver, HttpRepositoryClient
from aptresolver.errors import HttpStatusError, PathNotFoundError, TransportError, UrlError

PACKAGES = b"""Package: hello
Version: 2.10-3
Architecture: amd64
Maintainer: Santiago Vila <sanvila@debian.org>
Depends: libc6 (>= 2.34)
Description: example package based on GNU hello

Package: libc6
Version: 2.36-9
Architecture: amd64
Maintainer: GNU Libc Maintainers <debian-glibc@lists.debian.org>
Depends: libgcc-s1
Description: GNU C Library: Shared libraries

Package: libgcc-s1
Version: 12.2.0-14
Architecture: amd64
Maintainer: Debian GCC Maintainers <debian-gcc@lists.debian.org>
Description: GCC support library
"""


def _serving(files, requested=None):
    """An httpx client answering GETs below /debian/ from `files`."""

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/debian/")
        if requested is not None:
            requested.append(path)
        if path not in files:
            return httpx.Response(404)
        return httpx.Response(200, content=files[path])

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _status(code):
    return httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(code)))


# ---------------------------------------------------------------------------
# URL handling
# ---------------------------------------------------------------------------


class TestUrls:
    @pytest.mark.parametrize("url", ["http://deb.debian.org/debian", "http://deb.debian.org/debian/"])
    def test_root_is_a_directory(self, url):
        client = HttpRepositoryClient(url, client=_status(200))
        assert str(client.root_url) == "http://deb.debian.org/debian/"
        assert str(client.url_for("dists/stable/InRelease")) == f"{client.root_url}dists/stable/InRelease"
        assert str(client.url_for("/dists/stable/Release")) == f"{client.root_url}dists/stable/Release"

    def test_host_root(self):
        client = HttpRepositoryClient("https://mirror.example.org", client=_status(200))
        assert str(client.url_for("dists/x/Release")) == "https://mirror.example.org/dists/x/Release"

    @pytest.mark.parametrize("url", ["not a url", "ftp://ftp.debian.org/debian", "/debian"])
    def test_invalid(self, url):
        with pytest.raises(UrlError):
            HttpRepositoryClient(url, client=_status(200))

    def test_url_error_is_value_error(self):
        with pytest.raises(ValueError):
            HttpRepositoryClient("file:///srv/mirror", client=_status(200))


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------


@pytest.mark.anyio
class TestFetching:
    async def test_end_to_end(self, make_release, armor):
        index = {"main/binary-amd64/Packages.gz": gzip.compress(PACKAGES)}
        files = {f"dists/bookworm/{path}": data for path, data in index.items()}
        files["dists/bookworm/InRelease"] = armor(make_release(index)).encode()
        requested = []

        async with HttpRepositoryClient("http://deb.debian.org/debian", client=_serving(files, requested)) as repo:
            release = await repo.distribution_client("bookworm").fetch_inrelease()
            packages = await release.resolve_packages("main", "amd64")

        assert requested == ["dists/bookworm/InRelease", "dists/bookworm/main/binary-amd64/Packages.gz"]
        assert [p.package for p in packages] == ["hello", "libc6", "libgcc-s1"]

        resolver = DependencyResolver.from_packages(packages)
        deps = resolver.find_transitive_dependencies(packages[0], [BinaryDependency.DEPENDS])
        assert [p.package for p in deps.packages()] == ["libc6", "libgcc-s1"]
        assert deps.unresolved == []

    async def test_not_found(self):
        repo = HttpRepositoryClient("http://deb.debian.org/debian", client=_serving({}))
        with pytest.raises(PathNotFoundError) as exc_info:
            await repo.read_path("dists/nope/InRelease")
        assert exc_info.value.path == "dists/nope/InRelease"

    async def test_bad_status(self):
        repo = HttpRepositoryClient("http://deb.debian.org/debian", client=_status(500))
        with pytest.raises(HttpStatusError) as exc_info:
            await repo.read_path("dists/stable/InRelease")
        assert exc_info.value.status_code == 500

    async def test_transport_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(refuse))
        repo = HttpRepositoryClient("http://deb.debian.org/debian", client=client)
        with pytest.raises(TransportError):
            await repo.read_path("dists/stable/InRelease")

    async def test_fallback_to_release_on_404(self, make_release):
        files = {"dists/stable/Release": make_release({}).encode()}
        repo = HttpRepositoryClient("http://deb.debian.org/debian", client=_serving(files))
        release = await repo.distribution_client("stable").fetch_release_client()
        assert release.release.codename == "testing-codename"

    async def test_external_client_left_open(self):
        client = _status(200)
        async with HttpRepositoryClient("http://deb.debian.org/debian", client=client):
            pass
        assert not client.is_closed
        await client.aclose()

    async def test_owned_client_closed(self):
        repo = HttpRepositoryClient("http://deb.debian.org/debian")
        async with repo:
            pass
        assert repo._client.is_closed
