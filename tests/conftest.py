"""
Shared fixtures for the aptresolver test suite.

  - make_package: factory for BinaryPackageControlFile views
  - make_release: factory rendering Release file text for a set of index files
  - armor: wraps Release text in a clear-signed envelope
"""

import hashlib

import pytest

from aptresolver.binary_package_control import BinaryPackageControlFile
from aptresolver.control import ControlField, ControlParagraph

FIELD_NAMES = {
    "depends": "Depends",
    "pre_depends": "Pre-Depends",
    "recommends": "Recommends",
    "suggests": "Suggests",
    "enhances": "Enhances",
    "provides": "Provides",
    "installed_size": "Installed-Size",
}


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def make_package():
    """Build a binary package view from keyword fields."""

    def _make(name, version="1.0", architecture="amd64", **fields):
        control = [
            ControlField("Package", name),
            ControlField("Version", version),
            ControlField("Architecture", architecture),
            ControlField("Maintainer", "Test Maintainer <test@example.org>"),
            ControlField("Description", f"the {name} package"),
        ]
        for key, value in fields.items():
            control.append(ControlField(FIELD_NAMES.get(key, key), value))
        return BinaryPackageControlFile(ControlParagraph(control))

    return _make


@pytest.fixture
def make_release():
    """Render a Release file listing `files` (path -> bytes) in MD5Sum and SHA256 sections."""

    def _make(files, architectures="amd64 arm64", components="main contrib", overrides=None):
        overrides = overrides or {}
        lines = [
            "Origin: Test",
            "Label: Test",
            "Suite: stable",
            "Codename: testing-codename",
            "Date: Sat, 07 Oct 2023 09:58:08 UTC",
            f"Architectures: {architectures}",
            f"Components: {components}",
            "Acquire-By-Hash: yes",
        ]
        for section, algorithm in (("MD5Sum", "md5"), ("SHA256", "sha256")):
            lines.append(f"{section}:")
            for path, data in files.items():
                digest, size = overrides.get((section, path), (None, None))
                digest = digest or hashlib.new(algorithm, data).hexdigest()
                size = len(data) if size is None else size
                lines.append(f" {digest} {size:>8} {path}")
        return "\n".join(lines) + "\n"

    return _make


@pytest.fixture
def armor():
    """Wrap text in an OpenPGP clear-signed envelope, dash-escaping as gpg does."""

    def _armor(text):
        escaped = "\n".join(f"- {line}" if line.startswith("-") else line for line in text.splitlines())
        return (
            "-----BEGIN PGP SIGNED MESSAGE-----\n"
            "Hash: SHA512\n"
            "\n"
            f"{escaped}\n"
            "-----BEGIN PGP SIGNATURE-----\n"
            "\n"
            "iQIzBAEBCgAdFiEEpyNohvPMyq0Uiif4DphATThvodkFAmUhKyEACgkQDphATThv\n"
            "=8vKX\n"
            "-----END PGP SIGNATURE-----\n"
        )

    return _armor
