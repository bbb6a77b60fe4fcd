"""Mapping from remote identities to local filesystem paths."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlparse


class PathResolver:
    """Resolve a file identity (relative path) to a path under the documents dir.

    The mapping is pure: the same identity always yields the same path and
    nothing is touched on disk.
    """

    def __init__(self, documents_dir: Path | str) -> None:
        self._documents_dir = Path(documents_dir)

    @property
    def documents_dir(self) -> Path:
        """Get the documents directory all identities live under."""
        return self._documents_dir

    def resolve(self, identity: str = "") -> Path:
        """Get the local path for the given identity.

        Args:
            identity: Relative path in the remote namespace. An empty
                identity resolves to the documents directory itself.

        Returns:
            Local absolute (or documents-dir relative) path.

        Raises:
            ValueError: If the identity points outside the documents dir.
        """
        relative = identity.lstrip("/")
        if not relative:
            return self._documents_dir
        path = PurePosixPath(relative)
        if ".." in path.parts:
            raise ValueError(f"Invalid identity: {identity}")
        return self._documents_dir / path


def uri_to_path(uri: str) -> Path:
    """Convert a local URI (``file://...`` or a plain path) to a Path."""
    if uri.startswith("file://"):
        return Path(unquote(urlparse(uri).path))
    return Path(uri)


def name_from_uri(uri: str) -> str:
    """Get the file name (last path segment) of a local URI."""
    name = uri_to_path(uri).name
    if not name:
        raise ValueError(f"Cannot derive a file name from {uri!r}")
    return name


def join_identity(prefix: str, name: str) -> str:
    """Join an identity prefix and a file name with a single slash."""
    prefix = prefix.strip("/")
    if not prefix:
        return name
    return f"{prefix}/{name}"
