"""Bidirectional mapping between host-visible virtual paths and origin URIs.

Remote URIs live under a reserved, hidden path segment::

    https://example.test/a.py  <->  /.mycelium/https:/example.test/a.py

Path normalization collapses the ``//`` of the scheme separator, so the
encoded form always carries a single slash and decoding repairs it. Every
other slash and dot segment that normalization would lose is percent-escaped.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath, PurePosixPath
from typing import Optional, Union
from urllib.parse import quote, unquote, urlsplit

from mycelium.exceptions import MalformedRemotePathError, UnsupportedSchemeError
from mycelium.filesystem.config import FileSystemConfig

logger = logging.getLogger(__name__)

# Characters left as-is when escaping a URI into a path. Everything else
# (whitespace, '%', non-ASCII, control characters) is percent-encoded.
_PATH_SAFE = "/:@!$&'()*+,;=?#[]~"
_QUERY_SAFE = _PATH_SAFE.replace("/", "")

_DOUBLE_SLASH_SEPARATOR = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*)://")
_SINGLE_SLASH_SEPARATOR = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*):/(?!/)")

PathLike = Union[str, PurePath]


class PathKind(Enum):
    """Where a virtual path is served from."""

    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True)
class ClassifiedPath:
    """Result of classifying a virtual path.

    Attributes:
        kind: LOCAL for real filesystem paths, REMOTE for reserved-prefix paths
        path: The virtual path that was classified
        uri: The decoded origin URI (remote paths only)
    """

    kind: PathKind
    path: PurePath
    uri: Optional[str] = None

    @property
    def is_remote(self) -> bool:
        return self.kind is PathKind.REMOTE

    @property
    def scheme(self) -> Optional[str]:
        return urlsplit(self.uri).scheme.lower() if self.uri else None


class PathCodec:
    """Encodes URIs into reserved-prefix paths and classifies virtual paths.

    Example:
        >>> codec = PathCodec()
        >>> codec.encode("https://example.test/a.py")
        PurePosixPath('/.mycelium/https:/example.test/a.py')
        >>> codec.classify("/.mycelium/https:/example.test/a.py").uri
        'https://example.test/a.py'
    """

    def __init__(self, config: Optional[FileSystemConfig] = None) -> None:
        self.config = config or FileSystemConfig()
        self.prefix = self.config.reserved_prefix
        self.supported_schemes = self.config.supported_schemes

    def is_remote(self, path: PathLike) -> bool:
        """Return True if the path lies under the reserved prefix.

        This is a segment-wise prefix test only; the remainder is not validated.
        """
        text = _as_text(path)
        return text == self.prefix or text.startswith(self.prefix + "/")

    def classify(self, path: PathLike) -> ClassifiedPath:
        """Classify a virtual path as local or remote.

        Args:
            path: A virtual path as handed over by the host

        Returns:
            ClassifiedPath; remote paths carry the decoded URI

        Raises:
            MalformedRemotePathError: If a reserved-prefix path does not decode to a URI
            UnsupportedSchemeError: If the decoded URI scheme is not supported
        """
        pure = path if isinstance(path, PurePath) else PurePosixPath(path)
        if not self.is_remote(path):
            return ClassifiedPath(kind=PathKind.LOCAL, path=pure)

        uri = self.decode(path)
        logger.debug(f"Classified {path} as remote: {uri}")
        return ClassifiedPath(kind=PathKind.REMOTE, path=pure, uri=uri)

    def encode(self, uri: str) -> PurePosixPath:
        """Encode a URI as a path under the reserved prefix.

        The scheme separator is written in its single-slash form and characters
        that are unsafe in a path are percent-escaped. Slashes that path
        normalization would collapse (empty segments, a trailing slash, any
        slash in the query or fragment) and dot segments are escaped too, so
        the URI survives a trip through ``pathlib``. No validation happens
        here; an unsupported scheme is only reported when the path is classified.
        """
        match = _DOUBLE_SLASH_SEPARATOR.match(uri)
        if match is None:
            return PurePosixPath(f"{self.prefix}/{quote(uri, safe=_PATH_SAFE)}")

        rest = uri[match.end():]
        marks = [i for i in (rest.find("?"), rest.find("#")) if i >= 0]
        cut = min(marks, default=len(rest))
        location, tail = rest[:cut], rest[cut:]
        authority, slash, path = location.partition("/")

        encoded = [f"{match.group(1)}:/", quote(authority, safe=_PATH_SAFE)]
        if slash:
            for segment in path.split("/"):
                # An empty segment keeps its slash only in escaped form
                encoded.append("%2F" if segment == "" else "/")
                encoded.append(_encode_segment(segment))
        encoded.append(quote(tail, safe=_QUERY_SAFE))
        return PurePosixPath(f"{self.prefix}/{''.join(encoded)}")

    def decode(self, path: PathLike) -> str:
        """Decode a reserved-prefix path back into its URI.

        Raises:
            MalformedRemotePathError: If the path is not under the prefix or the
                remainder does not parse as a URI with an authority
            UnsupportedSchemeError: If the URI scheme is not supported
        """
        text = _as_text(path)
        if not self.is_remote(text):
            raise MalformedRemotePathError(
                f"Path is not under the reserved prefix {self.prefix}", path=text
            )

        remainder = text[len(self.prefix) + 1:]
        if not remainder:
            raise MalformedRemotePathError("Remote path has no URI", path=text)

        uri = _SINGLE_SLASH_SEPARATOR.sub(r"\1://", unquote(remainder), count=1)
        try:
            parts = urlsplit(uri)
        except ValueError as exc:
            raise MalformedRemotePathError(
                f"Remote path does not decode to a URI: {exc}", path=text
            ) from exc

        if not parts.scheme:
            raise MalformedRemotePathError(
                f"Remote path has no URI scheme: {remainder}", path=text
            )
        if parts.scheme.lower() not in self.supported_schemes:
            raise UnsupportedSchemeError(
                parts.scheme, path=text, supported_schemes=self.supported_schemes
            )
        if not parts.netloc:
            raise MalformedRemotePathError(
                f"Remote URI has no authority: {uri}", path=text
            )
        return uri

    def canonicalize(self, path: PathLike) -> PurePosixPath:
        """Return the canonical encoded form of a remote path."""
        return self.encode(self.decode(path))


def _as_text(path: PathLike) -> str:
    return path.as_posix() if isinstance(path, PurePath) else str(path)


def _encode_segment(segment: str) -> str:
    if segment in (".", ".."):
        return "%2E" * len(segment)
    return quote(segment, safe=_PATH_SAFE)
