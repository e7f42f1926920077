"""Intercepting filesystem for remote module imports.

This package lets an execution host load modules from http(s) URIs as if
they were local files. URIs are encoded as paths under a reserved prefix and
opened as seekable channels over a streaming download.

Example:
    >>> from mycelium.filesystem import InterceptingFileSystem
    >>> fs = InterceptingFileSystem()
    >>> path = fs.parse_uri("https://example.test/a.py")
    >>> print(path)
    /.mycelium/https:/example.test/a.py
"""

from .channel import HttpChannel
from .codec import ClassifiedPath, PathCodec, PathKind
from .config import FileSystemConfig
from .core import AccessMode, InterceptingFileSystem, OpenOption

__all__ = [
    "AccessMode",
    "ClassifiedPath",
    "FileSystemConfig",
    "HttpChannel",
    "InterceptingFileSystem",
    "OpenOption",
    "PathCodec",
    "PathKind",
]
