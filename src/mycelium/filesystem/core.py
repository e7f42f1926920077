"""Intercepting filesystem handed to the execution host.

Local paths are passed through to the real filesystem; paths under the
reserved prefix are served by remote channels.
"""

from __future__ import annotations

import io
import logging
import os
import stat
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path, PurePath, PurePosixPath
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, Iterator, Optional, Union
from urllib.parse import urlsplit
from urllib.request import url2pathname

import requests

from mycelium.exceptions import UnsupportedOperationError
from mycelium.filesystem.channel import HttpChannel
from mycelium.filesystem.codec import PathCodec
from mycelium.filesystem.config import FileSystemConfig

if TYPE_CHECKING:
    from mycelium.session import ExecutionSession

logger = logging.getLogger(__name__)

PathLike = Union[str, PurePath]


class AccessMode(Enum):
    """Access modes accepted by ``check_access``."""

    READ = os.R_OK
    WRITE = os.W_OK
    EXECUTE = os.X_OK


class OpenOption(Enum):
    """Options accepted by ``new_byte_channel``."""

    READ = "read"
    WRITE = "write"
    APPEND = "append"
    CREATE = "create"
    CREATE_NEW = "create_new"
    TRUNCATE_EXISTING = "truncate_existing"


BASIC_ATTRIBUTES = (
    "size",
    "lastModifiedTime",
    "lastAccessTime",
    "creationTime",
    "isRegularFile",
    "isDirectory",
    "isSymbolicLink",
    "isOther",
    "fileKey",
)


class InterceptingFileSystem:
    """Filesystem capability set for one execution session.

    Example:
        >>> fs = InterceptingFileSystem()
        >>> path = fs.parse_uri("https://example.test/mod.js")
        >>> str(path)
        '/.mycelium/https:/example.test/mod.js'
        >>> with fs.new_byte_channel(path) as channel:
        ...     source = channel.read()
    """

    def __init__(
        self,
        config: Optional[FileSystemConfig] = None,
        codec: Optional[PathCodec] = None,
        session: Optional["ExecutionSession"] = None,
        http_session: Optional[requests.Session] = None,
    ) -> None:
        """
        Args:
            config: Filesystem configuration shared with the codec and channels
            codec: Path codec; built from ``config`` when omitted
            session: The execution session this filesystem serves
            http_session: Optional requests session reused by remote channels
        """
        self.config = config or (codec.config if codec else FileSystemConfig())
        self.codec = codec or PathCodec(self.config)
        self.session = session
        self.http_session = http_session

    def bind(self, session: "ExecutionSession") -> None:
        """Attach the execution session this filesystem serves."""
        self.session = session

    # ------------------------------------------------------------------
    # Path parsing
    # ------------------------------------------------------------------

    def parse_uri(self, uri: str) -> PurePath:
        """Turn a URI reference from an import specifier into a path.

        ``file:`` URIs and absolute paths map to local paths; anything else is
        encoded under the reserved prefix.
        """
        if uri.startswith("/"):
            return Path(uri)
        parts = urlsplit(uri)
        if parts.scheme.lower() == "file":
            return Path(url2pathname(parts.path))
        return self.codec.encode(uri)

    def parse_path(self, path: str) -> PurePath:
        """Turn a path string into a path."""
        if self.codec.is_remote(path):
            return PurePosixPath(path)
        return Path(path)

    # ------------------------------------------------------------------
    # Capability surface
    # ------------------------------------------------------------------

    def check_access(
        self,
        path: PathLike,
        modes: Iterable[AccessMode] = (),
        follow_links: bool = True,
    ) -> None:
        """
        Check that ``path`` exists and grants every requested mode.

        Raises:
            FileNotFoundError: If a local path does not exist
            PermissionError: If a local path denies one of the modes
            UnsupportedOperationError: If EXECUTE is requested on a remote path
        """
        modes = set(modes)
        target = self.codec.classify(path)
        if target.is_remote:
            if AccessMode.EXECUTE in modes:
                raise UnsupportedOperationError("check_access(EXECUTE)", path=str(path))
            return

        local = os.fspath(path)
        # Raises FileNotFoundError for a missing entry
        os.stat(local, follow_symlinks=follow_links)
        for mode in modes:
            if not os.access(local, mode.value, follow_symlinks=follow_links):
                raise PermissionError(13, f"{mode.name} access denied", local)

    def create_directory(self, directory: PathLike, mode: int = 0o777) -> None:
        if self.codec.classify(directory).is_remote:
            raise UnsupportedOperationError("create_directory", path=str(directory))
        os.mkdir(os.fspath(directory), mode)

    def delete(self, path: PathLike) -> None:
        """Delete a file or an empty directory.

        Remote paths are ignored silently since the host may clean up
        speculatively.
        """
        if self.codec.is_remote(path):
            logger.debug(f"Ignoring delete of remote path {path}")
            return

        local = os.fspath(path)
        if os.path.isdir(local) and not os.path.islink(local):
            os.rmdir(local)
        else:
            os.remove(local)

    def new_byte_channel(
        self,
        path: PathLike,
        options: Iterable[OpenOption] = (OpenOption.READ,),
        mode: int = 0o666,
        requesting_language: Optional[str] = None,
    ):
        """
        Open a seekable byte channel for ``path``.

        Args:
            path: Local or remote virtual path
            options: Open options; READ when empty
            mode: Permission bits for newly created local files
            requesting_language: Guest language issuing the request, if known

        Returns:
            ``HttpChannel`` for remote paths, unbuffered ``io.FileIO`` otherwise

        Raises:
            UnsupportedSchemeError: If a remote path has an unsupported scheme
            RemoteConnectionError: If the remote stream cannot be established
        """
        options = set(options) or {OpenOption.READ}
        target = self.codec.classify(path)

        if target.is_remote:
            logger.debug(
                f"Opening remote channel for {target.uri} "
                f"(language={requesting_language or 'unknown'})"
            )
            return HttpChannel(target.uri, config=self.config, session=self.http_session)

        flags, file_mode = _open_flags(options)
        fd = os.open(os.fspath(path), flags, mode)
        return io.FileIO(fd, file_mode, closefd=True)

    def new_directory_stream(
        self,
        directory: PathLike,
        entry_filter: Optional[Callable[[Path], bool]] = None,
    ) -> Iterator[Path]:
        """List the entries of a local directory, optionally filtered."""
        if self.codec.classify(directory).is_remote:
            raise UnsupportedOperationError("new_directory_stream", path=str(directory))

        base = Path(directory)
        entries = [base / name for name in sorted(os.listdir(base))]
        if entry_filter is not None:
            entries = [entry for entry in entries if entry_filter(entry)]
        return iter(entries)

    def to_absolute_path(self, path: PathLike) -> PurePath:
        if self.codec.is_remote(path):
            return path if isinstance(path, PurePath) else PurePosixPath(path)
        return Path(path).absolute()

    def to_real_path(self, path: PathLike, follow_links: bool = True) -> PurePath:
        """Canonicalize a path.

        Local paths must exist. Remote paths are validated and re-encoded.
        """
        if self.codec.classify(path).is_remote:
            return self.codec.canonicalize(path)

        if follow_links:
            return Path(path).resolve(strict=True)
        absolute = Path(os.path.abspath(path))
        os.lstat(absolute)
        return absolute

    def read_attributes(
        self,
        path: PathLike,
        attributes: str = "*",
        follow_links: bool = True,
    ) -> Dict[str, Any]:
        """
        Read file attributes of a local path.

        Args:
            path: Local path
            attributes: ``"*"``, ``"basic:*"`` or comma-separated attribute
                names, optionally prefixed by the ``basic:`` view
            follow_links: Whether to follow a trailing symlink

        Returns:
            Dict mapping attribute names to values

        Raises:
            UnsupportedOperationError: For remote paths or views other than basic
            ValueError: For unknown attribute names
        """
        if self.codec.classify(path).is_remote:
            raise UnsupportedOperationError("read_attributes", path=str(path))

        view, _, names = attributes.rpartition(":")
        if view and view != "basic":
            raise UnsupportedOperationError(
                "read_attributes", path=str(path), message=f"View '{view}' not available"
            )
        requested = BASIC_ATTRIBUTES if names == "*" else [n.strip() for n in names.split(",")]
        unknown = [name for name in requested if name not in BASIC_ATTRIBUTES]
        if unknown:
            raise ValueError(f"'{unknown[0]}' not recognized")

        st = os.stat(os.fspath(path), follow_symlinks=follow_links)
        basic = _basic_attributes(st)
        return {name: basic[name] for name in requested}


def _open_flags(options: set) -> tuple:
    """Translate open options into ``os.open`` flags and a FileIO mode."""
    writing = bool(options & {OpenOption.WRITE, OpenOption.APPEND})
    reading = OpenOption.READ in options or not writing

    if reading and writing:
        flags, file_mode = os.O_RDWR, "r+"
    elif writing:
        flags, file_mode = os.O_WRONLY, "w"
    else:
        flags, file_mode = os.O_RDONLY, "r"

    if OpenOption.APPEND in options:
        flags |= os.O_APPEND
    if writing:
        if OpenOption.CREATE_NEW in options:
            flags |= os.O_CREAT | os.O_EXCL
        elif OpenOption.CREATE in options:
            flags |= os.O_CREAT
        if OpenOption.TRUNCATE_EXISTING in options:
            flags |= os.O_TRUNC
    return flags | getattr(os, "O_BINARY", 0), file_mode


def _basic_attributes(st: os.stat_result) -> Dict[str, Any]:
    birth = getattr(st, "st_birthtime", st.st_ctime)
    return {
        "size": st.st_size,
        "lastModifiedTime": _timestamp(st.st_mtime),
        "lastAccessTime": _timestamp(st.st_atime),
        "creationTime": _timestamp(birth),
        "isRegularFile": stat.S_ISREG(st.st_mode),
        "isDirectory": stat.S_ISDIR(st.st_mode),
        "isSymbolicLink": stat.S_ISLNK(st.st_mode),
        "isOther": not (
            stat.S_ISREG(st.st_mode) or stat.S_ISDIR(st.st_mode) or stat.S_ISLNK(st.st_mode)
        ),
        "fileKey": (st.st_dev, st.st_ino),
    }


def _timestamp(seconds: float) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)
