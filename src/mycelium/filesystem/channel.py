"""
Seekable byte channel backed by a streaming HTTP download.

The host's loader expects files that can be sought in any order, while a
network response only offers forward reads. ``HttpChannel`` keeps every byte
pulled so far in a growable buffer: any offset below ``filled_length`` is
served from memory, any read at or past it drains more of the stream first.

Writes and truncation only touch the in-memory buffer, never the network.
"""

import io
import logging
from typing import Optional

import requests

from mycelium.exceptions import ChannelClosedError, RemoteConnectionError, UnsupportedOperationError
from mycelium.filesystem.config import FileSystemConfig

logger = logging.getLogger(__name__)


class HttpChannel:
    """
    Random-access view over a lazily drained HTTP response body.

    The connection is opened eagerly by the constructor and owned by the
    channel until ``close()``. The channel is not thread-safe; it belongs to
    the caller that opened it.

    Attributes:
        uri: The origin URI being downloaded
        config: Buffer sizes and client identity
    """

    def __init__(
        self,
        uri: str,
        config: Optional[FileSystemConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Open the connection to ``uri``.

        Args:
            uri: http or https URI to download
            config: Filesystem configuration (defaults to FileSystemConfig())
            session: Optional requests session; a private one is created and
                closed with the channel when omitted

        Raises:
            RemoteConnectionError: If the stream cannot be established
        """
        self.uri = uri
        self.config = config or FileSystemConfig()

        self._owns_session = session is None
        self._session = session if session is not None else requests.Session()

        self._buffer = bytearray(self.config.initial_buffer_size)
        self._length = 0
        self._position = 0
        self._exhausted = False
        self._closed = False

        self._response = self._connect()
        self._stream = self._response.raw

    def _connect(self) -> requests.Response:
        headers = {"User-Agent": self.config.user_agent}
        try:
            response = self._session.get(
                self.uri,
                headers=headers,
                stream=True,
                timeout=self.config.connect_timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"Failed to connect to {self.uri}: {e}")
            self._release_session()
            raise RemoteConnectionError(
                f"Could not connect to {self.uri}: {e}", uri=self.uri
            ) from e

        if response.status_code >= 400:
            logger.warning(f"{self.uri} answered with HTTP {response.status_code}")
            response.close()
            self._release_session()
            raise RemoteConnectionError(
                f"{self.uri} answered with HTTP {response.status_code}",
                uri=self.uri,
                status_code=response.status_code,
            )

        # Undo gzip/deflate transfer encodings so the buffer holds the body bytes
        response.raw.decode_content = True
        logger.info(f"Connected to {self.uri} (HTTP {response.status_code})")
        return response

    def _release_session(self) -> None:
        if self._owns_session:
            self._session.close()

    # ------------------------------------------------------------------
    # Buffer management
    # ------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        """Current size of the backing buffer in bytes."""
        return len(self._buffer)

    @property
    def filled_length(self) -> int:
        """Number of valid bytes materialized in the buffer."""
        return self._length

    @property
    def exhausted(self) -> bool:
        """True once the network stream has reported end of data."""
        return self._exhausted

    def _ensure_capacity(self, needed: int) -> None:
        capacity = len(self._buffer)
        if needed <= capacity:
            return
        while capacity < needed:
            capacity *= 2
        self._buffer.extend(bytes(capacity - len(self._buffer)))

    def _drain(self) -> int:
        """Pull the bytes currently available from the stream into the buffer.

        Returns:
            Number of bytes appended; 0 once the stream is exhausted
        """
        if self._exhausted:
            return 0

        chunk = self._stream.read1(self.config.chunk_size)
        if not chunk:
            self._exhausted = True
            logger.debug(f"Stream for {self.uri} exhausted at {self._length} bytes")
            return 0

        end = self._length + len(chunk)
        self._ensure_capacity(end)
        self._buffer[self._length:end] = chunk
        self._length = end
        logger.debug(f"Drained {len(chunk)} bytes from {self.uri} (filled={end})")
        return len(chunk)

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError("I/O operation on closed channel")

    # ------------------------------------------------------------------
    # File-like interface
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self.uri

    @property
    def closed(self) -> bool:
        return self._closed

    def readable(self) -> bool:
        return True

    def writable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def isatty(self) -> bool:
        return False

    def fileno(self) -> int:
        raise UnsupportedOperationError("fileno", path=self.uri)

    def flush(self) -> None:
        self._check_open()

    def readinto(self, b) -> int:
        """
        Read bytes at the cursor into a writable buffer.

        Drains the stream when the requested range extends past the fetched
        data. Returns 0 for a non-empty ``b`` only when the stream is
        exhausted and the cursor is at or past the end of the data.
        """
        self._check_open()
        view = memoryview(b).cast("B")
        requested = len(view)
        if requested == 0:
            return 0

        if self._position + requested > self._length:
            self._drain()
            # A cursor sought past the fetched window must not report a false end
            while self._position >= self._length and not self._exhausted:
                self._drain()

        count = max(0, min(requested, self._length - self._position))
        view[:count] = self._buffer[self._position:self._position + count]
        self._position += count
        return count

    def read(self, size: Optional[int] = -1) -> bytes:
        """Read up to ``size`` bytes; ``b""`` signals end of data."""
        if size is None or size < 0:
            return self.readall()
        data = bytearray(size)
        count = self.readinto(data)
        return bytes(data[:count])

    def readall(self) -> bytes:
        """Drain the whole stream and return everything from the cursor on."""
        self._check_open()
        while self._drain():
            pass
        if self._position >= self._length:
            return b""
        data = bytes(self._buffer[self._position:self._length])
        self._position = self._length
        return data

    def write(self, data) -> int:
        """Write bytes at the cursor into the buffer.

        Returns:
            Number of bytes accepted
        """
        self._check_open()
        data = memoryview(data).cast("B")
        end = self._position + len(data)
        self._ensure_capacity(end)
        if self._position > self._length:
            self._buffer[self._length:self._position] = bytes(self._position - self._length)
        self._buffer[self._position:end] = data
        if end > self._length:
            self._length = end
        self._position = end
        return len(data)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        """Move the cursor without draining or validating against the data."""
        self._check_open()
        if whence == io.SEEK_SET:
            position = offset
        elif whence == io.SEEK_CUR:
            position = self._position + offset
        elif whence == io.SEEK_END:
            position = self._length + offset
        else:
            raise ValueError(f"Invalid whence ({whence})")

        if position < 0:
            raise ValueError(f"Negative seek position {position}")

        self._position = position
        return position

    def tell(self) -> int:
        self._check_open()
        return self._position

    def size(self) -> int:
        """Return the number of bytes known so far.

        When the cursor sits at the end of the fetched data one drain is
        attempted first, so a still-streaming body is not reported as complete.
        """
        self._check_open()
        if self._position == self._length:
            self._drain()
        return self._length

    def truncate(self, size: Optional[int] = None) -> int:
        """Set the logical end of the data to ``size`` (default: the cursor)."""
        self._check_open()
        if size is None:
            size = self._position
        if size < 0:
            raise ValueError(f"Negative size value {size}")

        self._ensure_capacity(size)
        if size > self._length:
            self._buffer[self._length:size] = bytes(size - self._length)
        self._length = size
        if self._position > size:
            self._position = size
        return size

    def close(self) -> None:
        """Close the network stream.

        Raises:
            ChannelClosedError: If the channel was already closed
        """
        if self._closed:
            raise ChannelClosedError(self.uri)
        self._closed = True
        try:
            self._response.close()
        finally:
            self._release_session()
        logger.debug(f"Closed channel for {self.uri}")

    def __enter__(self) -> "HttpChannel":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if not self._closed:
            self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"position={self._position}, filled={self._length}"
        return f"HttpChannel({self.uri!r}, {state})"
