"""Shared fakes for the requests layer used by remote channels."""

from typing import List, Optional
from unittest.mock import Mock

import pytest
import requests


class FakeRaw:
    """Response body delivered in pre-arranged chunks through ``read1``."""

    def __init__(self, chunks: List[bytes]):
        self.chunks = [bytes(c) for c in chunks if c]
        self.read_calls = 0
        self.closed = False
        self.decode_content = False

    def read1(self, amt: Optional[int] = None) -> bytes:
        self.read_calls += 1
        if not self.chunks:
            return b""
        chunk = self.chunks.pop(0)
        if amt is not None and len(chunk) > amt:
            self.chunks.insert(0, chunk[amt:])
            chunk = chunk[:amt]
        return chunk

    def close(self) -> None:
        self.closed = True


class FakeResponse:
    def __init__(self, chunks: List[bytes], status_code: int = 200):
        self.raw = FakeRaw(chunks)
        self.status_code = status_code
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1
        self.raw.close()


def make_http_session(*chunks: bytes, status_code: int = 200) -> Mock:
    """Create a mock requests session whose GET streams ``chunks``."""
    session = Mock(spec=requests.Session)
    session.get.return_value = FakeResponse(list(chunks), status_code=status_code)
    return session


@pytest.fixture
def http_session():
    return make_http_session(b"export const answer = 42;\n")


@pytest.fixture
def http_session_factory():
    return make_http_session
