"""
Configuration for the intercepting filesystem.

This module defines the configuration class controlling the reserved
remote-path namespace, the outgoing client identity and the buffer sizes
used by remote channels.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Optional, Tuple

DEFAULT_RESERVED_PREFIX = "/.mycelium"

# Identity sent to origin servers, some of which tailor the body to the client
DEFAULT_USER_AGENT = "curl/8.9.1"

DEFAULT_SUPPORTED_SCHEMES = ("http", "https")


@dataclass
class FileSystemConfig:
    """
    Configuration for an intercepting filesystem and its remote channels.

    One config belongs to one execution session; separate sessions may use
    separate prefixes.
    """

    reserved_prefix: str = DEFAULT_RESERVED_PREFIX
    """Absolute, hidden-directory-style path segment under which remote URIs are encoded."""

    user_agent: str = DEFAULT_USER_AGENT
    """Client identity sent with every outgoing request."""

    initial_buffer_size: int = 8192
    """Initial capacity in bytes of a remote channel's buffer."""

    chunk_size: int = 8192
    """Maximum number of bytes pulled from the network by one drain."""

    connect_timeout: Optional[float] = None
    """Seconds to wait for the remote peer. None waits forever."""

    supported_schemes: Tuple[str, ...] = field(
        default_factory=lambda: DEFAULT_SUPPORTED_SCHEMES
    )
    """URI schemes a remote channel can be opened for."""

    def __post_init__(self) -> None:
        prefix = PurePosixPath(self.reserved_prefix)
        if not prefix.is_absolute() or len(prefix.parts) != 2:
            raise ValueError(
                f"Reserved prefix must be a single absolute segment: {self.reserved_prefix}"
            )
        if not prefix.name.startswith("."):
            raise ValueError(
                f"Reserved prefix must be a hidden segment (start with '.'): {self.reserved_prefix}"
            )
        self.reserved_prefix = prefix.as_posix()

        if self.initial_buffer_size <= 0:
            raise ValueError("initial_buffer_size must be positive")
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.connect_timeout is not None and self.connect_timeout <= 0:
            raise ValueError("connect_timeout must be positive or None")

        self.supported_schemes = tuple(s.lower() for s in self.supported_schemes)

    @classmethod
    def from_env(cls, prefix: str = "MYCELIUM_") -> "FileSystemConfig":
        """
        Create a configuration from environment variables.

        Recognized variables (with the default prefix):
            MYCELIUM_RESERVED_PREFIX, MYCELIUM_USER_AGENT,
            MYCELIUM_INITIAL_BUFFER_SIZE, MYCELIUM_CHUNK_SIZE,
            MYCELIUM_CONNECT_TIMEOUT

        Args:
            prefix: Environment variable prefix

        Returns:
            FileSystemConfig with unset variables left at their defaults
        """
        kwargs = {}
        env = os.environ

        if f"{prefix}RESERVED_PREFIX" in env:
            kwargs["reserved_prefix"] = env[f"{prefix}RESERVED_PREFIX"]
        if f"{prefix}USER_AGENT" in env:
            kwargs["user_agent"] = env[f"{prefix}USER_AGENT"]
        if f"{prefix}INITIAL_BUFFER_SIZE" in env:
            kwargs["initial_buffer_size"] = int(env[f"{prefix}INITIAL_BUFFER_SIZE"])
        if f"{prefix}CHUNK_SIZE" in env:
            kwargs["chunk_size"] = int(env[f"{prefix}CHUNK_SIZE"])
        if f"{prefix}CONNECT_TIMEOUT" in env:
            kwargs["connect_timeout"] = float(env[f"{prefix}CONNECT_TIMEOUT"])

        return cls(**kwargs)

    def __repr__(self) -> str:
        return (
            f"FileSystemConfig(prefix={self.reserved_prefix}, "
            f"user_agent={self.user_agent!r}, "
            f"schemes={list(self.supported_schemes)})"
        )
