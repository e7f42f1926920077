"""
Mycelium - Remote module imports for multi-language execution hosts

Presents modules hosted at http(s) URIs to an execution host's module
loader as if they were ordinary files.

License: Apache-2.0
"""

__version__ = "0.1.0"

# Filesystem interception
from .filesystem import (
    AccessMode,
    ClassifiedPath,
    FileSystemConfig,
    HttpChannel,
    InterceptingFileSystem,
    OpenOption,
    PathCodec,
    PathKind,
)

# Execution session
from .session import ExecutionHost, ExecutionSession

# Errors
from .exceptions import (
    ChannelClosedError,
    HostNotConfiguredError,
    MalformedRemotePathError,
    MyceliumError,
    RemoteConnectionError,
    UnknownLanguageError,
    UnsupportedOperationError,
    UnsupportedSchemeError,
)

__all__ = [
    # Version
    "__version__",
    # Filesystem
    "AccessMode",
    "ClassifiedPath",
    "FileSystemConfig",
    "HttpChannel",
    "InterceptingFileSystem",
    "OpenOption",
    "PathCodec",
    "PathKind",
    # Session
    "ExecutionHost",
    "ExecutionSession",
    # Errors
    "ChannelClosedError",
    "HostNotConfiguredError",
    "MalformedRemotePathError",
    "MyceliumError",
    "RemoteConnectionError",
    "UnknownLanguageError",
    "UnsupportedOperationError",
    "UnsupportedSchemeError",
]
