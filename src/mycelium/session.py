"""
Execution session owning the filesystem interception state.

A session is created explicitly and passed to whatever needs it; there is
no process-wide context. Each session has its own path codec and
intercepting filesystem, so independent sessions never share state.
"""

import logging
from pathlib import Path, PurePath
from typing import Any, Optional, Protocol, Union, runtime_checkable

import requests

from mycelium.exceptions import HostNotConfiguredError, UnknownLanguageError
from mycelium.filesystem import FileSystemConfig, InterceptingFileSystem, PathCodec
from mycelium.languages import language_from_path

logger = logging.getLogger(__name__)


@runtime_checkable
class ExecutionHost(Protocol):
    """Engine that evaluates guest-language source for a session."""

    def attach(self, session: "ExecutionSession") -> None:
        """Called once when the host is handed to a session."""
        ...

    def evaluate(self, language: str, source: str, name: str) -> Any:
        """Evaluate ``source`` written in ``language``; ``name`` identifies it."""
        ...


class ExecutionSession:
    """
    One execution context with its own intercepting filesystem.

    Example:
        >>> from mycelium.importer import PythonHost
        >>> session = ExecutionSession(host=PythonHost())
        >>> session.run_file("main.py")
    """

    def __init__(
        self,
        host: Optional[ExecutionHost] = None,
        config: Optional[FileSystemConfig] = None,
        http_session: Optional[requests.Session] = None,
    ):
        """
        Args:
            host: Execution host used by ``run_file``
            config: Filesystem configuration (defaults to FileSystemConfig())
            http_session: Optional requests session shared by remote channels
        """
        self.config = config or FileSystemConfig()
        self.codec = PathCodec(self.config)
        self.filesystem = InterceptingFileSystem(
            config=self.config,
            codec=self.codec,
            session=self,
            http_session=http_session,
        )
        self.host = host
        if host is not None:
            host.attach(self)

    def open(self, reference: Union[str, PurePath], requesting_language: Optional[str] = None):
        """Open a URI or path through the session filesystem for reading."""
        if isinstance(reference, PurePath):
            path = reference
        else:
            path = self.filesystem.parse_uri(reference)
        return self.filesystem.new_byte_channel(path, requesting_language=requesting_language)

    def read_source(
        self,
        reference: Union[str, PurePath],
        requesting_language: Optional[str] = None,
        encoding: str = "utf-8",
    ) -> str:
        """Read a whole module source through the session filesystem."""
        with self.open(reference, requesting_language=requesting_language) as channel:
            return channel.read().decode(encoding)

    def run_file(self, path: Union[str, Path]) -> Any:
        """
        Evaluate a local script with the language matching its extension.

        Raises:
            UnknownLanguageError: If the extension has no registered language
            HostNotConfiguredError: If the session has no host
        """
        path = Path(path)
        language = language_from_path(path)
        if language is None:
            raise UnknownLanguageError(path.suffix.lstrip("."), path=str(path))
        if self.host is None:
            raise HostNotConfiguredError()

        source = path.read_text(encoding="utf-8")
        logger.info(f"Running {path} as {language}")
        return self.host.evaluate(language, source, str(path))
