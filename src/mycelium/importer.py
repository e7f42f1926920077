"""
Python host adapter.

Loads Python modules whose source lives at http(s) URIs through a session's
intercepting filesystem, so they behave like modules imported from files.

Example:
    >>> host = PythonHost()
    >>> session = ExecutionSession(host=host)
    >>> host.register_module("greetings", "https://example.test/greetings.py")
    >>> module = host.import_module("greetings")
"""

import importlib
import logging
import sys
from contextlib import contextmanager
from importlib.abc import MetaPathFinder, SourceLoader
from importlib.machinery import ModuleSpec
from pathlib import PurePath
from typing import Any, Dict, Iterator, Optional

from mycelium.exceptions import HostNotConfiguredError, UnsupportedOperationError
from mycelium.filesystem import InterceptingFileSystem

logger = logging.getLogger(__name__)

LANGUAGE = "python"


class RemoteSourceLoader(SourceLoader):
    """Reads module source through the intercepting filesystem."""

    def __init__(self, filesystem: InterceptingFileSystem, path: PurePath):
        self.filesystem = filesystem
        self.path = path

    def get_filename(self, fullname: str) -> str:
        return self.path.as_posix()

    def get_data(self, path: str) -> bytes:
        with self.filesystem.new_byte_channel(path, requesting_language=LANGUAGE) as channel:
            return channel.read()


class RemoteModuleFinder(MetaPathFinder):
    """Finds modules registered under a URI."""

    def __init__(self, filesystem: InterceptingFileSystem):
        self.filesystem = filesystem
        self.modules: Dict[str, PurePath] = {}

    def register(self, name: str, uri: str) -> PurePath:
        """Map a module name to the URI of its source."""
        path = self.filesystem.parse_uri(uri)
        self.modules[name] = path
        logger.debug(f"Registered module {name} at {path}")
        return path

    def find_spec(self, fullname, path=None, target=None) -> Optional[ModuleSpec]:
        location = self.modules.get(fullname)
        if location is None:
            return None
        loader = RemoteSourceLoader(self.filesystem, location)
        spec = ModuleSpec(fullname, loader, origin=location.as_posix())
        spec.has_location = True
        return spec


class PythonHost:
    """Execution host for the Python guest language."""

    def __init__(self):
        self.session = None
        self.finder: Optional[RemoteModuleFinder] = None

    def attach(self, session) -> None:
        self.session = session
        self.finder = RemoteModuleFinder(session.filesystem)

    def _require_finder(self) -> RemoteModuleFinder:
        if self.finder is None:
            raise HostNotConfiguredError("PythonHost is not attached to a session")
        return self.finder

    def register_module(self, name: str, uri: str) -> PurePath:
        return self._require_finder().register(name, uri)

    @contextmanager
    def installed(self) -> Iterator[RemoteModuleFinder]:
        """Temporarily place the finder at the end of ``sys.meta_path``."""
        finder = self._require_finder()
        if finder in sys.meta_path:
            yield finder
            return
        sys.meta_path.append(finder)
        try:
            yield finder
        finally:
            sys.meta_path.remove(finder)

    def import_module(self, name: str) -> Any:
        """Import a registered module."""
        with self.installed():
            return importlib.import_module(name)

    def evaluate(self, language: str, source: str, name: str) -> Dict[str, Any]:
        """
        Execute Python source as ``__main__`` with remote imports enabled.

        Returns:
            The module namespace after execution
        """
        if language != LANGUAGE:
            raise UnsupportedOperationError(
                "evaluate", path=name, message=f"PythonHost cannot evaluate {language}"
            )

        namespace: Dict[str, Any] = {"__name__": "__main__", "__file__": name}
        code = compile(source, name, "exec")
        with self.installed():
            exec(code, namespace)
        return namespace
