"""Guest language selection by file extension."""

from pathlib import PurePath
from typing import Dict, Optional, Union

LANGUAGE_BY_EXTENSION: Dict[str, str] = {
    "js": "js",
    "mjs": "js",
    "ts": "js",
    "mts": "js",
    "py": "python",
    "rb": "ruby",
    "wasm": "wasm",
}


def language_from_extension(extension: str) -> Optional[str]:
    """Return the guest language for an extension (with or without the dot)."""
    return LANGUAGE_BY_EXTENSION.get(extension.lstrip(".").lower())


def language_from_path(path: Union[str, PurePath]) -> Optional[str]:
    suffix = PurePath(path).suffix
    return language_from_extension(suffix) if suffix else None
