"""
Tests for the mycelium.languages module.
"""

import pytest

from mycelium.languages import language_from_extension, language_from_path


@pytest.mark.parametrize(
    "extension,language",
    [
        ("js", "js"),
        ("mjs", "js"),
        ("ts", "js"),
        ("mts", "js"),
        ("py", "python"),
        ("rb", "ruby"),
        ("wasm", "wasm"),
        (".py", "python"),
        ("PY", "python"),
    ],
)
def test_known_extensions(extension, language):
    assert language_from_extension(extension) == language


@pytest.mark.parametrize("extension", ["", "txt", "java", "json"])
def test_unknown_extensions(extension):
    assert language_from_extension(extension) is None


def test_language_from_path():
    assert language_from_path("/.mycelium/https:/example.test/lib.mjs") == "js"
    assert language_from_path("scripts/main.rb") == "ruby"
    assert language_from_path("Makefile") is None
