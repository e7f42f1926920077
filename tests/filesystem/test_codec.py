"""
Tests for the mycelium.filesystem.codec module.

This module tests:
- Encoding URIs under the reserved prefix
- Decoding and scheme-separator repair
- Local/remote classification
- Malformed and unsupported remote paths
"""

from pathlib import Path, PurePosixPath

import pytest

from mycelium.exceptions import MalformedRemotePathError, UnsupportedSchemeError
from mycelium.filesystem import FileSystemConfig, PathCodec, PathKind


@pytest.fixture
def codec():
    return PathCodec()


# =============================================================================
# Encoding
# =============================================================================

class TestEncode:
    """Tests for PathCodec.encode."""

    def test_encode_uses_single_slash_separator(self, codec):
        path = codec.encode("https://example.test/a.py")

        assert path == PurePosixPath("/.mycelium/https:/example.test/a.py")

    def test_encode_escapes_unsafe_characters(self, codec):
        path = codec.encode("http://example.test/my module.js")

        assert path.as_posix() == "/.mycelium/http:/example.test/my%20module.js"

    def test_encode_keeps_query_and_port(self, codec):
        path = codec.encode("http://example.test:8080/mod.js?v=2")

        assert path.as_posix() == "/.mycelium/http:/example.test:8080/mod.js?v=2"

    def test_encode_escapes_slashes_in_query(self, codec):
        path = codec.encode("https://esm.sh/x.js?target=https://cdn.test/a")

        assert path.as_posix() == "/.mycelium/https:/esm.sh/x.js?target=https:%2F%2Fcdn.test%2Fa"

    def test_encode_keeps_collapsible_path_parts(self, codec):
        path = codec.encode("https://example.test/a//b/./c/")

        assert path.as_posix() == "/.mycelium/https:/example.test/a%2F/b/%2E/c%2F"

    def test_encode_uses_configured_prefix(self):
        codec = PathCodec(FileSystemConfig(reserved_prefix="/.remote"))

        assert codec.encode("http://h/x.rb").as_posix() == "/.remote/http:/h/x.rb"


# =============================================================================
# Decoding and round trip
# =============================================================================

class TestDecode:
    """Tests for PathCodec.decode."""

    def test_decode_repairs_scheme_separator(self, codec):
        uri = codec.decode("/.mycelium/https:/example.test/a.py")

        assert uri == "https://example.test/a.py"

    def test_decode_leaves_double_slash_intact(self, codec):
        assert codec.decode("/.mycelium/https://example.test/a.py") == "https://example.test/a.py"

    def test_decode_preserves_port_colon(self, codec):
        uri = codec.decode("/.mycelium/http:/localhost:8000/pkg/mod.mjs")

        assert uri == "http://localhost:8000/pkg/mod.mjs"

    def test_decode_accepts_pure_path(self, codec):
        uri = codec.decode(PurePosixPath("/.mycelium/http:/example.test/x.wasm"))

        assert uri == "http://example.test/x.wasm"

    @pytest.mark.parametrize(
        "uri",
        [
            "http://example.test/mod.js",
            "https://example.test/a.py",
            "https://example.test:8443/deep/path/lib.rb",
            "https://example.test/mod.mjs?version=1.2&min=true",
            "https://example.test/mod.js#section",
            "https://example.test/caf%C3%A9/mod.js",
            "https://example.test/with space/mod.ts",
            "https://user@example.test/ünïcode.py",
            "https://esm.sh/x.js?target=https://cdn.test/a",
            "https://example.test/pkg/./mod.js",
            "https://example.test/pkg/../mod.js",
            "https://example.test//double//slash.js",
            "https://example.test/pkg/",
            "https://example.test/",
            "https://example.test/mod.js#/routes//home",
        ],
    )
    def test_round_trip(self, codec, uri):
        assert codec.decode(codec.encode(uri)) == uri

    def test_surrounding_whitespace_is_not_silently_dropped(self, codec):
        path = codec.encode(" https://example.test/padded.js")

        with pytest.raises(MalformedRemotePathError):
            codec.decode(path)

    def test_round_trip_through_path_string(self, codec):
        uri = "https://example.test/a/b/c.py"

        # Hosts hand paths back as strings built from the Path object
        assert codec.decode(str(Path(codec.encode(uri)))) == uri

    def test_canonicalize_normalizes_separator(self, codec):
        canonical = codec.canonicalize("/.mycelium/https://example.test/a.py")

        assert canonical == PurePosixPath("/.mycelium/https:/example.test/a.py")


# =============================================================================
# Classification
# =============================================================================

class TestClassify:
    """Tests for PathCodec.classify."""

    @pytest.mark.parametrize(
        "path",
        ["/usr/lib/mod.js", "relative/mod.py", "/.myceliumx/https:/h/a.py", ".mycelium/http:/h/a"],
    )
    def test_paths_outside_prefix_are_local(self, codec, path):
        classified = codec.classify(path)

        assert classified.kind is PathKind.LOCAL
        assert classified.uri is None
        assert not classified.is_remote

    def test_prefixed_path_is_remote(self, codec):
        classified = codec.classify("/.mycelium/https:/example.test/a.py")

        assert classified.kind is PathKind.REMOTE
        assert classified.uri == "https://example.test/a.py"
        assert classified.scheme == "https"

    def test_uppercase_scheme_is_supported(self, codec):
        classified = codec.classify("/.mycelium/HTTP:/example.test/a.py")

        assert classified.uri == "HTTP://example.test/a.py"
        assert classified.scheme == "http"

    def test_is_remote_is_segment_wise(self, codec):
        assert codec.is_remote("/.mycelium/anything")
        assert codec.is_remote("/.mycelium")
        assert not codec.is_remote("/.mycelium-cache/file")


# =============================================================================
# Failures
# =============================================================================

class TestClassifyFailures:
    """Remote paths that cannot be decoded are never routed locally."""

    def test_bare_prefix_is_malformed(self, codec):
        with pytest.raises(MalformedRemotePathError) as exc_info:
            codec.classify("/.mycelium")

        assert exc_info.value.error_code == "MALFORMED_REMOTE_PATH"

    def test_missing_scheme_is_malformed(self, codec):
        with pytest.raises(MalformedRemotePathError):
            codec.classify("/.mycelium/example.test/a.py")

    def test_missing_authority_is_malformed(self, codec):
        with pytest.raises(MalformedRemotePathError):
            codec.classify("/.mycelium/https:")

    def test_invalid_ipv6_authority_is_malformed(self, codec):
        with pytest.raises(MalformedRemotePathError):
            codec.classify("/.mycelium/http:/[::1/mod.js")

    def test_ftp_scheme_is_unsupported(self, codec):
        with pytest.raises(UnsupportedSchemeError) as exc_info:
            codec.classify("/.mycelium/ftp:/example.test/mod.js")

        assert exc_info.value.scheme == "ftp"
        assert exc_info.value.context["supported_schemes"] == ["http", "https"]

    def test_decode_rejects_local_path(self, codec):
        with pytest.raises(MalformedRemotePathError):
            codec.decode("/usr/lib/mod.js")
