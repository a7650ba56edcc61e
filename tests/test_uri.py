"""
Tests for URI parsing and escape-free references.
"""
from __future__ import annotations

import pytest

from blobfs.errors import InvalidArgumentError
from blobfs.uri import build_uri, parse_uri, split_reference


class TestParseURI:
    """Test percent-decoding URI parsing."""

    def test_basic(self):
        parsed = parse_uri("az://bucket/with/a%20space", "az")
        assert parsed.scheme == "az"
        assert parsed.namespace == "bucket"
        assert parsed.path == "/with/a space"
        assert parsed.original == "az://bucket/with/a%20space"

    def test_namespace_only(self):
        assert parse_uri("az://bucket", "az").path == ""

    def test_missing_host_rejected(self):
        with pytest.raises(InvalidArgumentError, match="must have a host"):
            parse_uri("az:///path", "az")

    def test_wrong_scheme_rejected(self):
        with pytest.raises(InvalidArgumentError, match="Expected az://"):
            parse_uri("gs://bucket/x", "az")

    def test_query_rejected(self):
        with pytest.raises(InvalidArgumentError, match="query or fragment"):
            parse_uri("az://bucket/x?y=1", "az")

    def test_empty_rejected(self):
        with pytest.raises(InvalidArgumentError):
            parse_uri("", "az")


class TestSplitReference:
    """Test escape-free reference splitting."""

    def test_spaces_taken_verbatim(self):
        assert split_reference("az://bucket/with/a space", "az").path == "/with/a space"

    def test_percent_kept_literal(self):
        assert split_reference("az://bucket/a%20b", "az").path == "/a%20b"

    def test_namespace_only(self):
        parsed = split_reference("az://bucket", "az")
        assert parsed.namespace == "bucket"
        assert parsed.path == ""

    def test_missing_host_rejected(self):
        with pytest.raises(InvalidArgumentError, match="must have a host"):
            split_reference("az:///x", "az")

    def test_wrong_scheme_rejected(self):
        with pytest.raises(InvalidArgumentError):
            split_reference("bucket/x", "az")


def test_build_uri_escapes_path():
    assert build_uri("az", "bucket", "/a b/c") == "az://bucket/a%20b/c"
