"""
Tests for open/copy option parsing.
"""
from __future__ import annotations

import pytest

from blobfs.errors import InvalidArgumentError, UnsupportedOperationError
from blobfs.options import (
    CopyOption,
    OpenOption,
    options_for_mode,
    parse_copy_options,
    parse_open_options,
    with_acl,
    with_content_type,
    with_user_metadata,
)
from blobfs.storage.base import AclEntry


class TestOpenOptions:
    """Test parse_open_options."""

    def test_no_options_reads(self):
        request = parse_open_options([])
        assert request.read
        assert not request.write

    def test_append_implies_write(self):
        request = parse_open_options([OpenOption.APPEND])
        assert request.write
        assert request.append

    def test_create_new_implies_write(self):
        assert parse_open_options([OpenOption.CREATE_NEW]).write

    def test_read_with_write_rejected(self):
        with pytest.raises(InvalidArgumentError):
            parse_open_options([OpenOption.READ, OpenOption.WRITE])

    def test_append_with_truncate_rejected(self):
        with pytest.raises(InvalidArgumentError):
            parse_open_options([OpenOption.APPEND, OpenOption.TRUNCATE_EXISTING])

    def test_metadata_without_write_rejected(self):
        with pytest.raises(InvalidArgumentError, match="only apply when writing"):
            parse_open_options([with_content_type("text/plain")])

    def test_copy_option_rejected(self):
        with pytest.raises(UnsupportedOperationError):
            parse_open_options([CopyOption.REPLACE_EXISTING])

    def test_metadata_options_merge(self):
        request = parse_open_options([
            OpenOption.WRITE,
            with_content_type("text/plain"),
            with_user_metadata("a", "1"),
            with_user_metadata("b", "2"),
        ])
        assert request.metadata.content_type == "text/plain"
        assert dict(request.metadata.user_metadata) == {"a": "1", "b": "2"}

    def test_acl_entries_accumulate(self):
        owner = AclEntry("user-a", "OWNER")
        reader = AclEntry("allUsers", "READER")
        request = parse_open_options([OpenOption.WRITE, with_acl(owner), with_acl(reader)])
        assert request.metadata.acl == (owner, reader)


class TestCopyOptions:
    """Test parse_copy_options."""

    def test_flags(self):
        request = parse_copy_options([CopyOption.REPLACE_EXISTING, CopyOption.ATOMIC_MOVE])
        assert request.replace_existing
        assert request.atomic_move
        assert not request.copy_attributes
        assert not request.has_overrides

    def test_metadata_overrides(self):
        request = parse_copy_options([with_content_type("image/png")])
        assert request.has_overrides
        assert request.metadata.content_type == "image/png"

    def test_open_option_rejected(self):
        with pytest.raises(UnsupportedOperationError):
            parse_copy_options([OpenOption.WRITE])


class TestModes:
    """Test open()-style mode translation."""

    def test_read_binary(self):
        assert options_for_mode("rb") == ((OpenOption.READ,), True)

    def test_write_text(self):
        options, binary = options_for_mode("w")
        assert OpenOption.TRUNCATE_EXISTING in options
        assert binary is False

    def test_exclusive(self):
        options, _ = options_for_mode("xb")
        assert OpenOption.CREATE_NEW in options

    @pytest.mark.parametrize("mode", ["r+", "w+b", "q", "rw", "rbt", ""])
    def test_invalid_modes(self, mode):
        with pytest.raises(InvalidArgumentError):
            options_for_mode(mode)
