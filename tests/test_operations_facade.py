"""
Test Operations facade wiring.

Validates that the Operations facade applies OpsConfig and delegates to the
provider as expected.
"""
from __future__ import annotations

from dataclasses import fields

import pytest

from blobfs.errors import AtomicMoveNotSupported, ObjectAlreadyExists, ObjectNotFound
from blobfs.operations import Operations, OpsConfig


@pytest.fixture
def ops(provider):
    return Operations(config=OpsConfig(), provider=provider)


class TestOperationsFacade:
    """Test Operations facade orchestration."""

    def test_initialization(self, provider):
        config = OpsConfig(force=True)
        ops = Operations(config=config, provider=provider)
        assert ops.cfg is config
        assert ops.provider is provider

    def test_config_fields(self):
        assert [f.name for f in fields(OpsConfig)] == ["force"]

    def test_ls_directory(self, ops, provider):
        provider.write_text("az://bucket/dir/a", "a")
        provider.write_text("az://bucket/dir/sub/b", "b")
        assert [p.to_uri() for p in ops.ls("az://bucket/dir")] == [
            "az://bucket/dir/a", "az://bucket/dir/sub/"
        ]

    def test_ls_object(self, ops, provider):
        provider.write_text("az://bucket/file", "x")
        assert [p.to_uri() for p in ops.ls("az://bucket/file")] == ["az://bucket/file"]

    def test_ls_missing(self, ops):
        with pytest.raises(ObjectNotFound):
            list(ops.ls("az://bucket/missing"))

    def test_ls_long(self, ops, provider):
        provider.write_text("az://bucket/dir/a", "abc")
        rows = ops.ls_long("az://bucket/dir/")
        assert [(p.name, attrs.size) for p, attrs in rows] == [("a", 3)]

    def test_cat(self, ops, provider):
        provider.write_bytes("az://bucket/f", b"\x00\x01")
        assert ops.cat("az://bucket/f") == b"\x00\x01"

    def test_put(self, ops, provider, tmp_path):
        local = tmp_path / "in.txt"
        local.write_text("hello")
        target = ops.put(str(local), "az://bucket/in.txt", content_type="text/plain")
        assert provider.read_text(target) == "hello"
        assert provider.read_attributes(target).content_type == "text/plain"

    def test_put_respects_force(self, provider, tmp_path):
        local = tmp_path / "in.txt"
        local.write_text("new")
        provider.write_text("az://bucket/in.txt", "old")
        with pytest.raises(ObjectAlreadyExists):
            Operations(OpsConfig(), provider).put(str(local), "az://bucket/in.txt")
        Operations(OpsConfig(force=True), provider).put(str(local), "az://bucket/in.txt")
        assert provider.read_text("az://bucket/in.txt") == "new"

    def test_cp_keeps_attributes(self, ops, provider):
        from blobfs.options import with_content_type
        provider.write_text("az://bucket/a", "x", with_content_type("text/csv"))
        ops.cp("az://bucket/a", "az://bucket/b")
        assert provider.read_attributes("az://bucket/b").content_type == "text/csv"

    def test_cp_to_local(self, ops, provider, tmp_path):
        provider.write_text("az://bucket/a", "x")
        local = tmp_path / "a"
        ops.cp("az://bucket/a", str(local))
        assert local.read_text() == "x"

    def test_mv_atomic_across_namespaces(self, ops, provider):
        provider.write_text("az://one/a", "x")
        with pytest.raises(AtomicMoveNotSupported):
            ops.mv("az://one/a", "az://two/a", atomic=True)
        ops.mv("az://one/a", "az://two/a")
        assert provider.read_text("az://two/a") == "x"
        assert not provider.exists("az://one/a")

    def test_rm(self, ops, provider):
        provider.write_text("az://bucket/a", "x")
        assert ops.rm("az://bucket/a") is True
        assert ops.rm("az://bucket/a", missing_ok=True) is False
        with pytest.raises(ObjectNotFound):
            ops.rm("az://bucket/a")

    def test_stat(self, ops, provider):
        provider.write_text("az://bucket/a", "abc")
        path, values = ops.stat("az://bucket/a", "basic:size")
        assert path.name == "a"
        assert values == {"size": 3}
