"""
Tests for read and write channels.
"""
from __future__ import annotations

import io

import pytest

from blobfs.channel import AbortingBufferedWriter, AbortingTextWrapper, ReadChannel, WriteChannel
from blobfs.errors import ChannelClosedError, InvalidArgumentError, ObjectAlreadyExists, UnsupportedOperationError
from blobfs.storage.base import ObjectMetadata

ALONE = b"To be, or not to be, that is the question"


@pytest.fixture
def stored(store):
    return store.put_object("bucket", "alone", ALONE, ObjectMetadata())


def _writer(store, key="out", **kwargs):
    return WriteChannel(store, "bucket", key, ObjectMetadata(), spool_threshold=16, **kwargs)


class TestReadChannel:
    """Test random-access reads."""

    def test_read_all(self, store, stored):
        with ReadChannel(store, stored, block_size=8) as channel:
            assert channel.readall() == ALONE

    def test_fetches_in_blocks(self, store, stored):
        with ReadChannel(store, stored, block_size=8) as channel:
            channel.readall()
        assert store.call_count("get_bytes") == -(-len(ALONE) // 8)

    def test_size_and_position(self, store, stored):
        with ReadChannel(store, stored, block_size=8) as channel:
            assert channel.size() == len(ALONE)
            assert channel.tell() == 0
            channel.read(5)
            assert channel.tell() == 5

    def test_seek_and_read(self, store, stored):
        with ReadChannel(store, stored, block_size=4) as channel:
            channel.seek(7)
            assert channel.read(6) == b"or not"
            channel.seek(-8, io.SEEK_END)
            assert channel.read() == b"question"
            channel.seek(-8, io.SEEK_CUR)
            assert channel.read(3) == b"que"

    def test_seek_past_end_reads_nothing(self, store, stored):
        with ReadChannel(store, stored, block_size=8) as channel:
            assert channel.seek(1000) == 1000
            assert channel.read(10) == b""
            assert channel.tell() == 1000

    def test_negative_position_rejected(self, store, stored):
        with ReadChannel(store, stored, block_size=8) as channel:
            with pytest.raises(InvalidArgumentError):
                channel.seek(-1)

    def test_size_fixed_at_open(self, store, stored):
        channel = ReadChannel(store, stored, block_size=8)
        store.put_object("bucket", "alone", b"short", ObjectMetadata())
        assert channel.size() == len(ALONE)
        channel.close()

    def test_closed_channel_rejects_operations(self, store, stored):
        channel = ReadChannel(store, stored, block_size=8)
        channel.close()
        with pytest.raises(ChannelClosedError):
            channel.size()
        with pytest.raises(ChannelClosedError):
            channel.seek(0)

    def test_composes_with_text_wrapper(self, store, stored):
        channel = ReadChannel(store, stored, block_size=8)
        with io.TextIOWrapper(io.BufferedReader(channel), encoding="utf-8") as text:
            assert text.read() == ALONE.decode()


class TestWriteChannel:
    """Test buffered writes that commit on close."""

    def test_nothing_visible_until_close(self, store):
        channel = _writer(store)
        channel.write(b"hello")
        assert store.call_count("put_object") == 0
        channel.close()
        assert store.get_bytes("bucket", "out") == b"hello"
        assert channel.committed.size == 5

    def test_spills_past_threshold(self, store):
        with _writer(store) as channel:
            for _ in range(10):
                channel.write(b"0123456789")
            assert channel.size() == 100
        assert store.get_bytes("bucket", "out") == b"0123456789" * 10

    def test_position_tracks_bytes_written(self, store):
        with _writer(store, initial=b"abc") as channel:
            assert channel.tell() == 3
            channel.write(b"de")
            assert channel.tell() == 5
            assert channel.seek(5) == 5
        assert store.get_bytes("bucket", "out") == b"abcde"

    def test_seek_elsewhere_unsupported(self, store):
        with _writer(store) as channel:
            channel.write(b"abc")
            with pytest.raises(UnsupportedOperationError):
                channel.seek(0)

    def test_truncate_unsupported(self, store):
        with _writer(store) as channel:
            with pytest.raises(UnsupportedOperationError):
                channel.truncate(0)

    def test_exception_in_with_block_discards(self, store):
        with pytest.raises(RuntimeError):
            with _writer(store) as channel:
                channel.write(b"partial")
                raise RuntimeError("boom")
        assert store.call_count("put_object") == 0

    def test_abort(self, store):
        channel = _writer(store)
        channel.write(b"gone")
        channel.abort()
        assert channel.closed
        assert store.call_count("put_object") == 0

    def test_close_twice_commits_once(self, store):
        channel = _writer(store)
        channel.write(b"x")
        channel.close()
        channel.close()
        assert store.call_count("put_object") == 1

    def test_write_after_close_rejected(self, store):
        channel = _writer(store)
        channel.close()
        with pytest.raises(ChannelClosedError):
            channel.write(b"late")

    def test_if_not_exists_conflict(self, store):
        channel = _writer(store, if_not_exists=True)
        channel.write(b"mine")
        store.put_object("bucket", "out", b"theirs", ObjectMetadata())
        with pytest.raises(ObjectAlreadyExists):
            channel.close()
        assert store.get_bytes("bucket", "out") == b"theirs"


class TestAbortingWrappers:
    """Test buffered/text wrappers that discard on failure."""

    def test_buffered_commit(self, store):
        with AbortingBufferedWriter(_writer(store)) as out:
            out.write(b"buffered")
        assert store.get_bytes("bucket", "out") == b"buffered"

    def test_buffered_abort_on_exception(self, store):
        with pytest.raises(RuntimeError):
            with AbortingBufferedWriter(_writer(store)) as out:
                out.write(b"buffered")
                raise RuntimeError("boom")
        assert store.call_count("put_object") == 0

    def test_text_commit(self, store):
        with AbortingTextWrapper(AbortingBufferedWriter(_writer(store)), encoding="utf-8") as out:
            out.write("héllo\n")
        assert store.get_bytes("bucket", "out") == "héllo\n".encode()

    def test_text_abort_on_exception(self, store):
        with pytest.raises(RuntimeError):
            with AbortingTextWrapper(AbortingBufferedWriter(_writer(store)), encoding="utf-8") as out:
                out.write("partial")
                raise RuntimeError("boom")
        assert store.call_count("put_object") == 0
