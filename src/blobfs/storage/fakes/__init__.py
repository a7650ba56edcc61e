# Fake implementations for testing

from .fake_store import FakeBlobStore

__all__ = ["FakeBlobStore"]
