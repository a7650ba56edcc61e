"""
URI parsing utilities for blobfs references.

Two entry points resolve ``scheme://namespace/key`` references:

- ``parse_uri`` treats the input as a real URI: the key is percent-decoded,
  so characters not valid in a URI (notably spaces) must be pre-escaped.
- ``split_reference`` is escape-free: the text after the namespace is used
  verbatim, so ``az://bucket/with/a space`` works and
  ``az://bucket/a%20b`` keeps its literal ``%20``.
"""
from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote, unquote, urlsplit

from .errors import InvalidArgumentError

__all__ = ["ParsedURI", "parse_uri", "split_reference", "build_uri"]


@dataclass(frozen=True)
class ParsedURI:
    """
    Parsed components of a blobfs reference.

    Attributes:
        scheme: URI scheme, e.g. ``az``
        namespace: Bucket/container name (the URI authority)
        path: Object path, ``""`` or starting with ``/``
        original: Original reference for error messages
    """
    scheme: str
    namespace: str
    path: str
    original: str


def _check_scheme(reference: str, actual: str, expected: str) -> None:
    if actual != expected:
        raise InvalidArgumentError(f"Expected {expected}:// reference, got {reference}", path=reference)


def parse_uri(uri: str, scheme: str) -> ParsedURI:
    """
    Parse and validate a URI-style reference.

    Validation:
    - Scheme must match ``scheme`` exactly (case-sensitive)
    - Authority (namespace) must be present and non-empty
    - Query strings and fragments are rejected

    Args:
        uri: Reference such as ``az://bucket/with/a%20space``
        scheme: Scheme served by the caller

    Returns:
        ParsedURI with a percent-decoded path

    Raises:
        InvalidArgumentError: If the URI is malformed

    Examples:
        >>> parse_uri("az://bucket/with/a%20space", "az").path
        '/with/a space'
    """
    if not uri:
        raise InvalidArgumentError("URI cannot be empty")

    parts = urlsplit(uri)
    _check_scheme(uri, parts.scheme, scheme)

    if not parts.netloc:
        raise InvalidArgumentError(f"{scheme}:// URIs must have a host: {uri}", path=uri)

    if parts.query or parts.fragment:
        raise InvalidArgumentError(f"{scheme}:// URIs must not have a query or fragment: {uri}", path=uri)

    return ParsedURI(scheme=scheme, namespace=parts.netloc, path=unquote(parts.path), original=uri)


def split_reference(reference: str, scheme: str) -> ParsedURI:
    """
    Split a reference without any escaping or interpretation.

    Args:
        reference: Reference such as ``az://bucket/with/a space``
        scheme: Scheme served by the caller

    Returns:
        ParsedURI whose path is the verbatim text after the namespace

    Raises:
        InvalidArgumentError: If the scheme prefix or namespace is missing
    """
    prefix = f"{scheme}://"
    if not reference.startswith(prefix):
        actual = reference.split("://", 1)[0] if "://" in reference else ""
        _check_scheme(reference, actual, scheme)

    remainder = reference[len(prefix):]
    namespace, sep, rest = remainder.partition("/")
    if not namespace:
        raise InvalidArgumentError(f"{scheme}:// URIs must have a host: {reference}", path=reference)

    return ParsedURI(scheme=scheme, namespace=namespace, path=sep + rest, original=reference)


def build_uri(scheme: str, namespace: str, path: str) -> str:
    """Build a URI, percent-escaping the path (``/`` is kept)."""
    return f"{scheme}://{namespace}{quote(path, safe='/')}"
