"""Request signing for the EcoFlow IoT open API.

EcoFlow authenticates every call with an HMAC SHA256 signature computed over a
canonical query string.  The request parameters are flattened into dotted key
paths, sorted, urlencoded and suffixed with the access key, nonce and
timestamp before hashing.
"""
from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union
from urllib.parse import quote_plus, urlencode

LOGGER = logging.getLogger(__name__)

Scalar = Union[str, int, bool]


class InvalidParameterType(TypeError):
    """Raised when a parameter tree holds a key or value that cannot be signed."""


class CyclicParameterError(ValueError):
    """Raised when a parameter tree contains itself."""


def _path_segment(key: Any) -> str:
    # Index 0 collapses into the parent key so singleton lists sign as ``quotas=x``.
    if isinstance(key, bool):
        raise InvalidParameterType(f"Unsupported parameter key {key!r}")
    if isinstance(key, int):
        return "" if key == 0 else str(key)
    if isinstance(key, str):
        return key
    raise InvalidParameterType(f"Unsupported parameter key {key!r}")


def _entries(tree: Any) -> Any:
    if isinstance(tree, Mapping):
        return tree.items()
    if isinstance(tree, (list, tuple)):
        return enumerate(tree)
    raise InvalidParameterType(
        f"Expected a mapping or sequence of parameters, got {type(tree).__name__}"
    )


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int))


def _flatten(tree: Any, prefix: str, active: frozenset[int]) -> dict[str, Scalar]:
    if id(tree) in active:
        raise CyclicParameterError(f"Parameter tree references itself below {prefix or '<root>'!r}")
    active = active | {id(tree)}

    flattened: dict[str, Scalar] = {}
    for key, value in _entries(tree):
        segment = _path_segment(key)
        new_key = segment if not prefix else f"{prefix}.{segment}"
        new_key = new_key.rstrip(".")

        if isinstance(value, (Mapping, list, tuple)):
            flattened.update(_flatten(value, new_key, active))
            continue

        if not _is_scalar(value):
            raise InvalidParameterType(
                f"Unsupported parameter type {type(value).__name__} for {new_key!r}"
            )
        flattened[new_key] = value

    return flattened


def flatten(tree: Mapping[Any, Any] | list[Any] | tuple[Any, ...], prefix: str = "") -> dict[str, Scalar]:
    """Flatten a nested parameter tree into ``{"dotted.path": scalar}``.

    Entries keep their depth-first order.  Integer key ``0`` (and therefore the
    first element of a sequence) contributes an empty path segment, so
    ``{"quotas": ["x"]}`` becomes ``{"quotas": "x"}``.  Later entries overwrite
    earlier ones when two paths collide.
    """

    return _flatten(tree, prefix, frozenset())


def stringify(value: Scalar) -> str:
    """Render a scalar the way the EcoFlow reference client does."""

    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def _quote(value: str, safe: str = "", encoding: str | None = None, errors: str | None = None) -> str:
    # PHP's RFC 1738 encoder escapes ``~`` while ``quote_plus`` keeps it.
    return quote_plus(value, safe=safe, encoding=encoding, errors=errors).replace("~", "%7E")


def canonical_items(data: Mapping[Any, Any]) -> list[tuple[str, str]]:
    """Return the flattened parameters as ``(key, value)`` pairs in byte order."""

    flattened = flatten(data)
    return [(key, stringify(flattened[key])) for key in sorted(flattened)]


def build_canonical_string(
    nonce: str,
    timestamp: str,
    data: Mapping[Any, Any],
    access_key: str,
) -> str:
    """Return the exact string that gets hashed for a request."""

    query = urlencode(canonical_items(data), quote_via=_quote)
    suffix = f"accessKey={access_key}&nonce={nonce}&timestamp={timestamp}"
    if not query:
        return suffix
    return f"{query}&{suffix}"


def generate_signature(
    nonce: str,
    timestamp: str,
    data: Mapping[Any, Any],
    access_key: str,
    secret_key: str,
) -> str:
    """Return the lowercase hex HMAC SHA256 signature for ``data``."""

    canonical = build_canonical_string(nonce, timestamp, data, access_key)
    LOGGER.debug("EcoFlow canonical string: %s", canonical)
    return hmac.new(
        secret_key.encode("utf-8"),
        canonical.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def create_nonce() -> str:
    """Return a six digit nonce drawn from a cryptographically secure source."""

    return str(100_000 + secrets.randbelow(900_000))


def create_timestamp() -> str:
    """Return the current UTC epoch time in milliseconds."""

    return str(round(time.time() * 1000))


@dataclass(frozen=True)
class EcoFlowSigner:
    """Signs requests with one access/secret key pair."""

    access_key: str
    secret_key: str = field(repr=False)

    def canonical_string(self, nonce: str, timestamp: str, data: Mapping[Any, Any]) -> str:
        return build_canonical_string(nonce, timestamp, data, self.access_key)

    def sign(self, nonce: str, timestamp: str, data: Mapping[Any, Any]) -> str:
        return generate_signature(nonce, timestamp, data, self.access_key, self.secret_key)

    def headers(self, nonce: str, timestamp: str, data: Mapping[Any, Any]) -> dict[str, str]:
        """Return the authentication headers expected by the EcoFlow API."""

        return {
            "accessKey": self.access_key,
            "nonce": nonce,
            "sign": self.sign(nonce, timestamp, data),
            "timestamp": timestamp,
        }


__all__ = [
    "CyclicParameterError",
    "EcoFlowSigner",
    "InvalidParameterType",
    "build_canonical_string",
    "canonical_items",
    "create_nonce",
    "create_timestamp",
    "flatten",
    "generate_signature",
    "stringify",
]
