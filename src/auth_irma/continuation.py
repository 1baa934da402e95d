"""
Continuation state carried in URL path segments.

The bridge keeps no session store. Everything it needs after a redirect
through the IRMA disclosure UI (which attributes were requested, where the
user or the result goes next) travels in the URLs themselves, as URL-safe
base64 path segments. Attribute lists are JSON arrays before encoding.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from collections.abc import Sequence
from dataclasses import dataclass
from urllib.parse import urlsplit, urlunsplit

from .exceptions import DecodeError

_SEGMENT_RE = re.compile(r"[A-Za-z0-9_-]*={0,2}")


def encode_segment(value: str) -> str:
    """Encode an arbitrary string as a URL-safe path segment."""
    return base64.urlsafe_b64encode(value.encode("utf-8")).decode("ascii")


def decode_segment(segment: str) -> str:
    """
    Decode a path segment produced by ``encode_segment``.

    Missing padding is tolerated, any character outside the URL-safe base64
    alphabet is not.

    Raises:
        DecodeError: On invalid base64 or a payload that is not UTF-8
    """
    if not _SEGMENT_RE.fullmatch(segment):
        raise DecodeError("Invalid base64 in path segment")
    padded = segment + "=" * (-len(segment) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded)
    except binascii.Error as e:
        raise DecodeError("Invalid base64 in path segment") from e
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError("Path segment is not valid UTF-8") from e


def encode_attributes(attributes: Sequence[str]) -> str:
    return encode_segment(json.dumps(list(attributes)))


def decode_attributes(segment: str) -> list[str]:
    """
    Decode an attribute list segment.

    Raises:
        DecodeError: On invalid base64, UTF-8 or JSON, on a value that is not a
            list of strings, and on repeated names
    """
    text = decode_segment(segment)
    try:
        attributes = json.loads(text)
    except ValueError as e:
        raise DecodeError("Attribute list is not valid JSON") from e
    if not isinstance(attributes, list) or not all(isinstance(a, str) for a in attributes):
        raise DecodeError("Attribute list must be a JSON array of strings")
    if len(set(attributes)) != len(attributes):
        raise DecodeError("Attribute list contains duplicate names")
    return attributes


def append_query_parameter(url: str, name: str, value: str) -> str:
    """
    Add ``name=value`` to the query of ``url``.

    Existing query parameters are kept and the fragment stays last, so the
    parameter always reaches the server.
    """
    parts = urlsplit(url)
    parameter = f"{name}={value}"
    query = f"{parts.query}&{parameter}" if parts.query else parameter
    return urlunsplit(parts._replace(query=query))


@dataclass(frozen=True)
class ContinuationState:
    """
    What the bridge must remember across the disclosure UI redirect.

    In-band state carries the ``continuation`` the user returns to, out-of-band
    callback state carries the ``attr_url`` the result is delivered to.
    """

    attributes: tuple[str, ...]
    continuation: str | None = None
    attr_url: str | None = None

    def decorated_continue_url(self, server_url: str) -> str:
        """In-band return hop: ``{server}/decorated_continue/{attributes}/{continuation}``."""
        if self.continuation is None:
            raise ValueError("In-band continuation requires a continuation URL")
        return (
            f"{server_url}/decorated_continue/"
            f"{encode_attributes(self.attributes)}/{encode_segment(self.continuation)}"
        )

    def session_complete_url(self, internal_url: str) -> str:
        """Out-of-band callback: ``{internal}/session_complete/{attributes}/{attr_url}``."""
        if self.attr_url is None:
            msg = "Out-of-band continuation requires an attribute delivery URL"
            raise ValueError(msg)
        return (
            f"{internal_url}/session_complete/"
            f"{encode_attributes(self.attributes)}/{encode_segment(self.attr_url)}"
        )

    @classmethod
    def from_decorated_continue(cls, attributes: str, continuation: str) -> ContinuationState:
        return cls(
            attributes=tuple(decode_attributes(attributes)),
            continuation=decode_segment(continuation),
        )

    @classmethod
    def from_session_complete(cls, attributes: str, attr_url: str) -> ContinuationState:
        return cls(
            attributes=tuple(decode_attributes(attributes)),
            attr_url=decode_segment(attr_url),
        )


def auth_ui_url(server_url: str, qr: str, continuation: str) -> str:
    """Client URL for the ``/auth`` hop into the disclosure UI."""
    return f"{server_url}/auth/{encode_segment(qr)}/{encode_segment(continuation)}"
