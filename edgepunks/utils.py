from __future__ import annotations

import base64
import binascii
from urllib.parse import unquote_to_bytes

from .errors import MalformedDocument


def decode_data_url(url: str) -> bytes:
    """Decode the payload of a ``data:`` URL into bytes.

    Base64 payloads (``;base64`` in the header) are decoded as such, anything else
    is treated as percent-encoded text. Whitespace and missing ``=`` padding in
    base64 payloads are tolerated.
    """
    header, sep, payload = url.strip().partition(",")
    if not sep:
        raise MalformedDocument(f"Not a data URL: {url[:40]!r}")
    if header.lower().endswith(";base64"):
        payload = "".join(payload.split())
        payload += "=" * (-len(payload) % 4)
        try:
            return base64.b64decode(payload, validate=True)
        except binascii.Error as e:
            raise MalformedDocument(f"Invalid base64 payload in data URL: {e}") from e
    return unquote_to_bytes(payload)


def decode_data_url_text(url: str) -> str:
    return decode_data_url(url).decode("utf-8")
