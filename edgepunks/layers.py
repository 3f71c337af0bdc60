from __future__ import annotations

import re

from .errors import MalformedDocument
from .utils import decode_data_url

# Indelible Labs SVGs carry their PNG/GIF layers as multiple background images
# on the root element. Matching the declaration directly is enough for that one
# generator; swap this module out if a stricter parser is ever needed.
_BACKGROUND_RE = re.compile(
    r"background-image:\s*(url\([^)]+\)(?:\s*,\s*url\([^)]+\))*)\s*;"
)
_URL_RE = re.compile(r"url\(([^)]+)\)")


def extract_layers(svg: str) -> tuple[bytes, ...]:
    """Return the embedded layer buffers, top layer first."""
    match = _BACKGROUND_RE.search(svg)
    if match is None:
        raise MalformedDocument("SVG does not contain the expected background-image layers")
    return tuple(
        decode_data_url(url.strip().strip("'\"")) for url in _URL_RE.findall(match.group(1))
    )
