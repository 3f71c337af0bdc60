class ArtworkError(Exception):
    """Base error for artwork decoding and rendering"""


class MalformedDocument(ArtworkError, ValueError):
    """SVG or data URL does not match the generator's layer encoding"""


class PreconditionViolation(ArtworkError, AssertionError):
    """Caller passed a layer stack too short to classify"""


class UnsupportedTransparentUnique(ArtworkError):
    """Transparent output requested for a 1-of-1 with no curated asset"""


class MetadataError(ArtworkError):
    """On-chain token metadata is missing expected fields"""
