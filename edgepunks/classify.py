from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Union

from .errors import PreconditionViolation
from .raster import probe

# Width of every procedurally generated trait layer in the collection.
CANONICAL_WIDTH = 192


@dataclass(frozen=True)
class Unique:
    """A hand-drawn 1-of-1, padded with filler layers by the generator."""

    format: str
    width: int
    height: int

    @property
    def is_1of1(self) -> bool:
        return True


@dataclass(frozen=True)
class Procedural:
    """A composite of independently generated trait layers."""

    format: str
    width: int
    height: int

    @property
    def is_1of1(self) -> bool:
        return False


Classification = Union[Unique, Procedural]


def classify(layers: Sequence[bytes], canonical_width: int = CANONICAL_WIDTH) -> Classification:
    """Decide whether a layer stack is a 1-of-1 or a procedural composite.

    Only the top layer is decoded. A token is a 1-of-1 when its top layer is not
    the canonical width, or when every layer after the second is byte-identical
    to the second one (i.e. the generator padded a single image with copies of
    one filler layer).
    """
    if len(layers) <= 2:
        raise PreconditionViolation(f"Need more than 2 layers to classify, got {len(layers)}")
    top, second, *rest = layers
    info = probe(top)
    if info.width != canonical_width or all(layer == second for layer in rest):
        return Unique(format=info.format, width=info.width, height=info.height)
    return Procedural(format=info.format, width=info.width, height=info.height)
