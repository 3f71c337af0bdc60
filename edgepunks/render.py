from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from . import raster
from .classify import CANONICAL_WIDTH, Classification, Procedural, Unique, classify
from .errors import UnsupportedTransparentUnique
from .layers import extract_layers

# Supplies curated transparent versions of a 1-of-1 (PNG, plus GIF for animated ones).
TransparentAssets = Callable[[Unique], Sequence[bytes]]


@dataclass(frozen=True)
class RenderRequest:
    image_size: int
    transparent: bool = False

    def __post_init__(self) -> None:
        if self.image_size < 1:
            raise ValueError("image_size must be >= 1")


@dataclass(frozen=True)
class RenderedImage:
    format: str
    data: bytes


def render(
    layers: Sequence[bytes],
    classification: Classification,
    request: RenderRequest,
    transparent_assets: TransparentAssets | None = None,
) -> list[RenderedImage]:
    if isinstance(classification, Unique):
        if request.transparent:
            if transparent_assets is None:
                raise UnsupportedTransparentUnique(
                    "1-of-1 artwork has no separate background; supply curated transparent assets"
                )
            return [_scale_asset(asset, request.image_size) for asset in transparent_assets(classification)]
        return [_render_unique(layers[0], classification, request)]
    if isinstance(classification, Procedural):
        return [_render_procedural(layers, classification, request)]
    raise TypeError(f"Unknown classification: {classification!r}")


def _render_unique(top: bytes, meta: Unique, request: RenderRequest) -> RenderedImage:
    if meta.format == "gif":
        animation = raster.open_animation(top)
        if request.image_size != meta.width:
            animation = _resize_animation(animation, request.image_size)
        return RenderedImage("gif", raster.encode_animation(animation))

    image = raster.remove_alpha(raster.open_rgba(top))
    if request.image_size != meta.width:
        image = raster.resize_nearest(image, request.image_size)
    return RenderedImage("png", raster.encode(image, "png"))


def _render_procedural(
    layers: Sequence[bytes], meta: Procedural, request: RenderRequest
) -> RenderedImage:
    # The last layer is the opaque background fill.
    used = layers[:-1] if request.transparent else layers
    # composite() returns a flattened canvas, so resizing never touches single layers.
    image = raster.composite(used)
    if request.image_size != meta.width:
        image = raster.resize_nearest(image, request.image_size)
    if not request.transparent:
        image = raster.remove_alpha(image)
    return RenderedImage("png", raster.encode(image, "png"))


def _scale_asset(data: bytes, image_size: int) -> RenderedImage:
    info = raster.probe(data)
    if info.format == "gif":
        animation = raster.open_animation(data)
        if image_size != info.width:
            animation = _resize_animation(animation, image_size)
        return RenderedImage("gif", raster.encode_animation(animation))
    image = raster.open_rgba(data)
    if image_size != info.width:
        image = raster.resize_nearest(image, image_size)
    return RenderedImage("png", raster.encode(image, "png"))


def _resize_animation(animation: raster.Animation, width: int) -> raster.Animation:
    return raster.Animation(
        frames=[raster.resize_nearest(f, width) for f in animation.frames],
        durations=animation.durations,
        loop=animation.loop,
    )


def svg_to_raster(
    svg: str,
    request: RenderRequest,
    canonical_width: int = CANONICAL_WIDTH,
    transparent_assets: TransparentAssets | None = None,
) -> list[RenderedImage]:
    """Extract, classify and render one token's SVG document."""
    layers = extract_layers(svg)
    meta = classify(layers, canonical_width=canonical_width)
    return render(layers, meta, request, transparent_assets=transparent_assets)
