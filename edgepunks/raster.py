from __future__ import annotations

import io
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass

from PIL import Image, ImageSequence

from .errors import MalformedDocument


@dataclass(frozen=True)
class ImageInfo:
    format: str
    width: int
    height: int
    frames: int = 1


@dataclass(frozen=True)
class Animation:
    frames: list[Image.Image]
    durations: list[int]
    loop: int = 0


@contextmanager
def _decoded(data: bytes) -> Iterator[Image.Image]:
    try:
        with Image.open(io.BytesIO(data)) as im:
            yield im
    except OSError as e:
        # UnidentifiedImageError and truncated-file errors are both OSErrors.
        raise MalformedDocument(f"Layer is not a readable image: {e}") from e


def probe(data: bytes) -> ImageInfo:
    """Read format and dimensions without decoding pixel data."""
    with _decoded(data) as im:
        return ImageInfo(
            format=(im.format or "").lower(),
            width=im.width,
            height=im.height,
            frames=getattr(im, "n_frames", 1),
        )


def open_rgba(data: bytes) -> Image.Image:
    with _decoded(data) as im:
        return im.convert("RGBA")


def open_animation(data: bytes) -> Animation:
    with _decoded(data) as im:
        frames: list[Image.Image] = []
        durations: list[int] = []
        for frame in ImageSequence.Iterator(im):
            frames.append(frame.convert("RGBA"))
            durations.append(int(frame.info.get("duration", im.info.get("duration", 100))))
        return Animation(frames=frames, durations=durations, loop=int(im.info.get("loop", 0)))


def composite(layers: Sequence[bytes]) -> Image.Image:
    """Alpha-blend layers onto the last one, which acts as the base canvas.

    Overlays are applied from ``layers[-2]`` up to ``layers[0]`` and centred on
    the base. The result is a single flat image.
    """
    canvas = open_rgba(layers[-1])
    for data in reversed(layers[:-1]):
        overlay = open_rgba(data)
        dest = ((canvas.width - overlay.width) // 2, (canvas.height - overlay.height) // 2)
        canvas.alpha_composite(overlay, dest=dest)
    return canvas


def resize_nearest(image: Image.Image, width: int) -> Image.Image:
    height = max(1, round(image.height * width / image.width))
    return image.resize((width, height), Image.Resampling.NEAREST)


def remove_alpha(image: Image.Image) -> Image.Image:
    # Drops the channel, colour values are kept as-is (no flattening onto a matte).
    return image.convert("RGB")


def encode(image: Image.Image, fmt: str = "png") -> bytes:
    buf = io.BytesIO()
    image.save(buf, format=fmt.upper())
    return buf.getvalue()


_GIF_TRANSPARENT_INDEX = 255


def _to_palette(frame: Image.Image) -> Image.Image:
    # 255 colours leave the last palette slot free for transparent pixels.
    paletted = frame.convert("RGB").quantize(colors=255)
    clear = frame.getchannel("A").point(lambda a: 255 if a < 128 else 0)
    paletted.paste(_GIF_TRANSPARENT_INDEX, mask=clear)
    return paletted


def encode_animation(animation: Animation) -> bytes:
    buf = io.BytesIO()
    first, *rest = [_to_palette(f) for f in animation.frames]
    first.save(
        buf,
        format="GIF",
        save_all=True,
        append_images=rest,
        duration=animation.durations,
        loop=animation.loop,
        disposal=2,
        transparency=_GIF_TRANSPARENT_INDEX,
        optimize=False,
    )
    return buf.getvalue()
