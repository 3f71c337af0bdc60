import base64
import io

import pytest
from PIL import Image


def _png(size=(192, 192), color=(0, 0, 0, 0), boxes=()):
    im = Image.new("RGBA", size, color)
    for (x0, y0, x1, y1), fill in boxes:
        im.paste(fill, (x0, y0, x1, y1))
    buf = io.BytesIO()
    im.save(buf, format="PNG")
    return buf.getvalue()


def _gif(size=(24, 24), colors=((255, 0, 0), (0, 0, 255)), duration=120):
    frames = [Image.new("RGB", size, c) for c in colors]
    buf = io.BytesIO()
    frames[0].save(
        buf, format="GIF", save_all=True, append_images=frames[1:], duration=duration, loop=0
    )
    return buf.getvalue()


def _svg(layers):
    urls = ",".join(
        f"url(data:image/png;base64,{base64.b64encode(b).decode('ascii')})" for b in layers
    )
    return (
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 192 192">'
        f"<style>svg{{background-image:{urls};background-repeat:no-repeat;"
        "image-rendering:pixelated}</style></svg>"
    )


@pytest.fixture
def make_png():
    return _png


@pytest.fixture
def make_gif():
    return _gif


@pytest.fixture
def make_svg():
    return _svg


@pytest.fixture
def procedural_stack():
    """Four 192px layers: three overlays on an opaque blue background."""
    background = _png(color=(0, 0, 255, 255))
    body = _png(boxes=[((48, 48, 144, 192), (0, 255, 0, 255))])
    eyes = _png(boxes=[((48, 48, 96, 96), (255, 0, 0, 255))])
    hat = _png(boxes=[((0, 0, 48, 48), (255, 255, 0, 255))])
    return (hat, eyes, body, background)
