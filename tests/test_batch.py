import base64
import json
import logging
from pathlib import Path

import pytest
from PIL import Image

from edgepunks.batch import (
    generate_images,
    output_dir_name,
    pull_on_chain_data,
    token_ids_or_all,
)
from edgepunks.config import Settings
from edgepunks.render import RenderRequest


def mk_settings(tmp_path: Path, **kw) -> Settings:
    return Settings(
        svg_dir=tmp_path / "svg",
        metadata_dir=tmp_path / "metadata",
        output_root=tmp_path / "out",
        max_supply=3,
        concurrency=2,
        **kw,
    )


def _data_url(mime: str, payload: bytes) -> str:
    return f"data:{mime};base64,{base64.b64encode(payload).decode('ascii')}"


def test_output_dir_name():
    assert output_dir_name(RenderRequest(image_size=96)) == "96x96"
    assert output_dir_name(RenderRequest(image_size=24, transparent=True)) == "24x24-transparent"


def test_token_ids_or_all(tmp_path: Path):
    s = mk_settings(tmp_path)
    assert token_ids_or_all([], s) == [0, 1, 2]
    assert token_ids_or_all([7, 5], s) == [7, 5]


@pytest.mark.asyncio
async def test_generate_images_isolates_failures(
    tmp_path: Path, make_svg, procedural_stack, caplog: pytest.LogCaptureFixture
):
    s = mk_settings(tmp_path)
    s.svg_dir.mkdir()
    (s.svg_dir / "0.svg").write_text(make_svg(procedural_stack), encoding="utf-8")
    (s.svg_dir / "1.svg").write_text("<svg/>", encoding="utf-8")
    # 2.svg is missing on purpose

    with caplog.at_level(logging.INFO):
        ok = await generate_images(s, [], RenderRequest(image_size=96))

    assert ok is False
    out = s.output_root / "96x96"
    assert sorted(p.name for p in out.iterdir()) == ["0.png"]
    assert Image.open(out / "0.png").size == (96, 96)
    assert "Failed to generate image for token ID 1" in caplog.text
    assert "Failed to generate image for token ID 2" in caplog.text


@pytest.mark.asyncio
async def test_generate_images_all_ok(tmp_path: Path, make_svg, procedural_stack):
    s = mk_settings(tmp_path)
    s.svg_dir.mkdir()
    (s.svg_dir / "5.svg").write_text(make_svg(procedural_stack), encoding="utf-8")

    ok = await generate_images(s, [5], RenderRequest(image_size=192, transparent=True))

    assert ok is True
    im = Image.open(s.output_root / "192x192-transparent" / "5.png")
    assert im.mode == "RGBA"


@pytest.mark.asyncio
async def test_generate_transparent_unique_needs_assets_dir(tmp_path: Path, make_svg, make_png):
    filler = make_png()
    top = make_png(size=(24, 24), color=(1, 1, 1, 255))
    s = mk_settings(tmp_path)
    s.svg_dir.mkdir()
    (s.svg_dir / "4.svg").write_text(make_svg([top, filler, filler]), encoding="utf-8")

    request = RenderRequest(image_size=48, transparent=True)
    assert await generate_images(s, [4], request) is False

    assets = tmp_path / "curated"
    assets.mkdir()
    (assets / "4.png").write_bytes(make_png(size=(24, 24)))
    s = mk_settings(tmp_path, transparent_assets_dir=assets)
    assert await generate_images(s, [4], request) is True
    im = Image.open(s.output_root / "48x48-transparent" / "4.png")
    assert im.size == (48, 48)


@pytest.mark.asyncio
async def test_generate_transparent_animated_unique_writes_png_and_gif(
    tmp_path: Path, make_svg, make_png, make_gif
):
    filler = make_png()
    s = mk_settings(tmp_path)
    s.svg_dir.mkdir()
    (s.svg_dir / "4.svg").write_text(
        make_svg([make_gif(size=(24, 24)), filler, filler]), encoding="utf-8"
    )
    assets = tmp_path / "curated"
    assets.mkdir()
    (assets / "4.png").write_bytes(make_png(size=(24, 24)))
    s = mk_settings(tmp_path, transparent_assets_dir=assets)
    request = RenderRequest(image_size=48, transparent=True)

    # The animated companion is required for GIF 1-of-1s.
    assert await generate_images(s, [4], request) is False

    (assets / "4.gif").write_bytes(make_gif(size=(24, 24)))
    assert await generate_images(s, [4], request) is True

    out = s.output_root / "48x48-transparent"
    assert sorted(p.name for p in out.iterdir()) == ["4.gif", "4.png"]
    assert Image.open(out / "4.png").size == (48, 48)
    gif = Image.open(out / "4.gif")
    assert gif.size == (48, 48)
    assert gif.n_frames == 2


class FakeSource:
    def __init__(self, svg: str):
        self.svg = svg
        self.calls = []

    async def fetch_metadata(self, token_id: int) -> dict:
        self.calls.append(token_id)
        if token_id == 1:
            raise ConnectionError("rpc down")
        return {
            "name": f"EdgePunk #{token_id}",
            "description": "Punk on the édge",
            "attributes": [{"trait_type": "Hat", "value": "Cap"}],
            "image": "ignored",
            "svg_image_data": _data_url("image/svg+xml", self.svg.encode()),
        }


@pytest.mark.asyncio
async def test_pull_on_chain_data(tmp_path: Path):
    s = mk_settings(tmp_path)
    source = FakeSource("<svg>punk</svg>")

    ok = await pull_on_chain_data(s, [0, 1, 2], source)

    assert ok is False
    assert sorted(source.calls) == [0, 1, 2]
    assert (s.svg_dir / "2.svg").read_text(encoding="utf-8") == "<svg>punk</svg>"
    assert not (s.svg_dir / "1.svg").exists()
    text = (s.metadata_dir / "0.json").read_text(encoding="utf-8")
    assert text == (
        '{"name":"EdgePunk #0","description":"Punk on the édge",'
        '"attributes":[{"trait_type":"Hat","value":"Cap"}]}'
    )
    assert json.loads(text)["description"] == "Punk on the édge"
