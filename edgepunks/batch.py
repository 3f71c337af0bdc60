from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from functools import partial
from pathlib import Path
from typing import Any, Protocol

from .chain import get_svg, non_image_metadata
from .classify import Unique
from .config import Settings
from .render import RenderRequest, svg_to_raster


class MetadataSource(Protocol):
    async def fetch_metadata(self, token_id: int) -> dict[str, Any]: ...


def token_ids_or_all(token_ids: Sequence[int], settings: Settings) -> list[int]:
    return list(token_ids) if token_ids else list(range(settings.max_supply))


def output_dir_name(request: RenderRequest) -> str:
    suffix = "-transparent" if request.transparent else ""
    return f"{request.image_size}x{request.image_size}{suffix}"


def load_transparent_assets(assets_dir: Path, token_id: int, meta: Unique) -> list[bytes]:
    """Curated transparent 1-of-1s: ``<id>.png``, plus ``<id>.gif`` for animated ones."""
    assets = [(assets_dir / f"{token_id}.png").read_bytes()]
    if meta.format == "gif":
        assets.append((assets_dir / f"{token_id}.gif").read_bytes())
    return assets


def svg_file_to_raster_files(
    token_id: int,
    src_svg_file: Path,
    dest_stem: Path,
    request: RenderRequest,
    settings: Settings,
) -> list[Path]:
    svg = src_svg_file.read_text(encoding="utf-8")
    hook = None
    if settings.transparent_assets_dir is not None:
        hook = partial(load_transparent_assets, settings.transparent_assets_dir, token_id)
    images = svg_to_raster(
        svg, request, canonical_width=settings.canonical_width, transparent_assets=hook
    )
    paths = []
    for image in images:
        path = dest_stem.with_name(f"{dest_stem.name}.{image.format}")
        path.write_bytes(image.data)
        paths.append(path)
    return paths


async def _run_throttled(
    ids: Iterable[int], concurrency: int, job: Callable[[int], Awaitable[None]], what: str
) -> bool:
    """Run ``job`` per token with at most ``concurrency`` in flight.

    Failures are logged and reported through the return value; they never stop
    the remaining tokens.
    """
    semaphore = asyncio.Semaphore(concurrency)

    async def _guarded(token_id: int) -> bool:
        async with semaphore:
            try:
                await job(token_id)
            except Exception:
                logging.exception("Failed to %s for token ID %s", what, token_id)
                return False
            return True

    results = await asyncio.gather(*(_guarded(t) for t in ids))
    return all(results)


async def generate_images(
    settings: Settings, token_ids: Sequence[int], request: RenderRequest
) -> bool:
    """Render every token's SVG into ``<output_root>/<size>x<size>[-transparent]/``.

    Returns False if any token failed.
    """
    out_dir = settings.output_root / output_dir_name(request)
    out_dir.mkdir(parents=True, exist_ok=True)
    ids = token_ids_or_all(token_ids, settings)
    logging.info("%d EdgePunks to generate into %s", len(ids), out_dir)

    async def _generate(token_id: int) -> None:
        paths = await asyncio.to_thread(
            svg_file_to_raster_files,
            token_id,
            settings.svg_dir / f"{token_id}.svg",
            out_dir / str(token_id),
            request,
            settings,
        )
        logging.info("%s", " ".join(str(p) for p in paths))

    return await _run_throttled(ids, settings.concurrency, _generate, "generate image")


async def pull_on_chain_data(
    settings: Settings, token_ids: Sequence[int], source: MetadataSource
) -> bool:
    """Fetch metadata per token; write the SVG and the non-image attributes to disk."""
    settings.svg_dir.mkdir(parents=True, exist_ok=True)
    settings.metadata_dir.mkdir(parents=True, exist_ok=True)
    ids = token_ids_or_all(token_ids, settings)
    logging.info("%d tokens to pull", len(ids))

    async def _pull(token_id: int) -> None:
        svg_file = settings.svg_dir / f"{token_id}.svg"
        metadata_file = settings.metadata_dir / f"{token_id}.json"
        meta = await source.fetch_metadata(token_id)
        svg = get_svg(meta)
        svg_file.write_text(svg, encoding="utf-8")
        metadata_file.write_text(
            json.dumps(non_image_metadata(meta), separators=(",", ":"), ensure_ascii=False),
            encoding="utf-8",
        )
        logging.info("%s %s", svg_file, metadata_file)

    return await _run_throttled(ids, settings.concurrency, _pull, "pull metadata")
