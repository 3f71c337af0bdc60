from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from logging.handlers import RotatingFileHandler

from dotenv import load_dotenv

from edgepunks.batch import generate_images, pull_on_chain_data
from edgepunks.chain import TokenMetadataClient
from edgepunks.config import Settings, load_settings, require_rpc_url
from edgepunks.render import RenderRequest


def _image_size(raw: str) -> int:
    size = int(raw)
    if size < 1:
        raise argparse.ArgumentTypeError("--image-size must be >= 1")
    return size


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="edgepunks", description="EdgePunks image tooling.")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate raster images from NFT SVG files.")
    gen.add_argument(
        "token_ids",
        nargs="*",
        type=int,
        metavar="token-id",
        help="The token ID numbers to generate (e.g. 0 1 2). Otherwise, generate all image files.",
    )
    gen.add_argument("--image-size", type=_image_size, required=True, help="The size of the output images")
    gen.add_argument("--transparent", action="store_true", help="Make the background transparent")
    gen.add_argument("--svg-dir", help="Directory holding <token-id>.svg files (default: SVG_DIR or ./svg)")
    gen.add_argument("--output-dir", help="Root directory for the <size>x<size> output folder")

    pull = sub.add_parser("pull", help="Pull SVG and metadata from the contract.")
    pull.add_argument(
        "token_ids",
        nargs="*",
        type=int,
        metavar="token-id",
        help="The token ID numbers to pull (e.g. 0 1 2). If none, pull all IDs.",
    )
    return parser


def setup_logging(settings: Settings) -> None:
    # Console always; optional rotating file
    log_format = "%(asctime)s %(levelname)s %(name)s %(message)s"
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=log_format)
    if settings.log_file:
        try:
            settings.log_file.parent.mkdir(parents=True, exist_ok=True)
            fh = RotatingFileHandler(
                settings.log_file,
                maxBytes=settings.log_max_bytes,
                backupCount=settings.log_backups,
                encoding="utf-8",
            )
            fh.setLevel(level)
            fh.setFormatter(logging.Formatter(log_format))
            root = logging.getLogger()
            root.addHandler(fh)
        except Exception:
            logging.exception("Failed to set up file logging")


async def main(argv: Sequence[str] | None = None) -> bool:
    # Load .env if present
    load_dotenv()

    args = build_parser().parse_args(argv)
    settings = load_settings()

    overrides = {}
    if getattr(args, "svg_dir", None):
        overrides["svg_dir"] = args.svg_dir
    if getattr(args, "output_dir", None):
        overrides["output_root"] = args.output_dir
    if overrides:
        settings = Settings(**{**settings.model_dump(), **overrides})

    setup_logging(settings)

    if args.command == "generate":
        request = RenderRequest(image_size=args.image_size, transparent=args.transparent)
        return await generate_images(settings, args.token_ids, request)

    client = TokenMetadataClient(
        require_rpc_url(settings), settings.contract_address, call_gas=settings.call_gas
    )
    return await pull_on_chain_data(settings, args.token_ids, client)


def run() -> None:
    try:
        ok = asyncio.run(main())
    except KeyboardInterrupt:
        sys.exit(130)
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    run()
