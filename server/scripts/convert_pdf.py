"""Convert a PDF into a slide deck through a running Beacon server.

Usage:  python scripts/convert_pdf.py report.pdf --slides 12 --out decks/
"""

import argparse
import asyncio
import logging
import sys

from beacon.client.chunked_upload import ChunkedUploadClient, UploadFailed, save_pptx

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("pdf", help="Path to the PDF to convert")
    parser.add_argument("--api-url", default="http://localhost:8000")
    parser.add_argument(
        "--slides", type=int, default=None, help="Exact number of slides (AI mode defaults to the server's default)"
    )
    parser.add_argument("--mode", choices=["ai", "extract"], default="ai")
    parser.add_argument("--out", default=".", help="Directory for the .pptx download")
    return parser.parse_args(argv)


def _print_progress(percent: float) -> None:
    logger.info(f"Uploaded {percent:.0f}%")


async def run(args: argparse.Namespace) -> int:
    client = ChunkedUploadClient(base_url=args.api_url)
    try:
        config = await client.fetch_config()
        slides = args.slides
        if slides is None and args.mode == "ai":
            slides = config["defaultSlides"]
        metadata = {"extractionMode": args.mode, "numSlides": slides}
        result = await client.convert(args.pdf, metadata, on_progress=_print_progress)
    except UploadFailed as e:
        logger.error(f"Conversion failed: {e.message}")
        return 1

    path = save_pptx(result, args.out)
    logger.info(f"{result['totalSlides']} slides written to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(run(parse_args())))
