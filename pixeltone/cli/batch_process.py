import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Iterator, List

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from ..exceptions import DecodeFailure
from ..models.image import Image
from ..models.operation import Operation
from ..pipeline.apply_operation import OUTPUT_DIR, OUTPUT_EXT, apply_operation
from ..services.image_service import ImageService

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Centralized logging configuration; call once from the entry point."""
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pixeltone-batch",
        description="Apply a grayscale, invert or sepia transform to image files.",
    )
    parser.add_argument("inputs", nargs="+", type=Path,
                        help="image files and/or directories of images")
    parser.add_argument("-o", "--operation", required=True,
                        choices=Operation.names(),
                        help="transform to apply")
    parser.add_argument("--output-dir", type=Path, default=Path(OUTPUT_DIR),
                        help=f"where results are written (default: {OUTPUT_DIR})")
    parser.add_argument("--ext", default=OUTPUT_EXT,
                        help=f"output file extension (default: {OUTPUT_EXT})")
    parser.add_argument("-r", "--recursive", action="store_true",
                        help="descend into sub-directories")
    return parser


def iter_inputs(image_service: ImageService, inputs: List[Path], recursive: bool) -> Iterator[Image]:
    """Yield decoded images from files and directories, skipping failures."""
    for entry in inputs:
        if entry.is_dir():
            yield from image_service.stream_gallery(entry, recursive=recursive)
            continue
        try:
            yield image_service.load(entry)
        except DecodeFailure as err:
            logger.error(f"Failed to load image file: {entry.name} ({err.reason})")


def main(argv: List[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    operation = Operation.parse(args.operation)
    image_service = ImageService()

    logger.info(f"Applying {operation.label} to {len(args.inputs)} input(s)")
    processed = apply_operation(
        iter_inputs(image_service, args.inputs, args.recursive),
        operation,
        image_service=image_service,
        output_dir=args.output_dir,
        ext=args.ext,
    )

    if not processed:
        logger.error("No images were processed")
        return 1

    image_service.save_gallery(processed)
    logger.info(f"Saved {len(processed)} image(s) to {args.output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
