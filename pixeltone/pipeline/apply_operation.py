# pipeline/apply_operation.py
from pathlib import Path
import logging
import os
from typing import Iterable, List, Set

from dotenv import load_dotenv

from ..models.image import Image
from ..models.operation import Operation
from ..services.image_service import ImageService
from ..services.pixel_transform_service import PixelTransformService

# ------------------------------------------------------------------
# env‑vars
load_dotenv()
OUTPUT_DIR = os.getenv("OUTPUT_DIR_PATH", "data/processed_gallery")
OUTPUT_EXT = os.getenv("OUTPUT_IMG_EXT", ".png")          # e.g. ".png"

logger = logging.getLogger(__name__)


def output_path_for(image: Image, operation: Operation, output_dir: str | Path, ext: str) -> Path:
    """<output_dir>/<stem>_<operation><ext>; unnamed images get "image"."""
    stem = Path(image.path).stem if image.path else "image"
    if not ext.startswith("."):
        ext = f".{ext}"
    return Path(output_dir) / f"{stem}_{operation.value}{ext}"


def unique_output_path(path: Path, taken: Set[Path]) -> Path:
    """*path*, or *path* with a _2, _3, ... suffix if this run already used it."""
    candidate, n = path, 1
    while candidate in taken:
        n += 1
        candidate = path.with_name(f"{path.stem}_{n}{path.suffix}")
    return candidate


# ------------------------------------------------------------------
def apply_operation(
    gallery: Iterable[Image],
    operation: Operation | str,
    *,
    transform_service: PixelTransformService = None,
    image_service: ImageService = None,
    output_dir: str | Path = OUTPUT_DIR,
    ext: str = OUTPUT_EXT,
) -> List[Image]:
    """
    For every Image in *gallery*:
        • apply *operation* → new pixels
        • update pixels in-memory (preserving original)
        • point the image at its destination under *output_dir*
    Returns the same Image objects; nothing is written here.
    """
    op = Operation.parse(operation)
    transform_service = transform_service or PixelTransformService()
    image_service = image_service or ImageService()

    processed = []
    taken: Set[Path] = set()
    for img in gallery:
        # 1. transform → new pixels
        new_pixels = transform_service.apply(img, op).pixels

        # 2. update pixels in-memory while preserving original
        image_service.apply_pipeline_modification(img, new_pixels)

        # 3. destination for the later save
        target = output_path_for(img, op, output_dir, ext)
        img.path = unique_output_path(target, taken)
        taken.add(img.path)
        if img.path != target:
            logger.warning(f"{target.name} already produced in this run; writing {img.path.name}")
        logger.info(f"{op.label}: ready {img.path.name}")
        processed.append(img)

    return processed
