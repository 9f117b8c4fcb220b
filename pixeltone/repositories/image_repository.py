from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Union, Iterable, List, Iterator

import cv2
import numpy as np
from PIL import Image as PILImage
from dotenv import load_dotenv

from ..exceptions import DecodeFailure
from ..models.image import Image

# Load environment variables
load_dotenv()

DEFAULT_IMAGE_EXTENSIONS = ".png,.jpg,.jpeg,.bmp,.tif,.tiff,.webp"

logger = logging.getLogger(__name__)


class ImageRepository:
    """
    Handles file I/O and pixel updates for Image entities.
    """
    def __init__(self):
        exts = os.getenv("VALID_IMAGE_EXTENSIONS", DEFAULT_IMAGE_EXTENSIONS)
        self.VALID_EXTS = {ext.strip().lower() for ext in exts.split(",") if ext.strip()}

    @staticmethod
    def retrieve_image_dimensions(img: Image):
        return img.pixels.shape[:2]

    @staticmethod
    def load(path: Union[str, Path]) -> Image:
        """
        Decode *path* into an RGB Image.
        Alpha is dropped and single-channel files come back as three channels.
        """
        path = Path(path)
        if not path.is_file():
            raise DecodeFailure(path, "file not found")

        arr_bgr = cv2.imread(str(path), cv2.IMREAD_COLOR)
        if arr_bgr is None:
            raise DecodeFailure(path)

        arr = np.ascontiguousarray(arr_bgr[:, :, ::-1])
        logger.debug(f"Decoded {path.name}: {arr.shape[1]}x{arr.shape[0]}")
        return Image(pixels=arr, path=path)

    @staticmethod
    def save(image: Image) -> None:
        if image.path is None:
            raise ValueError("Cannot save an image without a destination path")
        path = Path(image.path)
        path.parent.mkdir(parents=True, exist_ok=True)
        PILImage.fromarray(np.ascontiguousarray(image.pixels)).save(path)

    @staticmethod
    def save_original_pixels(image: Image) -> None:
        """Save current pixels as original for before/after comparison"""
        if image.original_pixels is None:
            image.original_pixels = image.pixels.copy()

    @staticmethod
    def update_pixels_preserve_original(image: Image, new_pixels: np.ndarray) -> None:
        """Update pixels while preserving original for comparison"""
        if image.original_pixels is None:
            image.original_pixels = image.pixels.copy()
        image.pixels = new_pixels

    def iter_dir(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> Iterator[Image]:
        """
        Yield Image objects one at a time.  Nothing accumulates in memory.
        Files that fail to decode are logged and skipped.
        """
        folder = Path(folder)
        if not folder.is_dir():
            raise NotADirectoryError(folder)

        allowed = {e.lower() for e in (exts or self.VALID_EXTS)}
        pattern = "**/*" if recursive else "*"

        for p in sorted(folder.glob(pattern)):
            if not p.is_file():
                continue
            if p.suffix.lower() not in allowed:
                logger.debug(f"Skipping due to extension: {p}")
                continue
            try:
                yield self.load(p)
            except DecodeFailure as err:
                logger.warning(f"Skipping {p.name}: {err}")

    def load_dir(
        self, folder: Union[str, Path], *, recursive=False, exts=None
    ) -> List[Image]:
        """
        Convenience helper that returns a list, but internally streams.
        """
        return list(self.iter_dir(folder, recursive=recursive, exts=exts))
