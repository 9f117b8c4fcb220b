from __future__ import annotations

import logging
from typing import Callable, Dict

import numpy as np

from ..models.channel_weights import (
    ChannelWeights,
    ColorMatrix,
    LUMINANCE_WEIGHTS,
    SEPIA_MATRIX,
)
from ..models.image import Image
from ..models.operation import Operation

logger = logging.getLogger(__name__)


class PixelTransformService:
    """
    Per-pixel colour transforms (grayscale, invert, sepia).
    *   No I/O here: works only with Image objects (RGB uint8 numpy arrays).
    *   Every transform returns a *new* Image; the input is never modified.
    *   Each output pixel depends only on the input pixel at the same position.
    """

    def __init__(self,
                 luminance: ChannelWeights = LUMINANCE_WEIGHTS,
                 sepia: ColorMatrix = SEPIA_MATRIX):
        self.luminance = luminance
        self.sepia = sepia
        self._luminance_int = luminance.as_integers()
        self._sepia_int = np.stack([row.as_integers() for row in sepia.rows()])
        self._sepia_scale = sepia.red.scale
        if any(row.scale != self._sepia_scale for row in sepia.rows()):
            raise ValueError("All sepia weight rows must share one scale")

        self._dispatch: Dict[Operation, Callable[[np.ndarray], np.ndarray]] = {
            Operation.GRAYSCALE: self.grayscale_pixels,
            Operation.INVERT: self.invert_pixels,
            Operation.SEPIA: self.sepia_pixels,
        }

    # ─── Public API ────────────────────────────────────────────────
    def apply(self, image: Image, operation: Operation | str) -> Image:
        """
        Apply *operation* to *image* and return the transformed copy.

        Args:
            image: Source Image, pixels of shape (H, W, 3) and dtype uint8.
            operation: An Operation member or its name ("sepia", "Invert", ...).

        Returns:
            Image: New Image with the same dimensions, path and original pixels.

        Raises:
            UnknownOperation: if *operation* names no known transform.
            ValueError: if the pixels are not an (H, W, 3) uint8 array.
        """
        op = Operation.parse(operation)
        new_pixels = self._dispatch[op](image.pixels)
        logger.debug(f"Applied {op.label} to {new_pixels.shape[1]}x{new_pixels.shape[0]} image")
        return Image(pixels=new_pixels,
                     path=image.path,
                     original_pixels=image.original_pixels)

    def grayscale(self, image: Image) -> Image:
        return self.apply(image, Operation.GRAYSCALE)

    def invert(self, image: Image) -> Image:
        return self.apply(image, Operation.INVERT)

    def sepia_tone(self, image: Image) -> Image:
        return self.apply(image, Operation.SEPIA)

    # ─── Pixel math ────────────────────────────────────────────────
    def grayscale_pixels(self, pixels: np.ndarray) -> np.ndarray:
        """
        value = floor(0.21·R + 0.72·G + 0.07·B), replicated into R, G and B.
        """
        wide = self._widen(pixels)
        total = wide @ self._luminance_int
        gray = np.clip(total // self.luminance.scale, 0, 255).astype(np.uint8)
        return np.repeat(gray[:, :, np.newaxis], 3, axis=2)

    def invert_pixels(self, pixels: np.ndarray) -> np.ndarray:
        """Each channel becomes 255 - channel."""
        self._check_shape(pixels)
        return (255 - pixels.astype(np.int16)).astype(np.uint8)

    def sepia_pixels(self, pixels: np.ndarray) -> np.ndarray:
        """
        Weighted sums from the sepia matrix, truncated, capped at 255.
        Inputs are non-negative so no lower clamp is needed.
        """
        wide = self._widen(pixels)
        total = wide @ self._sepia_int.T
        return np.minimum(total // self._sepia_scale, 255).astype(np.uint8)

    # ─── Internal helpers ──────────────────────────────────────────
    @staticmethod
    def _check_shape(pixels: np.ndarray) -> None:
        if not isinstance(pixels, np.ndarray) or pixels.ndim != 3 or pixels.shape[2] != 3:
            shape = getattr(pixels, "shape", None)
            raise ValueError(f"Expected an (H, W, 3) RGB array, got shape {shape}")
        if pixels.dtype != np.uint8:
            raise ValueError(f"Expected uint8 pixels, got {pixels.dtype}")

    def _widen(self, pixels: np.ndarray) -> np.ndarray:
        # int32 holds 1000 * 255 * 3 comfortably
        self._check_shape(pixels)
        return pixels.astype(np.int32)
