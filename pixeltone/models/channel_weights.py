from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple

import numpy as np


@dataclass(frozen=True)
class ChannelWeights:
    """
    Value-object holding one (R, G, B) weight row, e.g. the luminance weights.
    Weights are stored as given and as exact integer numerators over
    ``scale`` so sums can be floored without float round-off.
    """
    red:   float
    green: float
    blue:  float
    scale: int = 1000

    def as_tuple(self) -> Tuple[float, float, float]:
        return self.red, self.green, self.blue

    def as_integers(self) -> np.ndarray:
        """Weights multiplied by ``scale``; every weight must be exact at that scale."""
        scaled = [round(w * self.scale) for w in self.as_tuple()]
        for w, s in zip(self.as_tuple(), scaled):
            if abs(w * self.scale - s) > 1e-6:
                raise ValueError(f"Weight {w} is not representable at scale {self.scale}")
        return np.array(scaled, dtype=np.int32)


@dataclass(frozen=True)
class ColorMatrix:
    """Three weight rows producing the output R, G and B channels."""
    red:   ChannelWeights
    green: ChannelWeights
    blue:  ChannelWeights

    def rows(self) -> Tuple[ChannelWeights, ChannelWeights, ChannelWeights]:
        return self.red, self.green, self.blue


# ── Fixed coefficients ───────────────────────────────────────────────
LUMINANCE_WEIGHTS = ChannelWeights(0.21, 0.72, 0.07, scale=100)

SEPIA_MATRIX = ColorMatrix(
    red=ChannelWeights(0.393, 0.769, 0.189),
    green=ChannelWeights(0.349, 0.686, 0.168),
    blue=ChannelWeights(0.272, 0.534, 0.131),
)
