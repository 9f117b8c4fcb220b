"""PixelTone: load a raster image and apply grayscale, invert or sepia."""

__version__ = "1.0.0"
