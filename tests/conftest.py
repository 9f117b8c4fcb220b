import numpy as np
import pytest
from PIL import Image as PILImage

from pixeltone.models.image import Image
from pixeltone.services.pixel_transform_service import PixelTransformService


@pytest.fixture
def transform_service():
    return PixelTransformService()


@pytest.fixture
def example_pixel():
    """A single (R=100, G=150, B=200) pixel."""
    return np.array([[[100, 150, 200]]], dtype=np.uint8)


@pytest.fixture
def sample_pixels():
    """A small 6x9 RGB image with random content plus the channel extremes."""
    rng = np.random.default_rng(1234)
    img = rng.integers(0, 256, size=(6, 9, 3), dtype=np.uint8)
    img[0, 0] = [0, 0, 0]
    img[0, 1] = [255, 255, 255]
    img[0, 2] = [255, 0, 0]
    img[0, 3] = [0, 255, 0]
    img[0, 4] = [0, 0, 255]
    return img


@pytest.fixture
def sample_image(sample_pixels):
    return Image(pixels=sample_pixels.copy())


@pytest.fixture
def quadrant_pixels():
    """Returns a simple 4x4 RGB image with four solid quadrants."""
    img = np.zeros((4, 4, 3), dtype=np.uint8)
    img[:2, :2] = [255, 0, 0]    # Red quadrant
    img[:2, 2:] = [0, 255, 0]    # Green quadrant
    img[2:, :2] = [0, 0, 255]    # Blue quadrant
    img[2:, 2:] = [100, 150, 200]
    return img


@pytest.fixture
def png_file(tmp_path, quadrant_pixels):
    """The quadrant image written losslessly to disk."""
    path = tmp_path / "quadrants.png"
    PILImage.fromarray(quadrant_pixels).save(path)
    return path


@pytest.fixture
def corrupt_file(tmp_path):
    path = tmp_path / "broken.png"
    path.write_bytes(b"this is not an image at all")
    return path
