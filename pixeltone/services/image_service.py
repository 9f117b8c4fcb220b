from pathlib import Path
from typing import Iterable, Union, Iterator
import base64
from io import BytesIO

import numpy as np
from PIL import Image as PILImage

from ..models.image import Image
from ..repositories.image_repository import ImageRepository


class ImageService:
    """I/O helpers.  No pixel-transform logic here."""
    def __init__(self):
        self.image_repository = ImageRepository()

    def load(self, path: str | Path) -> Image:
        """Load a single image from disk into an Image object."""
        return self.image_repository.load(path)

    def stream_gallery(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> Iterator[Image]:
        """
        Yield images lazily instead of returning a gigantic list.
        """
        return self.image_repository.iter_dir(folder,
                                              recursive=recursive,
                                              exts=exts)

    def save(self, image: Image) -> None:
        """
        Business-level method to save the image to its path.
        """
        self.image_repository.save(image)

    def save_gallery(self, gallery: Iterable[Image]):
        for img in gallery:
            self.save(img)

    def get_image_dimensions(self, img: Image):
        return self.image_repository.retrieve_image_dimensions(img)

    def preserve_original_state(self, image: Image) -> None:
        """
        Preserve the current image state before processing.
        """
        self.image_repository.save_original_pixels(image)

    def apply_pipeline_modification(self, image: Image, new_pixels: np.ndarray) -> None:
        """
        Apply a pipeline modification while preserving original for comparison.
        """
        self.image_repository.update_pixels_preserve_original(image, new_pixels)

    def to_pil_image(self, img: Image) -> PILImage.Image:
        """
        Convert Image.pixels → PIL Image object.
        Ensures the NumPy array is C-contiguous.
        """
        np_img = img.pixels
        if not np_img.flags['C_CONTIGUOUS']:
            np_img = np.ascontiguousarray(np_img)

        return PILImage.fromarray(np_img)

    def to_base64(self, img: Image, fmt: str = "PNG") -> str:
        """Encode the image as a data URL for JSON responses."""
        buffer = BytesIO()
        self.to_pil_image(img).save(buffer, format=fmt)
        encoded = base64.b64encode(buffer.getvalue()).decode('utf-8')
        return f"data:image/{fmt.lower()};base64,{encoded}"
