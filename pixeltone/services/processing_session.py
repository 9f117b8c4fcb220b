from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import List, Optional, Union

from ..exceptions import DecodeFailure, NoImageLoaded
from ..models.image import Image
from ..models.operation import Operation
from .console_log import ConsoleLogHandler
from .image_service import ImageService
from .pixel_transform_service import PixelTransformService

# Shared by every session; records carry their session_id via LoggerAdapter.
logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


class ProcessingSession:
    """
    Load-then-apply workflow for a single user, with a console log.

    The loaded image is the source for every operation: results are
    never chained, each apply starts again from the loaded pixels.
    A failed load keeps whatever was loaded before.
    """

    def __init__(
        self,
        session_id: str = None,
        *,
        image_service: ImageService = None,
        transform_service: PixelTransformService = None,
        max_console_lines: int | None = 1000,
    ):
        self.session_id = session_id or str(uuid.uuid4())
        self.image_service = image_service or ImageService()
        self.transform_service = transform_service or PixelTransformService()
        self.source_image: Optional[Image] = None
        self.current_image: Optional[Image] = None
        self.last_operation: Optional[Operation] = None

        self.logger = logging.LoggerAdapter(logger, {"session_id": self.session_id})
        self.console = ConsoleLogHandler(max_lines=max_console_lines, session_id=self.session_id)
        self.console.attach_to_logger(logger)

    # ─── Workflow ──────────────────────────────────────────────────
    def load(self, path: Union[str, Path], display_name: str | None = None) -> Image:
        """
        Decode *path* and make it the session's source image.
        Console messages name the file as *display_name* when given.

        Raises:
            DecodeFailure: the file could not be decoded; previous state is kept.
        """
        name = display_name or Path(path).name
        try:
            image = self.image_service.load(path)
        except DecodeFailure:
            self.logger.error(f"Failed to load image file: {name}")
            raise

        self.image_service.preserve_original_state(image)
        self.source_image = image
        self.current_image = image
        self.last_operation = None
        self.logger.info(f"Image loaded: {name}")
        return image

    def apply(self, operation: Operation | str) -> Image:
        """
        Run *operation* on the loaded image and make the result current.

        Raises:
            NoImageLoaded: nothing has been loaded yet.
            UnknownOperation: *operation* names no known transform.
        """
        op = Operation.parse(operation)
        if self.source_image is None:
            self.logger.error("No image selected")
            raise NoImageLoaded()

        try:
            result = self.transform_service.apply(self.source_image, op)
        except Exception:
            self.logger.error(f"Image processing failed: {op.label}")
            raise

        self.current_image = result
        self.last_operation = op
        self.logger.info(f"Image processed: {op.label}")
        return result

    # ─── Console ───────────────────────────────────────────────────
    def console_lines(self) -> List[str]:
        return self.console.lines()

    def clear(self) -> None:
        """Drop images and console lines."""
        self.source_image = None
        self.current_image = None
        self.last_operation = None
        self.console.clear()

    def close(self) -> None:
        """Detach the console handler; the session is unusable afterwards."""
        self.clear()
        self.console.detach_from_logger(logger)
