from __future__ import annotations
from enum import Enum

from ..exceptions import UnknownOperation


class Operation(Enum):
    """
    The fixed set of per-pixel transforms a caller can request.
    Values are the lower-case names used on the CLI and in the HTTP API.
    """
    GRAYSCALE = "grayscale"
    INVERT = "invert"
    SEPIA = "sepia"

    @property
    def label(self) -> str:
        """Human-friendly name shown in console messages ("Grayscale")."""
        return self.value.capitalize()

    @classmethod
    def parse(cls, value: Operation | str) -> Operation:
        if isinstance(value, cls):
            return value
        name = str(value).strip().lower()
        for op in cls:
            if op.value == name:
                return op
        raise UnknownOperation(value)

    @classmethod
    def names(cls) -> list[str]:
        return [op.value for op in cls]
