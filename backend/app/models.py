from dataclasses import dataclass
from enum import Enum


class ColorMode(str, Enum):
    COLOR = "color"
    BLACK_AND_WHITE = "black-and-white"


@dataclass(frozen=True)
class UploadedItem:
    content: bytes
    mime_type: str
    field_name: str
    original_name: str


@dataclass(frozen=True)
class NormalizedRaster:
    """PNG bytes, flattened onto white, longest side <= 1000px."""

    data: bytes
    width: int
    height: int


@dataclass(frozen=True)
class ColorSample:
    color: str
    brightness: float


@dataclass(frozen=True)
class ProcessedResult:
    svg: str
    field_name: str
    original_name: str
    mime_type: str

    def to_dict(self) -> dict:
        # Frontend expects camelCase keys
        return {
            "svg": self.svg,
            "fieldName": self.field_name,
            "originalName": self.original_name,
            "mimeType": self.mime_type,
        }
