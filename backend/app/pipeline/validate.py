from app.errors import UnsupportedMediaType
from app.models import UploadedItem

# Raster formats Pillow reads, plus SVG (rasterized by cairosvg) and HEIC
# (decoded by pillow-heif).
ALLOWED_MIME_TYPES = frozenset(
    {
        "image/jpg",
        "image/jpeg",
        "image/png",
        "image/webp",
        "image/gif",
        "image/svg+xml",
        "image/heic",
    }
)


def validate_file_type(item: UploadedItem) -> UploadedItem:
    """Return the item untouched if its declared type is an image we handle."""
    if item.mime_type in ALLOWED_MIME_TYPES:
        return item
    raise UnsupportedMediaType(
        f"{item.original_name or item.field_name}: unsupported media type {item.mime_type!r}"
    )
