# backend/app/pipeline/normalize.py

"""
Raster normalization ahead of the primitive run.

Every upload leaves here as a flat RGB PNG whose longest side is at most
MAX_DIMENSION pixels. HEIC has no Pillow decoder, so it is decoded to a raw
buffer with pillow-heif and rebuilt from its explicit geometry; SVG uploads
are rasterized with cairosvg first.
"""

import io
import logging
from typing import Tuple

import numpy as np
import pillow_heif
from PIL import Image, ImageOps

from app.errors import DecodeFailure
from app.models import NormalizedRaster, UploadedItem
from app.pipeline.utils import round_half_up

logger = logging.getLogger(__name__)

MAX_DIMENSION = 1000


# ---------- decoding ----------


def _decode_heic(content: bytes) -> Image.Image:
    heif = pillow_heif.open_heif(content, convert_hdr_to_8bit=True)
    width, height = heif.size
    channels = 4 if heif.mode.startswith("RGBA") else 3

    # rows may be padded, so slice each one down to width * channels bytes
    buf = np.frombuffer(heif.data, dtype=np.uint8)
    rows = buf[: heif.stride * height].reshape(height, heif.stride)
    pixels = rows[:, : width * channels].reshape(height, width, channels)
    return Image.fromarray(np.ascontiguousarray(pixels))


def _decode_svg(content: bytes) -> Image.Image:
    # cairocffi loads libcairo at import time; keep it off the import path of
    # the raster-only code.
    import cairosvg

    png = cairosvg.svg2png(bytestring=content)
    im = Image.open(io.BytesIO(png))
    im.load()
    return im


def _decode_standard(content: bytes) -> Image.Image:
    im = Image.open(io.BytesIO(content))
    im.load()
    return im


def _decode_flat(item: UploadedItem) -> Image.Image:
    """Decode the upload and flatten it onto white, as an RGB image."""
    if not item.content:
        raise DecodeFailure(f"{item.original_name}: empty file upload")
    try:
        if item.mime_type == "image/heic":
            im = _decode_heic(item.content)
        elif item.mime_type == "image/svg+xml":
            im = _decode_svg(item.content)
        else:
            im = _decode_standard(item.content)
        return _composite_over_white(im)
    except Exception as e:
        # Pillow, pillow-heif and cairosvg all raise their own error types
        logger.warning("decode failed for %s (%s): %s", item.original_name, item.mime_type, e)
        raise DecodeFailure(f"{item.original_name}: could not decode image: {e}") from e


# ---------- small helpers ----------


def _to_srgb_rgba(im: Image.Image) -> Image.Image:
    if im.mode != "RGBA":
        im = im.convert("RGBA")
    return im


def _composite_over_white(im: Image.Image) -> Image.Image:
    """Flatten any transparency over pure white."""
    bg = Image.new("RGBA", im.size, (255, 255, 255, 255))
    out = Image.alpha_composite(bg, _to_srgb_rgba(im))
    return out.convert("RGB")


def target_size(width: int, height: int, max_dimension: int = MAX_DIMENSION) -> Tuple[int, int]:
    """
    Scale both sides by the same ratio so the longest one hits max_dimension.

    Small images get a target larger than themselves; the resize step refuses
    to enlarge, so those pass through at their own size.
    """
    largest = width if width > height else height
    ratio = max_dimension / largest
    return round_half_up(width * ratio), round_half_up(height * ratio)


def _resize_cover_no_enlarge(im: Image.Image, size: Tuple[int, int]) -> Image.Image:
    w, h = size
    if w > im.width or h > im.height:
        return im
    if (w, h) == im.size:
        return im
    return ImageOps.fit(im, (w, h), method=Image.Resampling.LANCZOS)


# ---------- public entrypoint ----------


def normalize_to_png(item: UploadedItem) -> NormalizedRaster:
    """Decode, flatten over white, cap at MAX_DIMENSION and encode as PNG."""
    im = _decode_flat(item)

    size = target_size(im.width, im.height)
    im = _resize_cover_no_enlarge(im, size)

    out = io.BytesIO()
    im.save(out, format="PNG")
    logger.debug(
        "normalized %s to %dx%d (target %dx%d)",
        item.original_name, im.width, im.height, size[0], size[1],
    )
    return NormalizedRaster(data=out.getvalue(), width=im.width, height=im.height)
