import io
from types import SimpleNamespace

import numpy as np
import pytest
from PIL import Image

from app.errors import DecodeFailure
from app.pipeline import normalize
from app.pipeline.normalize import MAX_DIMENSION, normalize_to_png, target_size
from conftest import make_image_bytes, make_item


def _cairo_available() -> bool:
    try:
        import cairosvg  # noqa: F401
    except (ImportError, OSError):
        return False
    return True


def _open(raster) -> Image.Image:
    im = Image.open(io.BytesIO(raster.data))
    im.load()
    return im


@pytest.mark.parametrize(
    "size, expected",
    [
        ((2000, 1000), (1000, 500)),
        ((1000, 3000), (333, 1000)),
        ((1500, 1500), (1000, 1000)),
        ((3001, 2000), (1000, 666)),
        ((100, 50), (1000, 500)),
        ((3, 2000), (2, 1000)),  # 1.5 rounds up
    ],
)
def test_target_size(size, expected):
    assert target_size(*size) == expected


@pytest.mark.parametrize(
    "size, expected",
    [
        ((2400, 1200), (1000, 500)),
        ((1200, 2400), (500, 1000)),
        ((1001, 1001), (1000, 1000)),
    ],
)
def test_large_images_are_scaled_down(size, expected):
    item = make_item(content=make_image_bytes(size=size, color=(0, 128, 255, 255)))
    raster = normalize_to_png(item)
    im = _open(raster)
    assert (raster.width, raster.height) == expected
    assert im.size == expected
    assert im.format == "PNG"


def test_small_images_are_never_enlarged():
    item = make_item(content=make_image_bytes(size=(120, 80)))
    raster = normalize_to_png(item)
    assert (raster.width, raster.height) == (120, 80)


@pytest.mark.parametrize("size", [(1999, 1234), (640, 480), (50, 900), (4000, 7)])
def test_output_bounds_and_aspect(size):
    w, h = size
    raster = normalize_to_png(make_item(content=make_image_bytes(size=size)))
    assert max(raster.width, raster.height) <= MAX_DIMENSION
    assert raster.width <= w and raster.height <= h
    # aspect within one pixel of rounding on the short side
    if w >= h:
        assert abs(raster.height - h * raster.width / w) <= 1
    else:
        assert abs(raster.width - w * raster.height / h) <= 1


def test_transparency_is_flattened_onto_white():
    content = make_image_bytes(size=(10, 10), color=(10, 20, 30, 0))
    im = _open(normalize_to_png(make_item(content=content)))
    assert im.mode == "RGB"
    assert im.getpixel((5, 5)) == (255, 255, 255)


def test_jpeg_input():
    content = make_image_bytes(size=(1600, 900), color=(20, 40, 60), mode="RGB", fmt="JPEG")
    raster = normalize_to_png(make_item(content=content, mime_type="image/jpeg", original_name="a.jpg"))
    assert (raster.width, raster.height) == (1000, 563)


def test_palette_gif_input():
    im = Image.new("P", (30, 60), 0)
    out = io.BytesIO()
    im.save(out, format="GIF")
    raster = normalize_to_png(make_item(content=out.getvalue(), mime_type="image/gif"))
    assert (raster.width, raster.height) == (30, 60)


def test_corrupt_upload_raises_decode_failure():
    with pytest.raises(DecodeFailure) as exc:
        normalize_to_png(make_item(content=b"definitely not an image", original_name="bad.png"))
    assert exc.value.status_code == 422
    assert "bad.png" in str(exc.value)


def test_empty_upload_raises_decode_failure():
    with pytest.raises(DecodeFailure):
        normalize_to_png(make_item(content=b""))


def test_heic_is_rebuilt_from_raw_buffer(monkeypatch):
    width, height, channels = 4, 3, 4
    stride = width * channels + 8  # padded rows
    rows = []
    for y in range(height):
        row = bytes([255, 0, 0, 255] * width) + b"\x00" * 8
        rows.append(row)
    fake = SimpleNamespace(size=(width, height), mode="RGBA", stride=stride, data=b"".join(rows))

    calls = []

    def fake_open_heif(content, convert_hdr_to_8bit=True):
        calls.append(content)
        return fake

    monkeypatch.setattr(normalize.pillow_heif, "open_heif", fake_open_heif)

    raster = normalize_to_png(make_item(content=b"heic-bytes", mime_type="image/heic", original_name="a.heic"))
    im = _open(raster)
    assert calls == [b"heic-bytes"]
    assert im.size == (width, height)
    assert np.array(im)[..., :3].tolist() == [[[255, 0, 0]] * width] * height


def test_heic_decoder_error_becomes_decode_failure(monkeypatch):
    def broken(content, convert_hdr_to_8bit=True):
        raise ValueError("Invalid input: No 'ftyp' box")

    monkeypatch.setattr(normalize.pillow_heif, "open_heif", broken)
    with pytest.raises(DecodeFailure):
        normalize_to_png(make_item(content=b"xx", mime_type="image/heic"))


@pytest.mark.skipif(not _cairo_available(), reason="cairosvg / libcairo not available")
def test_svg_input_is_rasterized():
    svg = (
        b'<svg xmlns="http://www.w3.org/2000/svg" width="200" height="100">'
        b'<rect width="200" height="100" fill="#123456"/></svg>'
    )
    raster = normalize_to_png(make_item(content=svg, mime_type="image/svg+xml", original_name="a.svg"))
    im = _open(raster)
    assert (raster.width, raster.height) == (200, 100)
    assert im.getpixel((100, 50)) == (0x12, 0x34, 0x56)


@pytest.mark.skipif(not _cairo_available(), reason="cairosvg / libcairo not available")
def test_invalid_svg_raises_decode_failure():
    with pytest.raises(DecodeFailure):
        normalize_to_png(make_item(content=b"<svg", mime_type="image/svg+xml"))


def test_flatten_error_becomes_decode_failure(monkeypatch):
    def broken(im):
        raise ValueError("conversion from I;16 not supported")

    monkeypatch.setattr(normalize, "_composite_over_white", broken)
    with pytest.raises(DecodeFailure) as exc:
        normalize_to_png(make_item(content=make_image_bytes(size=(10, 10)), original_name="odd.png"))
    assert "odd.png" in str(exc.value)
    assert isinstance(exc.value.__cause__, ValueError)
