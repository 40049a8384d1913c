import io
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add backend dir to sys.path so `app` imports without an install
backend_dir = Path(__file__).resolve().parents[1]
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from app.config import Settings  # noqa: E402
from app.models import UploadedItem  # noqa: E402


def make_image_bytes(size=(40, 20), color=(200, 30, 30, 255), mode="RGBA", fmt="PNG") -> bytes:
    im = Image.new(mode, size, color)
    out = io.BytesIO()
    im.save(out, format=fmt)
    return out.getvalue()


def make_item(content=b"", mime_type="image/png", field_name="file", original_name="a.png") -> UploadedItem:
    return UploadedItem(
        content=content,
        mime_type=mime_type,
        field_name=field_name,
        original_name=original_name,
    )


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(primitive_tmp_dir=str(tmp_path / "images"))
