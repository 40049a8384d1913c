# backend/app/pipeline/primitive.py

"""
Adapter around the `primitive` CLI (github.com/fogleman/primitive).

The tool only works on files, so each call gets its own uuid-named PNG/SVG
pair under a shared temp root. Unique names are all the coordination
concurrent calls need.
"""

import logging
import os
import subprocess
import sys
import tempfile
import uuid
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from app.config import Settings, get_settings
from app.errors import FilesystemFailure, VectorizationFailure
from app.models import NormalizedRaster

logger = logging.getLogger(__name__)

# -m 0: let primitive pick any shape type per step
SHAPE_MODE_ANY = 0
# -a 255: fully opaque shapes
SHAPE_ALPHA = 255


def _is_lambda() -> bool:
    """Mirror of the is-lambda heuristic (Linux + Lambda env vars)."""
    if not sys.platform.startswith("linux"):
        return False
    env = os.environ
    if env.get("NOW_REGION") != "dev1" and env.get("AWS_LAMBDA_FUNCTION_NAME"):
        return True
    return bool(env.get("LAMBDA_TASK_ROOT") and env.get("AWS_EXECUTION_ENV"))


def resolve_tmp_root(settings: Settings) -> str:
    if settings.primitive_tmp_dir:
        return settings.primitive_tmp_dir
    if _is_lambda():
        # only /tmp is writable on Lambda
        return os.path.join(tempfile.gettempdir(), "images")
    return os.path.join(os.getcwd(), "dist", "tmp", "images")


@contextmanager
def _temp_paths(tmp_root: str) -> Iterator[Tuple[str, str]]:
    """Yield a fresh (png_path, svg_path) pair; both are removed on exit."""
    file_id = uuid.uuid4().hex
    png_path = os.path.join(tmp_root, f"{file_id}.png")
    svg_path = os.path.join(tmp_root, f"{file_id}.svg")
    try:
        yield png_path, svg_path
    finally:
        for p in (png_path, svg_path):
            try:
                os.remove(p)
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning("could not remove temp file %s: %s", p, e)


def build_command(png_path: str, svg_path: str, settings: Settings) -> List[str]:
    return [
        settings.primitive_bin,
        "-i", png_path,
        "-o", svg_path,
        "-n", str(settings.primitive_shapes),
        "-m", str(SHAPE_MODE_ANY),
        "-a", str(SHAPE_ALPHA),
    ]


def _run(cmd: List[str], timeout: int) -> Tuple[int, bytes, bytes]:
    result = subprocess.run(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        check=False,
        timeout=timeout,
    )
    return result.returncode, result.stdout, result.stderr


def vectorize_png_to_svg(raster: NormalizedRaster, settings: Optional[Settings] = None) -> str:
    """Run primitive over the raster and return the SVG markup it wrote."""
    settings = settings or get_settings()
    tmp_root = resolve_tmp_root(settings)

    try:
        os.makedirs(tmp_root, exist_ok=True)
    except OSError as e:
        raise FilesystemFailure(f"could not create temp dir {tmp_root}: {e}") from e

    with _temp_paths(tmp_root) as (png_path, svg_path):
        try:
            with open(png_path, "wb") as f:
                f.write(raster.data)
        except OSError as e:
            raise FilesystemFailure(f"could not write {png_path}: {e}") from e

        cmd = build_command(png_path, svg_path, settings)
        logger.debug("running %s", " ".join(cmd))
        try:
            code, _, err = _run(cmd, settings.primitive_timeout)
        except FileNotFoundError as e:
            raise VectorizationFailure(f"primitive binary not found: {settings.primitive_bin}") from e
        except OSError as e:
            # not executable, bad exec format, argv too long...
            raise VectorizationFailure(f"could not run primitive: {e}") from e
        except subprocess.TimeoutExpired as e:
            raise VectorizationFailure(
                f"primitive timed out after {settings.primitive_timeout}s"
            ) from e

        if code != 0 or not os.path.exists(svg_path):
            msg = err.decode("utf-8", "ignore") if isinstance(err, (bytes, bytearray)) else str(err)
            logger.warning("primitive failed (exit %s): %s", code, msg.strip())
            raise VectorizationFailure(f"primitive failed (exit {code}): {msg.strip()}")

        try:
            with open(svg_path, "r", encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            raise FilesystemFailure(f"could not read {svg_path}: {e}") from e
