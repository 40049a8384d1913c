import logging
import subprocess
from typing import List, Optional

from app.config import Settings, get_settings
from app.errors import OptimizationFailure

logger = logging.getLogger(__name__)


def build_command(settings: Settings) -> List[str]:
    # "-" = stdin / stdout, so no temp files are needed here
    return [
        settings.svgo_bin,
        "--config", settings.svgo_config,
        "--input", "-",
        "--output", "-",
    ]


def optimize_svg(svg: str, settings: Optional[Settings] = None) -> str:
    """Minify SVG markup with svgo, leaving colour tokens as they are."""
    settings = settings or get_settings()
    cmd = build_command(settings)
    logger.debug("running %s", " ".join(cmd))

    try:
        result = subprocess.run(
            cmd,
            input=svg.encode("utf-8"),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=False,
            timeout=settings.svgo_timeout,
        )
    except FileNotFoundError as e:
        raise OptimizationFailure(f"svgo binary not found: {settings.svgo_bin}") from e
    except OSError as e:
        raise OptimizationFailure(f"could not run svgo: {e}") from e
    except subprocess.TimeoutExpired as e:
        raise OptimizationFailure(f"svgo timed out after {settings.svgo_timeout}s") from e

    if result.returncode != 0:
        msg = result.stderr.decode("utf-8", "ignore").strip()
        logger.warning("svgo failed (exit %s): %s", result.returncode, msg)
        raise OptimizationFailure(f"svgo failed (exit {result.returncode}): {msg}")

    out = result.stdout.decode("utf-8", "replace").strip()
    if "<svg" not in out.lower():
        raise OptimizationFailure("svgo returned non-SVG output")
    return out
