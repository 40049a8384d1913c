# backend/app/config.py
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_SVGO_CONFIG = Path(__file__).resolve().parent / "pipeline" / "svgo.config.mjs"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    primitive_bin: str = "primitive"
    primitive_shapes: int = 200
    primitive_timeout: int = 300
    primitive_tmp_dir: Optional[str] = None

    svgo_bin: str = "svgo"
    svgo_config: str = str(DEFAULT_SVGO_CONFIG)
    svgo_timeout: int = 60

    # 0 = no ceiling, every item of a batch runs at once
    max_concurrency: int = 0

    cors_allow_origins: Tuple[str, ...] = ("*",)
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Build Settings from the process environment."""
    origins = os.getenv("CORS_ALLOW_ORIGINS", "*")
    return Settings(
        primitive_bin=os.getenv("PRIMITIVE_BIN", "primitive"),
        primitive_shapes=_int_env("PRIMITIVE_SHAPES", 200),
        primitive_timeout=_int_env("PRIMITIVE_TIMEOUT", 300),
        primitive_tmp_dir=os.getenv("PRIMITIVE_TMP_DIR") or None,
        svgo_bin=os.getenv("SVGO_BIN", "svgo"),
        svgo_config=os.getenv("SVGO_CONFIG", str(DEFAULT_SVGO_CONFIG)),
        svgo_timeout=_int_env("SVGO_TIMEOUT", 60),
        max_concurrency=max(0, _int_env("PRIMITIVE_MAX_CONCURRENCY", 0)),
        cors_allow_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
