# backend/app/pipeline/monochrome.py

"""
Two-tone reduction for primitive SVGs.

Every distinct hex colour in the markup is mapped to #000 or #FFF:

- the darkest and lightest colours ("extremes") are split between black
  and white;
- every colour in between goes to whichever side of the brightness midpoint
  it sits on.

The extremes are split by comparing their hex strings, not their brightness.
That is the long-standing behaviour of this endpoint and is kept as-is.
"""

import re
from typing import Dict, List, Tuple

from app.models import ColorSample
from app.pipeline.utils import round_half_up

WHITE = "#FFF"
BLACK = "#000"

HEX_COLOR_RE = re.compile(r"#([a-f0-9]{3}){1,2}\b", re.IGNORECASE)


def _hex_to_rgb(color: str) -> Tuple[int, int, int]:
    h = color.lstrip("#")
    if len(h) == 3:
        h = "".join(c * 2 for c in h)
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def brightness(color: str) -> float:
    """Perceived brightness, 0-255 (W3C: 0.299 R + 0.587 G + 0.114 B)."""
    r, g, b = _hex_to_rgb(color)
    return (r * 299 + g * 587 + b * 114) / 1000


def _is_light(sample: ColorSample) -> bool:
    return bool(round_half_up(sample.brightness / 256))


def extract_colors(svg: str) -> List[str]:
    """Distinct hex colour tokens in order of first appearance (case kept)."""
    seen: Dict[str, None] = {}
    for m in HEX_COLOR_RE.finditer(svg):
        seen.setdefault(m.group(0), None)
    return list(seen)


# ---------- sample-count cases ----------
# Each returns (extremes, interior rules). Extremes is always a pair; interior
# rules are (colour, replacement) in ascending brightness.

Rule = Tuple[str, str]


def _single(samples: List[ColorSample]) -> Tuple[List[ColorSample], List[Rule]]:
    only = samples[0]
    if round_half_up(only.brightness / 256) < 0.5:
        return [only, ColorSample(WHITE, 255)], []
    return [ColorSample(BLACK, 0), only], []


def _pair(samples: List[ColorSample]) -> Tuple[List[ColorSample], List[Rule]]:
    return list(samples), []


def _many(samples: List[ColorSample]) -> Tuple[List[ColorSample], List[Rule]]:
    ordered = sorted(samples, key=lambda s: s.brightness)
    darkest, interior, lightest = ordered[0], ordered[1:-1], ordered[-1]
    rules = [(s.color, WHITE if _is_light(s) else BLACK) for s in interior]
    return [darkest, lightest], rules


def _split_extremes(a: ColorSample, b: ColorSample) -> List[Rule]:
    # Plain string comparison (see module docstring)
    return [
        (a.color, WHITE if a.color > b.color else BLACK),
        (b.color, WHITE if b.color > a.color else BLACK),
    ]


def _replace_token(svg: str, color: str, replacement: str) -> str:
    # Whole tokens only: "#abc" never touches "#abcdef"
    return re.sub(re.escape(color) + r"\b", replacement, svg)


def reduce_to_monochrome(svg: str) -> str:
    """
    Collapse every hex colour in the SVG to #000 or #FFF.

    Rules run one after another over the whole text: interior colours first,
    then the two extremes. A #FFF written by an earlier rule is therefore
    still subject to a later rule for the "#FFF" token, so a dark colour whose
    string sorts above "#FFF" (e.g. "#a00") ends up black.
    """
    samples = [ColorSample(c, brightness(c)) for c in extract_colors(svg)]

    if not samples:
        return svg
    if len(samples) == 1:
        extremes, rules = _single(samples)
    elif len(samples) == 2:
        extremes, rules = _pair(samples)
    else:
        extremes, rules = _many(samples)

    for color, replacement in rules + _split_extremes(*extremes):
        svg = _replace_token(svg, color, replacement)
    return svg
