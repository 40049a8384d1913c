import math


def round_half_up(x: float) -> int:
    """
    Round .5 away from zero for positive numbers.

    Python's round() is banker's rounding (round(0.5) == 0), which would flip
    mid-grey to black and shave a pixel off some resize targets.
    """
    return int(math.floor(x + 0.5))
