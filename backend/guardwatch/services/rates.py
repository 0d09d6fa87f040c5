import math


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values, like the dashboard does."""
    return math.floor(value + 0.5)


def percentage(part: int, whole: int) -> int:
    """Whole-number percentage; 0 when there is nothing to divide by."""
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100)
