"""Small numeric helpers shared by progress views and flows."""
import math


def percent(part: float, whole: float) -> int:
    """
    Return ``part / whole`` as a whole percentage, rounding halves up.

    Examples:
        >>> percent(1, 3)
        33
        >>> percent(1, 8)
        13
        >>> percent(0, 0)
        0
    """
    if whole <= 0:
        return 0
    return math.floor(part / whole * 100 + 0.5)
