"""Unit conversions between SI and aviation units."""

KT_TO_MPS = 0.514444
MPS_TO_KT = 1.0 / KT_TO_MPS
FT_TO_M = 0.3048
M_TO_FT = 3.28084
FPM_TO_MPS = 0.00508
MPS_TO_FPM = 1.0 / FPM_TO_MPS


def normalize_heading(heading_deg: float) -> float:
    """Wrap a heading into [0, 360).

    Examples:
        >>> normalize_heading(-90.0)
        270.0
        >>> normalize_heading(720.0)
        0.0
    """
    heading = heading_deg % 360.0
    # -1e-15 % 360 rounds up to 360.0
    return 0.0 if heading >= 360.0 else heading


def heading_error(target_deg: float, current_deg: float) -> float:
    """Signed shortest turn from current to target, in [-180, 180]."""
    diff = (target_deg - current_deg) % 360.0
    if diff > 180.0:
        diff -= 360.0
    return diff


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
