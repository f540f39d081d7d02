"""
Canopy rainfall interception.

Interception is taken as a fixed fraction of rainfall that saturates with
leaf area, a proxy for canopy storage capacity. It is likely to be
overestimated when a canopy is wetted on many consecutive steps, since
storage carry-over is ignored.
"""


def calc_interception(rain: float, lai: float, intercep_frac: float,
                      max_intercep_lai: float) -> float:
    """
    Rainfall intercepted by the canopy (same units as rain).

        I = rain * intercep_frac * min(1, LAI / LAI_max)

    Args:
        rain: rainfall over the step (mm)
        lai: leaf area index (m2 m-2)
        intercep_frac: maximum fraction of rainfall intercepted
        max_intercep_lai: LAI at which the intercepted fraction saturates

    Returns:
        Interception (mm), zero for a leafless canopy
    """
    if lai <= 0.0:
        return 0.0

    return rain * intercep_frac * min(1.0, lai / max_intercep_lai)
