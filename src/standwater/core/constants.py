"""
Physical constants, unit conversions and fixed model constants.
"""
from typing import Final

# Physical constants
GRAVITY: Final[float] = 9.81  # m/s²
RGAS: Final[float] = 8.314  # J mol-1 K-1
SIGMA: Final[float] = 5.6703e-8  # Stefan-Boltzmann, W m-2 K-4
CP: Final[float] = 1010.0  # heat capacity of air, J kg-1 K-1
CP_MJ: Final[float] = 1.013e-3  # heat capacity of air, MJ kg-1 K-1 (Allen et al. 1998)
MASS_AIR: Final[float] = 29.0e-3  # kg mol-1
H2OLV0: Final[float] = 2.501e6  # latent heat of vaporisation at 0 degC, J kg-1
H2OMW: Final[float] = 18.0e-3  # kg mol-1
EPSILON_WATER_AIR: Final[float] = 0.6222  # ratio of molecular weights, water/dry air
DHEAT: Final[float] = 21.5e-6  # molecular diffusivity of heat, m2 s-1
LEAF_EMISSIVITY: Final[float] = 0.95
VON_KARMAN: Final[float] = 0.41

# Leaf conductance ratios (Leuning et al. 1995)
GBHGBC: Final[float] = 1.32  # heat / CO2, boundary layer
GBVGBH: Final[float] = 1.075  # water vapour / heat, boundary layer
GSVGSC: Final[float] = 1.57  # water vapour / CO2, stomata

# Unit conversions
DEG_TO_KELVIN: Final[float] = 273.15
KPA_2_PA: Final[float] = 1000.0
KPA_2_MPA: Final[float] = 0.001
G_TO_KG: Final[float] = 0.001
MOLE_WATER_2_G_WATER: Final[float] = 18.02
GRAMS_C_TO_MOL_C: Final[float] = 1.0 / 12.0
MOL_TO_UMOL: Final[float] = 1e6
J_TO_MJ: Final[float] = 1e-6
PAR_2_SW: Final[float] = 1.0 / 2.3  # umol m-2 s-1 PAR -> W m-2 shortwave
SECONDS_PER_HOUR: Final[float] = 3600.0

# Soil matric potential reference heads (m of water)
PRESSURE_HEAD_WILTING_POINT: Final[float] = -152.9  # -1.5 MPa
PRESSURE_HEAD_FIELD_CAPACITY: Final[float] = -3.364  # -0.033 MPa
METER_OF_HEAD_TO_MPA: Final[float] = GRAVITY * KPA_2_MPA
WILTING_POINT_PSI_MPA: Final[float] = -1.5

# Empirical fits
NET_LW_INTERCEPT: Final[float] = 107.0  # W m-2 (Monteith & Unsworth 1990, eqn 4.17)
NET_LW_SLOPE: Final[float] = 0.3  # W m-2 degC-1
RITCHIE_LAI_EXTINCTION: Final[float] = 0.398  # Ritchie (1972)
ZHOU_PSI_SENSITIVITY: Final[float] = 0.66  # MPa-1 (Zhou et al. 2013)

# Numerical stability
EPSILON: Final[float] = 1e-10
MIN_VPD_KPA: Final[float] = 0.05
