"""
Coarse region bucketing for Turkey.

Rectangular boxes, first match wins. The order of the checks matters on
the overlapping edges and must not be rearranged.
"""

from enum import Enum


class Region(str, Enum):
    MARMARA = "MARMARA"
    EGE = "EGE"
    AKDENIZ = "AKDENIZ"
    IC_ANADOLU = "IC_ANADOLU"
    DOGU_ANADOLU = "DOGU_ANADOLU"
    GUNEYDOGU_ANADOLU = "GUNEYDOGU_ANADOLU"
    KARADENIZ = "KARADENIZ"
    DEFAULT = "DEFAULT"


# Soil saturation by region (0-1)
SOIL_SATURATION_DEFAULTS = {
    Region.MARMARA: 0.4,
    Region.EGE: 0.3,
    Region.AKDENIZ: 0.2,
    Region.IC_ANADOLU: 0.3,
    Region.DOGU_ANADOLU: 0.4,
    Region.GUNEYDOGU_ANADOLU: 0.2,
    Region.KARADENIZ: 0.6,
    Region.DEFAULT: 0.4,
}

# Slope factor by region (0-1, 1 = very steep)
SLOPE_FACTOR_DEFAULTS = {
    Region.MARMARA: 0.3,
    Region.EGE: 0.4,
    Region.AKDENIZ: 0.5,
    Region.IC_ANADOLU: 0.2,
    Region.DOGU_ANADOLU: 0.6,
    Region.GUNEYDOGU_ANADOLU: 0.3,
    Region.KARADENIZ: 0.7,
    Region.DEFAULT: 0.4,
}


def estimate_region(lat: float, lon: float) -> Region:
    if lat > 40 and lon < 30:
        return Region.MARMARA
    if lat < 39 and lon < 30:
        return Region.EGE
    if lat < 38 and lon > 30:
        return Region.AKDENIZ
    if 38 < lat < 41 and 30 < lon < 36:
        return Region.IC_ANADOLU
    if lat > 38 and lon > 40:
        return Region.DOGU_ANADOLU
    if lat < 38 and lon > 38:
        return Region.GUNEYDOGU_ANADOLU
    if lat > 40 and 30 < lon < 40:
        return Region.KARADENIZ
    return Region.DEFAULT


def regional_value(table: dict, region: Region):
    """Look *region* up in a per-region table, falling back to its DEFAULT row."""
    return table.get(region, table[Region.DEFAULT])


def default_soil_saturation(region: Region) -> float:
    return regional_value(SOIL_SATURATION_DEFAULTS, region)


def default_slope_factor(region: Region) -> float:
    return regional_value(SLOPE_FACTOR_DEFAULTS, region)
