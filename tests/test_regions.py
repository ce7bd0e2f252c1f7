"""Region bucketing tests. Run from repo root:  pytest tests/test_regions.py"""

from risk.regions import Region, default_slope_factor, default_soil_saturation, estimate_region

CITY_REGIONS = [
    # (lat, lon, name, expected)
    (41.015, 28.979, "İstanbul", Region.MARMARA),
    (38.423, 27.143, "İzmir", Region.EGE),
    (36.897, 30.713, "Antalya", Region.AKDENIZ),
    (39.956, 32.894, "Ankara", Region.IC_ANADOLU),
    (39.904, 41.267, "Erzurum", Region.DOGU_ANADOLU),
    (41.005, 39.723, "Trabzon", Region.KARADENIZ),
    (41.292, 36.331, "Samsun", Region.KARADENIZ),
    # Rize is north of 38 and east of 40, so the eastern box claims it first
    (41.025, 40.517, "Rize", Region.DOGU_ANADOLU),
    # Any point south of 38 and east of 30 lands in AKDENIZ before the
    # south-eastern box is checked
    (37.914, 40.230, "Diyarbakır", Region.AKDENIZ),
]


def test_city_regions():
    for lat, lon, name, expected in CITY_REGIONS:
        assert estimate_region(lat, lon) == expected, name


def test_boundaries_follow_strict_inequalities():
    assert estimate_region(40, 30) == Region.DEFAULT
    assert estimate_region(40.0001, 29.9999) == Region.MARMARA
    assert estimate_region(39, 29) == Region.DEFAULT
    assert estimate_region(41, 33) == Region.KARADENIZ
    assert estimate_region(38, 33) == Region.DEFAULT


def test_boxes_are_open_ended():
    assert estimate_region(52.52, 13.40) == Region.MARMARA
    assert estimate_region(0, 0) == Region.EGE
    assert estimate_region(45, 45) == Region.DOGU_ANADOLU


def test_regional_defaults():
    assert default_soil_saturation(Region.KARADENIZ) == 0.6
    assert default_slope_factor(Region.KARADENIZ) == 0.7
    assert default_soil_saturation(Region.DEFAULT) == 0.4
    assert default_slope_factor(Region.IC_ANADOLU) == 0.2
