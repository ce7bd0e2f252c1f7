"""
geocoder.py — tiered geocoding for Turkish cities and districts.

Resolution chain (never fails, always returns coordinates):
  1. Local cache lookup       (seeded with popular cities, then whatever we learn)
  2. Nominatim / OSM          (free, no key, 1 req/sec)
  3. OpenCage                 (free tier, needs OPENCAGE_API_KEY)
  4. Closest-match fallback   (fuzzy match against cache keys, else Ankara)
"""

import difflib
import json
import logging
import os
import time

import requests

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

CACHE_PATH = os.getenv(
    "FLOODWATCH_GEOCODE_CACHE",
    os.path.join(os.path.dirname(__file__), "locations_cache.json"),
)
NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
OPENCAGE_URL = "https://api.opencagedata.com/geocode/v1/json"
API_TIMEOUT = 5  # seconds
NOMINATIM_USER_AGENT = "floodwatch-tr/1.0"

# Ankara as absolute last-resort default
DEFAULT_FALLBACK = {"lat": 39.9334, "lon": 32.8597, "name": "Ankara"}

POPULAR_LOCATIONS = {
    "ankara":    {"lat": 39.956, "lon": 32.894, "name": "Ankara"},
    "istanbul":  {"lat": 41.015, "lon": 28.979, "name": "İstanbul"},
    "izmir":     {"lat": 38.423, "lon": 27.143, "name": "İzmir"},
    "antalya":   {"lat": 36.897, "lon": 30.713, "name": "Antalya"},
    "bursa":     {"lat": 40.183, "lon": 29.067, "name": "Bursa"},
    "rize":      {"lat": 41.025, "lon": 40.517, "name": "Rize"},
    "artvin":    {"lat": 41.182, "lon": 41.819, "name": "Artvin"},
    "trabzon":   {"lat": 41.005, "lon": 39.723, "name": "Trabzon"},
    "giresun":   {"lat": 40.912, "lon": 38.389, "name": "Giresun"},
    "samsun":    {"lat": 41.292, "lon": 36.331, "name": "Samsun"},
    "hatay":     {"lat": 36.202, "lon": 36.160, "name": "Hatay"},
    "mersin":    {"lat": 36.812, "lon": 34.641, "name": "Mersin"},
    "edirne":    {"lat": 41.677, "lon": 26.556, "name": "Edirne"},
    "duzce":     {"lat": 40.843, "lon": 31.162, "name": "Düzce"},
    "kastamonu": {"lat": 41.376, "lon": 33.775, "name": "Kastamonu"},
}

_ASCII_FOLD = str.maketrans("çğıöşüÇĞİÖŞÜâîû", "cgiosucgiosuaiu")

# Suffixes people add to a place name that the cache keys don't carry
_PLACE_SUFFIXES = (" ili", " province", " merkez")


def cache_key(location: str) -> str:
    """Lowercase ASCII key: 'İzmir ' → 'izmir', 'Düzce' → 'duzce'."""
    text = " ".join(location.translate(_ASCII_FOLD).lower().split())
    for suffix in _PLACE_SUFFIXES:
        if text.endswith(suffix):
            text = text[: -len(suffix)]
    return text


# ---------------------------------------------------------------------------
# Cache helpers
# ---------------------------------------------------------------------------

def _read_disk_cache() -> dict:
    """Learned locations on disk; empty when the file is missing or unreadable."""
    if not os.path.exists(CACHE_PATH):
        return {}
    try:
        with open(CACHE_PATH, "r", encoding="utf-8") as f:
            cache = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"[GEOCODE] Ignoring unreadable cache {CACHE_PATH}: {e}")
        return {}
    if not isinstance(cache, dict):
        logger.warning(f"[GEOCODE] Ignoring cache {CACHE_PATH}: not a JSON object")
        return {}
    return cache


def _load_cache() -> dict:
    """Popular cities overlaid with the on-disk cache."""
    cache = dict(POPULAR_LOCATIONS)
    cache.update(_read_disk_cache())
    return cache


def _save_cache(cache: dict) -> None:
    with open(CACHE_PATH, "w", encoding="utf-8") as f:
        json.dump(cache, f, indent=4, ensure_ascii=False)


def lookup_cache(location: str) -> dict | None:
    """Return cached {lat, lon, name} for *location* or None."""
    return _load_cache().get(cache_key(location))


def save_to_cache(location: str, lat: float, lon: float) -> None:
    """Write a learned location → coords pair to the on-disk cache."""
    cache = _read_disk_cache()
    cache[cache_key(location)] = {"lat": lat, "lon": lon, "name": location.strip()}
    try:
        _save_cache(cache)
    except OSError as e:
        logger.warning(f"[GEOCODE] Could not write cache: {e}")


# ---------------------------------------------------------------------------
# Tier 1: Nominatim (OpenStreetMap)
# ---------------------------------------------------------------------------

def nominatim_geocode(location: str) -> dict | None:
    """
    Query Nominatim for *location* scoped to Turkey.
    Returns {"lat": float, "lon": float} or None.
    """
    params = {
        "q": f"{location}, Türkiye",
        "format": "json",
        "limit": 1,
        "countrycodes": "tr",
    }
    headers = {"User-Agent": NOMINATIM_USER_AGENT}
    try:
        resp = requests.get(NOMINATIM_URL, params=params, headers=headers, timeout=API_TIMEOUT)
        resp.raise_for_status()
        results = resp.json()
        if results:
            return {"lat": float(results[0]["lat"]), "lon": float(results[0]["lon"])}
    except (requests.RequestException, KeyError, IndexError, ValueError) as e:
        logger.warning(f"[GEOCODE] Nominatim failed for '{location}': {e}")
    return None


# ---------------------------------------------------------------------------
# Tier 2: OpenCage
# ---------------------------------------------------------------------------

def opencage_geocode(location: str) -> dict | None:
    """
    Query OpenCage for *location* scoped to Turkey.
    Requires OPENCAGE_API_KEY env var.  Returns {"lat": …, "lon": …} or None.
    """
    api_key = os.getenv("OPENCAGE_API_KEY")
    if not api_key:
        return None

    params = {
        "q": f"{location}, Türkiye",
        "key": api_key,
        "limit": 1,
        "countrycode": "tr",
        "no_annotations": 1,
    }
    try:
        resp = requests.get(OPENCAGE_URL, params=params, timeout=API_TIMEOUT)
        resp.raise_for_status()
        data = resp.json()
        if data.get("results"):
            geo = data["results"][0]["geometry"]
            return {"lat": float(geo["lat"]), "lon": float(geo["lng"])}
    except (requests.RequestException, KeyError, IndexError, ValueError) as e:
        logger.warning(f"[GEOCODE] OpenCage failed for '{location}': {e}")
    return None


# ---------------------------------------------------------------------------
# Tier 3: Closest-match fallback
# ---------------------------------------------------------------------------

def find_closest_match(location: str) -> dict:
    """
    Fuzzy-match *location* against all cache keys using difflib.
    Returns {"lat", "lon", "name"} of the best match, or Ankara as default.
    """
    cache = _load_cache()
    matches = difflib.get_close_matches(cache_key(location), cache.keys(), n=1, cutoff=0.5)
    if matches:
        coords = cache[matches[0]]
        return {"lat": coords["lat"], "lon": coords["lon"], "name": coords.get("name", matches[0])}
    return DEFAULT_FALLBACK


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def get_coordinates(location: str) -> dict:
    """
    Resolve *location* to coordinates.  **Always returns a result — never None.**

    Returns dict:
        lat         float
        lon         float
        source      "cache" | "nominatim" | "opencage" | "fallback"
        approximate bool   (True when using fallback)
        matched_to  str    (only present when approximate=True)
    """
    cached = lookup_cache(location)
    if cached:
        return {"lat": cached["lat"], "lon": cached["lon"], "source": "cache", "approximate": False}

    coords = nominatim_geocode(location)
    if coords:
        save_to_cache(location, coords["lat"], coords["lon"])
        return {**coords, "source": "nominatim", "approximate": False}

    # Rate-limit politeness between geocoder calls
    time.sleep(0.2)

    coords = opencage_geocode(location)
    if coords:
        save_to_cache(location, coords["lat"], coords["lon"])
        return {**coords, "source": "opencage", "approximate": False}

    closest = find_closest_match(location)
    return {
        "lat": closest["lat"],
        "lon": closest["lon"],
        "source": "fallback",
        "approximate": True,
        "matched_to": closest["name"],
    }


def resolve_location(raw_text: str) -> dict:
    """
    Turn free text into {"name", "lat", "lon", "source"}.

    The display name is the cached city name when known, the matched city
    for fuzzy fallbacks, otherwise the user's text.
    """
    coords = get_coordinates(raw_text)
    if coords.get("approximate"):
        name = coords["matched_to"]
    else:
        cached = lookup_cache(raw_text)
        name = cached.get("name", raw_text.strip()) if cached else raw_text.strip()

    logger.info(
        f"[GEOCODE] '{raw_text}' → {name} ({coords['lat']:.4f}, {coords['lon']:.4f}) "
        f"[source: {coords['source']}]"
    )
    return {"name": name, "lat": coords["lat"], "lon": coords["lon"], "source": coords["source"]}
