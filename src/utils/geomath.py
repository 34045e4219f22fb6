"""Great-circle distance helpers used by the directory ranking."""
import math
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

EARTH_RADIUS_KM = 6371.0

Coordinate = Tuple[float, float]


def distance_km(a: Optional[Coordinate], b: Optional[Coordinate]) -> float:
    """Haversine distance in kilometres between two (lat, lng) pairs.

    A missing coordinate on either side yields 0.0 rather than an error, so a
    provider without coordinates ranks as if it were co-located with the user.
    """
    if not a or not b:
        return 0.0
    lat1, lon1 = a
    lat2, lon2 = b
    if lat1 is None or lon1 is None or lat2 is None or lon2 is None:
        return 0.0

    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    h = math.sin(dlat / 2) ** 2 + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(dlon / 2) ** 2
    h = min(1.0, h)
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_KM * c


def calculate_distances(user_lat: float, user_lon: float, provider_df: pd.DataFrame) -> List[float]:
    """Vectorised haversine from one origin to every row of ``provider_df``.

    Expects ``latitude`` and ``longitude`` columns. Rows with a missing
    coordinate get 0.0, matching :func:`distance_km`.
    """
    if provider_df.empty:
        return []

    lat_arr = np.radians(pd.to_numeric(provider_df["latitude"], errors="coerce").to_numpy(dtype=float))
    lon_arr = np.radians(pd.to_numeric(provider_df["longitude"], errors="coerce").to_numpy(dtype=float))
    user_lat_rad = np.radians(user_lat)
    user_lon_rad = np.radians(user_lon)

    valid = ~np.isnan(lat_arr) & ~np.isnan(lon_arr)
    dlat = lat_arr[valid] - user_lat_rad
    dlon = lon_arr[valid] - user_lon_rad
    a = np.sin(dlat / 2) ** 2 + np.cos(user_lat_rad) * np.cos(lat_arr[valid]) * np.sin(dlon / 2) ** 2
    a = np.clip(a, 0.0, 1.0)
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    distances = np.zeros(len(provider_df))
    distances[valid] = EARTH_RADIUS_KM * c

    return [float(d) for d in distances]


def round_distance(km: float) -> float:
    """Round a distance to one decimal place for display."""
    return round(km * 10) / 10
