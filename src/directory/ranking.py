"""
Distance-ranked, filterable provider listings.

The ranking workflow:
1. Pick the source: the local (reconciled or demo) set for demo/offline
   contexts, otherwise the backend's published providers.
2. Without the all-locations toggle, compute the distance from the resolved
   location and sort nearest first.
3. With the toggle, keep source order and label every entry "All locations".
4. Apply the search-term and category filters last.

A backend failure never blocks the listing: the local set is ranked instead
and the result is marked degraded with a warning.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

import pandas as pd

from src.data.backend import BackendQueryError
from src.data.records import ProviderRecord, records_to_frame
from src.location.resolver import ResolvedLocation
from src.utils.geomath import calculate_distances, round_distance

logger = logging.getLogger(__name__)

SOURCE_LOCAL = "local"
SOURCE_BACKEND = "backend"
SOURCE_FALLBACK = "fallback"

ALL_LOCATIONS_LABEL = "All locations"
ONLINE_LABEL = "Online"


@dataclass(frozen=True)
class RankedProviderView:
    record: ProviderRecord
    distance_km: Optional[float]
    label: str

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def name(self) -> str:
        return self.record.business_name


@dataclass(frozen=True)
class DirectoryQuery:
    location: ResolvedLocation
    category: Optional[str] = None
    search_term: str = ""
    show_all: bool = False
    saved_city: Optional[str] = None


@dataclass
class RankingResult:
    providers: List[RankedProviderView]
    source: str
    degraded: bool = False
    warning: Optional[str] = None


def distance_label(distance_km: Optional[float], online_only: bool, show_all: bool) -> str:
    """Display text for a provider's distance."""
    if show_all or distance_km is None:
        return ALL_LOCATIONS_LABEL
    if distance_km == 0 and online_only:
        return ONLINE_LABEL
    return f"{distance_km} km away"


def sort_providers_by_distance(df: pd.DataFrame, location: ResolvedLocation) -> pd.DataFrame:
    """Attach ``distance_km`` (rounded to 0.1) and sort nearest first.

    The sort uses unrounded distances and is stable, so equal distances keep
    their source order.
    """
    if df.empty:
        return df.assign(distance_km=pd.Series(dtype=float))
    working = df.copy()
    working["distance_km"] = calculate_distances(location.latitude, location.longitude, working)
    working = working.sort_values(by="distance_km", kind="stable").reset_index(drop=True)
    working["distance_km"] = working["distance_km"].apply(round_distance)
    return working


def filter_providers_by_search(df: pd.DataFrame, search_term: str) -> pd.DataFrame:
    """Case-insensitive substring match against name and description."""
    if df is None or df.empty or not search_term:
        return df
    term = search_term.lower()
    name_match = df["name"].fillna("").str.lower().str.contains(term, regex=False)
    description_match = df["description"].fillna("").str.lower().str.contains(term, regex=False)
    return df[name_match | description_match].copy()


def filter_providers_by_category(df: pd.DataFrame, category: Optional[str]) -> pd.DataFrame:
    """Keep providers tagged with ``category``; no category keeps everyone."""
    if df is None or df.empty or not category:
        return df
    mask = df["categories"].apply(lambda cats: category in (cats or ()))
    return df[mask].copy()


def rank_records(records: Iterable[ProviderRecord], query: DirectoryQuery) -> List[RankedProviderView]:
    """Run steps 2-4 of the ranking workflow over an already chosen source."""
    df = records_to_frame(records)

    if query.show_all:
        df = df.assign(distance_km=None)
    else:
        df = sort_providers_by_distance(df, query.location)

    df = filter_providers_by_search(df, query.search_term)
    df = filter_providers_by_category(df, query.category)

    views = []
    for row in df.itertuples(index=False):
        distance = None if query.show_all else float(row.distance_km)
        views.append(
            RankedProviderView(
                record=row.record,
                distance_km=distance,
                label=distance_label(distance, bool(row.online_only), query.show_all),
            )
        )
    return views


class DirectoryRankingService:
    """Produces the provider listing shown on the discovery page."""

    def __init__(
        self,
        local_source: Callable[[], Iterable[ProviderRecord]],
        backend=None,
        demo_mode: bool = False,
    ):
        self.local_source = local_source
        self.backend = backend
        self.demo_mode = demo_mode

    def _local_records(self) -> List[ProviderRecord]:
        return [r for r in self.local_source() if r.is_eligible]

    async def rank(self, query: DirectoryQuery) -> RankingResult:
        if self.demo_mode or self.backend is None:
            records = self._local_records()
            logger.info(f"Ranking {len(records)} local providers")
            return RankingResult(rank_records(records, query), SOURCE_LOCAL)

        city = None if query.show_all else (query.saved_city or None)
        try:
            records = await self.backend.fetch_published_providers(category=query.category, city=city)
        except BackendQueryError as e:
            return self._fallback(query, str(e))
        except Exception as e:
            logger.exception("Unexpected error loading providers")
            return self._fallback(query, f"{type(e).__name__}: {e}")

        records = [r for r in records if r.is_eligible]
        return RankingResult(rank_records(records, query), SOURCE_BACKEND)

    def _fallback(self, query: DirectoryQuery, reason: str) -> RankingResult:
        logger.warning(f"Falling back to local providers: {reason}")
        try:
            records = self._local_records()
        except Exception:
            logger.exception("Local provider fallback failed")
            records = []
        return RankingResult(
            rank_records(records, query),
            SOURCE_FALLBACK,
            degraded=True,
            warning=f"Failed to load providers: {reason}",
        )
