"""Provider directory listing: source selection, distance ranking and filters."""

from .ranking import (
    ALL_LOCATIONS_LABEL,
    ONLINE_LABEL,
    SOURCE_BACKEND,
    SOURCE_FALLBACK,
    SOURCE_LOCAL,
    DirectoryQuery,
    DirectoryRankingService,
    RankedProviderView,
    RankingResult,
    distance_label,
    filter_providers_by_category,
    filter_providers_by_search,
    rank_records,
    sort_providers_by_distance,
)

__all__ = [
    "ALL_LOCATIONS_LABEL",
    "ONLINE_LABEL",
    "SOURCE_BACKEND",
    "SOURCE_FALLBACK",
    "SOURCE_LOCAL",
    "DirectoryQuery",
    "DirectoryRankingService",
    "RankedProviderView",
    "RankingResult",
    "distance_label",
    "filter_providers_by_category",
    "filter_providers_by_search",
    "rank_records",
    "sort_providers_by_distance",
]
