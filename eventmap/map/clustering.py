"""Greedy distance-based marker clustering.

One pass in input order: each unassigned marker seeds a cluster and pulls in
every later unassigned marker within ``cluster_radius_km`` of the seed. The
result depends on order; that is intended and kept stable.
"""

from __future__ import annotations

from typing import List, Sequence

from .constants import DEFAULT_CLUSTER_RADIUS_KM
from .geo import distance
from .models import MapMarker, MarkerCluster


def get_clustered_markers(
    markers: Sequence[MapMarker],
    cluster_radius_km: float = DEFAULT_CLUSTER_RADIUS_KM,
    enabled: bool = True,
) -> List[MarkerCluster]:
    if cluster_radius_km < 0:
        raise ValueError(f"cluster_radius_km must be >= 0, got {cluster_radius_km}")

    if not enabled:
        return [MarkerCluster((marker,)) for marker in markers]

    clusters: List[MarkerCluster] = []
    assigned = [False] * len(markers)
    for i, seed in enumerate(markers):
        if assigned[i]:
            continue
        assigned[i] = True
        members = [seed]
        for j in range(i + 1, len(markers)):
            if assigned[j]:
                continue
            if distance(seed, markers[j]) <= cluster_radius_km:
                assigned[j] = True
                members.append(markers[j])
        clusters.append(MarkerCluster(tuple(members)))
    return clusters


class ClusterEngine:
    """Holds clustering settings; ``cluster`` applies them to a marker list."""

    def __init__(self, cluster_radius_km: float = DEFAULT_CLUSTER_RADIUS_KM, enabled: bool = True) -> None:
        if cluster_radius_km < 0:
            raise ValueError(f"cluster_radius_km must be >= 0, got {cluster_radius_km}")
        self.cluster_radius_km = float(cluster_radius_km)
        self.enabled = enabled

    def cluster(self, markers: Sequence[MapMarker], cluster_radius_km: float | None = None) -> List[MarkerCluster]:
        radius = self.cluster_radius_km if cluster_radius_km is None else cluster_radius_km
        return get_clustered_markers(markers, radius, self.enabled)


__all__ = ["ClusterEngine", "get_clustered_markers"]
