"""
Spatial clustering of listings for the map view.

Listing coordinates are normalized into the unit square using the bounds of
the current set, then grouped greedily by a proximity radius.
"""

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from rentscout.models import Listing


DEFAULT_CLUSTER_RADIUS = 0.07


@dataclass(frozen=True)
class NormalizedPoint:
    """A listing position in normalized map space.

    Attributes:
        listing_id: Listing identifier
        x: Normalized longitude in [0, 1]
        y: Normalized latitude in [0, 1]
        price: Monthly price, carried for group statistics
    """
    listing_id: str
    x: float
    y: float
    price: float = 0.0


@dataclass(frozen=True)
class ClusterGroup:
    """A group of nearby listings.

    Attributes:
        listing_ids: Member ids in input order
        centroid: Mean normalized (x, y) of the members
        count: Number of members
        average_price: Mean monthly price of the members
    """
    listing_ids: Tuple[str, ...]
    centroid: Tuple[float, float]
    count: int
    average_price: float

    @property
    def is_aggregate(self) -> bool:
        """Two or more members render as one aggregate marker."""
        return self.count > 1


def _span(values: Sequence[float]) -> Tuple[float, float]:
    low, high = min(values), max(values)
    span = high - low
    # Zero range maps every point to the low edge.
    return low, span if span > 0 else 1.0


def normalize_coordinates(listings: Sequence[Listing]) -> List[NormalizedPoint]:
    """
    Map listing coordinates into [0, 1] x [0, 1].

    Args:
        listings: Listings with latitude/longitude

    Returns:
        One NormalizedPoint per listing, in input order
    """
    if not listings:
        return []

    min_lat, lat_range = _span([l.latitude for l in listings])
    min_lng, lng_range = _span([l.longitude for l in listings])

    return [
        NormalizedPoint(
            listing_id=l.id,
            x=(l.longitude - min_lng) / lng_range,
            y=(l.latitude - min_lat) / lat_range,
            price=l.price,
        )
        for l in listings
    ]


def _distance(a: NormalizedPoint, b: NormalizedPoint) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def cluster_points(
    points: Sequence[NormalizedPoint],
    radius: float = DEFAULT_CLUSTER_RADIUS
) -> List[ClusterGroup]:
    """
    Group normalized points in a single greedy pass.

    Each unassigned point seeds a group. Unassigned points closer than the
    radius to any member join the group, and the group keeps growing from the
    new members until nothing else is in reach. Any two points in different
    groups are therefore at least ``radius`` apart.

    Args:
        points: Points in normalized map space
        radius: Proximity radius in normalized units

    Returns:
        Groups in seed order; every input id appears in exactly one group
    """
    assigned = [False] * len(points)
    groups: List[ClusterGroup] = []

    for seed in range(len(points)):
        if assigned[seed]:
            continue

        assigned[seed] = True
        members = [seed]
        frontier = [seed]
        while frontier:
            current = points[frontier.pop()]
            for other in range(len(points)):
                if not assigned[other] and _distance(current, points[other]) < radius:
                    assigned[other] = True
                    members.append(other)
                    frontier.append(other)

        members.sort()
        member_points = [points[i] for i in members]
        count = len(member_points)
        groups.append(ClusterGroup(
            listing_ids=tuple(p.listing_id for p in member_points),
            centroid=(
                sum(p.x for p in member_points) / count,
                sum(p.y for p in member_points) / count,
            ),
            count=count,
            average_price=sum(p.price for p in member_points) / count,
        ))

    return groups


def cluster_listings(
    listings: Sequence[Listing],
    radius: float = DEFAULT_CLUSTER_RADIUS
) -> List[ClusterGroup]:
    """Normalize and cluster a listing set."""
    return cluster_points(normalize_coordinates(listings), radius)

