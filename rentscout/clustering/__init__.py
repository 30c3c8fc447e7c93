"""Map layout: coordinate normalization and proximity clustering."""

from .spatial_clusterer import (
    DEFAULT_CLUSTER_RADIUS,
    ClusterGroup,
    NormalizedPoint,
    cluster_listings,
    cluster_points,
    normalize_coordinates,
)

__all__ = [
    'DEFAULT_CLUSTER_RADIUS',
    'ClusterGroup',
    'NormalizedPoint',
    'cluster_listings',
    'cluster_points',
    'normalize_coordinates',
]
