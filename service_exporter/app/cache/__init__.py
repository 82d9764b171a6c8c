"""
Local mirror of Kubernetes services kept in sync through list + watch.
"""

from .models import ChangeKind, LoadBalancerIngress, ServiceEntity, ServiceListing, WatchEvent
from .store import ServiceMirror
from .synchronizer import CacheSynchronizer, ServiceSource

__all__ = [
    "CacheSynchronizer",
    "ChangeKind",
    "LoadBalancerIngress",
    "ServiceEntity",
    "ServiceListing",
    "ServiceMirror",
    "ServiceSource",
    "WatchEvent",
]
