"""
Data models for the service cache.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple


SERVICE_TYPE_LOAD_BALANCER = "LoadBalancer"


class ChangeKind(str, Enum):
    """Watch event kinds."""
    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
    BOOKMARK = "BOOKMARK"


@dataclass(frozen=True)
class LoadBalancerIngress:
    """One address assigned to a service by its load balancer."""
    ip: str = ""
    hostname: str = ""


@dataclass(frozen=True)
class ServiceEntity:
    """Snapshot of a single Kubernetes Service."""
    uid: str
    name: str
    namespace: str
    service_type: str = "ClusterIP"
    ingress: Tuple[LoadBalancerIngress, ...] = ()
    resource_version: str = ""

    @property
    def key(self) -> str:
        """namespace/name lookup key."""
        return f"{self.namespace}/{self.name}"

    @property
    def is_load_balancer(self) -> bool:
        return self.service_type == SERVICE_TYPE_LOAD_BALANCER

    @classmethod
    def from_k8s(cls, obj: Any) -> "ServiceEntity":
        """Build an entity from a kubernetes ``V1Service`` model."""
        metadata = obj.metadata
        spec = obj.spec
        status = obj.status

        ingress: List[LoadBalancerIngress] = []
        load_balancer = status.load_balancer if status is not None else None
        if load_balancer is not None and load_balancer.ingress:
            for entry in load_balancer.ingress:
                ingress.append(LoadBalancerIngress(
                    ip=entry.ip or "",
                    hostname=entry.hostname or ""
                ))

        return cls(
            uid=metadata.uid,
            name=metadata.name,
            namespace=metadata.namespace or "",
            service_type=(spec.type if spec is not None and spec.type else "ClusterIP"),
            ingress=tuple(ingress),
            resource_version=metadata.resource_version or ""
        )


@dataclass
class ServiceListing:
    """Result of a full list call."""
    entities: List[ServiceEntity] = field(default_factory=list)
    resource_version: str = ""


@dataclass(frozen=True)
class WatchEvent:
    """One change notification from the watch stream."""
    kind: ChangeKind
    entity: Optional[ServiceEntity] = None
    resource_version: str = ""
