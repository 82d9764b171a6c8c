"""
Prometheus collector publishing load-balancer details of cached services.
"""

from dataclasses import dataclass
from typing import Callable, Iterator, List

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector

from ..cache.models import ServiceEntity


METRIC_NAME = "kube_service_info_extended"
METRIC_HELP = "Extended information for services"
LABEL_NAMES = ["service", "namespace", "load_balancer_ip", "uid"]


@dataclass(frozen=True)
class Observation:
    """One exported sample."""
    service: str
    namespace: str
    load_balancer_ip: str
    uid: str
    value: float = 1

    def label_values(self) -> List[str]:
        return [self.service, self.namespace, self.load_balancer_ip, self.uid]


class ServiceInfoCollector(Collector):
    """Emits one sample per LoadBalancer service that has an ingress address.

    ``snapshot`` is called on every scrape and must return the cached
    services without doing any network I/O.
    """

    def __init__(self, snapshot: Callable[[], List[ServiceEntity]]):
        self.snapshot = snapshot

    def observations(self) -> Iterator[Observation]:
        """Derive observations from the current snapshot."""
        for entity in self.snapshot():
            if not entity.is_load_balancer:
                continue

            if not entity.ingress:
                # no address assigned yet
                continue

            yield Observation(
                service=entity.name,
                namespace=entity.namespace,
                load_balancer_ip=entity.ingress[0].ip,
                uid=entity.uid,
            )

    def describe(self):
        yield GaugeMetricFamily(METRIC_NAME, METRIC_HELP, labels=LABEL_NAMES)

    def collect(self):
        family = GaugeMetricFamily(METRIC_NAME, METRIC_HELP, labels=LABEL_NAMES)
        for observation in self.observations():
            family.add_metric(observation.label_values(), observation.value)
        yield family
