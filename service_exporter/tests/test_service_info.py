"""
Unit tests for ServiceInfoCollector.
"""

import pytest
from prometheus_client import CollectorRegistry, generate_latest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_exporter.app.cache.models import LoadBalancerIngress, ServiceEntity
from service_exporter.app.cache.store import ServiceMirror
from service_exporter.app.exporters.service_info import (
    METRIC_NAME,
    Observation,
    ServiceInfoCollector,
)
from service_exporter.tests.fakes import make_service


class TestServiceInfoCollector:
    """Test cases for ServiceInfoCollector."""

    @pytest.fixture
    def mirror(self):
        return ServiceMirror()

    @pytest.fixture
    def collector(self, mirror):
        return ServiceInfoCollector(mirror.list)

    @pytest.fixture
    def registry(self, collector):
        registry = CollectorRegistry()
        registry.register(collector)
        return registry

    def test_empty_mirror(self, collector):
        """No services, no observations."""
        assert list(collector.observations()) == []

    def test_skips_non_load_balancer(self, mirror, collector):
        """Only LoadBalancer services are exported."""
        mirror.upsert(make_service("u1", service_type="ClusterIP", ips=["10.0.0.1"]))
        mirror.upsert(make_service("u2", service_type="NodePort", ips=["10.0.0.2"]))

        assert list(collector.observations()) == []

    def test_skips_service_without_ingress(self, mirror, collector):
        """A LoadBalancer still provisioning contributes nothing."""
        mirror.upsert(make_service("u1", ips=[]))

        assert list(collector.observations()) == []

    def test_first_ingress_selected(self, mirror, collector):
        """The first delivered ingress address is exported, unsorted."""
        mirror.upsert(make_service("u1", name="web", namespace="prod", ips=["9.9.9.9", "1.1.1.1"]))

        assert list(collector.observations()) == [
            Observation(service="web", namespace="prod", load_balancer_ip="9.9.9.9", uid="u1", value=1)
        ]

    def test_hostname_only_ingress(self, mirror, collector):
        """An ingress with only a hostname exports an empty IP label."""
        mirror.upsert(ServiceEntity(
            uid="u1",
            name="elb",
            namespace="default",
            service_type="LoadBalancer",
            ingress=(LoadBalancerIngress(hostname="abc.elb.amazonaws.com"),)
        ))

        observations = list(collector.observations())
        assert len(observations) == 1
        assert observations[0].load_balancer_ip == ""

    def test_extraction_is_idempotent(self, mirror, collector):
        """Repeated pulls over an unchanged mirror yield identical results."""
        mirror.upsert(make_service("u1", ips=["1.1.1.1"]))
        mirror.upsert(make_service("u2", ips=["2.2.2.2"]))

        first = sorted(collector.observations(), key=lambda o: o.uid)
        second = sorted(collector.observations(), key=lambda o: o.uid)

        assert first == second
        assert all(observation.value == 1 for observation in second)

    def test_observations_follow_mirror(self, mirror, collector):
        """Gating, appearance and deletion across successive pulls."""
        mirror.upsert(make_service("u1", name="svc1", ips=[]))
        assert list(collector.observations()) == []

        mirror.upsert(make_service("u1", name="svc1", ips=["1.2.3.4"]))
        assert list(collector.observations()) == [
            Observation(service="svc1", namespace="default", load_balancer_ip="1.2.3.4", uid="u1")
        ]

        mirror.delete("u1")
        assert list(collector.observations()) == []

    def test_collect_exposition(self, mirror, registry):
        """The registry renders one gauge sample per qualifying service."""
        mirror.upsert(make_service("u1", name="svc1", namespace="default", ips=["1.2.3.4"]))
        mirror.upsert(make_service("u2", name="internal", service_type="ClusterIP"))

        assert registry.get_sample_value(METRIC_NAME, {
            "service": "svc1",
            "namespace": "default",
            "load_balancer_ip": "1.2.3.4",
            "uid": "u1",
        }) == 1.0

        output = generate_latest(registry).decode()
        assert "# HELP kube_service_info_extended Extended information for services" in output
        assert 'kube_service_info_extended{load_balancer_ip="1.2.3.4",namespace="default",service="svc1",uid="u1"} 1.0' in output
        assert "internal" not in output

    def test_value_does_not_accumulate(self, mirror, registry):
        """Every scrape recomputes the presence value from scratch."""
        mirror.upsert(make_service("u1", ips=["1.2.3.4"]))
        labels = {"service": "svc-u1", "namespace": "default", "load_balancer_ip": "1.2.3.4", "uid": "u1"}

        for _ in range(3):
            assert registry.get_sample_value(METRIC_NAME, labels) == 1.0

    def test_describe(self, collector):
        """Describe advertises the metric without reading the mirror."""
        families = list(collector.describe())

        assert [family.name for family in families] == [METRIC_NAME]
