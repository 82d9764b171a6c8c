"""
Kubernetes service exporter.

Mirrors cluster Services through list + watch and publishes the
load-balancer address of each LoadBalancer service on /metrics.
"""

import argparse
import sys
from typing import List, Optional

from prometheus_client import CollectorRegistry

from shared.base_service import BaseService
from shared.config import ExporterConfig, get_config
from shared.errors import ExporterException
from shared.logging import get_logger
from shared.retry import RetryConfig

from .cache.store import ServiceMirror
from .cache.synchronizer import CacheSynchronizer, ServiceSource
from .exporters.service_info import ServiceInfoCollector
from .kube.client import build_core_api
from .kube.source import KubernetesServiceSource


class ServiceExporter(BaseService):
    """Exporter service implementation."""

    def __init__(
        self,
        config: Optional[ExporterConfig] = None,
        source: Optional[ServiceSource] = None,
        registry: Optional[CollectorRegistry] = None
    ):
        super().__init__("exporter", config, registry)

        if source is None:
            source = KubernetesServiceSource(
                build_core_api(self.config),
                watch_timeout_seconds=self.config.watch_timeout_seconds,
                request_timeout_seconds=self.config.request_timeout_seconds
            )

        # Initialize components
        self.mirror = ServiceMirror()
        self.synchronizer = CacheSynchronizer(
            source,
            mirror=self.mirror,
            resync_period_seconds=self.config.resync_period_seconds,
            retry_config=RetryConfig(
                base_delay=self.config.retry_base_delay_seconds,
                max_delay=self.config.retry_max_delay_seconds
            ),
            metrics=self.metrics
        )
        self.collector = ServiceInfoCollector(self.synchronizer.snapshot)
        self.registry.register(self.collector)

    async def start(self):
        """Start the synchronizer and wait for the initial list."""
        await self.synchronizer.start()
        try:
            await self.synchronizer.wait_for_sync(self.config.cache_sync_timeout_seconds)
        except ExporterException:
            await self.synchronizer.stop()
            raise

        self.logger.info("Exporter ready", services=len(self.mirror))

    async def stop(self):
        """Stop the synchronizer."""
        await self.synchronizer.stop()
        self.logger.info("Exporter stopped")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export Kubernetes LoadBalancer service details to Prometheus")
    parser.add_argument("--kubeconfig", help="(optional) absolute path to the kubeconfig file, used when USE_LOCAL is set")
    parser.add_argument("--port", type=int, help="port to serve /metrics on")
    parser.add_argument("--log-level", help="log level")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    config = get_config(kubeconfig=args.kubeconfig, port=args.port, log_level=args.log_level)

    try:
        service = ServiceExporter(config)
    except ExporterException as e:
        get_logger("exporter").error("Exporter failed to start", **e.to_dict())
        return 1

    service.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
