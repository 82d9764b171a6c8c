"""
Kubernetes client construction.
"""

from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException

from shared.config import ExporterConfig
from shared.errors import KubeClientError
from shared.logging import get_logger


logger = get_logger("exporter.kube.client")


def build_core_api(exporter_config: ExporterConfig) -> client.CoreV1Api:
    """Create a CoreV1Api client.

    Uses the kubeconfig file when USE_LOCAL is set, otherwise the in-cluster
    service account.
    """
    try:
        if exporter_config.out_of_cluster:
            kubeconfig = exporter_config.kubeconfig_path
            api_client = config.new_client_from_config(config_file=kubeconfig)
            logger.info("Loaded kubeconfig", kubeconfig=kubeconfig)
        else:
            configuration = client.Configuration()
            config.load_incluster_config(client_configuration=configuration)
            api_client = client.ApiClient(configuration)
            logger.info("Loaded in-cluster configuration", host=configuration.host)
    except (ConfigException, OSError) as e:
        logger.error("Failed to build Kubernetes client", error=str(e))
        raise KubeClientError(
            str(e),
            details={"out_of_cluster": exporter_config.out_of_cluster}
        ) from e

    return client.CoreV1Api(api_client)
