"""
Unit tests for Kubernetes client construction.
"""

import pytest
from unittest.mock import MagicMock, patch
from kubernetes.config.config_exception import ConfigException

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_exporter.app.kube.client import build_core_api
from shared.config import DEFAULT_KUBECONFIG, ExporterConfig
from shared.errors import KubeClientError


class TestBuildCoreApi:
    """Test cases for build_core_api."""

    @patch("service_exporter.app.kube.client.config.new_client_from_config")
    def test_out_of_cluster_uses_kubeconfig(self, mock_new_client):
        """USE_LOCAL selects the kubeconfig file."""
        mock_new_client.return_value = MagicMock()
        exporter_config = ExporterConfig(use_local="1", kubeconfig="/tmp/kubeconfig")

        api = build_core_api(exporter_config)

        mock_new_client.assert_called_once_with(config_file="/tmp/kubeconfig")
        assert api.api_client is mock_new_client.return_value

    @patch("service_exporter.app.kube.client.config.new_client_from_config")
    def test_out_of_cluster_default_path(self, mock_new_client):
        """Without an explicit path the home kubeconfig is used."""
        exporter_config = ExporterConfig(use_local="true", kubeconfig=None)

        build_core_api(exporter_config)

        mock_new_client.assert_called_once_with(config_file=DEFAULT_KUBECONFIG)

    @patch("service_exporter.app.kube.client.config.load_incluster_config")
    def test_in_cluster(self, mock_load_incluster):
        """Without USE_LOCAL the service account configuration is loaded."""
        exporter_config = ExporterConfig(use_local="")

        build_core_api(exporter_config)

        mock_load_incluster.assert_called_once()

    @patch("service_exporter.app.kube.client.config.load_incluster_config")
    def test_in_cluster_failure(self, mock_load_incluster):
        """Missing in-cluster credentials are fatal."""
        mock_load_incluster.side_effect = ConfigException("Service host/port is not set.")

        with pytest.raises(KubeClientError) as exc_info:
            build_core_api(ExporterConfig(use_local=""))

        assert exc_info.value.code == "KUBE_CLIENT_CONFIG_FAILED"
        assert "Service host/port is not set." in exc_info.value.message

    @patch("service_exporter.app.kube.client.config.new_client_from_config")
    def test_bad_kubeconfig(self, mock_new_client):
        """An unreadable kubeconfig is fatal."""
        mock_new_client.side_effect = ConfigException("Invalid kube-config file. No configuration found.")

        with pytest.raises(KubeClientError):
            build_core_api(ExporterConfig(use_local="1", kubeconfig="/nonexistent"))
