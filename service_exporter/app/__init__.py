"""
Kubernetes service exporter application package.
"""
