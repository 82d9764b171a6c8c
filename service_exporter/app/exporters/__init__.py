"""
Prometheus collectors derived from the service cache.
"""
