"""
Kubernetes API adapters.
"""
