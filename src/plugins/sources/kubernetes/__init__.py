"""
Kubernetes ConfigMap source.

Watches labelled ConfigMaps through the Kubernetes API with aiohttp.
"""

from plugins.sources.kubernetes.watcher import (
    KubernetesApiError,
    KubernetesConfigMapSource,
)

__all__ = ["KubernetesApiError", "KubernetesConfigMapSource"]
