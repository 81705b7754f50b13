"""
Plugin system for the Kafka Connect Operator.

This package holds the two edges the reconcilers depend on: desired-state
sources and Kafka Connect clients.
"""

from plugins.clients.base import KafkaConnectClient, KafkaConnectError
from plugins.sources.base import ConnectorConfigSource

__all__ = [
    "ConnectorConfigSource",
    "KafkaConnectClient",
    "KafkaConnectError",
]
