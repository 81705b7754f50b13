"""
Kafka Connect client plugins.

Clients implement the remote side of reconciliation: create, update, delete
and list connectors in a Kafka Connect cluster.
"""

from plugins.clients.base import KafkaConnectClient, KafkaConnectError

__all__ = ["KafkaConnectClient", "KafkaConnectError"]
