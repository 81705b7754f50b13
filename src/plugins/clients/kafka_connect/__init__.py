"""
Kafka Connect REST client.

Talks to the Kafka Connect worker REST API with aiohttp.
"""

from plugins.clients.kafka_connect.client import (
    KafkaConnectHttpClient,
    desired_config,
)

__all__ = ["KafkaConnectHttpClient", "desired_config"]
