"""
Desired-state source plugins.

Sources provide the connectors that should exist, as a snapshot and as a
live stream of changes.
"""

from plugins.sources.base import ConnectorConfigSource

__all__ = ["ConnectorConfigSource"]
