"""
Connector model - Desired-state connector definitions.

A connector is identified by its name; its configuration is an opaque
string-to-string mapping passed through to Kafka Connect.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from pydantic import BaseModel, ValidationError, field_validator

ConnectorConfig = Dict[str, str]


class ConnectorParseError(Exception):
    """Raised when a connector definition cannot be parsed."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def connector_name(config: ConnectorConfig) -> str:
    """Return the connector name stored in a serialized config."""
    name = config.get("name")
    if not name:
        raise ValueError("Connector config must contain a 'name' field")
    return name


@dataclass(frozen=True)
class Connector:
    """A named connector and its configuration."""

    name: str
    config: ConnectorConfig = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: ConnectorConfig) -> "Connector":
        """Build a connector from a config that carries its own name."""
        return cls(name=connector_name(config), config=dict(config))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "config": dict(self.config)}


class ConnectorDefinition(BaseModel):
    """Wire format of a connector definition: ``{"name": ..., "config": {...}}``."""

    name: str
    config: Dict[str, str]

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("config", mode="before")
    @classmethod
    def stringify_values(cls, v: Any) -> Any:
        # Kafka Connect only accepts string values; manifests often use numbers
        if not isinstance(v, dict):
            return v
        result = {}
        for key, value in v.items():
            if isinstance(value, bool):
                result[key] = "true" if value else "false"
            elif isinstance(value, (int, float)):
                result[key] = str(value)
            else:
                result[key] = value
        return result

    def to_connector(self) -> Connector:
        return Connector(name=self.name, config=dict(self.config))


def parse_connector(data: Any) -> Connector:
    """
    Parse a connector definition.

    Args:
        data: A JSON string or an already decoded dict.

    Returns:
        The parsed Connector.

    Raises:
        ConnectorParseError: If the definition is not valid JSON or does not
            match the ``{name, config}`` shape.
    """
    try:
        if isinstance(data, (str, bytes)):
            definition = ConnectorDefinition.model_validate_json(data)
        else:
            definition = ConnectorDefinition.model_validate(data)
    except ValidationError as e:
        raise ConnectorParseError(f"Invalid connector definition: {e}") from e
    return definition.to_connector()


def parse_configmap(configmap: Dict[str, Any]) -> List[Connector]:
    """Parse every data entry of a ConfigMap into a connector."""
    metadata = configmap.get("metadata") or {}
    configmap_name = metadata.get("name")
    connectors = []
    for key, value in (configmap.get("data") or {}).items():
        try:
            connectors.append(parse_connector(value))
        except ConnectorParseError as e:
            raise ConnectorParseError(
                f"Failed to parse ConfigMap {configmap_name} key {key}: {e.message}"
            ) from e
    return connectors
