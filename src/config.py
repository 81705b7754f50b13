"""
Configuration module for the Kafka Connect Operator.

Loads configuration from environment variables. The reconciliation core is
never handed these raw values; they are only used to build the edges
(Kafka Connect client, ConfigMap source, observability server).
"""

import os
from dataclasses import dataclass
from typing import Optional

SERVICE_ACCOUNT_DIR = "/var/run/secrets/kubernetes.io/serviceaccount"


@dataclass
class KafkaConnectConfig:
    """Kafka Connect REST API configuration."""

    base_url: str = "http://localhost:9000"
    request_timeout: int = 30  # seconds

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(
            base_url=os.getenv("BASE_URL", "http://localhost:9000"),
            request_timeout=int(os.getenv("KAFKA_CONNECT_TIMEOUT", "30")),
        )


def _default_api_url() -> str:
    host = os.getenv("KUBERNETES_SERVICE_HOST")
    if host:
        port = os.getenv("KUBERNETES_SERVICE_PORT", "443")
        return f"https://{host}:{port}"
    return "https://kubernetes.default.svc"


@dataclass
class KubernetesConfig:
    """Kubernetes ConfigMap source configuration."""

    namespace: str = "default"
    label_selector: str = "destination=connect"
    api_url: str = "https://kubernetes.default.svc"
    token_path: str = f"{SERVICE_ACCOUNT_DIR}/token"
    ca_path: str = f"{SERVICE_ACCOUNT_DIR}/ca.crt"
    watch_timeout: int = 600  # seconds before the API server closes a watch
    queue_size: int = 256

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(
            namespace=os.getenv("NAMESPACE", "default"),
            label_selector=os.getenv(
                "CONNECTOR_LABEL_SELECTOR", "destination=connect"
            ),
            api_url=os.getenv("KUBERNETES_API_URL") or _default_api_url(),
            token_path=os.getenv("KUBERNETES_TOKEN_PATH", f"{SERVICE_ACCOUNT_DIR}/token"),
            ca_path=os.getenv("KUBERNETES_CA_PATH", f"{SERVICE_ACCOUNT_DIR}/ca.crt"),
            watch_timeout=int(os.getenv("WATCH_TIMEOUT_SECONDS", "600")),
            queue_size=int(os.getenv("EVENT_QUEUE_SIZE", "256")),
        )


@dataclass
class ObservabilityConfig:
    """Health and metrics server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(
            host=os.getenv("METRICS_HOST", "0.0.0.0"),
            port=int(os.getenv("METRICS_PORT", "8080")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@dataclass
class Config:
    """Main configuration object."""

    kafka_connect: KafkaConnectConfig
    kubernetes: KubernetesConfig
    observability: ObservabilityConfig

    @classmethod
    def from_env(cls):
        """Load all configuration from environment variables."""
        return cls(
            kafka_connect=KafkaConnectConfig.from_env(),
            kubernetes=KubernetesConfig.from_env(),
            observability=ObservabilityConfig.from_env(),
        )

    @classmethod
    def default(cls):
        """Return default configuration."""
        return cls(
            kafka_connect=KafkaConnectConfig(),
            kubernetes=KubernetesConfig(),
            observability=ObservabilityConfig(),
        )


# Global config instance
config: Optional[Config] = None


def load_config() -> Config:
    """Load configuration (singleton pattern)."""
    global config
    if config is None:
        config = Config.from_env()
    return config


def get_config() -> Config:
    """Get the current configuration."""
    if config is None:
        return load_config()
    return config


def reset_config() -> None:
    """Reset configuration (mainly for testing)."""
    global config
    config = None
