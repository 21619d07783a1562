"""Configuration models using Pydantic for validation."""
from typing import Literal, Optional, Tuple
from pydantic import BaseModel, Field, field_validator
import os

DEFAULT_LISTEN_ADDRESS = ":9116"


def parse_listen_address(address: str) -> Tuple[str, int]:
    """
    Split a ``host:port`` listen address.

    An empty host (``":9116"``) means all interfaces.
    """
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValueError(f"Listen address must be host:port, got '{address}'")

    try:
        port_number = int(port)
    except ValueError:
        raise ValueError(f"Invalid port in listen address '{address}'")

    if not 0 < port_number < 65536:
        raise ValueError(f"Port out of range in listen address '{address}'")

    host = host.strip("[]") or "0.0.0.0"
    return host, port_number


class ServerConfig(BaseModel):
    """HTTP server settings."""
    listen_address: str = DEFAULT_LISTEN_ADDRESS

    @field_validator('listen_address')
    @classmethod
    def validate_listen_address(cls, v):
        parse_listen_address(v)
        return v

    @property
    def host(self) -> str:
        return parse_listen_address(self.listen_address)[0]

    @property
    def port(self) -> int:
        return parse_listen_address(self.listen_address)[1]


class HTTPClientConfig(BaseModel):
    """Outbound client used to fetch probe targets."""
    timeout_s: float = Field(default=10.0, gt=0)
    insecure_skip_verify: bool = True
    max_connections: int = Field(default=100, ge=1)
    follow_redirects: bool = True


class GlobalConfig(BaseModel):
    """Global configuration settings."""
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "text"
    metrics_prefix: str = "json_exporter_"


class Config(BaseModel):
    """Root configuration model."""
    global_: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    server: ServerConfig = Field(default_factory=ServerConfig)
    http_client: HTTPClientConfig = Field(default_factory=HTTPClientConfig)

    model_config = {"populate_by_name": True}


def load_config(config_path: Optional[str] = None) -> Config:
    """Load and validate configuration from a YAML file, or defaults when no path is given."""
    import yaml

    raw_config = {}
    if config_path is not None:
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r') as f:
            raw_config = yaml.safe_load(f) or {}

        if not isinstance(raw_config, dict):
            raise ValueError(f"Configuration file must contain a mapping: {config_path}")

    # Apply environment variable overrides
    if env_log_level := os.getenv('LOG_LEVEL'):
        raw_config.setdefault('global', {})['log_level'] = env_log_level

    if env_listen := os.getenv('JSON_EXPORTER_LISTEN_ADDRESS'):
        raw_config.setdefault('server', {})['listen_address'] = env_listen

    try:
        config = Config(**raw_config)
        return config
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")
